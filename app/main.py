"""CEO Business Tarot - FastAPI app entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.core.config import APP_DIR, get_settings
from app.core.errors import InternalError, ValidationError
from app.routers import api, web
from app.routers.api import cors_headers
from app.services.catalog import get_catalog
from app.services.reveal import RevealSessionStore
from app.services.sinks import build_ledger, build_notifier
from app.services.subscription import INTERNAL_ERROR_MESSAGE, SubscriptionService

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # load the catalog once so a broken data file fails at startup
    catalog = get_catalog()

    ledger = build_ledger(settings)
    notifier = build_notifier(settings)
    app.state.subscription_service = SubscriptionService(ledger, notifier, timeout=settings.sink_timeout_seconds)
    app.state.reveal_store = RevealSessionStore(
        line_height=settings.assumed_line_height,
        min_step=settings.min_reveal_step,
        max_age=settings.session_cookie_max_age,
        max_sessions=settings.reveal_max_sessions,
    )

    logger.info("Scenarios: %d", len(catalog))
    logger.info("Google Sheets: %s", "configured" if ledger.configured else "not configured")
    logger.info("Resend: %s", "configured" if notifier.configured else "not configured (test mode)")
    yield
    # shutdown if needed


app = FastAPI(
    title="CEO Business Tarot",
    description="Business tarot reading with a book launch notification signup",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_allow_origins.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Mount static files at /static
app.mount("/static", StaticFiles(directory=str(APP_DIR / "static")), name="static")

app.include_router(web.router)
app.include_router(api.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info("Rejected subscription: %s", exc.reason)
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": exc.user_message},
        headers=cors_headers(),
    )


@app.exception_handler(InternalError)
async def internal_error_handler(request: Request, exc: InternalError):
    logger.error("Internal error on %s: %s", request.url.path, exc, exc_info=exc.__cause__)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": INTERNAL_ERROR_MESSAGE},
        headers=cors_headers(),
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
