"""API routes: JSON for scenarios, the reveal state machine, and subscribe."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.errors import InternalError
from app.routers.deps import (
    ensure_session_cookie,
    get_reveal_store,
    get_scenario_catalog,
    get_session_id,
    get_subscription_service,
)
from app.schemas.reveal import RevealContinueSchema, RevealOutSchema, RevealSelectSchema
from app.schemas.scenario import ScenarioSchema, ScenarioSummarySchema
from app.schemas.subscription import SubscriptionResultSchema
from app.services.catalog import ScenarioCatalog
from app.services.reveal import RevealMachine, RevealSessionStore
from app.services.subscription import SubscriptionService, validate_subscription

router = APIRouter(prefix="/api", tags=["api"])
settings = get_settings()


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.cors_allow_origins,
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }


def _optional_str(value) -> str | None:
    return value if isinstance(value, str) else None


def require_machine(
    store: Annotated[RevealSessionStore, Depends(get_reveal_store)],
    session_id: Annotated[str, Depends(get_session_id)],
) -> RevealMachine:
    machine = store.get(session_id)
    if machine is None:
        raise HTTPException(status_code=404, detail="No scenario selected")
    return machine


# ---------- scenarios ----------

@router.get("/scenarios", response_model=list[ScenarioSummarySchema])
async def list_scenarios(catalog: Annotated[ScenarioCatalog, Depends(get_scenario_catalog)]):
    """Scenario picker entries, in catalog order."""
    return catalog.summaries()


@router.get("/scenarios/{scenario_id}", response_model=ScenarioSchema)
async def get_scenario(scenario_id: str, catalog: Annotated[ScenarioCatalog, Depends(get_scenario_catalog)]):
    """Get one scenario by ID."""
    scenario = catalog.get(scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail="Scenario not found")
    return scenario


# ---------- reveal ----------

@router.get("/reveal", response_model=RevealOutSchema)
async def get_reveal(machine: Annotated[RevealMachine, Depends(require_machine)]):
    return machine.snapshot(with_cue=False)


@router.post("/reveal/select", response_model=RevealOutSchema)
async def select_scenario(
    request: Request,
    response: Response,
    body: RevealSelectSchema,
    catalog: Annotated[ScenarioCatalog, Depends(get_scenario_catalog)],
    store: Annotated[RevealSessionStore, Depends(get_reveal_store)],
    session_id: Annotated[str, Depends(get_session_id)],
):
    """Start a reading; always begins face down with nothing revealed."""
    scenario = catalog.get(body.scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail="Scenario not found")
    machine = store.select(session_id, scenario)
    ensure_session_cookie(request, response, session_id)
    return machine.snapshot()


@router.post("/reveal/image-ready", response_model=RevealOutSchema)
async def image_ready(machine: Annotated[RevealMachine, Depends(require_machine)]):
    """Card image finished loading, or failed to; both make the card flippable."""
    machine.mark_image_ready()
    return machine.snapshot()


@router.post("/reveal/flip", response_model=RevealOutSchema)
async def flip_card(machine: Annotated[RevealMachine, Depends(require_machine)]):
    machine.flip()
    return machine.snapshot()


@router.post("/reveal/continue", response_model=RevealOutSchema)
async def continue_reading(
    machine: Annotated[RevealMachine, Depends(require_machine)],
    body: RevealContinueSchema | None = None,
):
    """Reveal roughly one more viewport of the essay."""
    viewport_height = body.viewport_height if body and body.viewport_height is not None else settings.default_viewport_height
    machine.continue_reading(viewport_height)
    return machine.snapshot()


@router.delete("/reveal")
async def reset_reveal(
    store: Annotated[RevealSessionStore, Depends(get_reveal_store)],
    session_id: Annotated[str, Depends(get_session_id)],
):
    """Back to scenario selection; the reading state is discarded."""
    store.reset(session_id)
    return {"status": "reset"}


# ---------- subscribe ----------

@router.options("/subscribe")
async def subscribe_preflight():
    return Response(status_code=200, headers=cors_headers())


@router.api_route("/subscribe", methods=["GET", "PUT", "PATCH", "DELETE"])
async def subscribe_method_not_allowed():
    return JSONResponse(
        status_code=405,
        content={"success": False, "error": "Method not allowed"},
        headers={"Allow": "POST, OPTIONS", **cors_headers()},
    )


@router.post("/subscribe", response_model=SubscriptionResultSchema, response_model_exclude_none=True)
async def subscribe(
    request: Request,
    response: Response,
    service: Annotated[SubscriptionService, Depends(get_subscription_service)],
):
    """Capture a lead. Succeeds once input is valid, whatever the sinks do."""
    response.headers.update(cors_headers())
    try:
        body = await request.json()
    except ValueError as e:
        raise InternalError("Request body is not valid JSON") from e
    if not isinstance(body, dict):
        raise InternalError("Request body must be a JSON object")

    sub = validate_subscription(_optional_str(body.get("name")), _optional_str(body.get("email")))
    try:
        return await service.accept(sub)
    except Exception as e:
        raise InternalError("Unexpected subscription failure") from e
