"""Web routes: scenario selection, card reading, subscribe form, reset. Jinja2 templates."""
import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from app.core.config import APP_DIR, get_settings
from app.routers.deps import (
    ensure_session_cookie,
    get_reveal_store,
    get_scenario_catalog,
    get_session_id,
    get_subscription_service,
)
from app.schemas.subscription import SubscriptionResultSchema
from app.services.catalog import ScenarioCatalog
from app.services.reveal import RevealMachine, RevealSessionStore
from app.services.subscription import SubscriptionService

router = APIRouter()
settings = get_settings()
templates = Jinja2Templates(directory=str(APP_DIR / "templates"))


def _render_reading(
    request: Request,
    machine: RevealMachine,
    result: SubscriptionResultSchema | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "reading.html",
        {
            "scenario": machine.scenario,
            "reveal": machine.snapshot(with_cue=False),
            "result": result,
            "share_url": settings.share_url,
            "threads_url": settings.threads_url,
        },
        status_code=status_code,
    )


# ---------- routes ----------

@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    catalog: Annotated[ScenarioCatalog, Depends(get_scenario_catalog)],
    session_id: Annotated[str, Depends(get_session_id)],
):
    resp = templates.TemplateResponse(request, "home.html", {"scenarios": catalog.summaries()})
    ensure_session_cookie(request, resp, session_id)
    return resp


@router.post("/select", response_class=RedirectResponse)
async def select_post(
    request: Request,
    catalog: Annotated[ScenarioCatalog, Depends(get_scenario_catalog)],
    store: Annotated[RevealSessionStore, Depends(get_reveal_store)],
    session_id: Annotated[str, Depends(get_session_id)],
    scenario_id: Annotated[str, Form()],
):
    scenario = catalog.get(scenario_id)
    if not scenario:
        return templates.TemplateResponse(
            request,
            "error.html",
            {"message": "선택한 고민을 찾을 수 없습니다. 처음부터 다시 골라주세요."},
            status_code=404,
        )

    # the fate-picking pause
    if settings.selection_delay_seconds > 0:
        await asyncio.sleep(settings.selection_delay_seconds)

    store.select(session_id, scenario)
    response = RedirectResponse(request.url_for("reading_get"), status_code=303)
    ensure_session_cookie(request, response, session_id)
    return response


@router.get("/reading", response_class=HTMLResponse)
async def reading_get(
    request: Request,
    store: Annotated[RevealSessionStore, Depends(get_reveal_store)],
    session_id: Annotated[str, Depends(get_session_id)],
):
    machine = store.get(session_id)
    if machine is None:
        return RedirectResponse(request.url_for("home"), status_code=303)
    return _render_reading(request, machine)


@router.post("/reading/flip", response_class=RedirectResponse)
async def flip_post(
    request: Request,
    store: Annotated[RevealSessionStore, Depends(get_reveal_store)],
    session_id: Annotated[str, Depends(get_session_id)],
    image_ready: Annotated[int, Form()] = 0,
):
    machine = store.get(session_id)
    if machine is None:
        return RedirectResponse(request.url_for("home"), status_code=303)
    if image_ready:
        machine.mark_image_ready()
    machine.flip()
    return RedirectResponse(request.url_for("reading_get"), status_code=303)


@router.post("/reading/continue", response_class=RedirectResponse)
async def continue_post(
    request: Request,
    store: Annotated[RevealSessionStore, Depends(get_reveal_store)],
    session_id: Annotated[str, Depends(get_session_id)],
    viewport_height: Annotated[int | None, Form()] = None,
):
    machine = store.get(session_id)
    if machine is None:
        return RedirectResponse(request.url_for("home"), status_code=303)

    machine.continue_reading(viewport_height if viewport_height is not None else settings.default_viewport_height)
    url = str(request.url_for("reading_get"))
    if machine.last_scroll_to is not None:
        url += f"#line-{machine.last_scroll_to}"
    return RedirectResponse(url, status_code=303)


@router.post("/reading/subscribe", response_class=HTMLResponse)
async def subscribe_post(
    request: Request,
    store: Annotated[RevealSessionStore, Depends(get_reveal_store)],
    service: Annotated[SubscriptionService, Depends(get_subscription_service)],
    session_id: Annotated[str, Depends(get_session_id)],
    name: Annotated[str, Form()] = "",
    email: Annotated[str, Form()] = "",
):
    machine = store.get(session_id)
    if machine is None:
        return RedirectResponse(request.url_for("home"), status_code=303)
    result = await service.submit(name, email)
    return _render_reading(request, machine, result=result, status_code=200 if result.success else 400)


@router.post("/reading/reset", response_class=RedirectResponse)
async def reset_post(
    request: Request,
    store: Annotated[RevealSessionStore, Depends(get_reveal_store)],
    session_id: Annotated[str, Depends(get_session_id)],
):
    store.reset(session_id)
    return RedirectResponse(request.url_for("home"), status_code=303)
