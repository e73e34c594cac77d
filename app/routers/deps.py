"""Shared route dependencies: guest session cookie, reveal store, catalog, subscription service."""
from fastapi import Request, Response

from app.core.config import get_settings
from app.core.security import create_session_token, new_session_id, verify_session_token
from app.services.catalog import ScenarioCatalog, get_catalog
from app.services.reveal import RevealSessionStore
from app.services.subscription import SubscriptionService

settings = get_settings()


def get_session_id(request: Request) -> str:
    sid = verify_session_token(request.cookies.get(settings.session_cookie_name))
    if sid is None:
        sid = new_session_id()
    return sid


def ensure_session_cookie(request: Request, response: Response, session_id: str) -> None:
    if verify_session_token(request.cookies.get(settings.session_cookie_name)) == session_id:
        return
    response.set_cookie(
        key=settings.session_cookie_name,
        value=create_session_token(session_id),
        max_age=settings.session_cookie_max_age,
        httponly=True,
        samesite="lax",
        path="/",
    )


def get_reveal_store(request: Request) -> RevealSessionStore:
    return request.app.state.reveal_store


def get_subscription_service(request: Request) -> SubscriptionService:
    return request.app.state.subscription_service


def get_scenario_catalog() -> ScenarioCatalog:
    return get_catalog()
