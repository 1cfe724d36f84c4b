"""Shared FastAPI dependencies: per-session calendar state and backend clients."""

from fastapi import Depends, Request

from app.core.session_store import CredentialStore
from app.services.backend_client import RidingSchoolClient
from app.services.calendar_page import CalendarSession, CalendarSessionRegistry


def get_session_id(request: Request) -> str:
    """Session id assigned by SessionMiddleware."""
    return request.state.session_id


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_session_registry(request: Request) -> CalendarSessionRegistry:
    return request.app.state.calendar_sessions


def get_calendar_session(
    session_id: str = Depends(get_session_id),
    registry: CalendarSessionRegistry = Depends(get_session_registry),
) -> CalendarSession:
    """The caller's controller + renderers, created on first use."""
    return registry.get(session_id)


async def get_loaded_session(
    session: CalendarSession = Depends(get_calendar_session),
) -> CalendarSession:
    """Calendar session with classes and resource lists loaded for this request."""
    await session.controller.refresh()
    return session


def get_anonymous_client(request: Request) -> RidingSchoolClient:
    """Backend client without a stored credential (login)."""
    return RidingSchoolClient(request.app.state.http_client)


def get_session_client(
    request: Request,
    session_id: str = Depends(get_session_id),
    store: CredentialStore = Depends(get_credential_store),
) -> RidingSchoolClient:
    """Backend client carrying the caller's stored credential (logout)."""
    return RidingSchoolClient(
        request.app.state.http_client,
        credentials=store.get_credentials(session_id),
    )
