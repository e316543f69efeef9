from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from starlette.responses import Response

from rocal.core.config import settings
from rocal.core.security import create_session_token, decode_session_token
from rocal.schemas.auth import AuthSession, Identity
from rocal.services.session import SessionManager

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"
PUBLIC_PATHS = {"/health"}
PUBLIC_PREFIXES = ("/static",)


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def guard_redirect(path: str, identity: Identity | None) -> str | None:
    if path == LOGIN_PATH:
        return DASHBOARD_PATH if identity is not None else None
    if is_public_path(path):
        return None
    if identity is None:
        return LOGIN_PATH
    return None


def read_session_cookie(request: Request) -> AuthSession | None:
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    payload = decode_session_token(token, settings.session_ttl_seconds)
    if not payload:
        return None
    try:
        return AuthSession.model_validate(payload)
    except ValueError:
        logger.warning("Ignoring malformed session cookie")
        return None


def write_session_cookie(response: Response, session: AuthSession) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=create_session_token(session.model_dump(mode="json")),
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        max_age=settings.session_ttl_seconds,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name)


def sync_session_cookie(response: Response, previous: AuthSession | None, current: AuthSession | None) -> None:
    if current == previous:
        return
    if current is None:
        clear_session_cookie(response)
    else:
        write_session_cookie(response, current)


def get_session_manager(request: Request) -> SessionManager:
    manager = getattr(request.state, "session_manager", None)
    if manager is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return manager


def get_current_identity(request: Request) -> Identity | None:
    return getattr(request.state, "user", None)


def require_identity(request: Request) -> Identity:
    identity = get_current_identity(request)
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return identity
