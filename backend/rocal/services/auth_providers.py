from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rocal.clients.supabase import SupabaseClient, SupabaseError
from rocal.core.config import settings
from rocal.core.errors import AuthProviderError
from rocal.core.security import create_access_token, decode_access_token, verify_password
from rocal.db.session import SessionLocal
from rocal.repositories import users as users_repo
from rocal.schemas.auth import AuthSession, Identity
from rocal.services.store import build_supabase_client

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"
USER_UPDATED = "USER_UPDATED"

AuthStateListener = Callable[[str, AuthSession | None], None]


class Subscription:
    def __init__(self, listeners: list[AuthStateListener], listener: AuthStateListener) -> None:
        self._listeners = listeners
        self._listener = listener

    def unsubscribe(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


class SessionProvider(ABC):
    """Base for auth backends.

    Subclasses implement ``get_current_session``, ``sign_in`` and ``sign_out``
    and call ``_emit`` whenever the session state changes, including changes
    discovered while validating an existing session (refresh, revocation).
    """

    def __init__(self) -> None:
        self._listeners: list[AuthStateListener] = []

    def on_auth_state_change(self, listener: AuthStateListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    def _emit(self, event: str, session: AuthSession | None) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    @abstractmethod
    def get_current_session(self, session: AuthSession | None) -> AuthSession | None: ...

    @abstractmethod
    def sign_in(self, identifier: str, secret: str) -> AuthSession: ...

    @abstractmethod
    def sign_out(self, session: AuthSession | None) -> None: ...


class LocalAuthProvider(SessionProvider):
    def __init__(self, session_factory: Callable[[], Session], token_ttl_seconds: int) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._token_ttl_seconds = token_ttl_seconds

    def _identity_for(self, user) -> Identity:
        return Identity(id=str(user.id), email=user.email, username=user.username)

    def _issue(self, user) -> AuthSession:
        return AuthSession(
            access_token=create_access_token(user.id),
            expires_at=int(time.time()) + self._token_ttl_seconds,
            user=self._identity_for(user),
        )

    def get_current_session(self, session: AuthSession | None) -> AuthSession | None:
        if session is None:
            return None
        user_id = decode_access_token(session.access_token, self._token_ttl_seconds)
        try:
            with self._session_factory() as db:
                user = users_repo.get_user_by_id(db, user_id) if user_id else None
                identity = self._identity_for(user) if user and user.is_active else None
        except SQLAlchemyError as exc:
            raise AuthProviderError("Could not verify the current session.") from exc
        if identity is None:
            self._emit(SIGNED_OUT, None)
            return None
        current = session.model_copy(update={"user": identity})
        if identity != session.user:
            self._emit(USER_UPDATED, current)
        return current

    def sign_in(self, identifier: str, secret: str) -> AuthSession:
        try:
            with self._session_factory() as db:
                user = users_repo.get_user_by_login(db, identifier)
                if not user or not user.is_active or not verify_password(secret, user.password_hash):
                    raise AuthProviderError("Invalid login credentials")
                session = self._issue(user)
        except SQLAlchemyError as exc:
            raise AuthProviderError("Login is unavailable. Check the database connection.") from exc
        self._emit(SIGNED_IN, session)
        return session

    def sign_out(self, session: AuthSession | None) -> None:
        self._emit(SIGNED_OUT, None)


def _session_from_payload(payload: dict[str, Any]) -> AuthSession:
    user = payload.get("user") or {}
    if not payload.get("access_token") or not user.get("id"):
        raise AuthProviderError("Auth service returned an incomplete session.")
    expires_at = payload.get("expires_at")
    if expires_at is None and payload.get("expires_in"):
        expires_at = int(time.time()) + int(payload["expires_in"])
    return AuthSession(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token"),
        expires_at=expires_at,
        user=Identity(id=str(user["id"]), email=user.get("email")),
    )


class SupabaseAuthProvider(SessionProvider):
    def __init__(self, client: SupabaseClient) -> None:
        super().__init__()
        self._client = client

    def _refresh(self, session: AuthSession) -> AuthSession | None:
        if not session.refresh_token:
            return None
        try:
            payload = self._client.refresh_session(session.refresh_token)
        except SupabaseError as exc:
            if exc.status_code is None:
                raise AuthProviderError(exc.message) from exc
            logger.info("Session refresh rejected: %s", exc.message)
            return None
        refreshed = _session_from_payload(payload)
        self._emit(TOKEN_REFRESHED, refreshed)
        return refreshed

    def get_current_session(self, session: AuthSession | None) -> AuthSession | None:
        if session is None:
            return None
        expired = session.expires_at is not None and session.expires_at <= int(time.time())
        if not expired:
            try:
                user = self._client.get_user(session.access_token)
            except SupabaseError as exc:
                if exc.status_code not in (401, 403):
                    raise AuthProviderError(exc.message) from exc
            else:
                identity = Identity(id=str(user["id"]), email=user.get("email"))
                current = session.model_copy(update={"user": identity})
                if identity != session.user:
                    self._emit(USER_UPDATED, current)
                return current
        refreshed = self._refresh(session)
        if refreshed is None:
            self._emit(SIGNED_OUT, None)
        return refreshed

    def sign_in(self, identifier: str, secret: str) -> AuthSession:
        try:
            payload = self._client.sign_in_with_password(identifier.strip(), secret)
        except SupabaseError as exc:
            raise AuthProviderError(exc.message) from exc
        session = _session_from_payload(payload or {})
        self._emit(SIGNED_IN, session)
        return session

    def sign_out(self, session: AuthSession | None) -> None:
        try:
            if session is not None:
                self._client.sign_out(session.access_token)
        except SupabaseError as exc:
            raise AuthProviderError(exc.message) from exc
        finally:
            self._emit(SIGNED_OUT, None)


def build_session_provider() -> SessionProvider:
    if settings.store_backend == "supabase":
        return SupabaseAuthProvider(build_supabase_client())
    return LocalAuthProvider(SessionLocal, settings.session_ttl_seconds)
