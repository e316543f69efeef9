from __future__ import annotations

import logging
from collections.abc import Callable

from rocal.core.errors import AuthProviderError
from rocal.schemas.auth import AuthSession, Identity, LoginResult
from rocal.services.auth_providers import SessionProvider, Subscription

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Identity | None], None]


class SessionManager:
    """Holds the current identity for one visitor.

    The manager is created with a provider and handed to every component that
    needs the identity. ``start`` reconciles with a session the visitor
    already holds, then follows the provider's auth events until ``stop``.
    Listeners registered with ``subscribe`` are called on every identity
    change.
    """

    def __init__(self, provider: SessionProvider) -> None:
        self._provider = provider
        self._identity: Identity | None = None
        self._session: AuthSession | None = None
        self._listeners: list[IdentityListener] = []
        self._subscription: Subscription | None = None
        self.loading = True

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def session(self) -> AuthSession | None:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self, existing: AuthSession | None = None) -> Identity | None:
        if self._subscription is None:
            self._subscription = self._provider.on_auth_state_change(self._handle_auth_event)
        try:
            current = self._provider.get_current_session(existing)
        except AuthProviderError as exc:
            logger.warning("Could not restore session: %s", exc)
            current = None
        self._set_session(current)
        self.loading = False
        return self._identity

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def login(self, credential: str, secret: str) -> LoginResult:
        try:
            session = self._provider.sign_in(credential, secret)
        except AuthProviderError as exc:
            return LoginResult(success=False, error=str(exc) or "Invalid credentials.")
        self._set_session(session)
        return LoginResult(success=True, identity=session.user, session=session)

    def logout(self) -> None:
        try:
            self._provider.sign_out(self._session)
        except AuthProviderError as exc:
            logger.warning("Remote sign-out failed: %s", exc)
        finally:
            self._set_session(None)

    def _handle_auth_event(self, event: str, session: AuthSession | None) -> None:
        logger.debug("Auth event %s", event)
        self._set_session(session)

    def _set_session(self, session: AuthSession | None) -> None:
        previous = self._identity
        self._session = session
        self._identity = session.user if session else None
        if self._identity != previous:
            for listener in list(self._listeners):
                listener(self._identity)
