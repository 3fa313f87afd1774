"""
Session State

An explicitly owned, lifecycle-scoped holder of the current auth state.
Whatever renders protected views is handed one of these; nothing reads
auth state from module globals.

Lifecycle:
    async with SessionState(backend) as session:
        ...  # status is AUTHENTICATED / UNAUTHENTICATED after start()

close() unsubscribes from the backend deterministically. Notifications
arriving after close() are ignored.
"""

from enum import Enum
from typing import Callable, Optional

import structlog

from personal_finance.services.auth.backend import (
    AuthBackendInterface,
    AuthSession,
    AuthSubscription,
)
from personal_finance.services.storage.interface import AuthenticationError


class SessionStatus(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


SessionListener = Callable[[SessionStatus, Optional[AuthSession]], None]


class SessionState:
    """Tracks whether a user is signed in and notifies listeners on change."""

    def __init__(self, backend: AuthBackendInterface):
        self._backend = backend
        self._status = SessionStatus.LOADING
        self._session: Optional[AuthSession] = None
        self._listeners: list[SessionListener] = []
        self._subscription: Optional[AuthSubscription] = None
        self._closed = False
        self._logger = structlog.get_logger(__name__)

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def user_id(self) -> Optional[str]:
        return self._session.user_id if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._status == SessionStatus.AUTHENTICATED

    def require_user_id(self) -> str:
        """Return the signed-in user's id or raise AuthenticationError."""
        if not self.user_id:
            raise AuthenticationError()
        return self.user_id

    def subscribe(self, listener: SessionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def start(self) -> None:
        """Subscribe to backend changes, then load the current session."""
        if self._subscription is None and not self._closed:
            try:
                self._subscription = self._backend.on_auth_state_change(self._handle_change)
            except Exception as e:
                self._logger.warning("auth_subscribe_failed", error=str(e))

        try:
            session = await self._backend.get_session()
        except Exception as e:
            self._logger.warning("session_load_failed", error=str(e))
            session = None

        if self._closed:
            return
        self._set(session)

    async def refresh(self) -> None:
        """Re-read the session from the backend (e.g. after an OAuth callback)."""
        await self.start()

    def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._listeners.clear()

    async def __aenter__(self) -> "SessionState":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _handle_change(self, event: str, session: Optional[AuthSession]) -> None:
        if self._closed:
            return
        self._logger.debug("auth_state_changed", auth_event=event, authenticated=session is not None)
        self._set(session)

    def _set(self, session: Optional[AuthSession]) -> None:
        self._session = session
        self._status = (
            SessionStatus.AUTHENTICATED if session is not None
            else SessionStatus.UNAUTHENTICATED
        )
        for listener in list(self._listeners):
            listener(self._status, session)
