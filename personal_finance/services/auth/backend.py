"""
Auth Backend

Abstract interface over the hosted auth API plus the Supabase
implementation. Sessions cross this boundary as AuthSession models so
nothing above it depends on the client library's types.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol

from pydantic import BaseModel, Field

from personal_finance.services.auth.pkce import CodeVerifierStore, get_verifier_store, with_flow_id
from personal_finance.services.storage.interface import AuthenticationError
from personal_finance.services.storage.supabase_store import SupabaseClient, error_message


class AuthSession(BaseModel):
    """An authenticated session as seen by the application."""

    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    access_token: str = Field(default="", repr=False)
    expires_at: Optional[int] = None


AuthChangeCallback = Callable[[str, Optional[AuthSession]], None]


class AuthSubscription(Protocol):
    def unsubscribe(self) -> None: ...


class AuthBackendInterface(ABC):
    """Operations the app needs from the hosted auth service."""

    @abstractmethod
    async def get_session(self) -> Optional[AuthSession]:
        """Current session, or None when signed out."""
        pass

    @abstractmethod
    def on_auth_state_change(self, callback: AuthChangeCallback) -> AuthSubscription:
        """
        Register for auth change notifications.

        The callback receives (event_name, session_or_None).
        """
        pass

    @abstractmethod
    async def sign_in_with_oauth(self, provider: str, redirect_to: Optional[str]) -> str:
        """Start an OAuth sign-in; returns the provider URL to send the user to."""
        pass

    @abstractmethod
    async def exchange_code_for_session(
        self,
        code: str,
        flow_id: Optional[str] = None,
    ) -> Optional[AuthSession]:
        """
        Complete an OAuth redirect by exchanging its code.

        `flow_id` is the flow parameter the redirect came back with.
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass


def to_auth_session(session: Any) -> Optional[AuthSession]:
    """Map a client library session object to AuthSession."""
    user = getattr(session, "user", None) if session is not None else None
    if user is None or not getattr(user, "id", None):
        return None
    return AuthSession(
        user_id=str(user.id),
        email=getattr(user, "email", None),
        access_token=getattr(session, "access_token", "") or "",
        expires_at=getattr(session, "expires_at", None),
    )


class SupabaseAuthBackend(AuthBackendInterface):
    """Supabase auth implementation."""

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        verifiers: Optional[CodeVerifierStore] = None,
    ):
        self._client = client or SupabaseClient()
        self._verifiers = verifiers or get_verifier_store()

    async def get_session(self) -> Optional[AuthSession]:
        try:
            session = self._client.auth.get_session()
        except Exception as e:
            raise AuthenticationError(f"Failed to read session: {error_message(e)}")
        return to_auth_session(session)

    def on_auth_state_change(self, callback: AuthChangeCallback) -> AuthSubscription:
        def forward(event, session):
            callback(str(event), to_auth_session(session))

        return self._client.auth.on_auth_state_change(forward)

    async def sign_in_with_oauth(self, provider: str, redirect_to: Optional[str]) -> str:
        """
        Start a PKCE sign-in.

        The redirect URL carries a fresh flow id and the client's code
        verifier is parked under it for the callback to claim.
        """
        flow_id = self._verifiers.new_flow_id()
        credentials: dict[str, Any] = {"provider": provider}
        if redirect_to:
            credentials["options"] = {"redirect_to": with_flow_id(redirect_to, flow_id)}
        try:
            response = self._client.auth.sign_in_with_oauth(credentials)
        except Exception as e:
            raise AuthenticationError(f"Failed to start sign-in: {error_message(e)}")

        verifier = self._client.auth_storage.code_verifier
        if redirect_to and verifier:
            self._verifiers.put(flow_id, verifier)
        return response.url

    async def exchange_code_for_session(
        self,
        code: str,
        flow_id: Optional[str] = None,
    ) -> Optional[AuthSession]:
        params = {"auth_code": code}
        verifier = self._verifiers.claim(flow_id) if flow_id else None
        if verifier:
            params["code_verifier"] = verifier
        try:
            response = self._client.auth.exchange_code_for_session(params)
        except Exception as e:
            raise AuthenticationError(error_message(e))
        return to_auth_session(getattr(response, "session", None))

    async def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        except Exception as e:
            raise AuthenticationError(f"Failed to sign out: {error_message(e)}")
