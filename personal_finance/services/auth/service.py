"""
Auth Flows

OAuth sign-in, the redirect callback, profile completion and sign-out.

Callback flow:
1. Provider error params → fail with the provider's description
2. Exchange the auth code (if any) for a session
3. No session yet → wait briefly and check exactly once more
4. Signed in → decide where to go: profile completion or home
"""

import asyncio
from enum import Enum
from typing import Mapping, Optional

from personal_finance.audit import AuditLogger
from personal_finance.config import AuthSettings, get_settings
from personal_finance.services.auth.backend import AuthBackendInterface, AuthSession
from personal_finance.services.auth.pkce import FLOW_PARAM
from personal_finance.services.auth.session import SessionState
from personal_finance.services.storage.interface import (
    AuthenticationError,
    ProfileStorageInterface,
)


NO_SESSION_MESSAGE = "No active session found. Please sign in again."


class CallbackDestination(str, Enum):
    HOME = "home"
    COMPLETE_PROFILE = "complete_profile"


class ProfileValidationError(ValueError):
    """Profile form rejected before saving."""
    pass


class AuthService:
    """Sign-in, callback, profile completion and sign-out."""

    def __init__(
        self,
        backend: AuthBackendInterface,
        session: SessionState,
        profiles: ProfileStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AuthSettings] = None,
    ):
        self._backend = backend
        self._session = session
        self._profiles = profiles
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().auth

    async def start_sign_in(self) -> str:
        """Return the provider URL the user must visit to sign in."""
        return await self._backend.sign_in_with_oauth(
            provider=self._settings.oauth_provider,
            redirect_to=self._settings.redirect_url,
        )

    async def complete_callback(self, params: Mapping[str, str]) -> CallbackDestination:
        """
        Finish the OAuth redirect.

        Args:
            params: The callback URL's query parameters

        Raises:
            AuthenticationError: Provider error, failed exchange, or no session
        """
        try:
            session = await self._resolve_session(params)
        except AuthenticationError as e:
            if self._audit_logger:
                await self._audit_logger.log_sign_in_failed(str(e))
            raise

        await self._session.refresh()
        if self._audit_logger:
            await self._audit_logger.log_signed_in(session.user_id, self._settings.oauth_provider)

        if await self.needs_name_completion(session.user_id):
            return CallbackDestination.COMPLETE_PROFILE
        return CallbackDestination.HOME

    async def _resolve_session(self, params: Mapping[str, str]) -> AuthSession:
        error = params.get("error")
        if error:
            raise AuthenticationError(params.get("error_description") or error)

        session = None
        code = params.get("code")
        if code:
            session = await self._backend.exchange_code_for_session(code, params.get(FLOW_PARAM))

        if session is None:
            session = await self._backend.get_session()
        if session is None:
            # Session may hydrate shortly after the redirect
            await asyncio.sleep(self._settings.callback_retry_delay_seconds)
            session = await self._backend.get_session()
        if session is None:
            raise AuthenticationError(NO_SESSION_MESSAGE)
        return session

    async def needs_name_completion(self, user_id: Optional[str]) -> bool:
        if not user_id:
            return True
        profile = await self._profiles.get_profile(user_id)
        return profile is None or not profile.is_complete

    async def complete_profile(self, first_name: str, last_name: str) -> None:
        """Save both names for the signed-in user."""
        first = (first_name or "").strip()
        last = (last_name or "").strip()
        if not first or not last:
            raise ProfileValidationError("Please enter both first and last names.")

        user_id = self._session.require_user_id()
        await self._profiles.update_names(user_id, first, last)
        if self._audit_logger:
            await self._audit_logger.log_profile_updated(user_id)

    async def sign_out(self) -> None:
        user_id = self._session.user_id
        await self._backend.sign_out()
        await self._session.refresh()
        if self._audit_logger:
            await self._audit_logger.log_signed_out(user_id)
