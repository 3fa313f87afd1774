"""
Auth Services Package

Session state, the hosted auth backend and the sign-in flows.
"""

from personal_finance.services.auth.backend import (
    AuthBackendInterface,
    AuthSession,
    SupabaseAuthBackend,
)
from personal_finance.services.auth.service import (
    AuthService,
    CallbackDestination,
    ProfileValidationError,
)
from personal_finance.services.auth.pkce import (
    FLOW_PARAM,
    CodeVerifierStore,
    get_verifier_store,
)
from personal_finance.services.auth.session import SessionState, SessionStatus
from personal_finance.services.storage.interface import AuthenticationError

__all__ = [
    "AuthBackendInterface",
    "AuthService",
    "AuthSession",
    "AuthenticationError",
    "CallbackDestination",
    "CodeVerifierStore",
    "FLOW_PARAM",
    "ProfileValidationError",
    "SessionState",
    "SessionStatus",
    "SupabaseAuthBackend",
    "get_verifier_store",
]
