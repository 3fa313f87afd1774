"""Services package."""

from personal_finance.services.auth import (
    AuthBackendInterface,
    AuthService,
    AuthSession,
    CallbackDestination,
    ProfileValidationError,
    SessionState,
    SessionStatus,
    SupabaseAuthBackend,
)
from personal_finance.services.storage import (
    AuthenticationError,
    ConnectionError,
    NotFoundError,
    ProfileStorageInterface,
    RecordStorageInterface,
    StorageError,
    SupabaseClient,
    SupabaseProfileStorage,
    SupabaseRecordStorage,
)

__all__ = [
    # Auth services
    "AuthBackendInterface",
    "AuthService",
    "AuthSession",
    "CallbackDestination",
    "ProfileValidationError",
    "SessionState",
    "SessionStatus",
    "SupabaseAuthBackend",
    # Storage services
    "AuthenticationError",
    "ConnectionError",
    "NotFoundError",
    "ProfileStorageInterface",
    "RecordStorageInterface",
    "StorageError",
    "SupabaseClient",
    "SupabaseProfileStorage",
    "SupabaseRecordStorage",
]
