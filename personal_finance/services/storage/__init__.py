"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements Supabase as the backend, but designed to be swappable.
"""

from personal_finance.services.storage.interface import (
    AuthenticationError,
    ConnectionError,
    NotFoundError,
    ProfileStorageInterface,
    RecordStorageInterface,
    StorageError,
)
from personal_finance.services.storage.supabase_store import (
    SupabaseClient,
    SupabaseProfileStorage,
    SupabaseRecordStorage,
    record_to_row,
    row_to_record,
)

__all__ = [
    # Interfaces
    "ProfileStorageInterface",
    "RecordStorageInterface",
    # Exceptions
    "AuthenticationError",
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Supabase implementation
    "SupabaseClient",
    "SupabaseProfileStorage",
    "SupabaseRecordStorage",
    "record_to_row",
    "row_to_record",
]
