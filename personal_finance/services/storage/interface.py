"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the hosted backend client out of business logic
2. Use in-memory storage for testing
3. Keep the mutation coordinator decoupled from storage implementation

Per-user scoping: every read filters by the caller's user id and every
insert writes it. Ownership of updates and deletes is enforced by the
backend's row-level security, not here.
"""

from abc import ABC, abstractmethod
from typing import Optional

from personal_finance.models.profile import UserProfile
from personal_finance.models.record import (
    NewRecordRow,
    Record,
    RecordFilters,
    RecordUpdate,
)


class RecordStorageInterface(ABC):
    """
    Abstract interface for personal record storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def create_record(self, row: NewRecordRow) -> Record:
        """
        Insert a new record scoped to row.user_id.

        Returns:
            The canonical stored record (server id and created_at)

        Raises:
            StorageError: If the write fails or is rejected
        """
        pass

    @abstractmethod
    async def list_records(
        self,
        user_id: Optional[str],
        filters: Optional[RecordFilters] = None,
    ) -> list[Record]:
        """
        List a user's records.

        Args:
            user_id: Owner whose records are listed
            filters: Optional inclusive date bounds and category set

        Returns:
            Records ordered by date desc, then created_at desc

        Raises:
            AuthenticationError: If user_id is missing
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def update_record(self, record_id: str, updates: RecordUpdate) -> Record:
        """
        Partially update a record.

        Returns:
            The canonical updated record

        Raises:
            NotFoundError: If no visible record has this id
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_record(self, record_id: str) -> None:
        """
        Delete a record by id.

        Raises:
            NotFoundError: If no visible record has this id
            StorageError: If the delete fails
        """
        pass


class ProfileStorageInterface(ABC):
    """Abstract interface for the user profile side-store."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Return the user's profile, or None if there is no row yet."""
        pass

    @abstractmethod
    async def update_names(self, user_id: str, first_name: str, last_name: str) -> None:
        """Set the user's first and last names."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class AuthenticationError(Exception):
    """No authenticated user could be resolved for the operation."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)
