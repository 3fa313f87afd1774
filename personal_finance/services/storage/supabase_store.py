"""
Supabase Storage Implementation

DESIGN DECISION: Supabase (hosted Postgres + auth) is the storage backend:
1. Row-level security keeps every user on their own rows
2. Auth and data share one client and one session
3. No server of our own to run

TRADEOFFS:
- Ownership checks live in database policies, not in this module
- Filtering and ordering are pushed down to PostgREST

The implementation follows the abstract interface, so business logic
never sees the client or its row shape.
"""

from typing import Any, Optional

import structlog
from pydantic import ValidationError
from supabase import Client, ClientOptions, create_client
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from personal_finance.config import SupabaseSettings, get_settings
from personal_finance.models.profile import UserProfile
from personal_finance.models.record import (
    NewRecordRow,
    Record,
    RecordFilters,
    RecordRow,
    RecordUpdate,
)
from personal_finance.services.storage.interface import (
    AuthenticationError,
    ConnectionError,
    NotFoundError,
    ProfileStorageInterface,
    RecordStorageInterface,
    StorageError,
)


RECORD_COLUMNS = "id,user_id,amount,date,is_income,category,comment,created_at"
PROFILE_COLUMNS = "first_name,last_name,email,avatar_url"
CODE_VERIFIER_SUFFIX = "-code-verifier"

logger = structlog.get_logger(__name__)


def error_message(error: Exception) -> str:
    """Backend API errors carry a message attribute; fall back to str()."""
    return getattr(error, "message", None) or str(error)


def row_to_record(data: Any) -> Record:
    """Map one backend row to a Record, rejecting unexpected shapes."""
    try:
        return RecordRow.model_validate(data).to_record()
    except ValidationError as e:
        raise StorageError(f"Unexpected record row from backend: {e}")


def record_to_row(record: Record) -> dict[str, Any]:
    """Map a Record back to the JSON shape of a personal_expense row."""
    return RecordRow.from_record(record).model_dump(mode="json")


class AuthStorage:
    """
    Key/value storage for the auth client's session and PKCE state.

    One per client. The sign-in flow reads the code verifier back out of
    it so the verifier can outlive the browser session that created it.
    """

    def __init__(self):
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    @property
    def code_verifier(self) -> Optional[str]:
        for key, value in self._items.items():
            if key.endswith(CODE_VERIFIER_SUFFIX):
                return value
        return None


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Creates the client lazily and exposes the configured tables.
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        client: Optional[Client] = None,
    ):
        self._settings = settings or get_settings().supabase
        self._client = client
        self.auth_storage = AuthStorage()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ConnectionError),
        reraise=True,
    )
    def connect(self) -> Client:
        """
        Create the Supabase client.

        PKCE flow so the OAuth callback can exchange its code server-side.
        """
        if self._client is None:
            try:
                self._client = create_client(
                    self._settings.url,
                    self._settings.publishable_key,
                    options=ClientOptions(flow_type="pkce", storage=self.auth_storage),
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Supabase: {e}")
        return self._client

    @property
    def auth(self):
        return self.connect().auth

    def records_table(self):
        return self.connect().table(self._settings.records_table)

    def profiles_table(self):
        return self.connect().table(self._settings.profiles_table)


class SupabaseRecordStorage(RecordStorageInterface):
    """
    Supabase implementation of record storage.

    One record per row of the personal_expense table.
    """

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    def _single(self, data: Optional[list], action: str, record_id: Optional[str] = None) -> Record:
        if not data:
            if record_id is not None:
                raise NotFoundError(f"Record not found: {record_id}")
            raise StorageError(f"Failed to {action} record: backend returned no row")
        return row_to_record(data[0])

    async def create_record(self, row: NewRecordRow) -> Record:
        """Insert a row and return the stored representation."""
        try:
            response = self._client.records_table().insert(row.to_payload()).execute()
        except Exception as e:
            raise StorageError(f"Failed to create record: {error_message(e)}")
        return self._single(response.data, "create")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ConnectionError),
        reraise=True,
    )
    async def list_records(
        self,
        user_id: Optional[str],
        filters: Optional[RecordFilters] = None,
    ) -> list[Record]:
        """List a user's records, newest first."""
        if not user_id:
            raise AuthenticationError()

        try:
            query = (
                self._client.records_table()
                .select(RECORD_COLUMNS)
                .eq("user_id", user_id)
            )
            if filters is not None:
                if filters.date_from:
                    query = query.gte("date", filters.date_from)
                if filters.date_to:
                    query = query.lte("date", filters.date_to)
                if filters.categories:
                    query = query.in_("category", list(filters.categories))

            response = (
                query
                .order("date", desc=True)
                .order("created_at", desc=True)
                .execute()
            )
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list records: {error_message(e)}")

        records = []
        for data in response.data or []:
            try:
                records.append(row_to_record(data))
            except StorageError as e:
                # Skip malformed rows
                logger.warning("record_row_skipped", error=str(e), row_id=data.get("id"))
        return records

    async def update_record(self, record_id: str, updates: RecordUpdate) -> Record:
        """Apply a partial update and return the canonical row."""
        try:
            response = (
                self._client.records_table()
                .update(updates.to_payload())
                .eq("id", record_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to update record: {error_message(e)}")
        return self._single(response.data, "update", record_id=record_id)

    async def delete_record(self, record_id: str) -> None:
        """Delete a row; a delete that matched nothing is an error."""
        try:
            response = (
                self._client.records_table()
                .delete()
                .eq("id", record_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to delete record: {error_message(e)}")
        if not response.data:
            raise NotFoundError(f"Record not found: {record_id}")


class SupabaseProfileStorage(ProfileStorageInterface):
    """Supabase implementation of the user_profile side-store."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ConnectionError),
        reraise=True,
    )
    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        try:
            response = (
                self._client.profiles_table()
                .select(PROFILE_COLUMNS)
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load profile: {error_message(e)}")

        if not response.data:
            return None
        return UserProfile.model_validate(response.data[0])

    async def update_names(self, user_id: str, first_name: str, last_name: str) -> None:
        try:
            (
                self._client.profiles_table()
                .update({"first_name": first_name, "last_name": last_name})
                .eq("id", user_id)
                .execute()
            )
        except Exception as e:
            raise StorageError(f"Failed to save profile: {error_message(e)}")
