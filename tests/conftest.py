"""
Shared fixtures: in-memory fakes for storage and the auth backend.

No test talks to the network.
"""

import asyncio
import datetime as dt
import itertools
from decimal import Decimal
from typing import Optional

import pytest

from personal_finance.models.profile import UserProfile
from personal_finance.models.record import (
    NewRecordRow,
    Record,
    RecordFilters,
    RecordKind,
    RecordRow,
    RecordUpdate,
)
from personal_finance.queries import sort_records
from personal_finance.services.auth import AuthBackendInterface, AuthSession
from personal_finance.services.storage import (
    AuthenticationError,
    NotFoundError,
    ProfileStorageInterface,
    RecordStorageInterface,
)
from personal_finance.validation import RecordValidator


USER_ID = "user-1"
BASE_TIME = dt.datetime(2025, 11, 14, 9, 0, tzinfo=dt.timezone.utc)


def make_record(
    record_id: str,
    date: str = "2025-11-14",
    amount: str = "10.00",
    category: str = "Groceries",
    kind: RecordKind = RecordKind.EXPENSE,
    note: Optional[str] = None,
    minutes: int = 0,
    owner_id: str = USER_ID,
) -> Record:
    return Record(
        id=record_id,
        owner_id=owner_id,
        amount=Decimal(amount),
        date=date,
        category=category,
        note=note,
        kind=kind,
        created_at=BASE_TIME + dt.timedelta(minutes=minutes),
    )


class InMemoryRecordStorage(RecordStorageInterface):
    """
    Record storage backed by a dict.

    Set `fail_with` to make every call raise; set `gate` to an
    asyncio.Event to hold calls in flight until it is set.
    """

    def __init__(self, records: Optional[list[Record]] = None):
        self.rows: dict[str, Record] = {r.id: r for r in records or []}
        self.calls: list[tuple[str, object]] = []
        self.fail_with: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self._ids = itertools.count(1)
        self._clock = itertools.count(60)

    async def _checkpoint(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def create_record(self, row: NewRecordRow) -> Record:
        self.calls.append(("create", row))
        await self._checkpoint()
        record = Record(
            id=f"srv-{next(self._ids)}",
            owner_id=row.user_id,
            amount=row.amount,
            date=row.date,
            category=row.category,
            note=row.comment,
            kind=RecordKind.INCOME if row.is_income else RecordKind.EXPENSE,
            created_at=BASE_TIME + dt.timedelta(minutes=next(self._clock)),
        )
        self.rows[record.id] = record
        return record

    async def list_records(
        self,
        user_id: Optional[str],
        filters: Optional[RecordFilters] = None,
    ) -> list[Record]:
        self.calls.append(("list", filters))
        if not user_id:
            raise AuthenticationError()
        await self._checkpoint()
        filters = filters or RecordFilters()
        owned = [r for r in self.rows.values() if r.owner_id == user_id and filters.matches(r)]
        return sort_records(owned)

    async def update_record(self, record_id: str, updates: RecordUpdate) -> Record:
        self.calls.append(("update", record_id))
        await self._checkpoint()
        if record_id not in self.rows:
            raise NotFoundError(f"Record not found: {record_id}")
        data = RecordRow.from_record(self.rows[record_id]).model_dump()
        data.update(updates.model_dump(exclude_unset=True))
        record = RecordRow.model_validate(data).to_record()
        self.rows[record_id] = record
        return record

    async def delete_record(self, record_id: str) -> None:
        self.calls.append(("delete", record_id))
        await self._checkpoint()
        if record_id not in self.rows:
            raise NotFoundError(f"Record not found: {record_id}")
        del self.rows[record_id]

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class InMemoryProfileStorage(ProfileStorageInterface):
    def __init__(self, profiles: Optional[dict[str, UserProfile]] = None):
        self.profiles = dict(profiles or {})

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self.profiles.get(user_id)

    async def update_names(self, user_id: str, first_name: str, last_name: str) -> None:
        current = self.profiles.get(user_id) or UserProfile()
        self.profiles[user_id] = current.model_copy(
            update={"first_name": first_name, "last_name": last_name}
        )


class FakeSubscription:
    def __init__(self):
        self.unsubscribed = False

    def unsubscribe(self) -> None:
        self.unsubscribed = True


class FakeAuthBackend(AuthBackendInterface):
    """
    Scriptable auth backend.

    `session` is returned by get_session unless `session_sequence` still
    has entries, which are consumed first.
    """

    def __init__(self, session: Optional[AuthSession] = None):
        self.session = session
        self.session_sequence: list[Optional[AuthSession]] = []
        self.get_session_error: Optional[Exception] = None
        self.exchange_result: Optional[AuthSession] = None
        self.exchanged_codes: list[str] = []
        self.exchanged_flows: list[Optional[str]] = []
        self.callbacks = []
        self.subscriptions: list[FakeSubscription] = []
        self.signed_out = False
        self.oauth_requests: list[tuple[str, Optional[str]]] = []

    async def get_session(self) -> Optional[AuthSession]:
        if self.get_session_error is not None:
            raise self.get_session_error
        if self.session_sequence:
            return self.session_sequence.pop(0)
        return self.session

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)
        subscription = FakeSubscription()
        self.subscriptions.append(subscription)
        return subscription

    def emit(self, event: str, session: Optional[AuthSession]) -> None:
        for callback in list(self.callbacks):
            callback(event, session)

    async def sign_in_with_oauth(self, provider: str, redirect_to: Optional[str]) -> str:
        self.oauth_requests.append((provider, redirect_to))
        return f"https://auth.example.test/authorize?provider={provider}"

    async def exchange_code_for_session(
        self,
        code: str,
        flow_id: Optional[str] = None,
    ) -> Optional[AuthSession]:
        self.exchanged_codes.append(code)
        self.exchanged_flows.append(flow_id)
        if self.exchange_result is not None:
            self.session = self.exchange_result
        return self.exchange_result

    async def sign_out(self) -> None:
        self.signed_out = True
        self.session = None


@pytest.fixture
def user_session() -> AuthSession:
    return AuthSession(user_id=USER_ID, email="sam@example.test", access_token="token")


@pytest.fixture
def validator() -> RecordValidator:
    return RecordValidator(max_amount=Decimal("10000000"))


@pytest.fixture
def storage() -> InMemoryRecordStorage:
    return InMemoryRecordStorage()
