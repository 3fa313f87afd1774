"""
Optimistic Record Mutations

DESIGN DECISION: Every create/edit/delete is an explicit operation object
with three phases:

    apply    → change the in-memory list immediately
    send     → await the backend
    commit   → reconcile with the canonical record   (on success)
    rollback → restore the operation's own snapshot   (on failure)

MutationCoordinator.run() is the only place that drives these phases, so
an operation cannot be applied without being either committed or rolled
back.

Visibility under the active filters is decided once, at apply time.
A response that arrives after the filters changed is reconciled against
that earlier decision without checking the filters again.
"""

import datetime as dt
import itertools
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Iterable, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel

from personal_finance.audit import AuditLogger, create_correlation_id
from personal_finance.categories import merge_category_names
from personal_finance.models.record import (
    TEMP_ID_PREFIX,
    NewRecordRow,
    Record,
    RecordFilters,
    RecordFormValues,
    RecordUpdate,
)
from personal_finance.services.storage.interface import (
    AuthenticationError,
    RecordStorageInterface,
)
from personal_finance.validation import (
    RecordValidationError,
    RecordValidator,
    normalize_amount,
)


logger = structlog.get_logger(__name__)

DELETE_SUCCESS_MESSAGE = "Expense deleted"


class RecordNotInListError(LookupError):
    """Edit was requested for a record that is not in the current list."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record {record_id} is not in the current list")


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Notice(BaseModel):
    """A transient message for the user (toast)."""

    level: NoticeLevel
    message: str

    @classmethod
    def success(cls, message: str) -> "Notice":
        return cls(level=NoticeLevel.SUCCESS, message=message)

    @classmethod
    def error(cls, message: str) -> "Notice":
        return cls(level=NoticeLevel.ERROR, message=message)

    @property
    def is_error(self) -> bool:
        return self.level == NoticeLevel.ERROR


class RecordListState:
    """
    The canonical in-memory list for the current filters.

    Owned by the page flow; only operation objects mutate it.
    """

    def __init__(
        self,
        records: Optional[Iterable[Record]] = None,
        filters: Optional[RecordFilters] = None,
        known_categories: Optional[Iterable[str]] = None,
    ):
        self.records: list[Record] = list(records or [])
        self.filters: RecordFilters = filters or RecordFilters()
        self.known_categories: list[str] = merge_category_names(known_categories or [])

    def index_of(self, record_id: str) -> Optional[int]:
        for i, record in enumerate(self.records):
            if record.id == record_id:
                return i
        return None

    def get(self, record_id: str) -> Optional[Record]:
        index = self.index_of(record_id)
        return None if index is None else self.records[index]

    def ids(self) -> list[str]:
        return [r.id for r in self.records]

    def add_category(self, name: str) -> None:
        self.known_categories = merge_category_names(self.known_categories, [name])

    def reset(self, records: Iterable[Record], known_categories: Iterable[str]) -> None:
        """Replace the whole list after a load."""
        self.records = list(records)
        self.known_categories = merge_category_names(known_categories)


# =============================================================================
# OPERATIONS
# =============================================================================

class PendingOperation(ABC):
    """One optimistic mutation and everything needed to undo it."""

    name: str = "mutation"

    def __init__(self):
        self.correlation_id: UUID = create_correlation_id()

    @property
    @abstractmethod
    def record_id(self) -> str:
        pass

    @abstractmethod
    def apply(self, state: RecordListState) -> None:
        """Apply the expected effect before the backend answers."""
        pass

    @abstractmethod
    async def send(self, storage: RecordStorageInterface) -> Optional[Record]:
        """Perform the backend call; returns the canonical record if any."""
        pass

    @abstractmethod
    def commit(self, state: RecordListState, canonical: Optional[Record]) -> None:
        pass

    @abstractmethod
    def rollback(self, state: RecordListState) -> None:
        pass


class CreateOperation(PendingOperation):
    name = "create"

    def __init__(self, provisional: Record):
        super().__init__()
        self.provisional = provisional
        self.visible = False

    @property
    def record_id(self) -> str:
        return self.provisional.id

    def apply(self, state: RecordListState) -> None:
        self.visible = state.filters.matches(self.provisional)
        if self.visible:
            state.records.insert(0, self.provisional)
        state.add_category(self.provisional.category)

    async def send(self, storage: RecordStorageInterface) -> Optional[Record]:
        return await storage.create_record(NewRecordRow.from_record(self.provisional))

    def commit(self, state: RecordListState, canonical: Optional[Record]) -> None:
        if not self.visible or canonical is None:
            return
        index = state.index_of(self.provisional.id)
        if index is not None:
            state.records[index] = canonical

    def rollback(self, state: RecordListState) -> None:
        if self.visible:
            state.records = [r for r in state.records if r.id != self.provisional.id]


class EditOperation(PendingOperation):
    name = "edit"

    def __init__(self, previous: Record, updated: Record):
        super().__init__()
        self.previous = previous
        self.updated = updated
        self.visible = False

    @property
    def record_id(self) -> str:
        return self.previous.id

    def apply(self, state: RecordListState) -> None:
        self.visible = state.filters.matches(self.updated)
        index = state.index_of(self.record_id)
        if index is None:
            return
        if self.visible:
            state.records[index] = self.updated
        else:
            # No longer matches the filters: drop it rather than show a stale row
            del state.records[index]
        state.add_category(self.updated.category)

    async def send(self, storage: RecordStorageInterface) -> Optional[Record]:
        return await storage.update_record(self.record_id, RecordUpdate.from_record(self.updated))

    def commit(self, state: RecordListState, canonical: Optional[Record]) -> None:
        if not self.visible or canonical is None:
            return
        index = state.index_of(self.record_id)
        if index is not None:
            state.records[index] = canonical

    def rollback(self, state: RecordListState) -> None:
        index = state.index_of(self.record_id)
        if index is not None:
            state.records[index] = self.previous


class DeleteOperation(PendingOperation):
    name = "delete"

    def __init__(self, record_id: str):
        super().__init__()
        self._record_id = record_id
        self.snapshot: list[Record] = []

    @property
    def record_id(self) -> str:
        return self._record_id

    def apply(self, state: RecordListState) -> None:
        self.snapshot = list(state.records)
        state.records = [r for r in state.records if r.id != self._record_id]

    async def send(self, storage: RecordStorageInterface) -> Optional[Record]:
        await storage.delete_record(self._record_id)
        return None

    def commit(self, state: RecordListState, canonical: Optional[Record]) -> None:
        pass

    def rollback(self, state: RecordListState) -> None:
        state.records = list(self.snapshot)


# =============================================================================
# COORDINATOR
# =============================================================================

def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class MutationCoordinator:
    """
    Validates form input and runs optimistic operations against storage.

    Usage:
        coordinator = MutationCoordinator(storage, state, lambda: session.user_id)
        record = await coordinator.create(values)
        notice = await coordinator.delete(record.id)
    """

    def __init__(
        self,
        storage: RecordStorageInterface,
        state: RecordListState,
        user_id_provider: Callable[[], Optional[str]],
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], dt.datetime] = _utcnow,
    ):
        self._storage = storage
        self._state = state
        self._user_id_provider = user_id_provider
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger
        self._clock = clock
        self._counter = itertools.count(1)

    @property
    def state(self) -> RecordListState:
        return self._state

    async def run(self, operation: PendingOperation) -> Optional[Record]:
        """Apply, await the backend, then commit or roll back and re-raise."""
        operation.apply(self._state)
        try:
            canonical = await operation.send(self._storage)
        except Exception as e:
            operation.rollback(self._state)
            logger.warning(
                "mutation_rolled_back",
                operation=operation.name,
                record_id=operation.record_id,
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_rollback(
                    operation=operation.name,
                    record_id=operation.record_id,
                    error_message=str(e),
                    correlation_id=operation.correlation_id,
                )
            raise
        operation.commit(self._state, canonical)
        return canonical

    async def create(self, values: RecordFormValues) -> Record:
        """
        Optimistically add a record, then confirm it with the backend.

        Raises:
            RecordValidationError: Form values rejected (nothing sent)
            AuthenticationError: No signed-in user (nothing sent)
            StorageError: Backend rejected the insert (provisional row removed)
        """
        await self._validate("create", values)
        user_id = self._require_user_id()

        provisional = Record(
            id=self._temp_id(),
            owner_id=user_id,
            amount=normalize_amount(values.amount),
            date=values.iso_date,
            category=values.resolved_category,
            note=values.resolved_note,
            kind=values.kind,
            created_at=self._clock(),
        )
        operation = CreateOperation(provisional)
        canonical = await self.run(operation)

        if self._audit_logger:
            await self._audit_logger.log_record_created(
                record_id=canonical.id,
                user_id=user_id,
                amount=str(canonical.amount),
                kind=canonical.kind.value,
                correlation_id=operation.correlation_id,
            )
        return canonical

    async def edit(self, record_id: str, values: RecordFormValues) -> Record:
        """
        Optimistically update a record in the list, then confirm it.

        Raises:
            RecordNotInListError: The id is not in the current list
            RecordValidationError: Form values rejected (nothing sent)
            AuthenticationError: No signed-in user (nothing sent)
            StorageError: Backend rejected the update (previous value restored)
        """
        previous = self._state.get(record_id)
        if previous is None:
            raise RecordNotInListError(record_id)
        await self._validate("edit", values)
        user_id = self._require_user_id()

        # model_validate so the income-category rule runs on the new values
        updated = Record.model_validate({
            "id": previous.id,
            "owner_id": previous.owner_id,
            "amount": normalize_amount(values.amount),
            "date": values.iso_date,
            "category": values.resolved_category,
            "note": values.resolved_note,
            "kind": values.kind,
            "created_at": previous.created_at,
        })
        operation = EditOperation(previous, updated)
        canonical = await self.run(operation)

        if self._audit_logger:
            await self._audit_logger.log_record_updated(
                record_id=record_id,
                user_id=user_id,
                correlation_id=operation.correlation_id,
            )
        return canonical

    async def delete(self, record_id: str) -> Notice:
        """
        Optimistically remove a record.

        Never raises for backend failures: the full list is restored and
        an error notice carrying the failure message is returned instead.
        """
        user_id = self._user_id_provider()
        if not user_id:
            return Notice.error(str(AuthenticationError()))

        operation = DeleteOperation(record_id)
        try:
            await self.run(operation)
        except Exception as e:
            return Notice.error(str(e) or "Failed to delete expense")

        if self._audit_logger:
            await self._audit_logger.log_record_deleted(
                record_id=record_id,
                user_id=user_id,
                correlation_id=operation.correlation_id,
            )
        return Notice.success(DELETE_SUCCESS_MESSAGE)

    async def _validate(self, operation: str, values: RecordFormValues) -> None:
        result = self._validator.validate(values)
        if not result.has_errors:
            return
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                operation=operation,
                issues=[issue.model_dump() for issue in result.issues],
            )
        raise RecordValidationError(result)

    def _require_user_id(self) -> str:
        user_id = self._user_id_provider()
        if not user_id:
            raise AuthenticationError()
        return user_id

    def _temp_id(self) -> str:
        millis = int(self._clock().timestamp() * 1000)
        return f"{TEMP_ID_PREFIX}{millis}_{next(self._counter)}"
