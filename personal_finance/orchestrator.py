"""
Main Orchestrator for Personal Finance

This module ties together all the components and defines the
page-level flows for:
1. Personal records (load → filter → create / edit / delete → summarize)
2. Profile (load → edit names → sign out)

DESIGN DECISION: The records flow owns the canonical in-memory list.
- Loads replace the list wholesale, or leave it empty on failure
- Mutations go through the MutationCoordinator and nothing else
- Every step is audited
"""

import asyncio
import datetime as dt
from decimal import Decimal
from typing import NamedTuple, Optional

import structlog

from personal_finance.audit import AuditLogger, configure_logging
from personal_finance.categories import get_all_category_names, merge_category_names
from personal_finance.config import Settings, get_settings
from personal_finance.models.profile import UserProfile
from personal_finance.models.record import Record, RecordFilters, RecordFormValues
from personal_finance.mutations import MutationCoordinator, Notice, RecordListState
from personal_finance.queries import DateGroup, MonthSummary, group_by_date, summarize_month
from personal_finance.services.auth import (
    AuthService,
    SessionState,
    SupabaseAuthBackend,
)
from personal_finance.services.storage import (
    AuthenticationError,
    ProfileStorageInterface,
    RecordStorageInterface,
    SupabaseClient,
    SupabaseProfileStorage,
    SupabaseRecordStorage,
)
from personal_finance.validation import RecordValidator


logger = structlog.get_logger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load expenses"


class PersonalRecordsFlow:
    """
    Orchestrates the personal records page.

    Flow:
    1. Load → list records for the active filters (and category hints)
    2. Mutate → optimistic create / edit / delete via the coordinator
    3. Present → month summary and date groups over the current list
    """

    def __init__(
        self,
        storage: RecordStorageInterface,
        session: SessionState,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        coordinator: Optional[MutationCoordinator] = None,
    ):
        self._storage = storage
        self._session = session
        self._audit_logger = audit_logger
        self.state = RecordListState(known_categories=get_all_category_names())
        self.coordinator = coordinator or MutationCoordinator(
            storage=storage,
            state=self.state,
            user_id_provider=lambda: self._session.user_id,
            validator=validator,
            audit_logger=audit_logger,
        )
        self.loading = False
        self.error: Optional[str] = None

    @property
    def records(self) -> list[Record]:
        return self.state.records

    @property
    def filters(self) -> RecordFilters:
        return self.state.filters

    @property
    def known_categories(self) -> list[str]:
        return self.state.known_categories

    async def load(self, filters: Optional[RecordFilters] = None) -> list[Record]:
        """
        Load the signed-in user's records for the given (or current) filters.

        The filtered list and the category hints are fetched concurrently.
        On any failure the list is left empty and `error` is set.
        """
        if filters is not None:
            self.state.filters = filters
        active = self.state.filters

        self.loading = True
        self.error = None
        user_id = self._session.user_id
        try:
            if not user_id:
                raise AuthenticationError()
            records, hint_records = await self._list_with_hints(user_id, active)
        except Exception as e:
            self.error = str(e) or LOAD_FAILED_MESSAGE
            self.state.reset([], get_all_category_names())
            logger.warning("records_load_failed", user_id=user_id, error=self.error)
            if self._audit_logger:
                await self._audit_logger.log_records_load_failed(user_id, self.error)
            return []
        finally:
            self.loading = False

        self.state.reset(
            records,
            merge_category_names(
                get_all_category_names(),
                [r.category for r in hint_records],
                active.categories,
            ),
        )
        if self._audit_logger:
            await self._audit_logger.log_records_loaded(
                user_id=user_id,
                count=len(records),
                filters=active.model_dump(),
            )
        return self.records

    async def _list_with_hints(
        self,
        user_id: str,
        active: RecordFilters,
    ) -> tuple[list[Record], list[Record]]:
        """Both lists at once; if either fails the other is cancelled."""
        tasks = [
            asyncio.ensure_future(self._storage.list_records(user_id, active)),
            asyncio.ensure_future(self._storage.list_records(user_id, active.without_categories())),
        ]
        try:
            records, hint_records = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return records, hint_records

    async def create(self, values: RecordFormValues) -> Record:
        return await self.coordinator.create(values)

    async def edit(self, record_id: str, values: RecordFormValues) -> Record:
        return await self.coordinator.edit(record_id, values)

    async def delete(self, record_id: str) -> Notice:
        return await self.coordinator.delete(record_id)

    def summary(self, today: Optional[dt.date] = None) -> MonthSummary:
        """Month-to-date totals over the currently loaded list."""
        return summarize_month(self.records, today)

    def groups(self) -> list[DateGroup]:
        return group_by_date(self.records)


class ProfileFlow:
    """Loads and edits the signed-in user's profile."""

    def __init__(
        self,
        profiles: ProfileStorageInterface,
        session: SessionState,
        auth_service: AuthService,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._profiles = profiles
        self._session = session
        self._auth_service = auth_service
        self._audit_logger = audit_logger
        self.profile: Optional[UserProfile] = None
        self.error: Optional[str] = None

    async def load(self) -> Optional[UserProfile]:
        self.error = None
        try:
            user_id = self._session.require_user_id()
            self.profile = await self._profiles.get_profile(user_id)
        except Exception as e:
            self.error = str(e)
            self.profile = None
            logger.warning("profile_load_failed", error=self.error)
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=self.error,
                    details={"operation": "load_profile", "user_id": self._session.user_id},
                )
        return self.profile

    async def save_names(self, first_name: str, last_name: str) -> Optional[UserProfile]:
        """
        Save both names, then reload the profile.

        Raises:
            ProfileValidationError: Either name is blank
        """
        await self._auth_service.complete_profile(first_name, last_name)
        return await self.load()

    async def sign_out(self) -> None:
        await self._auth_service.sign_out()
        self.profile = None


class AppComponents(NamedTuple):
    session: SessionState
    auth_service: AuthService
    records_flow: PersonalRecordsFlow
    profile_flow: ProfileFlow
    client: SupabaseClient


def create_app_components(settings: Optional[Settings] = None) -> AppComponents:
    """
    Factory function to create all application components.

    The Supabase client connects lazily, so nothing here touches the
    network. Call `await components.session.start()` before first use.

    Raises:
        pydantic.ValidationError: If required settings are missing
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    client = SupabaseClient(settings.supabase)
    record_storage = SupabaseRecordStorage(client)
    profile_storage = SupabaseProfileStorage(client)
    audit_logger = AuditLogger()

    auth_backend = SupabaseAuthBackend(client)
    session = SessionState(auth_backend)
    auth_service = AuthService(
        backend=auth_backend,
        session=session,
        profiles=profile_storage,
        audit_logger=audit_logger,
        settings=settings.auth,
    )

    records_flow = PersonalRecordsFlow(
        storage=record_storage,
        session=session,
        validator=RecordValidator(Decimal(str(settings.app.max_record_amount))),
        audit_logger=audit_logger,
    )
    profile_flow = ProfileFlow(
        profiles=profile_storage,
        session=session,
        auth_service=auth_service,
        audit_logger=audit_logger,
    )

    return AppComponents(
        session=session,
        auth_service=auth_service,
        records_flow=records_flow,
        profile_flow=profile_flow,
        client=client,
    )
