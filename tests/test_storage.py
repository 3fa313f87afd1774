"""
Tests for the Supabase storage layer.

The Supabase client is replaced by a MagicMock query builder whose
chained calls all return the same object.
"""

import asyncio
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from tenacity import wait_none

from personal_finance.config import SupabaseSettings
from personal_finance.models.record import NewRecordRow, RecordFilters, RecordUpdate
from personal_finance.services.storage import (
    AuthenticationError,
    ConnectionError,
    NotFoundError,
    StorageError,
    SupabaseClient,
    SupabaseProfileStorage,
    SupabaseRecordStorage,
    record_to_row,
    row_to_record,
)
from personal_finance.services.storage.supabase_store import error_message

from conftest import make_record


BUILDER_METHODS = ("select", "insert", "update", "delete", "eq", "gte", "lte", "in_", "order", "limit")


def row(record_id="1", **overrides) -> dict:
    data = {
        "id": record_id,
        "user_id": "user-1",
        "amount": "24.50",
        "date": "2025-11-14",
        "is_income": False,
        "category": "Food & Dining",
        "comment": None,
        "created_at": "2025-11-14T08:30:00+00:00",
    }
    data.update(overrides)
    return data


def make_query(data=None, error=None):
    query = MagicMock()
    for name in BUILDER_METHODS:
        getattr(query, name).return_value = query
    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.return_value = MagicMock(data=data)
    return query


@pytest.fixture
def settings() -> SupabaseSettings:
    return SupabaseSettings(url="https://project.supabase.co/", publishable_key="publishable")


def client_for(settings, query) -> SupabaseClient:
    raw = MagicMock()
    raw.table.return_value = query
    return SupabaseClient(settings, client=raw)


class TestRowMapping:
    def test_row_to_record_and_back(self):
        record = row_to_record(row(comment="Dinner"))
        back = record_to_row(record)
        assert back["id"] == "1"
        assert back["amount"] == "24.50"
        assert back["comment"] == "Dinner"
        assert back["is_income"] is False

    def test_bad_row_is_storage_error(self):
        with pytest.raises(StorageError):
            row_to_record(row(date="not-a-date"))

    def test_error_message_prefers_message_attribute(self):
        class ApiError(Exception):
            message = "permission denied"

        assert error_message(ApiError("raw")) == "permission denied"
        assert error_message(ValueError("plain")) == "plain"


class TestSupabaseClient:
    def test_settings_strip_trailing_slash(self, settings):
        assert settings.url == "https://project.supabase.co"

    def test_connect_creates_client_once(self, settings):
        with patch("personal_finance.services.storage.supabase_store.create_client") as create:
            client = SupabaseClient(settings)
            client.connect()
            client.connect()
        create.assert_called_once()
        args = create.call_args.args
        assert args == ("https://project.supabase.co", "publishable")

    def test_tables_use_configured_names(self, settings):
        query = make_query([])
        client = client_for(settings, query)
        client.records_table()
        client.profiles_table()
        raw = client.connect()
        assert [c.args[0] for c in raw.table.call_args_list] == ["personal_expense", "user_profile"]

    def test_connect_failure_retries_then_raises(self, settings):
        connect = SupabaseClient.connect.retry_with(wait=wait_none())
        with patch(
            "personal_finance.services.storage.supabase_store.create_client",
            side_effect=RuntimeError("dns"),
        ) as create:
            with pytest.raises(ConnectionError, match="dns"):
                connect(SupabaseClient(settings))
        assert create.call_count == 3


class TestSupabaseRecordStorage:
    """Tests for record CRUD against a mocked client."""

    def test_list_applies_filters_and_order(self, settings):
        query = make_query([row("2"), row("1")])
        storage = SupabaseRecordStorage(client_for(settings, query))
        filters = RecordFilters(date_from="2025-11-01", date_to="2025-11-30", categories=("Food & Dining",))

        records = asyncio.run(storage.list_records("user-1", filters))

        assert [r.id for r in records] == ["2", "1"]
        query.eq.assert_called_once_with("user_id", "user-1")
        query.gte.assert_called_once_with("date", "2025-11-01")
        query.lte.assert_called_once_with("date", "2025-11-30")
        query.in_.assert_called_once_with("category", ["Food & Dining"])
        assert [c.args for c in query.order.call_args_list] == [("date",), ("created_at",)]
        assert all(c.kwargs == {"desc": True} for c in query.order.call_args_list)

    def test_list_without_filters(self, settings):
        query = make_query([])
        storage = SupabaseRecordStorage(client_for(settings, query))

        assert asyncio.run(storage.list_records("user-1")) == []
        query.gte.assert_not_called()
        query.in_.assert_not_called()

    def test_list_requires_user(self, settings):
        query = make_query([])
        storage = SupabaseRecordStorage(client_for(settings, query))

        with pytest.raises(AuthenticationError):
            asyncio.run(storage.list_records(None))
        query.select.assert_not_called()

    def test_list_skips_malformed_rows(self, settings):
        query = make_query([row("1"), row("2", amount="lots"), row("3", amount=7)])
        storage = SupabaseRecordStorage(client_for(settings, query))

        records = asyncio.run(storage.list_records("user-1"))

        assert [r.id for r in records] == ["1", "3"]
        assert records[1].amount == Decimal("7.00")

    def test_list_keeps_rows_with_long_text(self, settings):
        query = make_query([row("1", comment="x" * 1500), row("2", category="c" * 150)])
        storage = SupabaseRecordStorage(client_for(settings, query))

        records = asyncio.run(storage.list_records("user-1"))

        assert [r.id for r in records] == ["1", "2"]
        assert len(records[0].note) == 1500
        assert len(records[1].category) == 150

    def test_list_failure_wrapped(self, settings):
        query = make_query(error=RuntimeError("timeout"))
        storage = SupabaseRecordStorage(client_for(settings, query))

        with pytest.raises(StorageError, match="Failed to list records: timeout"):
            asyncio.run(storage.list_records("user-1"))

    def test_create_inserts_payload(self, settings):
        query = make_query([row("99")])
        storage = SupabaseRecordStorage(client_for(settings, query))
        new_row = NewRecordRow.from_record(make_record("temp_1_1", amount="24.5", category="Food & Dining"))

        record = asyncio.run(storage.create_record(new_row))

        assert record.id == "99"
        payload = query.insert.call_args.args[0]
        assert payload["amount"] == "24.50"
        assert payload["user_id"] == "user-1"
        assert "id" not in payload

    def test_create_without_returned_row(self, settings):
        storage = SupabaseRecordStorage(client_for(settings, make_query([])))
        new_row = NewRecordRow.from_record(make_record("temp_1_1"))

        with pytest.raises(StorageError):
            asyncio.run(storage.create_record(new_row))

    def test_create_failure_wrapped(self, settings):
        storage = SupabaseRecordStorage(client_for(settings, make_query(error=RuntimeError("rls"))))
        new_row = NewRecordRow.from_record(make_record("temp_1_1"))

        with pytest.raises(StorageError, match="rls"):
            asyncio.run(storage.create_record(new_row))

    def test_update_returns_canonical_row(self, settings):
        query = make_query([row("5", category="Transport")])
        storage = SupabaseRecordStorage(client_for(settings, query))

        record = asyncio.run(storage.update_record("5", RecordUpdate(category="Transport")))

        assert record.category == "Transport"
        query.update.assert_called_once_with({"category": "Transport"})
        query.eq.assert_called_once_with("id", "5")

    def test_update_missing_row(self, settings):
        storage = SupabaseRecordStorage(client_for(settings, make_query([])))

        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_record("5", RecordUpdate(comment="x")))

    def test_delete(self, settings):
        query = make_query([row("5")])
        storage = SupabaseRecordStorage(client_for(settings, query))

        asyncio.run(storage.delete_record("5"))

        query.delete.assert_called_once_with()
        query.eq.assert_called_once_with("id", "5")

    def test_delete_missing_row(self, settings):
        storage = SupabaseRecordStorage(client_for(settings, make_query([])))

        with pytest.raises(NotFoundError):
            asyncio.run(storage.delete_record("5"))


class TestSupabaseProfileStorage:
    def test_get_profile(self, settings):
        query = make_query([{"first_name": "Sam", "last_name": "Lee", "email": None, "avatar_url": None}])
        storage = SupabaseProfileStorage(client_for(settings, query))

        profile = asyncio.run(storage.get_profile("user-1"))

        assert profile.is_complete
        query.eq.assert_called_once_with("id", "user-1")
        query.limit.assert_called_once_with(1)

    def test_missing_profile(self, settings):
        storage = SupabaseProfileStorage(client_for(settings, make_query([])))
        assert asyncio.run(storage.get_profile("user-1")) is None

    def test_update_names(self, settings):
        query = make_query([{}])
        storage = SupabaseProfileStorage(client_for(settings, query))

        asyncio.run(storage.update_names("user-1", "Sam", "Lee"))

        query.update.assert_called_once_with({"first_name": "Sam", "last_name": "Lee"})

    def test_update_failure_wrapped(self, settings):
        storage = SupabaseProfileStorage(client_for(settings, make_query(error=RuntimeError("denied"))))

        with pytest.raises(StorageError, match="Failed to save profile"):
            asyncio.run(storage.update_names("user-1", "Sam", "Lee"))
