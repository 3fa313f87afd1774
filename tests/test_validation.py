"""Tests for form validation helpers."""

import datetime as dt
from decimal import Decimal

import pytest

from personal_finance.models.record import RecordFormValues, RecordKind
from personal_finance.validation import (
    RecordValidationError,
    RecordValidator,
    is_amount_2dp,
    is_required_date,
    normalize_amount,
)


class TestAmountHelpers:
    @pytest.mark.parametrize("value", ["0", "12", "12.3", "12.30", "  7.5  ", "1000000"])
    def test_accepts_two_decimal_places(self, value):
        assert is_amount_2dp(value)

    @pytest.mark.parametrize("value", ["", None, "12.345", "-1", "1e3", "12.", ".5", "1,000", "abc"])
    def test_rejects_other_shapes(self, value):
        assert not is_amount_2dp(value)

    @pytest.mark.parametrize("value,expected", [
        ("24.5", Decimal("24.50")),
        ("3", Decimal("3.00")),
        ("0.005", Decimal("0.01")),
        (Decimal("1.234"), Decimal("1.23")),
    ])
    def test_normalize(self, value, expected):
        assert normalize_amount(value) == expected

    @pytest.mark.parametrize("value", ["0", "1", "1.5", "12.34", "999999.99", "00.10"])
    def test_normalize_is_idempotent(self, value):
        once = normalize_amount(value)
        assert normalize_amount(str(once)) == once
        assert normalize_amount(once) == once

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", ""])
    def test_normalize_rejects_non_numbers(self, value):
        assert normalize_amount(value) is None

    def test_required_date(self):
        assert is_required_date(dt.date(2025, 11, 14))
        assert is_required_date(dt.datetime(2025, 11, 14, 10, 0))
        assert not is_required_date(None)


class TestRecordValidator:
    """Tests for the add/edit form validator."""

    def values(self, **overrides) -> RecordFormValues:
        data = {
            "kind": RecordKind.EXPENSE,
            "amount": "12.50",
            "date": dt.date(2025, 11, 14),
            "category": "Groceries",
        }
        data.update(overrides)
        return RecordFormValues(**data)

    def test_valid_expense(self, validator):
        result = validator.validate(self.values())
        assert result.is_valid
        assert result.issues == []

    def test_income_without_category_is_valid(self, validator):
        assert validator.validate(self.values(kind=RecordKind.INCOME, category="")).is_valid

    def test_missing_amount(self, validator):
        result = validator.validate(self.values(amount=""))
        assert result.issues[0].issue_type == "missing"

    def test_three_decimals(self, validator):
        result = validator.validate(self.values(amount="12.345"))
        assert result.issues[0].issue_type == "invalid_format"

    def test_zero(self, validator):
        result = validator.validate(self.values(amount="0.00"))
        assert result.issues[0].issue_type == "invalid_value"

    def test_too_large(self):
        validator = RecordValidator(max_amount=Decimal("100"))
        result = validator.validate(self.values(amount="100.01"))
        assert result.issues[0].issue_type == "too_large"

    def test_collects_every_problem(self, validator):
        result = validator.validate(self.values(amount="", date=None, category=""))
        assert {i.field for i in result.issues} == {"amount", "date", "category"}
        assert result.error_count == 3

    def test_ensure_valid_raises(self, validator):
        with pytest.raises(RecordValidationError) as exc_info:
            validator.ensure_valid(self.values(date=None))
        assert "Date is required" in str(exc_info.value)
        assert exc_info.value.result.errors_for("date")

    def test_summary(self, validator):
        result = validator.validate(self.values(amount="", category=""))
        summary = validator.get_user_friendly_summary(result)
        assert summary.count("•") == 2
        assert validator.get_user_friendly_summary(validator.validate(self.values())) == ""

    def test_default_limit_comes_from_settings(self):
        validator = RecordValidator()
        assert validator.validate(self.values(amount="9999999.99")).is_valid
