"""Tests for the record form's category suggestions."""

from app.main import category_choices
from personal_finance.models.record import RecordKind

from conftest import make_record


KNOWN = ["Income", "Food & Dining", "Groceries", "Transport"]


class TestCategoryChoices:
    def test_new_record_has_no_preselection(self):
        options, index = category_choices(KNOWN)
        assert options == ["Food & Dining", "Groceries", "Transport"]
        assert index is None

    def test_edit_preselects_known_category(self):
        options, index = category_choices(KNOWN, make_record("r1", category="Transport"))
        assert options[index] == "Transport"

    def test_edit_keeps_a_typed_in_category(self):
        options, index = category_choices(KNOWN, make_record("r1", category="Pets"))
        assert options[index] == "Pets"
        assert options[:3] == ["Food & Dining", "Groceries", "Transport"]

    def test_income_record_has_no_preselection(self):
        options, index = category_choices(KNOWN, make_record("r1", kind=RecordKind.INCOME))
        assert "Income" not in options
        assert index is None

    def test_known_list_is_not_modified(self):
        known = list(KNOWN)
        category_choices(known, make_record("r1", category="Pets"))
        assert known == KNOWN
