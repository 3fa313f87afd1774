"""
Form Validation

DESIGN DECISION: Validation runs entirely on the client, before any
network call. A submission that fails here never reaches the backend
and never touches the in-memory record list.

Amounts are validated as the string the user typed:
- non-negative
- digits with at most two fractional digits ("12", "12.3", "12.30")
- strictly greater than zero once parsed

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the form can show them inline.
"""

import datetime as dt
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from personal_finance.config import get_settings
from personal_finance.models.record import (
    RecordFormValues,
    RecordKind,
    ValidationIssue,
    ValidationResult,
    quantize_amount,
)


TWO_DP_RE = re.compile(r"^\d+(?:\.\d{1,2})?$")


class RecordValidationError(ValueError):
    """Form values were rejected before any network call was made."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(issue.message for issue in result.issues if issue.severity == "error")
        super().__init__(messages or "Invalid record")


def is_amount_2dp(value: Optional[str]) -> bool:
    """True for non-negative decimals with at most two fractional digits."""
    s = (value or "").strip()
    if not s:
        return False
    return TWO_DP_RE.match(s) is not None


def normalize_amount(value: Union[str, Decimal]) -> Optional[Decimal]:
    """
    Parse and round an amount to exactly two fractional digits.

    Returns None if the value is not a finite number. Idempotent:
    normalize_amount(str(normalize_amount(x))) == normalize_amount(x).
    """
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return quantize_amount(parsed)


def is_required_date(value: Optional[Union[dt.datetime, dt.date]]) -> bool:
    """A date is required: it must be present and a real calendar date."""
    return isinstance(value, (dt.date, dt.datetime))


class RecordValidator:
    """Validates add/edit form values."""

    def __init__(self, max_amount: Optional[Decimal] = None):
        if max_amount is None:
            max_amount = Decimal(str(get_settings().app.max_record_amount))
        self._max_amount = max_amount

    def validate(self, values: RecordFormValues) -> ValidationResult:
        issues = []

        # Amount
        if not values.amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
            ))
        elif not is_amount_2dp(values.amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a positive number with at most 2 decimal places",
            ))
        else:
            amount = normalize_amount(values.amount)
            if amount is None or amount <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                ))
            elif amount > self._max_amount:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="too_large",
                    message=f"Amount cannot exceed {self._max_amount:,.2f}",
                ))

        # Date
        if not is_required_date(values.date):
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
            ))

        # Category (income uses the fixed Income category)
        if values.kind == RecordKind.EXPENSE and not values.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required for expenses",
            ))

        return ValidationResult(issues=issues)

    def ensure_valid(self, values: RecordFormValues) -> ValidationResult:
        """Validate and raise RecordValidationError on any error-level issue."""
        result = self.validate(values)
        if result.has_errors:
            raise RecordValidationError(result)
        return result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One line per problem, suitable for an inline form message."""
        if result.is_valid:
            return ""
        return "\n".join(f"• {issue.message}" for issue in result.issues)
