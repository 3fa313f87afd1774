"""
Core Data Models for Personal Finance

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Keep exactly one typed boundary between backend rows and app records

DESIGN DECISION: Dates are kept as YYYY-MM-DD strings on records.
Lexical ordering of these strings equals chronological ordering, and it is
exactly what the backend stores, so no timezone conversion ever happens.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
INCOME_CATEGORY = "Income"
TEMP_ID_PREFIX = "temp_"
TWO_PLACES = Decimal("0.01")


def quantize_amount(value: Decimal) -> Decimal:
    """Round to exactly two fractional digits (half-up)."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_iso_date(value: Optional[Union[dt.datetime, dt.date]]) -> Optional[str]:
    """
    Format a calendar date as YYYY-MM-DD from its own calendar fields.

    Aware datetimes are NOT converted to UTC first: the day the user picked
    is the day that gets stored.
    """
    if value is None:
        return None
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


# =============================================================================
# ENUMS
# =============================================================================

class RecordKind(str, Enum):
    """Whether a record adds to or subtracts from the balance."""
    EXPENSE = "expense"
    INCOME = "income"


# =============================================================================
# CORE RECORD MODEL
# =============================================================================

class Record(BaseModel):
    """
    A single income or expense entry owned by one user.

    Records are immutable; every change produces a new instance so that
    list snapshots taken before a mutation stay intact.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Server id, or a temp_ placeholder while unconfirmed"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Id of the user who owns the record"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative amount, two fractional digits"
    )
    date: str = Field(
        ...,
        pattern=ISO_DATE_PATTERN,
        description="Calendar date as YYYY-MM-DD"
    )
    category: str = ""
    note: Optional[str] = None
    kind: RecordKind = RecordKind.EXPENSE
    created_at: dt.datetime = Field(
        ...,
        description="Creation timestamp; tie-breaker within a date"
    )

    @model_validator(mode='before')
    @classmethod
    def force_income_category(cls, data: Any) -> Any:
        """Income records always carry the Income category."""
        if isinstance(data, dict) and data.get("kind") in (RecordKind.INCOME, "income"):
            data = {**data, "category": INCOME_CATEGORY}
        return data

    @field_validator('amount')
    @classmethod
    def normalize_amount(cls, v: Decimal) -> Decimal:
        return quantize_amount(v)

    @field_validator('note')
    @classmethod
    def blank_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('created_at')
    @classmethod
    def assume_utc(cls, v: dt.datetime) -> dt.datetime:
        """Naive timestamps are treated as UTC so all comparisons work."""
        if v.tzinfo is None:
            return v.replace(tzinfo=dt.timezone.utc)
        return v

    @model_validator(mode='after')
    def require_expense_category(self) -> 'Record':
        if self.kind == RecordKind.EXPENSE and not self.category:
            raise ValueError("Expense records need a category")
        return self

    @property
    def is_income(self) -> bool:
        return self.kind == RecordKind.INCOME

    @property
    def is_provisional(self) -> bool:
        """True while the record only exists on the client."""
        return self.id.startswith(TEMP_ID_PREFIX)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_income else -self.amount

    @property
    def title(self) -> str:
        """Headline shown in the list: the note, falling back to the category."""
        return self.note or self.category


# =============================================================================
# FILTERS
# =============================================================================

class RecordFilters(BaseModel):
    """
    The active date-range / category restriction.

    Both bounds are inclusive. An empty category tuple means no restriction.
    """
    model_config = ConfigDict(frozen=True)

    date_from: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)
    date_to: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)
    categories: tuple[str, ...] = ()

    def matches(self, record: Record) -> bool:
        """
        Filter-visibility predicate.

        Category membership is an exact, case-sensitive match.
        """
        if self.date_from and record.date < self.date_from:
            return False
        if self.date_to and record.date > self.date_to:
            return False
        if self.categories and record.category not in self.categories:
            return False
        return True

    @property
    def active_count(self) -> int:
        """Number of active filter groups (from, to, categories)."""
        return sum([
            self.date_from is not None,
            self.date_to is not None,
            len(self.categories) > 0,
        ])

    @property
    def is_empty(self) -> bool:
        return self.active_count == 0

    def without_categories(self) -> 'RecordFilters':
        """Same date range, no category restriction."""
        return self.model_copy(update={"categories": ()})


# =============================================================================
# FORM INPUT
# =============================================================================

class RecordFormValues(BaseModel):
    """
    Raw values collected by the add/edit form.

    The amount stays a string exactly as typed until it is validated.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    kind: RecordKind = RecordKind.EXPENSE
    amount: str = ""
    date: Optional[Union[dt.datetime, dt.date]] = None
    category: str = ""
    note: str = ""

    @property
    def resolved_category(self) -> str:
        if self.kind == RecordKind.INCOME:
            return INCOME_CATEGORY
        return self.category

    @property
    def iso_date(self) -> Optional[str]:
        return to_iso_date(self.date)

    @property
    def resolved_note(self) -> Optional[str]:
        return self.note or None


# =============================================================================
# WIRE ROWS (personal_expense table)
# =============================================================================

def _coerce_amount(v: Any) -> Any:
    """Backend may render numeric columns as numbers or as strings."""
    if isinstance(v, bool):
        raise ValueError("amount must be numeric")
    if isinstance(v, (int, float)):
        return Decimal(str(v))
    if isinstance(v, str):
        try:
            return Decimal(v.strip())
        except InvalidOperation:
            raise ValueError(f"amount is not a number: {v!r}")
    return v


def _coerce_date(v: Any) -> Any:
    if isinstance(v, (dt.date, dt.datetime)):
        return to_iso_date(v)
    return v


class RecordRow(BaseModel):
    """
    A row of the personal_expense table as the backend returns it.

    This is the only place that knows about the snake_case wire shape.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    amount: Decimal = Field(..., ge=0)
    date: str = Field(..., pattern=ISO_DATE_PATTERN)
    is_income: bool = False
    category: str = ""
    comment: Optional[str] = None
    created_at: dt.datetime

    @field_validator('id', 'user_id', mode='before')
    @classmethod
    def stringify_ids(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("id columns cannot be null")
        return str(v)

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return _coerce_amount(v)

    @field_validator('date', mode='before')
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator('is_income', mode='before')
    @classmethod
    def null_is_expense(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator('category', mode='before')
    @classmethod
    def null_category(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_record(self) -> Record:
        return Record(
            id=self.id,
            owner_id=self.user_id,
            amount=self.amount,
            date=self.date,
            category=self.category,
            note=self.comment,
            kind=RecordKind.INCOME if self.is_income else RecordKind.EXPENSE,
            created_at=self.created_at,
        )

    @classmethod
    def from_record(cls, record: Record) -> 'RecordRow':
        return cls(
            id=record.id,
            user_id=record.owner_id,
            amount=record.amount,
            date=record.date,
            is_income=record.is_income,
            category=record.category,
            comment=record.note,
            created_at=record.created_at,
        )


class NewRecordRow(BaseModel):
    """Insert payload for a new personal_expense row."""

    user_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    date: str = Field(..., pattern=ISO_DATE_PATTERN)
    is_income: bool
    category: str
    comment: Optional[str] = None

    @classmethod
    def from_record(cls, record: Record) -> 'NewRecordRow':
        return cls(
            user_id=record.owner_id,
            amount=record.amount,
            date=record.date,
            is_income=record.is_income,
            category=record.category,
            comment=record.note,
        )

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict; amounts travel as strings to keep exact cents."""
        return self.model_dump(mode="json")


class RecordUpdate(BaseModel):
    """Partial update of a personal_expense row. Unset fields are left alone."""

    amount: Optional[Decimal] = Field(default=None, ge=0)
    date: Optional[str] = Field(default=None, pattern=ISO_DATE_PATTERN)
    is_income: Optional[bool] = None
    category: Optional[str] = None
    comment: Optional[str] = None

    @classmethod
    def from_record(cls, record: Record) -> 'RecordUpdate':
        return cls(
            amount=record.amount,
            date=record.date,
            is_income=record.is_income,
            category=record.category,
            comment=record.note,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'too_large')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating a form submission."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def errors_for(self, field: str) -> list[str]:
        return [
            issue.message for issue in self.issues
            if issue.field == field and issue.severity == "error"
        ]
