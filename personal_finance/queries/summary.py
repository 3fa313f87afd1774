"""
List presentation helpers: month-to-date totals and date grouping.

All of these are pure functions over the in-memory record list.
"""

import datetime as dt
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from personal_finance.models.record import Record, RecordKind


CURRENCY_SYMBOLS = {
    "AUD": "$",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "JPY": "¥",
}


class MonthSummary(BaseModel):
    """Income, spending and net for one calendar month."""

    month: str = Field(..., description="YYYY-MM")
    income: Decimal = Decimal("0.00")
    expenses: Decimal = Decimal("0.00")

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses

    @property
    def is_positive(self) -> bool:
        return self.net >= 0


class DateGroup(BaseModel):
    """Records sharing one date, newest first."""

    date: str
    records: list[Record]

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def label(self) -> str:
        return f"{self.count} {'item' if self.count == 1 else 'items'}"


def summarize_month(records: Iterable[Record], today: Optional[dt.date] = None) -> MonthSummary:
    """Totals over the records dated in today's calendar month."""
    today = today or dt.date.today()
    month = f"{today.year:04d}-{today.month:02d}"

    income = Decimal("0.00")
    expenses = Decimal("0.00")
    for record in records:
        if not record.date.startswith(month + "-"):
            continue
        if record.kind == RecordKind.INCOME:
            income += record.amount
        else:
            expenses += record.amount

    return MonthSummary(month=month, income=income, expenses=expenses)


def sort_records(records: Iterable[Record]) -> list[Record]:
    """Date descending, then created_at descending."""
    by_created = sorted(records, key=lambda r: r.created_at, reverse=True)
    return sorted(by_created, key=lambda r: r.date, reverse=True)


def group_by_date(records: Iterable[Record]) -> list[DateGroup]:
    """Group records by date (newest date first, newest record first)."""
    groups: dict[str, list[Record]] = {}
    for record in sort_records(records):
        groups.setdefault(record.date, []).append(record)
    return [DateGroup(date=date, records=items) for date, items in groups.items()]


def format_currency(amount: Decimal, currency: str = "AUD") -> str:
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_signed_amount(record: Record, currency: str = "AUD") -> str:
    """'+$12.00' for income, '-$12.00' for expenses."""
    prefix = "+" if record.is_income else "-"
    return f"{prefix}{format_currency(record.amount, currency)}"


def format_date(iso_date: str) -> str:
    """'2025-11-14' → 'Nov 14, 2025'."""
    d = dt.date.fromisoformat(iso_date)
    return f"{d.strftime('%b')} {d.day}, {d.year}"
