"""Filter parsing and list summary package."""

from personal_finance.queries.filters import (
    filters_from_query_params,
    filters_to_query_params,
)
from personal_finance.queries.summary import (
    DateGroup,
    MonthSummary,
    format_currency,
    format_date,
    format_signed_amount,
    group_by_date,
    sort_records,
    summarize_month,
)

__all__ = [
    "DateGroup",
    "MonthSummary",
    "filters_from_query_params",
    "filters_to_query_params",
    "format_currency",
    "format_date",
    "format_signed_amount",
    "group_by_date",
    "sort_records",
    "summarize_month",
]
