"""
Filter state <-> query parameters.

The page's filters live in its URL: `from`, `to` and repeated `category`
parameters. Malformed dates are treated as absent and blank categories
are dropped, so any URL yields a valid RecordFilters.
"""

import re
from typing import Iterable, Mapping, Optional, Union

from personal_finance.models.record import RecordFilters


DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

ParamValue = Union[str, Iterable[str], None]


def _first(value: ParamValue) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    for item in value:
        return item
    return None


def _all(value: ParamValue) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _valid_date(value: Optional[str]) -> Optional[str]:
    if value and DATE_RE.match(value):
        return value
    return None


def filters_from_query_params(params: Mapping[str, ParamValue]) -> RecordFilters:
    """
    Build filters from query parameters.

    Values may be single strings or lists of strings (repeated keys).
    """
    categories = [
        c for c in _all(params.get("category"))
        if isinstance(c, str) and c.strip()
    ]
    return RecordFilters(
        date_from=_valid_date(_first(params.get("from"))),
        date_to=_valid_date(_first(params.get("to"))),
        categories=tuple(categories),
    )


def filters_to_query_params(filters: RecordFilters) -> dict[str, Union[str, list[str]]]:
    """Inverse of filters_from_query_params; absent filters are omitted."""
    params: dict[str, Union[str, list[str]]] = {}
    if filters.date_from:
        params["from"] = filters.date_from
    if filters.date_to:
        params["to"] = filters.date_to
    if filters.categories:
        params["category"] = list(filters.categories)
    return params
