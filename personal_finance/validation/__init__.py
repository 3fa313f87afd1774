"""Form validation package."""

from personal_finance.validation.validator import (
    RecordValidationError,
    RecordValidator,
    is_amount_2dp,
    is_required_date,
    normalize_amount,
)

__all__ = [
    "RecordValidationError",
    "RecordValidator",
    "is_amount_2dp",
    "is_required_date",
    "normalize_amount",
]
