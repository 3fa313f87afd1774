"""
Data Models Package

This package contains all Pydantic models used in the Personal Finance system.
All data flowing through the system must conform to these schemas.
"""

from personal_finance.models.record import (
    INCOME_CATEGORY,
    TEMP_ID_PREFIX,
    NewRecordRow,
    Record,
    RecordFilters,
    RecordFormValues,
    RecordKind,
    RecordRow,
    RecordUpdate,
    ValidationIssue,
    ValidationResult,
    quantize_amount,
    to_iso_date,
)
from personal_finance.models.profile import UserProfile
from personal_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "INCOME_CATEGORY",
    "TEMP_ID_PREFIX",
    "NewRecordRow",
    "Record",
    "RecordFilters",
    "RecordFormValues",
    "RecordKind",
    "RecordRow",
    "RecordUpdate",
    "ValidationIssue",
    "ValidationResult",
    "quantize_amount",
    "to_iso_date",
    # Profile
    "UserProfile",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
