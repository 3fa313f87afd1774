"""
Audit Models for Personal Finance

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every record mutation and its outcome
2. Debugging information when a backend call fails and state is rolled back
3. A record of sign-in / sign-out activity

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Record list
    RECORDS_LOADED = "records_loaded"
    RECORDS_LOAD_FAILED = "records_load_failed"

    # Mutations
    VALIDATION_FAILED = "validation_failed"
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    MUTATION_ROLLED_BACK = "mutation_rolled_back"

    # Auth / profile
    SIGNED_IN = "signed_in"
    SIGN_IN_FAILED = "sign_in_failed"
    SIGNED_OUT = "signed_out"
    PROFILE_UPDATED = "profile_updated"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'record', 'session', 'profile')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    user_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., optimistic apply and its rollback)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created(record_id, user_id, amount, correlation_id)
        event = AuditEventBuilder.mutation_rolled_back("delete", record_id, error, correlation_id)
    """

    @staticmethod
    def records_loaded(
        user_id: str,
        count: int,
        filters: dict,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="record_list",
            user_id=user_id,
            description=f"Loaded {count} records",
            details={
                "count": count,
                "filters": filters,
            },
        )

    @staticmethod
    def records_load_failed(
        user_id: Optional[str],
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="record_list",
            user_id=user_id,
            description="Failed to load records",
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="record",
            description=f"{operation.capitalize()} rejected with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_created(
        record_id: str,
        user_id: str,
        amount: str,
        kind: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type="record",
            entity_id=record_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Record created: {kind} {amount}",
            details={
                "amount": amount,
                "kind": kind,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        record_id: str,
        user_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type="record",
            entity_id=record_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Record updated",
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        record_id: str,
        user_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type="record",
            entity_id=record_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Record deleted",
            is_user_action=True,
        )

    @staticmethod
    def mutation_rolled_back(
        operation: str,
        record_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_ROLLED_BACK,
            severity=AuditSeverity.WARNING,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Optimistic {operation} rolled back",
            details={
                "operation": operation,
            },
            error_message=error_message,
        )

    @staticmethod
    def signed_in(user_id: str, provider: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_IN,
            entity_type="session",
            user_id=user_id,
            description=f"Signed in with {provider}",
            details={
                "provider": provider,
            },
            is_user_action=True,
        )

    @staticmethod
    def sign_in_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGN_IN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            description="Sign-in failed",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def signed_out(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_OUT,
            entity_type="session",
            user_id=user_id,
            description="Signed out",
            is_user_action=True,
        )

    @staticmethod
    def profile_updated(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            entity_type="profile",
            entity_id=user_id,
            user_id=user_id,
            description="Profile names updated",
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
