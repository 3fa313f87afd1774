"""
Audit Logger

DESIGN DECISION: Every record mutation, rollback and auth transition is
logged as a structured event. This provides:
1. Traceability of what the user did and what the backend answered
2. Debugging capability when optimistic state had to be rolled back

The audit logger:
- Is async so flows can await it uniformly
- Never raises: a logging failure must not break the main flow
- Supports correlation IDs to tie an optimistic apply to its commit/rollback
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from personal_finance.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for JSON logs through the stdlib logging module."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """Central audit logging service, backed by structlog."""

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("personal_finance.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    async def log_records_loaded(self, user_id: str, count: int, filters: dict) -> None:
        await self.log(AuditEventBuilder.records_loaded(
            user_id=user_id,
            count=count,
            filters=filters,
        ))

    async def log_records_load_failed(self, user_id: Optional[str], error_message: str) -> None:
        await self.log(AuditEventBuilder.records_load_failed(
            user_id=user_id,
            error_message=error_message,
        ))

    async def log_validation_failed(self, operation: str, issues: list[dict]) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            operation=operation,
            issues=issues,
        ))

    async def log_record_created(
        self,
        record_id: str,
        user_id: str,
        amount: str,
        kind: str,
        correlation_id: UUID,
    ) -> None:
        """Log a confirmed create."""
        await self.log(AuditEventBuilder.record_created(
            record_id=record_id,
            user_id=user_id,
            amount=amount,
            kind=kind,
            correlation_id=correlation_id,
        ))

    async def log_record_updated(
        self,
        record_id: str,
        user_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.record_updated(
            record_id=record_id,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_record_deleted(
        self,
        record_id: str,
        user_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.record_deleted(
            record_id=record_id,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_rollback(
        self,
        operation: str,
        record_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log that an optimistic change was undone after a backend failure."""
        await self.log(AuditEventBuilder.mutation_rolled_back(
            operation=operation,
            record_id=record_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_signed_in(self, user_id: str, provider: str) -> None:
        await self.log(AuditEventBuilder.signed_in(user_id=user_id, provider=provider))

    async def log_sign_in_failed(self, error_message: str) -> None:
        await self.log(AuditEventBuilder.sign_in_failed(error_message=error_message))

    async def log_signed_out(self, user_id: Optional[str]) -> None:
        await self.log(AuditEventBuilder.signed_out(user_id=user_id))

    async def log_profile_updated(self, user_id: str) -> None:
        await self.log(AuditEventBuilder.profile_updated(user_id=user_id))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., one edit).
    Pass it through all subsequent operations.
    """
    return uuid4()
