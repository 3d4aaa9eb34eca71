"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability from a bank notification to the expense it produced
2. Debugging capability when detection misfires
3. History of budget and category changes

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from src.services.storage import AuditStorageInterface


# Configure structlog for local logging
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
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    # Notification listener

    async def log_listener_started(self, platform: str) -> None:
        await self.log(AuditEventBuilder.listener_started(platform))

    async def log_listener_permission_denied(self, status: str) -> None:
        await self.log(AuditEventBuilder.listener_permission_denied(status))

    async def log_listener_unsupported(self, platform: str, reason: str) -> None:
        await self.log(AuditEventBuilder.listener_unsupported(platform, reason))

    async def log_notification_received(
        self,
        dedup_key: str,
        package_name: Optional[str],
        text_length: int,
        correlation_id: UUID,
    ) -> None:
        """Log an incoming notification (never its text)."""
        event = AuditEventBuilder.notification_received(
            dedup_key=dedup_key,
            package_name=package_name,
            text_length=text_length,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_notification_duplicate(
        self,
        dedup_key: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.notification_duplicate(dedup_key, correlation_id))

    # Amount detection

    async def log_amount_detected(
        self,
        dedup_key: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.amount_detected(dedup_key, amount, correlation_id))

    async def log_amount_not_found(
        self,
        dedup_key: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.amount_not_found(dedup_key, correlation_id))

    async def log_suggestion_scheduled(
        self,
        suggestion_id: UUID,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.suggestion_scheduled(
            suggestion_id=suggestion_id,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_suggestion_tapped(
        self,
        amount: str,
        url: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.suggestion_tapped(amount, url, correlation_id))

    # Expense book

    async def log_expense_added(
        self,
        expense_id: str,
        amount: str,
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.expense_added(
            expense_id=expense_id,
            amount=amount,
            category_id=category_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_expense_deleted(self, expense_id: str) -> None:
        await self.log(AuditEventBuilder.expense_deleted(expense_id))

    async def log_category_added(self, category_id: str, name: str) -> None:
        await self.log(AuditEventBuilder.category_added(category_id, name))

    async def log_category_deleted(self, category_id: str) -> None:
        await self.log(AuditEventBuilder.category_deleted(category_id))

    async def log_category_budget_updated(self, category_id: str, budget: str) -> None:
        await self.log(AuditEventBuilder.category_budget_updated(category_id, budget))

    async def log_budget_updated(self, budget: str) -> None:
        await self.log(AuditEventBuilder.budget_updated(budget))

    async def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        event = AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_save_failed(self, key: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.save_failed(key, error_message))

    # System

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this when a notification arrives or a user starts an action.
    Pass it through all subsequent operations.
    """
    return uuid4()
