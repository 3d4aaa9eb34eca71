"""
Audit Models for the Expense Tracker

Every significant action in the system is logged for audit purposes:
1. Traceability from a bank notification to the expense it produced
2. Debugging information when detection goes wrong
3. Ability to reconstruct budget and category history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
Raw notification text is NOT stored; only its length and source.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Notification listener
    LISTENER_STARTED = "listener_started"
    LISTENER_PERMISSION_DENIED = "listener_permission_denied"
    LISTENER_UNSUPPORTED = "listener_unsupported"
    NOTIFICATION_RECEIVED = "notification_received"
    NOTIFICATION_DUPLICATE = "notification_duplicate"

    # Amount detection
    AMOUNT_DETECTED = "amount_detected"
    AMOUNT_NOT_FOUND = "amount_not_found"
    SUGGESTION_SCHEDULED = "suggestion_scheduled"
    SUGGESTION_TAPPED = "suggestion_tapped"

    # Expense book
    EXPENSE_ADDED = "expense_added"
    EXPENSE_DELETED = "expense_deleted"
    CATEGORY_ADDED = "category_added"
    CATEGORY_DELETED = "category_deleted"
    CATEGORY_BUDGET_UPDATED = "category_budget_updated"
    BUDGET_UPDATED = "budget_updated"
    VALIDATION_FAILED = "validation_failed"
    SAVE_FAILED = "save_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


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

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
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
        description="Type of entity (e.g., 'expense', 'category', 'notification')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., notification to saved expense)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

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
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.amount_detected(dedup_key, amount, correlation_id)
        event = AuditEventBuilder.expense_added(expense_id, amount, category_id, correlation_id)
    """

    @staticmethod
    def listener_started(platform: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LISTENER_STARTED,
            entity_type="listener",
            description=f"Notification listener started on {platform}",
            details={"platform": platform},
        )

    @staticmethod
    def listener_permission_denied(status: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LISTENER_PERMISSION_DENIED,
            severity=AuditSeverity.WARNING,
            entity_type="listener",
            description="Notification access was not granted",
            details={"permission_status": status},
        )

    @staticmethod
    def listener_unsupported(platform: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LISTENER_UNSUPPORTED,
            entity_type="listener",
            description=f"Notification listener not started: {reason}",
            details={"platform": platform, "reason": reason},
        )

    @staticmethod
    def notification_received(
        dedup_key: str,
        package_name: Optional[str],
        text_length: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_RECEIVED,
            severity=AuditSeverity.DEBUG,
            entity_type="notification",
            entity_id=dedup_key,
            correlation_id=correlation_id,
            description=f"Notification received from {package_name or 'unknown app'}",
            details={
                "package_name": package_name,
                "text_length": text_length,
            },
        )

    @staticmethod
    def notification_duplicate(
        dedup_key: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATION_DUPLICATE,
            severity=AuditSeverity.DEBUG,
            entity_type="notification",
            entity_id=dedup_key,
            correlation_id=correlation_id,
            description="Repeated notification skipped",
        )

    @staticmethod
    def amount_detected(
        dedup_key: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AMOUNT_DETECTED,
            entity_type="notification",
            entity_id=dedup_key,
            correlation_id=correlation_id,
            description=f"Transaction amount detected: ₹{amount}",
            details={"amount": amount},
        )

    @staticmethod
    def amount_not_found(
        dedup_key: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AMOUNT_NOT_FOUND,
            severity=AuditSeverity.DEBUG,
            entity_type="notification",
            entity_id=dedup_key,
            correlation_id=correlation_id,
            description="No transaction amount in notification",
        )

    @staticmethod
    def suggestion_scheduled(
        suggestion_id: UUID,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUGGESTION_SCHEDULED,
            entity_type="suggestion",
            entity_id=str(suggestion_id),
            correlation_id=correlation_id,
            description=f"Expense suggestion shown for ₹{amount}",
            details={"amount": amount},
        )

    @staticmethod
    def suggestion_tapped(
        amount: str,
        url: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUGGESTION_TAPPED,
            entity_type="suggestion",
            correlation_id=correlation_id,
            description="User opened expense suggestion",
            details={"amount": amount, "url": url},
            is_user_action=True,
        )

    @staticmethod
    def expense_added(
        expense_id: str,
        amount: str,
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: ₹{amount}",
            details={"amount": amount, "category_id": category_id},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def category_added(
        category_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Category added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description="Category deleted",
            is_user_action=True,
        )

    @staticmethod
    def category_budget_updated(
        category_id: str,
        budget: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_BUDGET_UPDATED,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Category budget set to ₹{budget}",
            details={"budget": budget},
            is_user_action=True,
        )

    @staticmethod
    def budget_updated(
        budget: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            correlation_id=correlation_id,
            description=f"Monthly budget set to ₹{budget}",
            details={"budget": budget},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def save_failed(
        key: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            entity_id=key,
            description=f"Failed to persist {key}",
            error_message=error_message,
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

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
