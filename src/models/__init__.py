"""
Data Models Package

This package contains all Pydantic models used in the expense tracker.
All data flowing through the system must conform to these schemas.
"""

from src.models.expense import (
    DEFAULT_CATEGORIES,
    Category,
    CategorySummary,
    Expense,
    ExpenseDraft,
    ExpenseSuggestion,
    MonthlySummary,
    NotificationEvent,
    ValidationIssue,
    ValidationResult,
    default_categories,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "DEFAULT_CATEGORIES",
    "Category",
    "CategorySummary",
    "Expense",
    "ExpenseDraft",
    "ExpenseSuggestion",
    "MonthlySummary",
    "NotificationEvent",
    "ValidationIssue",
    "ValidationResult",
    "default_categories",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
