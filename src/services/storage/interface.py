"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the expense book decoupled from where data lives
2. Use in-memory storage for testing
3. Swap local JSON files for Google Sheets without touching business logic

The expense book syncs whole snapshots (budget, categories, expenses),
the same way a mobile key-value store would. The interface mirrors that
instead of pretending to be an ORM.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.expense import Category, Expense


# Storage keys, one document per key
BUDGET_KEY = "@expense_tracker_budget"
CATEGORIES_KEY = "@expense_tracker_categories"
EXPENSES_KEY = "@expense_tracker_expenses"


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense book persistence.

    load_* methods return None when nothing has been stored yet,
    so callers can tell "empty" apart from "never saved".
    """

    @abstractmethod
    async def load_budget(self) -> Optional[Decimal]:
        """
        Load the overall monthly budget.

        Raises:
            StorageError: If the backend can't be read
        """
        pass

    @abstractmethod
    async def save_budget(self, budget: Decimal) -> bool:
        """
        Persist the overall monthly budget.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def load_categories(self) -> Optional[list[Category]]:
        """Load all categories, or None if never saved."""
        pass

    @abstractmethod
    async def save_categories(self, categories: list[Category]) -> bool:
        """Replace the stored categories."""
        pass

    @abstractmethod
    async def load_expenses(self) -> Optional[list[Expense]]:
        """Load all expenses, or None if never saved."""
        pass

    @abstractmethod
    async def save_expenses(self, expenses: list[Expense]) -> bool:
        """Replace the stored expenses."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one notification flow).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
