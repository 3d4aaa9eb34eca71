"""
In-Memory Storage

Used in tests and when no persistent backend is configured.
Stores copies so callers can't mutate stored state by accident.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.expense import Category, Expense
from src.services.storage.interface import (
    AuditStorageInterface,
    ExpenseStorageInterface,
)


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Expense book storage held in process memory."""

    def __init__(self):
        self._budget: Optional[Decimal] = None
        self._categories: Optional[list[Category]] = None
        self._expenses: Optional[list[Expense]] = None

    async def load_budget(self) -> Optional[Decimal]:
        return self._budget

    async def save_budget(self, budget: Decimal) -> bool:
        self._budget = budget
        return True

    async def load_categories(self) -> Optional[list[Category]]:
        if self._categories is None:
            return None
        return [category.model_copy() for category in self._categories]

    async def save_categories(self, categories: list[Category]) -> bool:
        self._categories = [category.model_copy() for category in categories]
        return True

    async def load_expenses(self) -> Optional[list[Expense]]:
        if self._expenses is None:
            return None
        return [expense.model_copy() for expense in self._expenses]

    async def save_expenses(self, expenses: list[Expense]) -> bool:
        self._expenses = [expense.model_copy() for expense in expenses]
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in process memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
