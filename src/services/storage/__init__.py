"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
in-memory (tests), local JSON files (default) and Google Sheets.
"""

from src.services.storage.interface import (
    BUDGET_KEY,
    CATEGORIES_KEY,
    EXPENSES_KEY,
    AuditStorageInterface,
    ConnectionError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)
from src.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
)
from src.services.storage.local_json import LocalJsonExpenseStorage
from src.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
)

__all__ = [
    # Keys
    "BUDGET_KEY",
    "CATEGORIES_KEY",
    "EXPENSES_KEY",
    # Interfaces
    "AuditStorageInterface",
    "ExpenseStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStorage",
    "InMemoryAuditStorage",
    "InMemoryExpenseStorage",
    "LocalJsonExpenseStorage",
]
