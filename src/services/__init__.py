"""Services package."""

from src.services.notifications import (
    DeepLinkOpenerInterface,
    LocalNotifierInterface,
    NotificationDispatchError,
    NotificationSourceInterface,
    PermissionStatus,
)
from src.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    ExpenseStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    InMemoryAuditStorage,
    InMemoryExpenseStorage,
    LocalJsonExpenseStorage,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Platform notification services
    "DeepLinkOpenerInterface",
    "LocalNotifierInterface",
    "NotificationDispatchError",
    "NotificationSourceInterface",
    "PermissionStatus",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "ExpenseStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStorage",
    "InMemoryAuditStorage",
    "InMemoryExpenseStorage",
    "LocalJsonExpenseStorage",
    "NotFoundError",
    "StorageError",
]
