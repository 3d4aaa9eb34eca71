"""Platform notification interfaces and deep links."""

from src.services.notifications.deep_link import (
    ADD_EXPENSE_PATH,
    create_add_expense_url,
    parse_add_expense_amount,
)
from src.services.notifications.interface import (
    DeepLinkOpenerInterface,
    LocalNotifierInterface,
    NotificationCallback,
    NotificationDispatchError,
    NotificationSourceInterface,
    PermissionStatus,
)

__all__ = [
    "ADD_EXPENSE_PATH",
    "DeepLinkOpenerInterface",
    "LocalNotifierInterface",
    "NotificationCallback",
    "NotificationDispatchError",
    "NotificationSourceInterface",
    "PermissionStatus",
    "create_add_expense_url",
    "parse_add_expense_amount",
]
