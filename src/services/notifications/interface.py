"""
Platform Notification Interfaces

DESIGN DECISION: Everything that touches the OS is injected behind these
interfaces:
- listening to other apps' notifications (and the permission that gates it)
- scheduling our own local notification
- opening a deep link inside the app

This keeps amount detection and the suggestion flow platform-agnostic
and testable with plain fakes.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Awaitable, Callable

from src.models.expense import ExpenseSuggestion, NotificationEvent


NotificationCallback = Callable[[NotificationEvent], Awaitable[object]]


class PermissionStatus(str, Enum):
    """Notification-access permission state reported by the OS."""
    AUTHORIZED = "authorized"
    DENIED = "denied"
    UNKNOWN = "unknown"


class NotificationSourceInterface(ABC):
    """OS-level listener for notifications posted by other apps."""

    @abstractmethod
    async def get_permission_status(self) -> PermissionStatus:
        pass

    @abstractmethod
    async def request_permission(self) -> PermissionStatus:
        """
        Ask the user for notification access.

        On Android this opens the system settings screen.
        """
        pass

    @abstractmethod
    async def start_service(self) -> None:
        pass

    @abstractmethod
    def subscribe(self, callback: NotificationCallback) -> None:
        """Register a coroutine to receive every incoming notification."""
        pass


class LocalNotifierInterface(ABC):
    """Schedules the app's own user-facing notifications."""

    @abstractmethod
    async def schedule(self, suggestion: ExpenseSuggestion) -> None:
        """
        Show the suggestion immediately.

        Raises:
            NotificationDispatchError: If the OS refuses the notification
        """
        pass


class DeepLinkOpenerInterface(ABC):
    """Routes a deep link to the matching in-app screen."""

    @abstractmethod
    async def open_url(self, url: str) -> None:
        pass


class NotificationDispatchError(Exception):
    """The platform could not deliver a notification or deep link."""
    pass
