"""
Shared fixtures.

Platform collaborators are replaced with in-process fakes so the
notification flows can be driven directly from tests.
"""

import pytest

from src.audit import AuditLogger
from src.config import get_settings
from src.ledger import ExpenseBook
from src.models.expense import ExpenseSuggestion
from src.services.notifications import (
    DeepLinkOpenerInterface,
    LocalNotifierInterface,
    NotificationDispatchError,
    NotificationSourceInterface,
    PermissionStatus,
)
from src.services.storage import InMemoryAuditStorage, InMemoryExpenseStorage


class FakeNotificationSource(NotificationSourceInterface):
    """Notification listener whose permission answers are scripted."""

    def __init__(
        self,
        status: PermissionStatus = PermissionStatus.AUTHORIZED,
        status_after_request: PermissionStatus = PermissionStatus.AUTHORIZED,
    ):
        self.status = status
        self.status_after_request = status_after_request
        self.permission_requests = 0
        self.service_started = False
        self.callbacks = []

    async def get_permission_status(self) -> PermissionStatus:
        return self.status

    async def request_permission(self) -> PermissionStatus:
        self.permission_requests += 1
        self.status = self.status_after_request
        return self.status

    async def start_service(self) -> None:
        self.service_started = True

    def subscribe(self, callback) -> None:
        self.callbacks.append(callback)

    async def emit(self, event):
        return [await callback(event) for callback in self.callbacks]


class FakeNotifier(LocalNotifierInterface):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.scheduled: list[ExpenseSuggestion] = []

    async def schedule(self, suggestion: ExpenseSuggestion) -> None:
        if self.fail:
            raise NotificationDispatchError("notifications blocked")
        self.scheduled.append(suggestion)


class FakeLinkOpener(DeepLinkOpenerInterface):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.opened: list[str] = []

    async def open_url(self, url: str) -> None:
        if self.fail:
            raise NotificationDispatchError("no app handles the link")
        self.opened.append(url)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Default settings for every test, independent of the host env."""
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PLATFORM", "android")
    monkeypatch.setenv("NOTIFICATIONS_ENABLED", "true")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def source():
    return FakeNotificationSource()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def link_opener():
    return FakeLinkOpener()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def expense_storage():
    return InMemoryExpenseStorage()


@pytest.fixture
def book(expense_storage, audit_logger):
    return ExpenseBook(expense_storage, audit_logger=audit_logger)


@pytest.fixture
def make_source():
    return FakeNotificationSource


@pytest.fixture
def failing_notifier():
    return FakeNotifier(fail=True)


@pytest.fixture
def failing_link_opener():
    return FakeLinkOpener(fail=True)
