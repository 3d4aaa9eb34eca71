"""
Integration tests for the notification and add-expense flows.

Platform services are the fakes from conftest.py.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from src.config import get_settings
from src.config.settings import NotificationSettings
from src.ledger import ExpenseBook
from src.models.audit import AuditEventType
from src.models.expense import NotificationEvent
from src.orchestrator import (
    AddExpenseFlow,
    NotificationListenerFlow,
    create_app_components,
)
from src.services.notifications import PermissionStatus
from src.services.storage import InMemoryExpenseStorage


BANK_TEXT = "Your a/c XX1234 is debited by INR 250 on 12-Mar"
TEA_TEXT = "paid ₹20 to Tea Stall"


@pytest.fixture
def flow(source, notifier, link_opener, audit_logger):
    return NotificationListenerFlow(
        source=source,
        notifier=notifier,
        link_opener=link_opener,
        audit_logger=audit_logger,
    )


async def event_types(audit_storage):
    events = await audit_storage.get_recent_events()
    return [e.event_type for e in reversed(events)]


class TestListenerStart:

    @pytest.mark.asyncio
    async def test_starts_when_authorized(self, flow, source, audit_storage):
        """Test starts when authorized."""
        assert await flow.start() is True
        assert flow.is_started
        assert source.service_started
        assert source.callbacks == [flow.handle_notification]
        assert source.permission_requests == 0
        assert AuditEventType.LISTENER_STARTED in await event_types(audit_storage)

    @pytest.mark.asyncio
    async def test_requests_permission_when_missing(self, make_source, notifier, link_opener):
        """Test requests permission when missing."""
        source = make_source(status=PermissionStatus.UNKNOWN)
        flow = NotificationListenerFlow(source, notifier, link_opener)
        assert await flow.start() is True
        assert source.permission_requests == 1

    @pytest.mark.asyncio
    async def test_denied_permission(self, make_source, notifier, link_opener, audit_logger, audit_storage):
        """Test denied permission."""
        source = make_source(
            status=PermissionStatus.DENIED,
            status_after_request=PermissionStatus.DENIED,
        )
        flow = NotificationListenerFlow(source, notifier, link_opener, audit_logger)
        assert await flow.start() is False
        assert not flow.is_started
        assert not source.service_started
        assert source.callbacks == []
        assert AuditEventType.LISTENER_PERMISSION_DENIED in await event_types(audit_storage)

    @pytest.mark.asyncio
    async def test_not_android(self, monkeypatch, source, notifier, link_opener, audit_logger, audit_storage):
        """Test that the listener does not start off android."""
        monkeypatch.setenv("PLATFORM", "ios")
        get_settings.cache_clear()
        flow = NotificationListenerFlow(source, notifier, link_opener, audit_logger)
        assert await flow.start() is False
        assert source.permission_requests == 0
        assert not source.service_started
        assert AuditEventType.LISTENER_UNSUPPORTED in await event_types(audit_storage)

    @pytest.mark.asyncio
    async def test_disabled(self, monkeypatch, source, notifier, link_opener):
        """Test that the listener stays off when disabled in settings."""
        monkeypatch.setenv("NOTIFICATIONS_ENABLED", "false")
        get_settings.cache_clear()
        flow = NotificationListenerFlow(source, notifier, link_opener)
        assert await flow.start() is False
        assert not source.service_started

    @pytest.mark.asyncio
    async def test_start_twice_subscribes_once(self, flow, source):
        """Test start twice subscribes once."""
        await flow.start()
        assert await flow.start() is True
        assert len(source.callbacks) == 1


class TestNotificationHandling:

    @pytest.mark.asyncio
    async def test_transaction_becomes_suggestion(self, flow, source, notifier):
        """Test transaction becomes suggestion."""
        await flow.start()
        [suggestion] = await source.emit(NotificationEvent(text=BANK_TEXT, package_name="com.bank"))

        assert suggestion.amount == Decimal("250")
        assert suggestion.title == "Expense Detected"
        assert suggestion.body == "We detected a transaction of ₹250. Tap to add it as an expense."
        assert suggestion.data == {"amount": "250"}
        assert notifier.scheduled == [suggestion]

    @pytest.mark.asyncio
    async def test_unrelated_notification(self, flow, notifier, audit_storage):
        """Test unrelated notification."""
        result = await flow.handle_notification(NotificationEvent(text="Your OTP is 123456"))
        assert result is None
        assert notifier.scheduled == []
        assert AuditEventType.AMOUNT_NOT_FOUND in await event_types(audit_storage)

    @pytest.mark.asyncio
    async def test_empty_notification(self, flow, notifier):
        """Test empty notification."""
        assert await flow.handle_notification(NotificationEvent()) is None
        assert notifier.scheduled == []

    @pytest.mark.asyncio
    async def test_repeat_delivery_suggested_once(self, flow, notifier, audit_storage):
        """Test repeat delivery suggested once."""
        event = NotificationEvent(text=BANK_TEXT, package_name="com.bank", notification_id="42")
        assert await flow.handle_notification(event) is not None
        assert await flow.handle_notification(event.model_copy()) is None
        assert len(notifier.scheduled) == 1
        assert AuditEventType.NOTIFICATION_DUPLICATE in await event_types(audit_storage)

    @pytest.mark.asyncio
    async def test_dedup_window_is_bounded(self, source, notifier, link_opener):
        """Test dedup window is bounded."""
        flow = NotificationListenerFlow(
            source, notifier, link_opener,
            settings=NotificationSettings(dedup_window=1),
        )
        first = NotificationEvent(text=BANK_TEXT, notification_id="1")
        second = NotificationEvent(text="paid ₹120 to John", notification_id="2")

        await flow.handle_notification(first)
        await flow.handle_notification(second)
        await flow.handle_notification(first)
        assert [s.amount for s in notifier.scheduled] == [Decimal("250"), Decimal("120"), Decimal("250")]

    @pytest.mark.asyncio
    async def test_same_payment_next_day_suggested_again(self, flow, notifier):
        """Test that an identical payment a day later is a new suggestion."""
        day_one = datetime(2024, 3, 12, 9, 0)
        first = NotificationEvent(text=TEA_TEXT, package_name="com.upi", received_at=day_one)
        second = NotificationEvent(
            text=TEA_TEXT, package_name="com.upi", received_at=day_one + timedelta(days=1)
        )

        assert await flow.handle_notification(first) is not None
        assert await flow.handle_notification(second) is not None
        assert [s.amount for s in notifier.scheduled] == [Decimal("20"), Decimal("20")]

    @pytest.mark.asyncio
    async def test_repeat_within_time_window_suggested_once(self, flow, notifier):
        """Test that a redelivery inside the dedup time window is skipped."""
        t0 = datetime(2024, 3, 12, 9, 0)
        first = NotificationEvent(text=TEA_TEXT, package_name="com.upi", received_at=t0)
        again = NotificationEvent(
            text=TEA_TEXT, package_name="com.upi", received_at=t0 + timedelta(seconds=30)
        )

        assert await flow.handle_notification(first) is not None
        assert await flow.handle_notification(again) is None
        assert len(notifier.scheduled) == 1

    @pytest.mark.asyncio
    async def test_repeat_does_not_extend_time_window(self, source, notifier, link_opener):
        """Test that the window runs from the first sighting, not the latest repeat."""
        flow = NotificationListenerFlow(
            source, notifier, link_opener,
            settings=NotificationSettings(dedup_window_seconds=120),
        )
        t0 = datetime(2024, 3, 12, 9, 0)

        def at(seconds):
            return NotificationEvent(
                text=TEA_TEXT, package_name="com.upi", received_at=t0 + timedelta(seconds=seconds)
            )

        assert await flow.handle_notification(at(0)) is not None
        assert await flow.handle_notification(at(100)) is None
        assert await flow.handle_notification(at(200)) is not None
        assert len(notifier.scheduled) == 2

    @pytest.mark.asyncio
    async def test_zero_time_window_only_skips_same_instant(self, source, notifier, link_opener):
        """Test that a zero-second window still skips simultaneous redeliveries."""
        flow = NotificationListenerFlow(
            source, notifier, link_opener,
            settings=NotificationSettings(dedup_window_seconds=0),
        )
        t0 = datetime(2024, 3, 12, 9, 0)
        event = NotificationEvent(text=TEA_TEXT, package_name="com.upi", received_at=t0)
        later = NotificationEvent(
            text=TEA_TEXT, package_name="com.upi", received_at=t0 + timedelta(seconds=1)
        )

        assert await flow.handle_notification(event) is not None
        assert await flow.handle_notification(event.model_copy()) is None
        assert await flow.handle_notification(later) is not None

    @pytest.mark.asyncio
    async def test_notifier_failure_is_contained(
        self, source, failing_notifier, link_opener, audit_logger, audit_storage
    ):
        """Test notifier failure is contained."""
        flow = NotificationListenerFlow(source, failing_notifier, link_opener, audit_logger)
        assert await flow.handle_notification(NotificationEvent(text=BANK_TEXT)) is None
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in await event_types(audit_storage)

    @pytest.mark.asyncio
    async def test_events_share_correlation_id(self, flow, audit_storage):
        """Test events share correlation id."""
        correlation_id = uuid4()
        await flow.handle_notification(NotificationEvent(text=BANK_TEXT), correlation_id=correlation_id)

        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.NOTIFICATION_RECEIVED,
            AuditEventType.AMOUNT_DETECTED,
            AuditEventType.SUGGESTION_SCHEDULED,
        ]

    @pytest.mark.asyncio
    async def test_notification_text_not_audited(self, flow, audit_storage):
        """Test notification text not audited."""
        await flow.handle_notification(NotificationEvent(text=BANK_TEXT, package_name="com.bank"))
        for event in await audit_storage.get_recent_events():
            assert "XX1234" not in str(event.to_log_dict())


class TestSuggestionTap:

    @pytest.mark.asyncio
    async def test_tap_opens_add_expense_link(self, flow, link_opener, audit_storage):
        """Test tap opens add expense link."""
        suggestion = await flow.handle_notification(NotificationEvent(text=BANK_TEXT))
        url = await flow.handle_suggestion_tap(suggestion.data)

        assert url == "expensetracker://add-expense?amount=250"
        assert link_opener.opened == [url]
        assert AuditEventType.SUGGESTION_TAPPED in await event_types(audit_storage)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [None, {}, {"amount": ""}])
    async def test_tap_without_amount(self, flow, link_opener, data):
        """Test a tap whose payload has no amount."""
        assert await flow.handle_suggestion_tap(data) is None
        assert link_opener.opened == []

    @pytest.mark.asyncio
    async def test_link_opener_failure_is_contained(
        self, source, notifier, failing_link_opener, audit_logger, audit_storage
    ):
        """Test that a deep link that cannot be opened is logged, not raised."""
        flow = NotificationListenerFlow(source, notifier, failing_link_opener, audit_logger)
        assert await flow.handle_suggestion_tap({"amount": "250"}) is None

        types = await event_types(audit_storage)
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in types
        assert AuditEventType.SUGGESTION_TAPPED not in types


class TestAddExpenseFlow:

    @pytest.mark.asyncio
    async def test_notification_to_saved_expense(self, flow, book):
        """Test notification to saved expense."""
        await book.load()
        add_expense = AddExpenseFlow(book)

        suggestion = await flow.handle_notification(
            NotificationEvent(text="You have spent Rs. 1,250.50 at AMAZON")
        )
        url = await flow.handle_suggestion_tap(suggestion.data)

        draft = add_expense.prefill_from_url(url)
        assert draft.amount == "1250.50"
        assert draft.category_id == "1"

        draft.description = "Amazon order"
        expense = await add_expense.save(draft)
        assert expense.amount == Decimal("1250.50")
        assert book.expenses == [expense]

    def test_prefill_without_link(self, book):
        """Test prefill without link."""
        draft = AddExpenseFlow(book).prefill_from_url(None)
        assert draft.amount == ""
        assert draft.category_id == "1"

    def test_prefill_ignores_bad_link(self, book):
        """Test prefill ignores bad link."""
        draft = AddExpenseFlow(book).prefill_from_url("expensetracker://add-expense?amount=abc")
        assert draft.amount == ""

    @pytest.mark.asyncio
    async def test_prefill_without_categories(self, book):
        """Test prefill without categories."""
        for category in book.categories:
            await book.delete_category(category.id)
        draft = AddExpenseFlow(book).prefill_from_url(None)
        assert draft.category_id is None


class TestCreateAppComponents:

    @pytest.mark.asyncio
    async def test_in_memory_components(self, source, notifier, link_opener):
        """Test building components without storage."""
        book, notification_flow, add_expense = await create_app_components(
            source, notifier, link_opener, use_storage=False,
        )
        assert isinstance(book, ExpenseBook)
        assert book.is_loaded
        assert isinstance(notification_flow, NotificationListenerFlow)
        assert isinstance(add_expense, AddExpenseFlow)

    @pytest.mark.asyncio
    async def test_local_backend(self, monkeypatch, tmp_path, source, notifier, link_opener):
        """Test local backend."""
        monkeypatch.setenv("STORAGE_BACKEND", "local")
        get_settings.cache_clear()

        book, _, _ = await create_app_components(source, notifier, link_opener)
        await book.set_budget("300")
        assert (tmp_path / "data" / "@expense_tracker_budget.json").exists()

    @pytest.mark.asyncio
    async def test_unconfigured_sheets_falls_back_to_memory(self, monkeypatch, source, notifier, link_opener):
        """Test unconfigured sheets falls back to memory."""
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        get_settings.cache_clear()

        book, _, _ = await create_app_components(source, notifier, link_opener)
        assert book.is_loaded
        assert len(book.categories) == 5


class TestInMemoryStorageIsolation:

    @pytest.mark.asyncio
    async def test_saved_snapshots_are_copies(self):
        """Test saved snapshots are copies."""
        storage = InMemoryExpenseStorage()
        book = ExpenseBook(storage)
        category = await book.add_category("Groceries", "#00AA00")
        category.name = "Mutated"

        [*_, stored] = await storage.load_categories()
        assert stored.name == "Groceries"
