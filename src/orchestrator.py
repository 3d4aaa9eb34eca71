"""
Main Orchestrator for the Expense Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Notification → amount detection → expense suggestion
2. Suggestion tap → deep link → pre-filled add-expense → save

DESIGN DECISION: The orchestrator enforces the boundaries:
- A detected amount is only ever a SUGGESTION; nothing is saved until
  the user confirms the add-expense form
- A misbehaving platform collaborator can never crash the listener
- Every step is audited

All OS integration is injected (see src.services.notifications).
"""

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

import structlog

from src.audit import AuditLogger, create_correlation_id
from src.config import get_settings
from src.config.settings import AppSettings, NotificationSettings
from src.ledger import ExpenseBook
from src.models.expense import (
    Expense,
    ExpenseDraft,
    ExpenseSuggestion,
    NotificationEvent,
)
from src.parsing import Amount, extract
from src.services.notifications import (
    DeepLinkOpenerInterface,
    LocalNotifierInterface,
    NotificationSourceInterface,
    PermissionStatus,
    create_add_expense_url,
    parse_add_expense_amount,
)
from src.services.storage import (
    ExpenseStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    InMemoryExpenseStorage,
    LocalJsonExpenseStorage,
)


logger = structlog.get_logger(__name__)


class NotificationListenerFlow:
    """
    Orchestrates transaction notification handling.

    Flow:
    1. Start → platform and permission checks, start OS listener
    2. Receive → skip repeats of recently seen notifications
    3. Detect → run the amount extractor
    4. Suggest → schedule a local "Expense Detected" notification
    5. Tap → open the add-expense deep link with the amount

    The user must act on the suggestion; the flow never saves expenses.
    """

    def __init__(
        self,
        source: NotificationSourceInterface,
        notifier: LocalNotifierInterface,
        link_opener: DeepLinkOpenerInterface,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[NotificationSettings] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._source = source
        self._notifier = notifier
        self._link_opener = link_opener
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().notifications
        self._app_settings = app_settings or get_settings().app

        # dedup_key -> when it was first seen, oldest first
        self._recent: OrderedDict[str, datetime] = OrderedDict()
        self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    async def start(self) -> bool:
        """
        Start listening for notifications.

        Only runs on Android, and only once notification access is granted.

        Returns:
            True if the listener is running
        """
        platform = self._app_settings.platform.lower()

        if not self._settings.enabled:
            reason = "disabled in settings"
        elif platform != "android":
            reason = "notification access is only available on android"
        else:
            reason = None

        if reason:
            logger.info("notification_listener_skipped", platform=platform, reason=reason)
            if self._audit_logger:
                await self._audit_logger.log_listener_unsupported(platform, reason)
            return False

        if self._started:
            return True

        status = await self._source.get_permission_status()
        if status != PermissionStatus.AUTHORIZED:
            status = await self._source.request_permission()

        if status != PermissionStatus.AUTHORIZED:
            logger.warning("notification_permission_denied", status=status.value)
            if self._audit_logger:
                await self._audit_logger.log_listener_permission_denied(status.value)
            return False

        await self._source.start_service()
        self._source.subscribe(self.handle_notification)
        self._started = True

        logger.info("notification_listener_started", platform=platform)
        if self._audit_logger:
            await self._audit_logger.log_listener_started(platform)
        return True

    def _seen_recently(self, key: str, received_at: datetime) -> bool:
        """
        True if the same notification was first seen no more than
        dedup_window_seconds before `received_at`.

        A repeat does not extend the window, so a genuine repeat payment
        with identical text is suggested again once the window has passed.
        """
        window = timedelta(seconds=self._settings.dedup_window_seconds)

        while self._recent:
            oldest_key, first_seen = next(iter(self._recent.items()))
            if received_at - first_seen <= window:
                break
            del self._recent[oldest_key]

        first_seen = self._recent.get(key)
        if first_seen is not None and abs(received_at - first_seen) <= window:
            return True

        self._recent.pop(key, None)
        self._recent[key] = received_at
        while len(self._recent) > self._settings.dedup_window:
            self._recent.popitem(last=False)
        return False

    def build_suggestion(self, amount: Amount) -> ExpenseSuggestion:
        symbol = self._app_settings.currency_symbol
        return ExpenseSuggestion(
            amount=amount.value,
            title=self._settings.suggestion_title,
            body=(
                f"We detected a transaction of {symbol}{amount.value}. "
                "Tap to add it as an expense."
            ),
        )

    async def handle_notification(
        self,
        event: NotificationEvent,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[ExpenseSuggestion]:
        """
        Handle one incoming notification.

        Returns:
            The scheduled suggestion, or None if nothing was suggested
        """
        correlation_id = correlation_id or create_correlation_id()
        key = event.dedup_key

        if self._audit_logger:
            await self._audit_logger.log_notification_received(
                dedup_key=key,
                package_name=event.package_name,
                text_length=len(event.text),
                correlation_id=correlation_id,
            )

        if self._seen_recently(key, event.received_at):
            if self._audit_logger:
                await self._audit_logger.log_notification_duplicate(key, correlation_id)
            return None

        result = extract(event.text)
        if not isinstance(result, Amount):
            if self._audit_logger:
                await self._audit_logger.log_amount_not_found(key, correlation_id)
            return None

        logger.info("transaction_amount_detected", amount=str(result.value))
        if self._audit_logger:
            await self._audit_logger.log_amount_detected(key, str(result.value), correlation_id)

        suggestion = self.build_suggestion(result)
        try:
            await self._notifier.schedule(suggestion)
        except Exception as e:
            logger.error("suggestion_schedule_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="local_notifications",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return None

        if self._audit_logger:
            await self._audit_logger.log_suggestion_scheduled(
                suggestion_id=suggestion.suggestion_id,
                amount=str(suggestion.amount),
                correlation_id=correlation_id,
            )
        return suggestion

    async def handle_suggestion_tap(
        self,
        data: Optional[dict],
        correlation_id: Optional[UUID] = None,
    ) -> Optional[str]:
        """
        Handle the user tapping one of our suggestion notifications.

        Args:
            data: The notification payload (see ExpenseSuggestion.data)

        Returns:
            The deep link that was opened, or None if the payload had no
            amount or the link could not be opened
        """
        correlation_id = correlation_id or create_correlation_id()

        amount = (data or {}).get("amount")
        if not amount:
            return None

        url = create_add_expense_url(amount, self._settings.deep_link_scheme)
        try:
            await self._link_opener.open_url(url)
        except Exception as e:
            logger.error("deep_link_open_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="deep_link",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return None

        if self._audit_logger:
            await self._audit_logger.log_suggestion_tapped(str(amount), url, correlation_id)
        return url


class AddExpenseFlow:
    """
    Orchestrates the add-expense screen.

    A suggestion deep link only pre-fills the amount; the user still
    picks the category and confirms.
    """

    def __init__(self, book: ExpenseBook):
        self._book = book

    def prefill_from_url(self, url: Optional[str]) -> ExpenseDraft:
        """
        Build the initial form state, pre-filling the amount from a deep link.

        The first category is pre-selected, as on the add-expense screen.
        """
        categories = self._book.categories
        draft = ExpenseDraft(
            category_id=categories[0].id if categories else None,
        )
        if url:
            amount = parse_add_expense_amount(url)
            if amount is not None:
                draft.amount = str(amount)
        return draft

    async def save(
        self,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Save the confirmed form.

        Raises:
            ExpenseValidationError: If the user must fix the form first
        """
        return await self._book.add_expense(draft, correlation_id=correlation_id)


def create_expense_storage(backend: Optional[str] = None) -> ExpenseStorageInterface:
    """Build the configured expense storage backend."""
    settings = get_settings()
    backend = backend or settings.storage.backend

    if backend == "memory":
        return InMemoryExpenseStorage()
    if backend == "google_sheets":
        return GoogleSheetsExpenseStorage(GoogleSheetsClient())
    return LocalJsonExpenseStorage(settings.storage.data_dir)


async def create_app_components(
    source: NotificationSourceInterface,
    notifier: LocalNotifierInterface,
    link_opener: DeepLinkOpenerInterface,
    use_storage: bool = True,
) -> tuple[ExpenseBook, NotificationListenerFlow, AddExpenseFlow]:
    """
    Factory function to create all application components.

    Args:
        source, notifier, link_opener: Platform collaborators
        use_storage: Whether to use the configured storage backend.
                    Set to False for in-memory operation.

    Returns:
        (expense_book, notification_flow, add_expense_flow), with the book loaded
    """
    storage: ExpenseStorageInterface = InMemoryExpenseStorage()
    audit_logger = AuditLogger()  # Local-only logging

    if use_storage:
        try:
            backend = get_settings().storage.backend
            if backend == "google_sheets":
                client = GoogleSheetsClient()
                storage = GoogleSheetsExpenseStorage(client)
                audit_logger = AuditLogger(GoogleSheetsAuditStorage(client))
            else:
                storage = create_expense_storage(backend)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            storage = InMemoryExpenseStorage()
            audit_logger = AuditLogger()

    book = ExpenseBook(storage, audit_logger=audit_logger)
    await book.load()

    notification_flow = NotificationListenerFlow(
        source=source,
        notifier=notifier,
        link_opener=link_opener,
        audit_logger=audit_logger,
    )
    add_expense_flow = AddExpenseFlow(book)

    return book, notification_flow, add_expense_flow
