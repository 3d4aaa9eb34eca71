"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a shared backend because:
1. Users can view and export their expenses directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Snapshot saves rewrite a whole sheet (fine for personal volumes)
- No transactions (the expense book keeps the authoritative copy in memory)

The implementation follows the abstract interface, so it can be swapped
for the local JSON backend without changing business logic.
"""

import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.models.expense import Category, Expense
from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    ExpenseStorageInterface,
    StorageError,
)


# Column mappings for Categories sheet
CATEGORY_COLUMNS = [
    "id",
    "name",
    "color",
    "budget",
]

# Column mappings for Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "amount",
    "category",
    "description",
    "expense_date",
]

# Column mappings for Budget sheet
BUDGET_COLUMNS = [
    "budget",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _safe_get(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows and blank cells."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_budget_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(self._settings.budget_sheet_name, BUDGET_COLUMNS, rows=10)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS, rows=100)

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


def category_to_row(category: Category) -> list:
    """Convert a Category to a spreadsheet row."""
    return [
        category.id,
        category.name,
        category.color,
        str(category.budget) if category.budget is not None else "",
    ]


def row_to_category(row: list) -> Category:
    """Convert a spreadsheet row to a Category."""
    budget = _safe_get(row, 3)
    return Category(
        id=_safe_get(row, 0),
        name=_safe_get(row, 1),
        color=_safe_get(row, 2),
        budget=Decimal(budget) if budget else None,
    )


def expense_to_row(expense: Expense) -> list:
    """Convert an Expense to a spreadsheet row."""
    return [
        expense.id,
        str(expense.amount),
        expense.category,
        expense.description,
        expense.expense_date.isoformat(),
    ]


def row_to_expense(row: list) -> Expense:
    """Convert a spreadsheet row to an Expense."""
    return Expense(
        id=_safe_get(row, 0),
        amount=Decimal(_safe_get(row, 1)),
        category=_safe_get(row, 2),
        description=_safe_get(row, 3),
        expense_date=date.fromisoformat(_safe_get(row, 4)),
    )


def _replace_rows(sheet: gspread.Worksheet, columns: list[str], rows: list[list]) -> None:
    """Rewrite a sheet as header + rows."""
    sheet.clear()
    sheet.append_rows([columns] + rows, value_input_option="RAW")


class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """
    Google Sheets implementation of expense book storage.

    One row per category/expense; the budget sheet holds a single row.
    Malformed rows raise StorageError instead of being skipped, so a
    snapshot save never drops data it failed to read.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def load_budget(self) -> Optional[Decimal]:
        try:
            rows = self._client.get_budget_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to load budget: {e}")

        if not rows or not _safe_get(rows[0], 0):
            return None
        try:
            return Decimal(rows[0][0])
        except InvalidOperation:
            raise StorageError(f"Stored budget is not a number: {rows[0][0]!r}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_budget(self, budget: Decimal) -> bool:
        try:
            sheet = self._client.get_budget_sheet()
            _replace_rows(sheet, BUDGET_COLUMNS, [[str(budget), datetime.utcnow().isoformat()]])
            return True
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")

    async def load_categories(self) -> Optional[list[Category]]:
        try:
            rows = self._client.get_categories_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to load categories: {e}")

        rows = [row for row in rows if row and row[0]]
        if not rows:
            return None
        try:
            return [row_to_category(row) for row in rows]
        except Exception as e:
            raise StorageError(f"Malformed category row: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_categories(self, categories: list[Category]) -> bool:
        try:
            sheet = self._client.get_categories_sheet()
            _replace_rows(sheet, CATEGORY_COLUMNS, [category_to_row(c) for c in categories])
            return True
        except Exception as e:
            raise StorageError(f"Failed to save categories: {e}")

    async def load_expenses(self) -> Optional[list[Expense]]:
        try:
            rows = self._client.get_expenses_sheet().get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to load expenses: {e}")

        rows = [row for row in rows if row and row[0]]
        if not rows:
            return None
        try:
            return [row_to_expense(row) for row in rows]
        except Exception as e:
            raise StorageError(f"Malformed expense row: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_expenses(self, expenses: list[Expense]) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            _replace_rows(sheet, EXPENSE_COLUMNS, [expense_to_row(e) for e in expenses])
            return True
        except Exception as e:
            raise StorageError(f"Failed to save expenses: {e}")


def row_to_event(row: list) -> AuditEvent:
    """Convert a spreadsheet row to an AuditEvent."""
    return AuditEvent(
        event_id=UUID(_safe_get(row, 0)),
        timestamp=datetime.fromisoformat(_safe_get(row, 1)),
        event_type=AuditEventType(_safe_get(row, 2)),
        severity=AuditSeverity(_safe_get(row, 3)),
        entity_type=_safe_get(row, 4) or None,
        entity_id=_safe_get(row, 5) or None,
        correlation_id=UUID(_safe_get(row, 6)) if _safe_get(row, 6) else None,
        description=_safe_get(row, 7),
        details=json.loads(_safe_get(row, 8)) if _safe_get(row, 8) else {},
        error_message=_safe_get(row, 9) or None,
        is_user_action=_safe_get(row, 10).lower() == "true",
    )


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(row_to_event(row))
            except (ValueError, json.JSONDecodeError):
                continue  # Skip malformed rows; the log is append-only
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._all_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
