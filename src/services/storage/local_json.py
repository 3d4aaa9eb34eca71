"""
Local JSON Storage Implementation

Stores each storage key as its own JSON document in a data directory,
the same layout a mobile key-value store uses:

    data/@expense_tracker_budget.json
    data/@expense_tracker_categories.json
    data/@expense_tracker_expenses.json

Decimals are written as strings so amounts round-trip exactly.
Writes go to a temp file first and are then renamed into place.
"""

import json
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from src.config import get_settings
from src.models.expense import Category, Expense
from src.services.storage.interface import (
    BUDGET_KEY,
    CATEGORIES_KEY,
    EXPENSES_KEY,
    ExpenseStorageInterface,
    StorageError,
)


class LocalJsonExpenseStorage(ExpenseStorageInterface):
    """
    File-backed expense book storage.

    A missing file means the key was never saved (load returns None).
    A corrupt file raises StorageError rather than being silently reset.
    """

    def __init__(self, data_dir: Optional[str] = None):
        self._data_dir = Path(data_dir or get_settings().storage.data_dir)

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def _read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {key}: {e}")

    def _write(self, key: str, value: Any) -> bool:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
            return True
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}")

    async def load_budget(self) -> Optional[Decimal]:
        raw = self._read(BUDGET_KEY)
        if raw is None:
            return None
        try:
            return Decimal(str(raw))
        except InvalidOperation:
            raise StorageError(f"Stored budget is not a number: {raw!r}")

    async def save_budget(self, budget: Decimal) -> bool:
        return self._write(BUDGET_KEY, str(budget))

    async def load_categories(self) -> Optional[list[Category]]:
        raw = self._read(CATEGORIES_KEY)
        if raw is None:
            return None
        try:
            return [Category.model_validate(item) for item in raw]
        except (TypeError, ValidationError) as e:
            raise StorageError(f"Stored categories are malformed: {e}")

    async def save_categories(self, categories: list[Category]) -> bool:
        return self._write(
            CATEGORIES_KEY,
            [category.model_dump(mode="json") for category in categories],
        )

    async def load_expenses(self) -> Optional[list[Expense]]:
        raw = self._read(EXPENSES_KEY)
        if raw is None:
            return None
        try:
            return [Expense.model_validate(item) for item in raw]
        except (TypeError, ValidationError) as e:
            raise StorageError(f"Stored expenses are malformed: {e}")

    async def save_expenses(self, expenses: list[Expense]) -> bool:
        return self._write(
            EXPENSES_KEY,
            [expense.model_dump(mode="json") for expense in expenses],
        )
