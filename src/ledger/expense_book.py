"""
Expense Book

The app's state container: overall budget, categories and expenses.

DESIGN DECISION: The in-memory state is authoritative. Every change is
written through to storage right away, but a failed write is logged and
audited rather than raised, so the user never loses what they just
entered because the backend hiccuped. The next successful save
persists the full snapshot again.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog

from src.audit import AuditLogger
from src.models.expense import (
    Category,
    Expense,
    ExpenseDraft,
    MonthlySummary,
    ValidationResult,
    default_categories,
)
from src.queries import MonthlySummaryBuilder
from src.services.storage import (
    BUDGET_KEY,
    CATEGORIES_KEY,
    EXPENSES_KEY,
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)
from src.validation import (
    ExpenseValidationError,
    ExpenseValidator,
    parse_amount_input,
)


logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")


class ExpenseBook:
    """
    Budget, categories and expenses for one user.

    Call load() once before use; until then the book holds defaults.
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        validator: Optional[ExpenseValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        summary_builder: Optional[MonthlySummaryBuilder] = None,
    ):
        self._storage = storage
        self._validator = validator or ExpenseValidator()
        self._audit_logger = audit_logger
        self._summary_builder = summary_builder or MonthlySummaryBuilder()

        self._budget = Decimal("0")
        self._categories: list[Category] = default_categories()
        self._expenses: list[Expense] = []
        self._loaded = False

    @property
    def budget(self) -> Decimal:
        return self._budget

    @property
    def categories(self) -> list[Category]:
        return list(self._categories)

    @property
    def expenses(self) -> list[Expense]:
        return list(self._expenses)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    async def load(self) -> None:
        """
        Load state from storage.

        Keys that were never saved keep their defaults. A storage failure
        is logged and the defaults are kept; load() itself never raises.
        """
        try:
            budget = await self._storage.load_budget()
            categories = await self._storage.load_categories()
            expenses = await self._storage.load_expenses()
        except StorageError as e:
            logger.error("expense_book_load_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="load_failed",
                    error_message=str(e),
                )
        else:
            if budget is not None:
                self._budget = budget
            self._categories = categories if categories is not None else default_categories()
            if expenses is not None:
                self._expenses = expenses

        self._loaded = True
        logger.info(
            "expense_book_loaded",
            categories=len(self._categories),
            expenses=len(self._expenses),
        )

    async def _persist(self, key: str) -> bool:
        """Write one storage key; failures are reported, not raised."""
        try:
            if key == BUDGET_KEY:
                return await self._storage.save_budget(self._budget)
            if key == CATEGORIES_KEY:
                return await self._storage.save_categories(self._categories)
            return await self._storage.save_expenses(self._expenses)
        except StorageError as e:
            logger.error("expense_book_save_failed", key=key, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_save_failed(key, str(e))
            return False

    async def _reject(
        self,
        entity_type: str,
        result: ValidationResult,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                entity_type=entity_type,
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                ],
                correlation_id=correlation_id,
            )
        raise ExpenseValidationError(result)

    # Budget

    async def set_budget(self, amount: Union[str, Decimal, int, float]) -> Decimal:
        """
        Set the overall monthly budget.

        Raises:
            ExpenseValidationError: If the amount is not a number >= 0
        """
        result = self._validator.validate_budget(amount)
        if not result.is_valid:
            await self._reject("budget", result)

        self._budget = parse_amount_input(amount)
        await self._persist(BUDGET_KEY)

        if self._audit_logger:
            await self._audit_logger.log_budget_updated(str(self._budget))
        return self._budget

    # Categories

    async def add_category(
        self,
        name: str,
        color: str,
        budget: Union[str, Decimal, int, float, None] = None,
    ) -> Category:
        """
        Add a category.

        Raises:
            ExpenseValidationError: If the name is empty or colour/budget invalid
        """
        result = self._validator.validate_category(name, color, budget)
        if not result.is_valid:
            await self._reject("category", result)

        category = Category(
            name=name,
            color=color,
            budget=parse_amount_input(budget) if budget is not None else None,
        )
        self._categories.append(category)
        await self._persist(CATEGORIES_KEY)

        if self._audit_logger:
            await self._audit_logger.log_category_added(category.id, category.name)
        return category

    async def delete_category(self, category_id: str) -> None:
        """
        Remove a category. Its expenses are kept.

        Raises:
            NotFoundError: If no category has this id
        """
        category = self.get_category(category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}")

        self._categories = [c for c in self._categories if c.id != category_id]
        await self._persist(CATEGORIES_KEY)

        if self._audit_logger:
            await self._audit_logger.log_category_deleted(category_id)

    async def set_category_budget(
        self,
        category_id: str,
        budget: Union[str, Decimal, int, float],
    ) -> Category:
        """
        Set the monthly budget of one category.

        Raises:
            NotFoundError: If no category has this id
            ExpenseValidationError: If the budget is not a number >= 0
        """
        category = self.get_category(category_id)
        if category is None:
            raise NotFoundError(f"Category not found: {category_id}")

        result = self._validator.validate_budget(budget)
        if not result.is_valid:
            await self._reject("category", result)

        updated = category.model_copy(update={"budget": parse_amount_input(budget)})
        self._categories = [
            updated if c.id == category_id else c for c in self._categories
        ]
        await self._persist(CATEGORIES_KEY)

        if self._audit_logger:
            await self._audit_logger.log_category_budget_updated(category_id, str(updated.budget))
        return updated

    # Expenses

    async def add_expense(
        self,
        draft: ExpenseDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate a draft and record it as an expense.

        Raises:
            ExpenseValidationError: If the amount or category is invalid
        """
        result = self._validator.validate_draft(draft, self._categories)
        if not result.is_valid:
            await self._reject("expense", result, correlation_id)

        amount = parse_amount_input(draft.amount).quantize(CENTS)
        expense = Expense(
            amount=amount,
            category=draft.category_id,
            description=draft.description,
            expense_date=draft.expense_date,
        )
        self._expenses.append(expense)
        await self._persist(EXPENSES_KEY)

        if self._audit_logger:
            await self._audit_logger.log_expense_added(
                expense_id=expense.id,
                amount=str(expense.amount),
                category_id=expense.category,
                correlation_id=correlation_id,
            )
        return expense

    async def delete_expense(self, expense_id: str) -> None:
        """
        Remove an expense.

        Raises:
            NotFoundError: If no expense has this id
        """
        if not any(e.id == expense_id for e in self._expenses):
            raise NotFoundError(f"Expense not found: {expense_id}")

        self._expenses = [e for e in self._expenses if e.id != expense_id]
        await self._persist(EXPENSES_KEY)

        if self._audit_logger:
            await self._audit_logger.log_expense_deleted(expense_id)

    # Summaries

    def monthly_summary(self, on: Optional[date] = None) -> MonthlySummary:
        """Spending for the month containing `on` (default: this month)."""
        return self._summary_builder.build(
            budget=self._budget,
            categories=self._categories,
            expenses=self._expenses,
            on=on,
        )
