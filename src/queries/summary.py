"""
Monthly Spending Summary

DESIGN DECISION: Summaries are computed DETERMINISTICALLY from stored
expenses every time they're asked for. Nothing is cached or estimated.

GUARANTEES:
- Only expenses dated inside the requested month are counted
- Every known category appears in the breakdown, even with nothing spent
- Expenses whose category was deleted still count toward the month's
  total, but not toward any category
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from src.models.expense import (
    Category,
    CategorySummary,
    Expense,
    MonthlySummary,
)


class MonthlySummaryBuilder:
    """Builds MonthlySummary views over an expense book's state."""

    def build(
        self,
        budget: Decimal,
        categories: list[Category],
        expenses: Iterable[Expense],
        on: Optional[date] = None,
    ) -> MonthlySummary:
        """
        Summarize spending for the month containing `on` (default: today).
        """
        on = on or date.today()

        monthly = [
            expense for expense in expenses
            if expense.expense_date.year == on.year
            and expense.expense_date.month == on.month
        ]

        total_spent = sum((expense.amount for expense in monthly), Decimal("0"))

        breakdown = {
            category.id: CategorySummary(
                category_id=category.id,
                name=category.name,
                budget=category.budget,
            )
            for category in categories
        }
        for expense in monthly:
            summary = breakdown.get(expense.category)
            if summary is not None:
                summary.spent += expense.amount

        return MonthlySummary(
            year=on.year,
            month=on.month,
            budget=budget,
            total_spent=total_spent,
            expenses=monthly,
            categories=breakdown,
        )

    def describe(self, summary: MonthlySummary, currency_symbol: str = "₹") -> str:
        """One-line description of a month, e.g. for the home screen header."""
        month_name = date(summary.year, summary.month, 1).strftime("%B %Y")
        if summary.budget <= 0:
            return f"{month_name}: {currency_symbol}{summary.total_spent:,.2f} spent, no budget set"
        return (
            f"{month_name}: {currency_symbol}{summary.total_spent:,.2f} of "
            f"{currency_symbol}{summary.budget:,.2f} spent "
            f"({summary.spent_percentage:.0f}%), "
            f"{currency_symbol}{summary.remaining:,.2f} remaining"
        )
