"""Expense book package."""

from src.ledger.expense_book import ExpenseBook

__all__ = ["ExpenseBook"]
