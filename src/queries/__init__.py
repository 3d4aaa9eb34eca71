"""Spending summary package."""

from src.queries.summary import MonthlySummaryBuilder

__all__ = ["MonthlySummaryBuilder"]
