"""Input validation package."""

from src.validation.validator import (
    ExpenseValidationError,
    ExpenseValidator,
    parse_amount_input,
)

__all__ = ["ExpenseValidationError", "ExpenseValidator", "parse_amount_input"]
