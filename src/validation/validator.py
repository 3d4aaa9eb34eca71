"""
Expense Input Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - FORM VALIDATION:
- Amount parses to a positive number with at most 2 decimals
- A known category is selected
- These are blocking errors

STAGE 2 - SANITY CHECKS:
- Future dates
- Absurd amounts
- These are warnings: shown to the user, never blocking

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for the user to correct.
"""

import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from src.config import get_settings
from src.models.expense import (
    Category,
    ExpenseDraft,
    ValidationIssue,
    ValidationResult,
)


COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def parse_amount_input(value: Union[str, Decimal, int, float, None]) -> Optional[Decimal]:
    """
    Parse a user-entered amount.

    Accepts plain numbers with an optional thousands-comma grouping.
    Returns None when the input isn't a finite number.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        parsed = value
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    if not parsed.is_finite():
        return None
    return parsed


class ExpenseValidationError(Exception):
    """User input failed validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = [i.message for i in result.issues if i.severity == "error"]
        super().__init__("; ".join(messages) or "Validation failed")


class ExpenseValidator:
    """
    Validates add-expense drafts, budgets and categories.

    Stage 2 checks only run when stage 1 finds no errors.
    """

    def __init__(self):
        self._settings = get_settings().app

    def _validate_form(
        self,
        draft: ExpenseDraft,
        categories: list[Category],
    ) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        """
        Stage 1: Required fields and formats.

        Returns: (parsed_amount, list_of_issues)
        """
        issues = []

        amount = parse_amount_input(draft.amount)
        if amount is None or amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Please enter a valid amount.",
                severity="error",
            ))
            amount = None
        elif amount.normalize().as_tuple().exponent < -2:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount can have at most 2 decimal places.",
                severity="error",
                suggested_fix=f"Did you mean {amount.quantize(Decimal('0.01'))}?",
            ))

        category_ids = {category.id for category in categories}
        if not draft.category_id or draft.category_id not in category_ids:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Please select a category.",
                severity="error",
            ))

        if len(draft.description) > 200:
            issues.append(ValidationIssue(
                field="description",
                issue_type="invalid_format",
                message="Description can be at most 200 characters.",
                severity="error",
            ))

        return amount, issues

    def _validate_sanity(
        self,
        draft: ExpenseDraft,
        amount: Decimal,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Suspicious but allowed values.
        """
        issues = []
        today = date.today()

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.expense_date > max_future_date:
            issues.append(ValidationIssue(
                field="expense_date",
                issue_type="future_date",
                message=f"Expense date ({draft.expense_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        max_amount = Decimal(str(self._settings.max_expense_amount_inr))
        if amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount (₹{amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        return issues

    def validate_draft(
        self,
        draft: ExpenseDraft,
        categories: list[Category],
    ) -> ValidationResult:
        """
        Run both validation stages on an add-expense draft.

        Args:
            draft: The form input
            categories: Currently known categories

        Returns:
            ValidationResult with all issues found
        """
        amount, issues = self._validate_form(draft, categories)

        if not any(issue.severity == "error" for issue in issues):
            issues.extend(self._validate_sanity(draft, amount))

        return ValidationResult(issues=issues)

    def validate_budget(self, value: Union[str, Decimal, int, float, None]) -> ValidationResult:
        """A budget may be zero but never negative."""
        issues = []
        budget = parse_amount_input(value)
        if budget is None or budget < 0:
            issues.append(ValidationIssue(
                field="budget",
                issue_type="invalid_value",
                message="Please enter a valid budget amount.",
                severity="error",
            ))
        return ValidationResult(issues=issues)

    def validate_category(
        self,
        name: str,
        color: str,
        budget: Union[str, Decimal, int, float, None] = None,
    ) -> ValidationResult:
        issues = []

        if not name or not name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Category name cannot be empty.",
                severity="error",
            ))
        elif len(name.strip()) > 50:
            issues.append(ValidationIssue(
                field="name",
                issue_type="invalid_format",
                message="Category name can be at most 50 characters.",
                severity="error",
            ))

        if not color or not COLOR_PATTERN.match(color):
            issues.append(ValidationIssue(
                field="color",
                issue_type="invalid_format",
                message=f"Colour must look like #RRGGBB, got {color!r}.",
                severity="error",
            ))

        if budget is not None:
            issues.extend(
                self.validate_budget(budget).issues
            )

        return ValidationResult(issues=issues)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ Looks good!"

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
