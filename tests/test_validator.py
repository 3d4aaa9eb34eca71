"""Tests for add-expense, budget and category validation."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from src.models.expense import ExpenseDraft, default_categories
from src.validation import (
    ExpenseValidationError,
    ExpenseValidator,
    parse_amount_input,
)


@pytest.fixture
def validator():
    return ExpenseValidator()


@pytest.fixture
def categories():
    return default_categories()


def messages(result):
    return [issue.message for issue in result.issues]


class TestParseAmountInput:

    @pytest.mark.parametrize("value,expected", [
        ("120", Decimal("120")),
        ("1,250.50", Decimal("1250.50")),
        ("  42.5 ", Decimal("42.5")),
        (7, Decimal("7")),
        (Decimal("3.14"), Decimal("3.14")),
    ])
    def test_parses_numbers(self, value, expected):
        """Test parsing numeric input."""
        assert parse_amount_input(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", "NaN", "Infinity", "12abc"])
    def test_rejects_non_numbers(self, value):
        """Test rejects non numbers."""
        assert parse_amount_input(value) is None


class TestDraftValidation:

    def test_valid_draft(self, validator, categories):
        """Test valid draft."""
        draft = ExpenseDraft(amount="120", category_id="1", description="Lunch")
        result = validator.validate_draft(draft, categories)
        assert result.is_valid
        assert result.issues == []

    @pytest.mark.parametrize("amount", ["", "abc", "0", "-5"])
    def test_invalid_amount(self, validator, categories, amount):
        """Test invalid amount."""
        draft = ExpenseDraft(amount=amount, category_id="1")
        result = validator.validate_draft(draft, categories)
        assert not result.is_valid
        assert "Please enter a valid amount." in messages(result)

    def test_too_many_decimals(self, validator, categories):
        """Test too many decimals."""
        draft = ExpenseDraft(amount="10.005", category_id="1")
        result = validator.validate_draft(draft, categories)
        assert not result.is_valid
        assert "Amount can have at most 2 decimal places." in messages(result)
        assert result.issues[0].suggested_fix == "Did you mean 10.00?"

    def test_trailing_zeros_are_fine(self, validator, categories):
        """Test trailing zeros are fine."""
        draft = ExpenseDraft(amount="10.5000", category_id="1")
        assert validator.validate_draft(draft, categories).is_valid

    def test_missing_category(self, validator, categories):
        """Test missing category."""
        draft = ExpenseDraft(amount="120")
        result = validator.validate_draft(draft, categories)
        assert messages(result) == ["Please select a category."]

    def test_unknown_category(self, validator, categories):
        """Test unknown category."""
        draft = ExpenseDraft(amount="120", category_id="missing")
        result = validator.validate_draft(draft, categories)
        assert not result.is_valid

    def test_description_too_long(self, validator, categories):
        """Test description too long."""
        draft = ExpenseDraft(amount="120", category_id="1", description="x" * 201)
        assert not validator.validate_draft(draft, categories).is_valid

    def test_future_date_is_a_warning(self, validator, categories):
        """Test future date is a warning."""
        draft = ExpenseDraft(
            amount="120",
            category_id="1",
            expense_date=date.today() + timedelta(days=10),
        )
        result = validator.validate_draft(draft, categories)
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "in the future" in result.warnings[0]

    def test_tomorrow_is_tolerated(self, validator, categories):
        """Test tomorrow is tolerated."""
        draft = ExpenseDraft(
            amount="120",
            category_id="1",
            expense_date=date.today() + timedelta(days=1),
        )
        assert validator.validate_draft(draft, categories).warnings == []

    def test_huge_amount_is_a_warning(self, validator, categories):
        """Test huge amount is a warning."""
        draft = ExpenseDraft(amount="2000000", category_id="1")
        result = validator.validate_draft(draft, categories)
        assert result.is_valid
        assert "seems unusually high" in result.warnings[0]

    def test_sanity_checks_skipped_on_errors(self, validator, categories):
        """Test sanity checks skipped on errors."""
        draft = ExpenseDraft(
            amount="2000000",
            expense_date=date.today() + timedelta(days=10),
        )
        result = validator.validate_draft(draft, categories)
        assert result.warnings == []


class TestBudgetValidation:

    @pytest.mark.parametrize("value", ["0", "5000", "1,00,000", Decimal("99.99")])
    def test_valid_budget(self, validator, value):
        """Test valid budget."""
        assert validator.validate_budget(value).is_valid

    @pytest.mark.parametrize("value", ["-1", "abc", "", None])
    def test_invalid_budget(self, validator, value):
        """Test invalid budget."""
        result = validator.validate_budget(value)
        assert messages(result) == ["Please enter a valid budget amount."]


class TestCategoryValidation:

    def test_valid_category(self, validator):
        """Test valid category."""
        assert validator.validate_category("Groceries", "#00AA00", "500").is_valid

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name(self, validator, name):
        """Test that a category name is required."""
        result = validator.validate_category(name, "#00AA00")
        assert messages(result) == ["Category name cannot be empty."]

    def test_long_name(self, validator):
        """Test the category name length limit."""
        assert not validator.validate_category("x" * 51, "#00AA00").is_valid

    @pytest.mark.parametrize("color", ["", "red", "#12345", "#GGGGGG"])
    def test_bad_color(self, validator, color):
        """Test malformed category colors."""
        result = validator.validate_category("Groceries", color)
        assert result.issues[0].field == "color"

    def test_negative_budget(self, validator):
        """Test negative budget."""
        result = validator.validate_category("Groceries", "#00AA00", "-5")
        assert messages(result) == ["Please enter a valid budget amount."]


class TestUserFriendlySummary:

    def test_clean_result(self, validator, categories):
        """Test the summary of a result with no issues."""
        result = validator.validate_draft(ExpenseDraft(amount="1", category_id="1"), categories)
        assert validator.get_user_friendly_summary(result) == "✅ Looks good!"

    def test_errors_listed(self, validator, categories):
        """Test errors listed."""
        result = validator.validate_draft(ExpenseDraft(amount="abc"), categories)
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("❌ Please fix the following:")
        assert "Please enter a valid amount." in summary
        assert "Please select a category." in summary

    def test_warnings_listed(self, validator, categories):
        """Test warnings listed."""
        draft = ExpenseDraft(amount="2000000", category_id="1")
        summary = validator.get_user_friendly_summary(validator.validate_draft(draft, categories))
        assert summary.startswith("⚠️ Please verify the following:")


class TestExpenseValidationError:

    def test_message_joins_errors(self, validator, categories):
        """Test message joins errors."""
        result = validator.validate_draft(ExpenseDraft(amount="abc"), categories)
        error = ExpenseValidationError(result)
        assert error.result is result
        assert str(error) == "Please enter a valid amount.; Please select a category."
