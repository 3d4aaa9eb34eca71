"""
Core Data Models for the Expense Tracker

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Monetary values are Decimal end to end.
Amounts detected from notifications keep their exact precision.
"""

import hashlib
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


# =============================================================================
# BUDGET MODELS
# =============================================================================

class Category(BaseModel):
    """
    A spending category with an optional monthly budget.

    Expenses reference categories by id, so deleting a category
    orphans its expenses (they drop out of category breakdowns).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        min_length=1,
        description="Category identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Display name"
    )
    color: str = Field(
        ...,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Display colour as #RRGGBB"
    )
    budget: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Monthly budget for this category in INR"
    )


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="1", name="Food", color="#FF6B6B"),
    Category(id="2", name="Transport", color="#4ECDC4"),
    Category(id="3", name="Shopping", color="#45B7D1"),
    Category(id="4", name="Entertainment", color="#FFA07A"),
    Category(id="5", name="Bills", color="#98D8C8"),
)


def default_categories() -> list[Category]:
    """Fresh copies of the built-in categories."""
    return [category.model_copy() for category in DEFAULT_CATEGORIES]


class Expense(BaseModel):
    """
    A recorded expense.

    CRITICAL: Only created from a validated ExpenseDraft.
    Amounts detected from notifications still go through the draft.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        description="Expense identifier"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount in INR"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Id of the category this expense belongs to"
    )
    description: str = Field(
        default="",
        max_length=200,
    )
    expense_date: date


class ExpenseDraft(BaseModel):
    """
    Raw add-expense form input, before validation.

    The amount stays as typed text; the validator decides if it's usable.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: str = ""
    category_id: Optional[str] = None
    description: str = ""
    expense_date: date = Field(default_factory=date.today)


# =============================================================================
# SUMMARY MODELS
# =============================================================================

class CategorySummary(BaseModel):
    """Spending against one category for a month."""

    category_id: str
    name: str
    spent: Decimal = Decimal("0")
    budget: Optional[Decimal] = None

    @property
    def remaining(self) -> Optional[Decimal]:
        if self.budget is None:
            return None
        return self.budget - self.spent

    @property
    def spent_percentage(self) -> float:
        if not self.budget:
            return 0.0
        return float(self.spent / self.budget * 100)


class MonthlySummary(BaseModel):
    """
    Spending overview for one calendar month.

    Every known category appears in `categories`, even with nothing spent.
    """

    year: int
    month: int = Field(ge=1, le=12)
    budget: Decimal = Decimal("0")
    total_spent: Decimal = Decimal("0")
    expenses: list[Expense] = Field(default_factory=list)
    categories: dict[str, CategorySummary] = Field(default_factory=dict)

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.total_spent

    @property
    def spent_percentage(self) -> float:
        if self.budget <= 0:
            return 0.0
        return float(self.total_spent / self.budget * 100)


# =============================================================================
# NOTIFICATION MODELS
# =============================================================================

class NotificationEvent(BaseModel):
    """A notification delivered by the OS-level listener."""

    text: str = ""
    package_name: Optional[str] = None
    notification_id: Optional[str] = None
    received_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    @property
    def dedup_key(self) -> str:
        """Stable key for spotting repeated deliveries of the same notification."""
        raw = "\x1f".join([
            self.package_name or "",
            self.notification_id or "",
            self.text,
        ])
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class ExpenseSuggestion(BaseModel):
    """
    A local notification offering to record a detected amount.

    The user must tap it; nothing is saved automatically.
    """

    suggestion_id: UUID = Field(
        default_factory=uuid4
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    amount: Decimal = Field(..., gt=0)
    title: str
    body: str

    @property
    def data(self) -> dict[str, str]:
        """Payload carried by the notification, read back on tap."""
        return {"amount": str(self.amount)}


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of validating user input."""

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
