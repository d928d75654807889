"""
Result Models for BudgetWise

Nothing in here is persisted. These are the shapes returned by the
validator and by the analytics functions, recomputed from the stored
records every time they are asked for.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from budgetwise.models.budget import (
    Limit,
    SavingsGoal,
    StatisticsPeriod,
    Transaction,
)


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
        description="Type of issue (e.g., 'missing', 'type_mismatch', 'duplicate')"
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


class ValidationResult(BaseModel):
    """
    Result of checking a record against the rest of the account.

    Warnings never block a write. Errors always do.
    """

    entity_type: str
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class MonthOverview(BaseModel):
    """Income, expense and balance of one calendar month."""

    first_day: dt.date
    last_day: dt.date
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Transactions of the month, newest first"
    )


class LimitProgress(BaseModel):
    """How far the current month's spending has eaten into a limit."""

    limit: Limit
    category_name: Optional[str] = None
    spent: Decimal
    remaining: Decimal
    overage: Decimal = Decimal("0")
    progress: float = Field(ge=0.0, le=100.0)
    is_exceeded: bool


class SavingsGoalProgress(BaseModel):
    """Share of the net savings allocated to one goal."""

    goal: SavingsGoal
    allocated: Decimal
    remaining: Decimal
    progress: float = Field(ge=0.0, le=100.0)
    days_left: int = Field(description="Days until the deadline, negative once passed")


class ChartBucket(BaseModel):
    """One bar of the statistics chart."""

    name: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")


class CategoryShare(BaseModel):
    """Total expense booked on one category."""

    category_id: str
    name: str
    value: Decimal


class StatisticsReport(BaseModel):
    """Everything shown on the statistics view for one period selection."""

    period: StatisticsPeriod
    buckets: list[ChartBucket]
    categories: list[CategoryShare]
    total_income: Decimal
    total_expense: Decimal
    total_balance: Decimal
    average_income: Decimal
    average_expense: Decimal
    savings_rate: float
