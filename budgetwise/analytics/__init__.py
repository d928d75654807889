"""Derived calculations: overviews, limits, savings goals and statistics."""

from budgetwise.analytics.formatters import (
    calculate_progress,
    format_currency,
    format_date,
    format_percentage,
    group_transactions_by_date,
    month_bounds,
)
from budgetwise.analytics.statistics import (
    build_statistics,
    category_breakdown,
)
from budgetwise.analytics.summary import (
    allocate_savings,
    category_spending,
    limit_progress,
    month_overview,
    savings_goal_progress,
    total_savings,
)

__all__ = [
    "allocate_savings",
    "build_statistics",
    "calculate_progress",
    "category_breakdown",
    "category_spending",
    "format_currency",
    "format_date",
    "format_percentage",
    "group_transactions_by_date",
    "limit_progress",
    "month_bounds",
    "month_overview",
    "savings_goal_progress",
    "total_savings",
]
