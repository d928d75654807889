"""
Month overview, limit progress and savings-goal allocation.

All of these are recomputed from the transaction list on every call.
Nothing here touches storage.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from budgetwise.analytics.formatters import calculate_progress, month_bounds
from budgetwise.models.budget import (
    Category,
    Limit,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from budgetwise.models.reports import (
    LimitProgress,
    MonthOverview,
    SavingsGoalProgress,
)


CENT = Decimal("0.01")
ZERO = Decimal("0")


def sum_amounts(
    transactions: Iterable[Transaction],
    transaction_type: Optional[TransactionType] = None,
) -> Decimal:
    return sum(
        (t.amount for t in transactions
         if transaction_type is None or t.type == transaction_type),
        ZERO,
    )


def in_range(transactions: Iterable[Transaction], first: date, last: date) -> list[Transaction]:
    """Transactions dated between `first` and `last`, both inclusive."""
    return [t for t in transactions if first <= t.date <= last]


def month_overview(transactions: Iterable[Transaction], today: date) -> MonthOverview:
    """
    Totals of the month containing `today`.

    The transaction list is sorted newest first; same-day entries are
    ordered by when they were entered.
    """
    first, last = month_bounds(today)
    current = in_range(transactions, first, last)

    income = sum_amounts(current, TransactionType.INCOME)
    expense = sum_amounts(current, TransactionType.EXPENSE)

    return MonthOverview(
        first_day=first,
        last_day=last,
        total_income=income,
        total_expense=expense,
        balance=income - expense,
        transactions=sorted(current, key=lambda t: (t.date, t.created_at), reverse=True),
    )


def category_spending(
    transactions: Iterable[Transaction],
    category_id: str,
    today: date,
) -> Decimal:
    """Expenses booked on one category in the month containing `today`."""
    first, last = month_bounds(today)
    return sum_amounts(
        (t for t in in_range(transactions, first, last) if t.category == category_id),
        TransactionType.EXPENSE,
    )


def limit_progress(
    limits: Iterable[Limit],
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    today: date,
) -> list[LimitProgress]:
    names = {c.id: c.name for c in categories}
    transactions = list(transactions)

    results = []
    for limit in limits:
        spent = category_spending(transactions, limit.category_id, today)
        results.append(LimitProgress(
            limit=limit,
            category_name=names.get(limit.category_id),
            spent=spent,
            remaining=limit.amount - spent,
            overage=max(spent - limit.amount, ZERO),
            progress=calculate_progress(spent, limit.amount),
            is_exceeded=spent > limit.amount,
        ))
    return results


def total_savings(transactions: Iterable[Transaction]) -> Decimal:
    """All income minus all expenses, over the whole history."""
    transactions = list(transactions)
    return (
        sum_amounts(transactions, TransactionType.INCOME)
        - sum_amounts(transactions, TransactionType.EXPENSE)
    )


def allocate_savings(goal: SavingsGoal, goals: list[SavingsGoal], savings: Decimal) -> Decimal:
    """
    Share of `savings` that belongs to `goal`.

    Savings are split across goals in proportion to their target amounts
    and a goal never receives more than its own target. Negative savings
    produce a negative allocation.
    """
    total_target = sum((g.target_amount for g in goals), ZERO)
    if total_target <= 0:
        return ZERO

    share = savings * goal.target_amount / total_target
    return min(share, goal.target_amount).quantize(CENT, rounding=ROUND_HALF_UP)


def savings_goal_progress(
    goals: Iterable[SavingsGoal],
    transactions: Iterable[Transaction],
    today: date,
) -> list[SavingsGoalProgress]:
    goals = list(goals)
    savings = total_savings(transactions)

    results = []
    for goal in goals:
        allocated = allocate_savings(goal, goals, savings)
        results.append(SavingsGoalProgress(
            goal=goal,
            allocated=allocated,
            remaining=goal.target_amount - allocated,
            progress=calculate_progress(allocated, goal.target_amount),
            days_left=(goal.deadline - today).days,
        ))
    return results
