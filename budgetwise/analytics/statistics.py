"""
Statistics View

Builds the chart buckets, totals and expense-category breakdown for a
period selection:

- daily: 24 hourly buckets of one day
- monthly: 12 month buckets of one year
- yearly: one bucket per year, ending with the current year

Transactions only carry a calendar date, so the hourly split of the
daily view uses the hour at which each transaction was entered.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable

from budgetwise.analytics.summary import CENT, ZERO, sum_amounts
from budgetwise.models.budget import (
    Category,
    StatisticsPeriod,
    Transaction,
    TransactionType,
)
from budgetwise.models.reports import (
    CategoryShare,
    ChartBucket,
    StatisticsReport,
)


MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def _bucket(name: str, transactions: list[Transaction]) -> ChartBucket:
    income = sum_amounts(transactions, TransactionType.INCOME)
    expense = sum_amounts(transactions, TransactionType.EXPENSE)
    return ChartBucket(name=name, income=income, expense=expense, balance=income - expense)


def _select(
    transactions: Iterable[Transaction],
    predicate: Callable[[Transaction], bool],
) -> list[Transaction]:
    return [t for t in transactions if predicate(t)]


def hourly_buckets(transactions: list[Transaction], day: date) -> list[ChartBucket]:
    on_day = _select(transactions, lambda t: t.date == day)
    return [
        _bucket(f"{hour}:00", _select(on_day, lambda t, h=hour: t.created_at.hour == h))
        for hour in range(24)
    ]


def monthly_buckets(transactions: list[Transaction], year: int) -> list[ChartBucket]:
    in_year = _select(transactions, lambda t: t.date.year == year)
    return [
        _bucket(MONTH_NAMES[month - 1], _select(in_year, lambda t, m=month: t.date.month == m))
        for month in range(1, 13)
    ]


def yearly_buckets(transactions: list[Transaction], current_year: int, years: int = 5) -> list[ChartBucket]:
    return [
        _bucket(str(year), _select(transactions, lambda t, y=year: t.date.year == y))
        for year in range(current_year - years + 1, current_year + 1)
    ]


def category_breakdown(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> list[CategoryShare]:
    """Expense totals per expense category, zero categories left out."""
    expenses = [t for t in transactions if t.type == TransactionType.EXPENSE]

    shares = []
    for category in categories:
        if category.type != TransactionType.EXPENSE:
            continue
        value = sum_amounts(t for t in expenses if t.category == category.id)
        if value > 0:
            shares.append(CategoryShare(category_id=category.id, name=category.name, value=value))
    return shares


def build_statistics(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    period: StatisticsPeriod,
    year: int,
    month: int,
    day: int,
    today: date,
    years: int = 5,
) -> StatisticsReport:
    """
    Build the statistics for a period selection.

    Args:
        period: daily, monthly or yearly
        year, month, day: the selected date; month is 1-based
        today: anchors the yearly view on the current year
        years: number of buckets in the yearly view

    Raises:
        ValueError: If year/month/day is not a valid date
    """
    transactions = list(transactions)
    selected = date(year, month, day)

    if period == StatisticsPeriod.DAILY:
        buckets = hourly_buckets(transactions, selected)
        scope = _select(transactions, lambda t: t.date == selected)
    elif period == StatisticsPeriod.MONTHLY:
        buckets = monthly_buckets(transactions, year)
        scope = _select(transactions, lambda t: t.date.year == year and t.date.month == month)
    else:
        buckets = yearly_buckets(transactions, today.year, years)
        scope = _select(transactions, lambda t: t.date.year == year)

    total_income = sum((b.income for b in buckets), ZERO)
    total_expense = sum((b.expense for b in buckets), ZERO)
    total_balance = total_income - total_expense

    divisor = Decimal(12) if period == StatisticsPeriod.MONTHLY else Decimal(1)
    savings_rate = (
        float(total_balance / total_income * 100) if total_income > 0 else 0.0
    )

    return StatisticsReport(
        period=period,
        buckets=buckets,
        categories=category_breakdown(scope, categories),
        total_income=total_income,
        total_expense=total_expense,
        total_balance=total_balance,
        average_income=(total_income / divisor).quantize(CENT, rounding=ROUND_HALF_UP),
        average_expense=(total_expense / divisor).quantize(CENT, rounding=ROUND_HALF_UP),
        savings_rate=savings_rate,
    )
