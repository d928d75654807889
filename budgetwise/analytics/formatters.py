"""
Formatting and small date helpers shared by the derived views.
"""

import calendar
import math
from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

from budgetwise.models.budget import Transaction


Number = Union[Decimal, int, float]

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "CHF": "CHF",
}


def calculate_progress(current: Number, target: Number) -> float:
    """
    Percentage of `target` reached by `current`, clamped to [0, 100].

    A non-positive target yields 0.
    """
    if target <= 0:
        return 0.0
    percentage = float(current) / float(target) * 100
    return min(max(0.0, percentage), 100.0)


def format_currency(amount: Number, currency: str = "EUR") -> str:
    """
    Format an amount the German way: 1.234,56 €
    """
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    grouped = f"{abs(value):,.2f}"
    # swap separators: 1,234.56 -> 1.234,56
    grouped = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())
    return f"{sign}{grouped} {symbol}"


def format_percentage(value: float) -> str:
    """Whole-number percentage, halves rounded up: 12.5 -> "13%"."""
    return f"{math.floor(value + 0.5)}%"


def format_date(day: date) -> str:
    return day.strftime("%d.%m.%Y")


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the month containing `day`."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def group_transactions_by_date(
    transactions: Iterable[Transaction],
) -> dict[date, list[Transaction]]:
    groups: dict[date, list[Transaction]] = defaultdict(list)
    for transaction in transactions:
        groups[transaction.date].append(transaction)
    return dict(groups)
