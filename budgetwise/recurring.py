"""
Recurring Item Scheduling

Decides which recurring items are due on a given day and which
transactions still have to be booked for them.

Cadence is anchored on the item's start date:
- daily items are due every day from the start date on
- weekly items are due every 7th day counted from the start date
- monthly items are due on the start date's day of the month; in months
  too short for that day they are due on the month's last day

A recurring item never produces two transactions for the same day. An
existing transaction on that day with the same title, amount and type
counts as already booked.
"""

import calendar
from datetime import date, timedelta
from typing import Iterable

from budgetwise.models.budget import (
    Frequency,
    RecurringItem,
    Transaction,
    TransactionCreate,
)


def _days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _monthly_due_day(item: RecurringItem, year: int, month: int) -> date:
    day = min(item.start_date.day, _days_in_month(year, month))
    return date(year, month, day)


def is_due(item: RecurringItem, today: date) -> bool:
    """Check whether a recurring item is due on `today`."""
    if item.start_date > today:
        return False

    if item.frequency == Frequency.DAILY:
        return True
    if item.frequency == Frequency.WEEKLY:
        return (today - item.start_date).days % 7 == 0
    if item.frequency == Frequency.MONTHLY:
        return _monthly_due_day(item, today.year, today.month) == today
    return False


def next_due_date(item: RecurringItem, today: date) -> date:
    """First date on or after `today` on which the item is due."""
    if today <= item.start_date:
        return item.start_date

    if item.frequency == Frequency.DAILY:
        return today

    if item.frequency == Frequency.WEEKLY:
        offset = (7 - (today - item.start_date).days % 7) % 7
        return today + timedelta(days=offset)

    candidate = _monthly_due_day(item, today.year, today.month)
    if candidate >= today:
        return candidate
    if today.month == 12:
        return _monthly_due_day(item, today.year + 1, 1)
    return _monthly_due_day(item, today.year, today.month + 1)


def pending_transactions(
    items: Iterable[RecurringItem],
    transactions: Iterable[Transaction],
    today: date,
) -> list[tuple[RecurringItem, TransactionCreate]]:
    """
    Transactions that still need to be booked for today.

    Returns (item, payload) pairs, in the order of `items`.
    """
    booked = {(t.title, t.amount, t.type, t.date) for t in transactions}
    pending: list[tuple[RecurringItem, TransactionCreate]] = []

    for item in items:
        if not is_due(item, today):
            continue

        key = (item.name, item.amount, item.type, today)
        if key in booked:
            continue
        booked.add(key)

        pending.append((
            item,
            TransactionCreate(
                type=item.type,
                amount=item.amount,
                category=item.category_id,
                date=today,
                title=item.name,
            ),
        ))

    return pending
