"""Tests for the derived views and formatting helpers."""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from budgetwise.analytics import (
    allocate_savings,
    build_statistics,
    calculate_progress,
    category_breakdown,
    format_currency,
    format_date,
    format_percentage,
    group_transactions_by_date,
    limit_progress,
    month_bounds,
    month_overview,
    savings_goal_progress,
    total_savings,
)
from budgetwise.models import (
    DEFAULT_ACCOUNT_ID,
    DEFAULT_CATEGORIES,
    Limit,
    SavingsGoal,
    StatisticsPeriod,
    Transaction,
    TransactionType,
)


TODAY = date(2024, 3, 15)


def income(amount: str, day: date, category: str = "income-salary", **kwargs) -> Transaction:
    return Transaction(
        type=TransactionType.INCOME,
        amount=Decimal(amount),
        category=category,
        date=day,
        account_id=DEFAULT_ACCOUNT_ID,
        **kwargs,
    )


def expense(amount: str, day: date, category: str = "expense-food", **kwargs) -> Transaction:
    return Transaction(
        type=TransactionType.EXPENSE,
        amount=Decimal(amount),
        category=category,
        date=day,
        account_id=DEFAULT_ACCOUNT_ID,
        **kwargs,
    )


def goal(target: str, name: str = "Goal") -> SavingsGoal:
    return SavingsGoal(
        name=name,
        target_amount=Decimal(target),
        deadline=date(2024, 12, 31),
        account_id=DEFAULT_ACCOUNT_ID,
    )


class TestFormatters:
    """Tests for progress and formatting helpers."""

    @pytest.mark.parametrize("current,target,expected", [
        (50, 200, 25.0),
        (300, 200, 100.0),
        (-10, 200, 0.0),
        (10, 0, 0.0),
        (10, -5, 0.0),
    ])
    def test_calculate_progress(self, current, target, expected):
        assert calculate_progress(current, target) == expected

    def test_format_currency_german_grouping(self):
        assert format_currency(Decimal("1234.56")) == "1.234,56 €"
        assert format_currency(Decimal("1234567.8")) == "1.234.567,80 €"

    def test_format_currency_negative(self):
        assert format_currency(Decimal("-5")) == "-5,00 €"

    def test_format_currency_other_code(self):
        assert format_currency(10, "usd") == "10,00 $"

    def test_format_percentage_rounds_half_up(self):
        assert format_percentage(12.5) == "13%"
        assert format_percentage(12.4) == "12%"

    def test_format_date(self):
        assert format_date(date(2024, 3, 5)) == "05.03.2024"

    def test_month_bounds_leap_year(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_group_transactions_by_date(self):
        transactions = [
            expense("1", date(2024, 3, 1)),
            expense("2", date(2024, 3, 2)),
            expense("3", date(2024, 3, 1)),
        ]
        groups = group_transactions_by_date(transactions)
        assert [t.amount for t in groups[date(2024, 3, 1)]] == [Decimal("1"), Decimal("3")]
        assert len(groups[date(2024, 3, 2)]) == 1


class TestMonthOverview:
    """Tests for the current-month summary."""

    def test_only_current_month_counts(self):
        transactions = [
            income("2000", date(2024, 3, 1)),
            expense("50", date(2024, 3, 10)),
            expense("999", date(2024, 2, 29)),
            expense("999", date(2024, 4, 1)),
        ]
        overview = month_overview(transactions, TODAY)

        assert overview.first_day == date(2024, 3, 1)
        assert overview.last_day == date(2024, 3, 31)
        assert overview.total_income == Decimal("2000")
        assert overview.total_expense == Decimal("50")
        assert overview.balance == Decimal("1950")
        assert len(overview.transactions) == 2

    def test_newest_first(self):
        transactions = [
            expense("1", date(2024, 3, 1)),
            expense("2", date(2024, 3, 20)),
            expense("3", date(2024, 3, 10)),
        ]
        overview = month_overview(transactions, TODAY)
        assert [t.date.day for t in overview.transactions] == [20, 10, 1]


class TestLimitProgress:
    """Tests for limit spending."""

    def make_limit(self, amount: str) -> Limit:
        return Limit(category_id="expense-food", amount=Decimal(amount), account_id=DEFAULT_ACCOUNT_ID)

    def test_spending_of_current_month_only(self):
        transactions = [
            expense("30", date(2024, 3, 2)),
            expense("20", date(2024, 3, 14)),
            expense("500", date(2024, 2, 14)),
            expense("500", date(2024, 3, 14), category="expense-travel"),
            income("500", date(2024, 3, 14), category="income-general"),
        ]
        [progress] = limit_progress([self.make_limit("200")], DEFAULT_CATEGORIES, transactions, TODAY)

        assert progress.spent == Decimal("50")
        assert progress.remaining == Decimal("150")
        assert progress.progress == 25.0
        assert progress.category_name == "Food"
        assert not progress.is_exceeded

    def test_reaching_the_limit_is_not_exceeding_it(self):
        transactions = [expense("200", date(2024, 3, 2))]
        [progress] = limit_progress([self.make_limit("200")], DEFAULT_CATEGORIES, transactions, TODAY)
        assert not progress.is_exceeded
        assert progress.progress == 100.0

    def test_exceeded(self):
        transactions = [expense("250", date(2024, 3, 2))]
        [progress] = limit_progress([self.make_limit("200")], DEFAULT_CATEGORIES, transactions, TODAY)
        assert progress.is_exceeded
        assert progress.overage == Decimal("50")
        assert progress.progress == 100.0


class TestSavingsGoals:
    """Tests for proportional savings allocation."""

    def test_total_savings(self):
        transactions = [income("1000", date(2023, 1, 1)), expense("400", TODAY)]
        assert total_savings(transactions) == Decimal("600")

    def test_allocation_is_proportional_to_targets(self):
        goals = [goal("1000", "Car"), goal("500", "Bike")]
        assert allocate_savings(goals[0], goals, Decimal("600")) == Decimal("400.00")
        assert allocate_savings(goals[1], goals, Decimal("600")) == Decimal("200.00")

    def test_allocation_is_capped_at_target(self):
        goals = [goal("1000"), goal("500")]
        assert allocate_savings(goals[0], goals, Decimal("3000")) == Decimal("1000")
        assert allocate_savings(goals[1], goals, Decimal("3000")) == Decimal("500")

    def test_progress_per_goal(self):
        goals = [goal("1000", "Car"), goal("500", "Bike")]
        transactions = [income("1000", date(2024, 1, 1)), expense("400", date(2024, 2, 1))]

        results = savings_goal_progress(goals, transactions, TODAY)

        assert [r.allocated for r in results] == [Decimal("400.00"), Decimal("200.00")]
        assert results[0].progress == 40.0
        assert results[0].remaining == Decimal("600.00")
        assert results[0].days_left == (date(2024, 12, 31) - TODAY).days

    def test_negative_savings_gives_zero_progress(self):
        results = savings_goal_progress([goal("1000")], [expense("100", TODAY)], TODAY)
        assert results[0].allocated < 0
        assert results[0].progress == 0.0


class TestStatistics:
    """Tests for the statistics view."""

    def test_monthly_buckets(self):
        transactions = [
            income("1200", date(2024, 1, 5)),
            expense("300", date(2024, 1, 20)),
            expense("600", date(2024, 3, 2)),
            income("999", date(2023, 1, 5)),
        ]
        report = build_statistics(
            transactions, DEFAULT_CATEGORIES, StatisticsPeriod.MONTHLY, 2024, 3, 1, TODAY
        )

        assert len(report.buckets) == 12
        assert report.buckets[0].name == "January"
        assert report.buckets[0].income == Decimal("1200")
        assert report.buckets[0].balance == Decimal("900")
        assert report.buckets[2].expense == Decimal("600")
        assert report.total_income == Decimal("1200")
        assert report.total_expense == Decimal("900")
        assert report.average_income == Decimal("100.00")
        assert report.average_expense == Decimal("75.00")
        assert report.savings_rate == 25.0

    def test_monthly_categories_follow_selected_month(self):
        transactions = [
            expense("300", date(2024, 1, 20), category="expense-travel"),
            expense("600", date(2024, 3, 2)),
        ]
        report = build_statistics(
            transactions, DEFAULT_CATEGORIES, StatisticsPeriod.MONTHLY, 2024, 3, 1, TODAY
        )
        assert [(c.category_id, c.value) for c in report.categories] == [
            ("expense-food", Decimal("600")),
        ]

    def test_daily_buckets_use_entry_hour(self):
        morning = datetime(2024, 3, 15, 8, 30, tzinfo=timezone.utc)
        evening = datetime(2024, 3, 15, 19, 5, tzinfo=timezone.utc)
        transactions = [
            expense("10", TODAY, created_at=morning),
            expense("5", TODAY, created_at=evening),
            expense("99", date(2024, 3, 14), created_at=morning),
        ]
        report = build_statistics(
            transactions, DEFAULT_CATEGORIES, StatisticsPeriod.DAILY, 2024, 3, 15, TODAY
        )

        assert len(report.buckets) == 24
        assert report.buckets[0].name == "0:00"
        assert report.buckets[8].expense == Decimal("10")
        assert report.buckets[19].expense == Decimal("5")
        assert report.total_expense == Decimal("15")
        assert report.average_expense == Decimal("15.00")

    def test_yearly_buckets_end_at_current_year(self):
        transactions = [
            income("100", date(2020, 6, 1)),
            income("200", date(2019, 6, 1)),
            expense("50", date(2024, 1, 1)),
        ]
        report = build_statistics(
            transactions, DEFAULT_CATEGORIES, StatisticsPeriod.YEARLY, 2024, 1, 1, TODAY
        )

        assert [b.name for b in report.buckets] == ["2020", "2021", "2022", "2023", "2024"]
        assert report.total_income == Decimal("100")
        assert report.total_expense == Decimal("50")

    def test_savings_rate_without_income(self):
        report = build_statistics(
            [expense("10", TODAY)], DEFAULT_CATEGORIES, StatisticsPeriod.MONTHLY, 2024, 3, 1, TODAY
        )
        assert report.savings_rate == 0.0

    def test_invalid_selection_raises(self):
        with pytest.raises(ValueError):
            build_statistics([], DEFAULT_CATEGORIES, StatisticsPeriod.DAILY, 2024, 2, 30, TODAY)

    def test_category_breakdown_skips_zero_and_income(self):
        transactions = [
            expense("10", TODAY, category="expense-food"),
            income("10", TODAY, category="income-salary"),
        ]
        shares = category_breakdown(transactions, DEFAULT_CATEGORIES)
        assert [s.name for s in shares] == ["Food"]
