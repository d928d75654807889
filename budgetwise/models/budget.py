"""
Core Data Models for BudgetWise

These models define the schemas for every record kept in the local store.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Round-trip through the key-value store as plain JSON
4. Keep every record bound to a single account

DESIGN DECISION: Stored records and create-payloads are separate models.
Payloads carry only what a user types in; ids and account ownership are
always assigned by the service, never by the caller.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def generate_id() -> str:
    """Generate a new record identifier."""
    return str(uuid4())


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a money movement."""
    INCOME = "income"
    EXPENSE = "expense"


class Frequency(str, Enum):
    """Cadence of a recurring item."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class StatisticsPeriod(str, Enum):
    """Granularity of the statistics view."""
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# Amounts are always strictly positive; the direction lives in the type.
PositiveAmount = Annotated[Decimal, Field(gt=0, decimal_places=2)]


# =============================================================================
# STORED RECORDS
# =============================================================================

class Account(BaseModel):
    """
    A local user profile.

    Accounts are not networked identities. They only partition the data.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(..., min_length=1, max_length=100)
    initials: str = Field(default="", max_length=2)
    profile_image: Optional[str] = Field(
        default=None,
        description="Base64 data or URL of the profile picture"
    )
    email: Optional[str] = Field(default=None, max_length=200)

    @field_validator('initials')
    @classmethod
    def uppercase_initials(cls, v: str) -> str:
        return v.upper()


class Transaction(BaseModel):
    """A single income or expense record."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    type: TransactionType
    amount: PositiveAmount
    category: str = Field(
        ...,
        min_length=1,
        description="ID of the category this transaction is booked on"
    )
    date: dt.date
    title: str = Field(default="", max_length=200)
    account_id: str
    created_at: dt.datetime = Field(
        default_factory=utcnow,
        description="When the record was entered; drives the hourly breakdown"
    )


class Category(BaseModel):
    """A named bucket for transactions of one type."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    is_default: bool = False
    account_id: str


class Limit(BaseModel):
    """A monthly spending ceiling for one expense category."""

    id: str = Field(default_factory=generate_id)
    category_id: str = Field(..., min_length=1)
    amount: PositiveAmount
    account_id: str


class Template(BaseModel):
    """A reusable transaction blueprint."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(..., min_length=1, max_length=200)
    amount: PositiveAmount
    category_id: str = Field(..., min_length=1)
    type: TransactionType
    account_id: str


class RecurringItem(BaseModel):
    """
    A transaction that is booked automatically on a cadence.

    The start date anchors the cadence: weekly items repeat on the same
    weekday, monthly items on the same day of the month.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(..., min_length=1, max_length=200)
    amount: PositiveAmount
    category_id: str = Field(..., min_length=1)
    type: TransactionType
    frequency: Frequency
    start_date: dt.date
    account_id: str


class SavingsGoal(BaseModel):
    """A target amount to reach by a deadline."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=generate_id)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: PositiveAmount
    deadline: dt.date
    account_id: str


# =============================================================================
# CREATE PAYLOADS - user-supplied fields only
# =============================================================================

class TransactionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType
    amount: PositiveAmount
    category: str = Field(..., min_length=1)
    date: dt.date
    title: str = Field(default="", max_length=200)


class CategoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType


class LimitCreate(BaseModel):
    category_id: str = Field(..., min_length=1)
    amount: PositiveAmount


class TemplateCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    amount: PositiveAmount
    category_id: str = Field(..., min_length=1)
    type: TransactionType


class RecurringItemCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    amount: PositiveAmount
    category_id: str = Field(..., min_length=1)
    type: TransactionType
    frequency: Frequency = Frequency.MONTHLY
    start_date: dt.date


class SavingsGoalCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    target_amount: PositiveAmount
    deadline: dt.date


# =============================================================================
# EXPORT
# =============================================================================

class ExportData(BaseModel):
    """
    Everything belonging to one account, as written to an export file.

    All six collections are required. A file missing any of them is not
    a BudgetWise export.
    """

    transactions: list[Transaction]
    categories: list[Category]
    limits: list[Limit]
    templates: list[Template]
    recurring_items: list[RecurringItem]
    savings_goals: list[SavingsGoal]
    export_date: dt.datetime = Field(default_factory=utcnow)
    version: str = "1.0.0"


# =============================================================================
# DEFAULT DATA
# =============================================================================

DEFAULT_ACCOUNT_ID = "main-account"

DEFAULT_ACCOUNT = Account(
    id=DEFAULT_ACCOUNT_ID,
    name="Mein Konto",
    initials="MK",
    profile_image="",
    email="",
)

_DEFAULT_CATEGORY_NAMES = [
    ("income-general", "General", TransactionType.INCOME),
    ("income-salary", "Lohn", TransactionType.INCOME),
    ("income-allowance", "Taschengeld", TransactionType.INCOME),
    ("expense-general", "General", TransactionType.EXPENSE),
    ("expense-office", "Büro", TransactionType.EXPENSE),
    ("expense-internet", "Internet", TransactionType.EXPENSE),
    ("expense-treasure", "Schatz", TransactionType.EXPENSE),
    ("expense-clothing", "Kleidung", TransactionType.EXPENSE),
    ("expense-hobby", "Hobby", TransactionType.EXPENSE),
    ("expense-mobile", "Handy", TransactionType.EXPENSE),
    ("expense-goingout", "Ausgehen", TransactionType.EXPENSE),
    ("expense-bus", "Bus", TransactionType.EXPENSE),
    ("expense-vacation", "Urlaub", TransactionType.EXPENSE),
    ("expense-food", "Food", TransactionType.EXPENSE),
    ("expense-transport", "Transport", TransactionType.EXPENSE),
    ("expense-leisure", "Leisure", TransactionType.EXPENSE),
    ("expense-housing", "Housing", TransactionType.EXPENSE),
    ("expense-utilities", "Utilities", TransactionType.EXPENSE),
    ("expense-entertainment", "Entertainment", TransactionType.EXPENSE),
    ("expense-travel", "Travel", TransactionType.EXPENSE),
    ("expense-misc", "Miscellaneous", TransactionType.EXPENSE),
]

DEFAULT_CATEGORIES = [
    Category(
        id=category_id,
        name=name,
        type=category_type,
        is_default=True,
        account_id=DEFAULT_ACCOUNT_ID,
    )
    for category_id, name, category_type in _DEFAULT_CATEGORY_NAMES
]
