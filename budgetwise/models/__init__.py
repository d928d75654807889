"""
Data Models Package

This package contains all Pydantic models used in BudgetWise.
Every record written to storage must conform to these schemas.
"""

from budgetwise.models.budget import (
    DEFAULT_ACCOUNT,
    DEFAULT_ACCOUNT_ID,
    DEFAULT_CATEGORIES,
    Account,
    Category,
    CategoryCreate,
    ExportData,
    Frequency,
    Limit,
    LimitCreate,
    RecurringItem,
    RecurringItemCreate,
    SavingsGoal,
    SavingsGoalCreate,
    StatisticsPeriod,
    Template,
    TemplateCreate,
    Transaction,
    TransactionCreate,
    TransactionType,
    generate_id,
)
from budgetwise.models.reports import (
    CategoryShare,
    ChartBucket,
    LimitProgress,
    MonthOverview,
    SavingsGoalProgress,
    StatisticsReport,
    ValidationIssue,
    ValidationResult,
)
from budgetwise.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "Account",
    "Category",
    "ExportData",
    "Limit",
    "RecurringItem",
    "SavingsGoal",
    "Template",
    "Transaction",
    # Create payloads
    "CategoryCreate",
    "LimitCreate",
    "RecurringItemCreate",
    "SavingsGoalCreate",
    "TemplateCreate",
    "TransactionCreate",
    # Enums
    "Frequency",
    "StatisticsPeriod",
    "TransactionType",
    # Defaults
    "DEFAULT_ACCOUNT",
    "DEFAULT_ACCOUNT_ID",
    "DEFAULT_CATEGORIES",
    "generate_id",
    # Derived views
    "CategoryShare",
    "ChartBucket",
    "LimitProgress",
    "MonthOverview",
    "SavingsGoalProgress",
    "StatisticsReport",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
