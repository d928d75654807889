"""
Two-Stage Record Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Type checking, required fields, positive amounts
- Done by the pydantic create-payloads before anything reaches here

STAGE 2 - SEMANTIC VALIDATION:
- The referenced category exists in the current account
- The category type matches the record type
- Limits only target expense categories, one limit per category
- Savings-goal deadlines that already passed

Semantic checks need the account's current categories and limits, so
the caller passes them in. The validator never touches storage.

IMPORTANT: Validation NEVER silently fixes issues. It reports them and
the service decides whether to refuse the write.
"""

from datetime import date
from typing import Iterable, Optional

from budgetwise.models.budget import (
    Category,
    CategoryCreate,
    Limit,
    LimitCreate,
    RecurringItemCreate,
    SavingsGoalCreate,
    TemplateCreate,
    TransactionCreate,
    TransactionType,
)
from budgetwise.models.reports import ValidationIssue, ValidationResult


class RecordValidator:
    """
    Semantic checks for records about to be written.

    Every method returns a ValidationResult. Errors block the write,
    warnings are passed on to the caller.
    """

    def _check_category(
        self,
        field: str,
        category_id: str,
        record_type: TransactionType,
        categories: Iterable[Category],
    ) -> list[ValidationIssue]:
        category = next((c for c in categories if c.id == category_id), None)

        if category is None:
            return [ValidationIssue(
                field=field,
                issue_type="unknown_reference",
                message=f"Category '{category_id}' does not exist in this account",
                severity="error",
            )]

        if category.type != record_type:
            return [ValidationIssue(
                field=field,
                issue_type="type_mismatch",
                message=(
                    f"Category '{category.name}' is an {category.type.value} category, "
                    f"but the record is an {record_type.value}"
                ),
                severity="error",
            )]

        return []

    def validate_transaction(
        self,
        payload: TransactionCreate,
        categories: Iterable[Category],
    ) -> ValidationResult:
        issues = self._check_category("category", payload.category, payload.type, categories)
        return ValidationResult(entity_type="transaction", issues=issues)

    def validate_template(
        self,
        payload: TemplateCreate,
        categories: Iterable[Category],
    ) -> ValidationResult:
        issues = self._check_category("category_id", payload.category_id, payload.type, categories)
        return ValidationResult(entity_type="template", issues=issues)

    def validate_recurring_item(
        self,
        payload: RecurringItemCreate,
        categories: Iterable[Category],
    ) -> ValidationResult:
        issues = self._check_category("category_id", payload.category_id, payload.type, categories)
        return ValidationResult(entity_type="recurring_item", issues=issues)

    def validate_category(
        self,
        payload: CategoryCreate,
        categories: Iterable[Category],
    ) -> ValidationResult:
        """Same name and type twice is allowed, but flagged."""
        issues = []
        name = payload.name.casefold()

        if any(c.name.casefold() == name and c.type == payload.type for c in categories):
            issues.append(ValidationIssue(
                field="name",
                issue_type="duplicate",
                message=f"A {payload.type.value} category named '{payload.name}' already exists",
                severity="warning",
            ))

        return ValidationResult(entity_type="category", issues=issues)

    def validate_limit(
        self,
        payload: LimitCreate,
        categories: Iterable[Category],
        limits: Iterable[Limit],
        exclude_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Check a limit against the account's categories and other limits.

        Args:
            exclude_id: ID of the limit being updated, so it does not
                        count as its own duplicate
        """
        issues = self._check_category(
            "category_id", payload.category_id, TransactionType.EXPENSE, categories
        )

        taken = any(
            limit.category_id == payload.category_id and limit.id != exclude_id
            for limit in limits
        )
        if taken:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="duplicate",
                message="This category already has a limit",
                severity="error",
            ))

        return ValidationResult(entity_type="limit", issues=issues)

    def validate_savings_goal(
        self,
        payload: SavingsGoalCreate,
        today: Optional[date] = None,
    ) -> ValidationResult:
        today = today or date.today()
        issues = []

        if payload.deadline < today:
            issues.append(ValidationIssue(
                field="deadline",
                issue_type="past_date",
                message=f"Deadline ({payload.deadline}) has already passed",
                severity="warning",
            ))

        return ValidationResult(entity_type="savings_goal", issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Plain-text summary of a result, one line per issue."""
        if not result.issues:
            return "All checks passed."

        lines = []
        errors = [i for i in result.issues if i.severity == "error"]
        if errors:
            lines.append("Please fix the following:")
            lines.extend(f"  - {issue.message}" for issue in errors)

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            lines.extend(f"  - {warning}" for warning in result.warnings)

        return "\n".join(lines)
