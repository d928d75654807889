"""
Budget Service for BudgetWise

This module ties together storage, validation, recurring scheduling and
the audit trail. It holds the current account and that account's
records in memory and exposes every user operation on them.

DESIGN DECISION: The service enforces the boundaries:
- Every write goes to storage first; memory is only updated after the
  storage write succeeded
- A record always belongs to the current account, whatever the caller
  passes in
- Every operation is audited, successful or not
- Storage errors are audited and re-raised, never swallowed

Derived views (month overview, limits, savings goals, statistics) are
recomputed from the in-memory records on every call.
"""

from datetime import date
from typing import Optional

import structlog
from pydantic import BaseModel

from budgetwise.analytics import (
    build_statistics,
    limit_progress,
    month_overview,
    savings_goal_progress,
)
from budgetwise.audit import AuditLogger
from budgetwise.config import Settings, get_settings
from budgetwise.models.audit import AuditEventBuilder
from budgetwise.models.budget import (
    DEFAULT_ACCOUNT_ID,
    Account,
    Category,
    CategoryCreate,
    ExportData,
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
)
from budgetwise.models.reports import (
    LimitProgress,
    MonthOverview,
    SavingsGoalProgress,
    StatisticsReport,
    ValidationIssue,
    ValidationResult,
)
from budgetwise.recurring import pending_transactions
from budgetwise.services.storage import (
    ACCOUNT_SCOPED_STORES,
    ACCOUNTS,
    CATEGORIES,
    LIMITS,
    RECURRING_ITEMS,
    SAVINGS_GOALS,
    TEMPLATES,
    TRANSACTIONS,
    InMemoryKeyValueStorage,
    KeyValueAuditStorage,
    KeyValueStorageInterface,
    NotFoundError,
    SQLiteClient,
    SQLiteKeyValueStorage,
    StorageError,
)
from budgetwise.validation import RecordValidator


# entity type -> (object store, in-memory attribute, record model)
ENTITIES: dict[str, tuple[str, str, type[BaseModel]]] = {
    "transaction": (TRANSACTIONS, "transactions", Transaction),
    "category": (CATEGORIES, "categories", Category),
    "limit": (LIMITS, "limits", Limit),
    "template": (TEMPLATES, "templates", Template),
    "recurring_item": (RECURRING_ITEMS, "recurring_items", RecurringItem),
    "savings_goal": (SAVINGS_GOALS, "savings_goals", SavingsGoal),
}


class BudgetError(Exception):
    """Base exception for budget operations."""
    pass


class NoAccountSelectedError(BudgetError):
    """The operation needs a current account and none is selected."""
    pass


class OperationRefusedError(BudgetError):
    """A business rule forbids the operation (e.g. deleting the last account)."""
    pass


class RecordValidationError(BudgetError):
    """A record failed semantic validation."""

    def __init__(self, entity_type: str, issues: list[ValidationIssue]):
        self.entity_type = entity_type
        self.issues = issues
        messages = "; ".join(i.message for i in issues if i.severity == "error")
        super().__init__(f"Invalid {entity_type}: {messages}")


def make_initials(name: str) -> str:
    """First letters of the first two words, upper-cased: "Mein Konto" -> "MK"."""
    return "".join(word[0] for word in name.split()[:2]).upper()


def _payload(model: type[BaseModel], record: BaseModel) -> BaseModel:
    """Strip a stored record down to the fields of a create-payload."""
    return model.model_validate(record.model_dump(include=set(model.model_fields)))


class BudgetService:
    """
    Holds the current account and exposes every operation on its data.

    Flow on startup:
    1. initialize() opens storage (seeding defaults on first run)
    2. Accounts are loaded; "main-account" or the first one is selected
    3. The selected account's records are loaded into memory
    4. Due recurring items are booked for today
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[RecordValidator] = None,
        settings: Optional[Settings] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or RecordValidator()
        self._settings = (settings or get_settings()).app
        self._logger = structlog.get_logger("budgetwise.service")

        self.is_loading = False
        self.accounts: list[Account] = []
        self.current_account: Optional[Account] = None
        self._clear_account_data()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _clear_account_data(self) -> None:
        self.transactions: list[Transaction] = []
        self.categories: list[Category] = []
        self.limits: list[Limit] = []
        self.templates: list[Template] = []
        self.recurring_items: list[RecurringItem] = []
        self.savings_goals: list[SavingsGoal] = []

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    @property
    def current_account_id(self) -> Optional[str]:
        return self.current_account.id if self.current_account else None

    def _require_account(self) -> str:
        if self.current_account is None:
            raise NoAccountSelectedError("No account selected")
        return self.current_account.id

    async def _storage_failed(
        self,
        operation: str,
        error: StorageError,
        entity_type: Optional[str] = None,
    ) -> None:
        await self._audit_logger.log_storage_error(
            operation=operation,
            error_message=str(error),
            account_id=self.current_account_id,
            entity_type=entity_type,
        )

    async def _check(self, result: ValidationResult) -> None:
        """Raise on errors, log warnings."""
        if result.has_errors:
            await self._audit_logger.log_rejected(
                entity_type=result.entity_type,
                reason=f"{result.entity_type} rejected by validation",
                account_id=self.current_account_id,
                details={"issues": [i.model_dump() for i in result.issues]},
            )
            raise RecordValidationError(result.entity_type, result.issues)

        for warning in result.warnings:
            self._logger.warning(
                "validation_warning",
                entity_type=result.entity_type,
                message=warning,
            )

    async def _load_accounts(self) -> None:
        records = await self._storage.get_all(ACCOUNTS)
        self.accounts = [Account.model_validate(r) for r in records]

    async def _load_account_data(self, account_id: str) -> None:
        """Load every record of one account into memory."""
        self._clear_account_data()
        for store, attribute, model in ENTITIES.values():
            records = await self._storage.get_all(store)
            setattr(self, attribute, [
                model.model_validate(r) for r in records
                if r.get("account_id") == account_id
            ])

    async def _select_initial_account(self, today: Optional[date]) -> None:
        account = next(
            (a for a in self.accounts if a.id == DEFAULT_ACCOUNT_ID),
            self.accounts[0] if self.accounts else None,
        )
        self.current_account = account
        if account is None:
            self._clear_account_data()
            return

        await self._load_account_data(account.id)
        if self._settings.process_recurring_on_load:
            await self.process_recurring_items(today)

    async def _add_record(self, entity_type: str, record: BaseModel) -> BaseModel:
        store, attribute, _ = ENTITIES[entity_type]
        try:
            await self._storage.add(store, record.model_dump(mode="json"))
        except StorageError as e:
            await self._storage_failed(f"add {entity_type}", e, entity_type)
            raise

        getattr(self, attribute).append(record)
        await self._audit_logger.log_record_added(entity_type, record.id, record.account_id)
        return record

    async def _update_record(self, entity_type: str, record: BaseModel) -> BaseModel:
        store, attribute, _ = ENTITIES[entity_type]
        records = getattr(self, attribute)
        index = next((i for i, r in enumerate(records) if r.id == record.id), None)
        if index is None:
            await self._audit_logger.log_rejected(
                entity_type, f"{entity_type} not found", self.current_account_id,
                {"entity_id": record.id},
            )
            raise NotFoundError(f"{entity_type} not found: {record.id}")

        try:
            await self._storage.put(store, record.model_dump(mode="json"))
        except StorageError as e:
            await self._storage_failed(f"update {entity_type}", e, entity_type)
            raise

        records[index] = record
        await self._audit_logger.log_record_updated(entity_type, record.id, record.account_id)
        return record

    async def _delete_record(self, entity_type: str, record_id: str) -> bool:
        """
        Delete a record of the current account.

        Ids belonging to another account are treated like unknown ids:
        nothing is deleted and False is returned.
        """
        store, attribute, _ = ENTITIES[entity_type]
        account_id = self._require_account()
        if not any(r.id == record_id for r in getattr(self, attribute)):
            return False

        try:
            removed = await self._storage.delete(store, record_id)
        except StorageError as e:
            await self._storage_failed(f"delete {entity_type}", e, entity_type)
            raise

        setattr(self, attribute, [r for r in getattr(self, attribute) if r.id != record_id])
        await self._audit_logger.log_record_deleted(entity_type, record_id, account_id)
        return removed

    def _owned(self, record: BaseModel) -> BaseModel:
        """Copy of `record` bound to the current account."""
        return record.model_copy(update={"account_id": self._require_account()})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self, today: Optional[date] = None) -> None:
        """
        Open storage and load the initial account.

        Raises:
            StorageError: If the storage cannot be opened or read
        """
        self.is_loading = True
        try:
            try:
                await self._storage.initialize()
                await self._load_accounts()
            except StorageError as e:
                await self._storage_failed("initialize storage", e)
                raise

            await self._audit_logger.log(
                AuditEventBuilder.storage_initialized(len(self.accounts))
            )
            await self._select_initial_account(today)
        finally:
            self.is_loading = False

    async def reset_app(self, today: Optional[date] = None) -> None:
        """Delete all data and start over with the defaults."""
        self.is_loading = True
        try:
            try:
                await self._storage.reset()
                await self._load_accounts()
            except StorageError as e:
                await self._storage_failed("reset app", e)
                raise

            self.current_account = None
            self._clear_account_data()
            await self._audit_logger.log(AuditEventBuilder.app_reset())
            await self._select_initial_account(today)
        finally:
            self.is_loading = False

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def switch_account(self, account_id: str, today: Optional[date] = None) -> bool:
        """
        Make another account current.

        Returns False, changing nothing, if no such account exists.
        """
        account = next((a for a in self.accounts if a.id == account_id), None)
        if account is None:
            return False

        previous_id = self.current_account_id
        self.current_account = account
        await self._load_account_data(account.id)
        await self._audit_logger.log(
            AuditEventBuilder.account_switched(account.id, previous_id)
        )

        if self._settings.process_recurring_on_load:
            await self.process_recurring_items(today)
        return True

    async def add_account(self, name: str) -> Account:
        """
        Create an account and make it current.

        New accounts start without categories.
        """
        name = name.strip()
        if not name:
            issue = ValidationIssue(
                field="name",
                issue_type="missing",
                message="Account name is required",
                severity="error",
            )
            await self._audit_logger.log_rejected("account", issue.message, self.current_account_id)
            raise RecordValidationError("account", [issue])

        account = Account(name=name, initials=make_initials(name))
        try:
            await self._storage.add(ACCOUNTS, account.model_dump(mode="json"))
        except StorageError as e:
            await self._storage_failed("add account", e, "account")
            raise

        self.accounts.append(account)
        self.current_account = account
        self._clear_account_data()
        await self._audit_logger.log(AuditEventBuilder.account_created(account.id, account.name))
        return account

    async def update_account(self, account: Account) -> Account:
        index = next((i for i, a in enumerate(self.accounts) if a.id == account.id), None)
        if index is None:
            raise NotFoundError(f"account not found: {account.id}")

        try:
            await self._storage.put(ACCOUNTS, account.model_dump(mode="json"))
        except StorageError as e:
            await self._storage_failed("update account", e, "account")
            raise

        self.accounts[index] = account
        if self.current_account_id == account.id:
            self.current_account = account
        await self._audit_logger.log(AuditEventBuilder.account_updated(account.id))
        return account

    async def delete_account(self, account_id: str, today: Optional[date] = None) -> dict[str, int]:
        """
        Delete an account together with every record it owns.

        Its audit events stay in the audit log.

        Returns:
            Number of removed records per object store

        Raises:
            OperationRefusedError: If it is the only account left
            NotFoundError: If no such account exists
        """
        if len(self.accounts) <= 1:
            reason = "The last account cannot be deleted"
            await self._audit_logger.log_rejected("account", reason, self.current_account_id)
            raise OperationRefusedError(reason)

        if not any(a.id == account_id for a in self.accounts):
            raise NotFoundError(f"account not found: {account_id}")

        removed: dict[str, int] = {}
        try:
            for store in ACCOUNT_SCOPED_STORES:
                records = await self._storage.get_all(store)
                owned = [r["id"] for r in records if r.get("account_id") == account_id]
                for record_id in owned:
                    await self._storage.delete(store, record_id)
                removed[store] = len(owned)
            await self._storage.delete(ACCOUNTS, account_id)
        except StorageError as e:
            await self._storage_failed("delete account", e, "account")
            raise

        self.accounts = [a for a in self.accounts if a.id != account_id]
        await self._audit_logger.log(AuditEventBuilder.account_deleted(account_id, removed))

        if self.current_account_id == account_id:
            await self.switch_account(self.accounts[0].id, today)
        return removed

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def add_transaction(self, payload: TransactionCreate) -> Transaction:
        account_id = self._require_account()
        await self._check(self._validator.validate_transaction(payload, self.categories))
        transaction = Transaction(account_id=account_id, **payload.model_dump())
        return await self._add_record("transaction", transaction)

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        transaction = self._owned(transaction)
        await self._check(self._validator.validate_transaction(
            _payload(TransactionCreate, transaction), self.categories
        ))
        return await self._update_record("transaction", transaction)

    async def delete_transaction(self, transaction_id: str) -> bool:
        return await self._delete_record("transaction", transaction_id)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def add_category(self, payload: CategoryCreate) -> Category:
        """User categories are never default categories."""
        account_id = self._require_account()
        await self._check(self._validator.validate_category(payload, self.categories))
        category = Category(account_id=account_id, is_default=False, **payload.model_dump())
        return await self._add_record("category", category)

    async def delete_category(self, category_id: str) -> bool:
        """
        Raises:
            OperationRefusedError: If the category is a default category
        """
        category = next((c for c in self.categories if c.id == category_id), None)
        if category is not None and category.is_default:
            reason = f'Default category "{category.name}" cannot be deleted'
            await self._audit_logger.log_rejected("category", reason, self.current_account_id)
            raise OperationRefusedError(reason)
        return await self._delete_record("category", category_id)

    # ------------------------------------------------------------------
    # Limits
    # ------------------------------------------------------------------

    async def add_limit(self, payload: LimitCreate) -> Limit:
        account_id = self._require_account()
        await self._check(self._validator.validate_limit(payload, self.categories, self.limits))
        limit = Limit(account_id=account_id, **payload.model_dump())
        return await self._add_record("limit", limit)

    async def update_limit(self, limit: Limit) -> Limit:
        limit = self._owned(limit)
        await self._check(self._validator.validate_limit(
            _payload(LimitCreate, limit), self.categories, self.limits, exclude_id=limit.id
        ))
        return await self._update_record("limit", limit)

    async def delete_limit(self, limit_id: str) -> bool:
        return await self._delete_record("limit", limit_id)

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    async def add_template(self, payload: TemplateCreate) -> Template:
        account_id = self._require_account()
        await self._check(self._validator.validate_template(payload, self.categories))
        template = Template(account_id=account_id, **payload.model_dump())
        return await self._add_record("template", template)

    async def update_template(self, template: Template) -> Template:
        template = self._owned(template)
        await self._check(self._validator.validate_template(
            _payload(TemplateCreate, template), self.categories
        ))
        return await self._update_record("template", template)

    async def delete_template(self, template_id: str) -> bool:
        return await self._delete_record("template", template_id)

    async def apply_template(self, template_id: str, today: Optional[date] = None) -> Transaction:
        """
        Book a transaction for today from a template.

        Raises:
            NotFoundError: If the template does not exist in this account
        """
        account_id = self._require_account()
        template = next((t for t in self.templates if t.id == template_id), None)
        if template is None:
            await self._audit_logger.log_rejected(
                "template", "Template not found", account_id, {"entity_id": template_id}
            )
            raise NotFoundError(f"template not found: {template_id}")

        transaction = await self.add_transaction(TransactionCreate(
            type=template.type,
            amount=template.amount,
            category=template.category_id,
            date=today or date.today(),
            title=template.name,
        ))
        await self._audit_logger.log(
            AuditEventBuilder.template_applied(template.id, transaction.id, account_id)
        )
        return transaction

    # ------------------------------------------------------------------
    # Recurring items
    # ------------------------------------------------------------------

    async def add_recurring_item(self, payload: RecurringItemCreate) -> RecurringItem:
        account_id = self._require_account()
        await self._check(self._validator.validate_recurring_item(payload, self.categories))
        item = RecurringItem(account_id=account_id, **payload.model_dump())
        return await self._add_record("recurring_item", item)

    async def update_recurring_item(self, item: RecurringItem) -> RecurringItem:
        item = self._owned(item)
        await self._check(self._validator.validate_recurring_item(
            _payload(RecurringItemCreate, item), self.categories
        ))
        return await self._update_record("recurring_item", item)

    async def delete_recurring_item(self, item_id: str) -> bool:
        return await self._delete_record("recurring_item", item_id)

    async def process_recurring_items(self, today: Optional[date] = None) -> list[Transaction]:
        """
        Book every recurring item due today that is not booked yet.

        Running this twice on the same day creates nothing the second time.

        Returns:
            The transactions created
        """
        account_id = self._require_account()
        today = today or date.today()

        created = []
        for item, payload in pending_transactions(self.recurring_items, self.transactions, today):
            transaction = Transaction(account_id=account_id, **payload.model_dump())
            await self._add_record("transaction", transaction)
            await self._audit_logger.log(AuditEventBuilder.recurring_transaction_created(
                item.id, item.name, transaction.id, account_id
            ))
            created.append(transaction)
        return created

    # ------------------------------------------------------------------
    # Savings goals
    # ------------------------------------------------------------------

    async def add_savings_goal(
        self,
        payload: SavingsGoalCreate,
        today: Optional[date] = None,
    ) -> SavingsGoal:
        account_id = self._require_account()
        await self._check(self._validator.validate_savings_goal(payload, today))
        goal = SavingsGoal(account_id=account_id, **payload.model_dump())
        return await self._add_record("savings_goal", goal)

    async def update_savings_goal(
        self,
        goal: SavingsGoal,
        today: Optional[date] = None,
    ) -> SavingsGoal:
        goal = self._owned(goal)
        await self._check(self._validator.validate_savings_goal(
            _payload(SavingsGoalCreate, goal), today
        ))
        return await self._update_record("savings_goal", goal)

    async def delete_savings_goal(self, goal_id: str) -> bool:
        return await self._delete_record("savings_goal", goal_id)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    async def export_account_data(self) -> ExportData:
        """Snapshot of every record of the current account."""
        account_id = self._require_account()
        data = ExportData(
            transactions=list(self.transactions),
            categories=list(self.categories),
            limits=list(self.limits),
            templates=list(self.templates),
            recurring_items=list(self.recurring_items),
            savings_goals=list(self.savings_goals),
            version=self._settings.export_version,
        )
        await self._audit_logger.log(AuditEventBuilder.data_exported(account_id, _counts(data)))
        return data

    async def import_account_data(self, data: ExportData) -> dict[str, int]:
        """
        Add every record of an export to the current account.

        Records get fresh ids. Categories go first; a category whose id
        already exists in this account (the defaults, typically) is
        reused instead of duplicated, and the other records are pointed
        at the new category ids.

        Returns:
            Number of imported records per object store
        """
        account_id = self._require_account()
        existing = {c.id for c in self.categories}
        category_ids: dict[str, str] = {}
        counts = dict.fromkeys(ACCOUNT_SCOPED_STORES, 0)

        for category in data.categories:
            if category.id in existing:
                category_ids[category.id] = category.id
                continue
            new = await self._add_record("category", Category(
                name=category.name,
                type=category.type,
                account_id=account_id,
            ))
            category_ids[category.id] = new.id
            counts[CATEGORIES] += 1

        def remap(category_id: str) -> str:
            return category_ids.get(category_id, category_id)

        for transaction in data.transactions:
            await self._add_record("transaction", Transaction(
                **transaction.model_dump(exclude={"id", "account_id", "category"}),
                category=remap(transaction.category),
                account_id=account_id,
            ))
            counts[TRANSACTIONS] += 1

        grouped = (
            ("limit", Limit, data.limits),
            ("template", Template, data.templates),
            ("recurring_item", RecurringItem, data.recurring_items),
            ("savings_goal", SavingsGoal, data.savings_goals),
        )
        for entity_type, model, records in grouped:
            for record in records:
                fields = record.model_dump(exclude={"id", "account_id"})
                if "category_id" in fields:
                    fields["category_id"] = remap(fields["category_id"])
                await self._add_record(entity_type, model(account_id=account_id, **fields))
                counts[ENTITIES[entity_type][0]] += 1

        await self._audit_logger.log(AuditEventBuilder.data_imported(account_id, counts))
        return counts

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def month_overview(self, today: Optional[date] = None) -> MonthOverview:
        return month_overview(self.transactions, today or date.today())

    def limit_progress(self, today: Optional[date] = None) -> list[LimitProgress]:
        return limit_progress(self.limits, self.categories, self.transactions, today or date.today())

    def savings_goal_progress(self, today: Optional[date] = None) -> list[SavingsGoalProgress]:
        return savings_goal_progress(self.savings_goals, self.transactions, today or date.today())

    def statistics(
        self,
        period: StatisticsPeriod,
        year: int,
        month: int,
        day: int = 1,
        today: Optional[date] = None,
    ) -> StatisticsReport:
        return build_statistics(
            self.transactions,
            self.categories,
            period,
            year,
            month,
            day,
            today or date.today(),
            years=self._settings.statistics_years,
        )


def _counts(data: ExportData) -> dict[str, int]:
    return {
        "transactions": len(data.transactions),
        "categories": len(data.categories),
        "limits": len(data.limits),
        "templates": len(data.templates),
        "recurring_items": len(data.recurring_items),
        "savings_goals": len(data.savings_goals),
    }


def create_budget_service(settings: Optional[Settings] = None) -> BudgetService:
    """
    Factory function to create the service with its storage and audit trail.

    The backend is chosen by BUDGETWISE_STORAGE_BACKEND. The audit trail
    is written to the same store as the budget data.
    """
    settings = settings or get_settings()
    storage_settings = settings.storage

    if storage_settings.backend == "memory":
        storage: KeyValueStorageInterface = InMemoryKeyValueStorage()
    else:
        storage = SQLiteKeyValueStorage(SQLiteClient(storage_settings))

    audit_logger = AuditLogger(KeyValueAuditStorage(storage))
    return BudgetService(storage, audit_logger=audit_logger, settings=settings)
