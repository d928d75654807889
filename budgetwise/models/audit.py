"""
Audit Models for BudgetWise

Every change a user makes to their data is recorded as an audit event.
This provides:
1. A readable history of what happened to an account
2. Debugging information when a write fails
3. The feedback a front end needs to confirm or report an action

DESIGN DECISION: Audit logs are append-only. We never delete or modify them,
not even when the account they describe is deleted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Record-level CRUD shares three generic types; the entity type on the
    event says which kind of record was touched.
    """
    # Lifecycle
    STORAGE_INITIALIZED = "storage_initialized"
    APP_RESET = "app_reset"

    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"
    ACCOUNT_SWITCHED = "account_switched"

    # Records
    RECORD_ADDED = "record_added"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    OPERATION_REJECTED = "operation_rejected"

    # Automation
    TEMPLATE_APPLIED = "template_applied"
    RECURRING_TRANSACTION_CREATED = "recurring_transaction_created"

    # Export / import
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every user-visible action creates one of these.
    """

    # Identity
    event_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what is this about?
    account_id: Optional[str] = Field(
        default=None,
        description="Account whose data was touched"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Kind of record (e.g., 'transaction', 'limit')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=True,
        description="False for events the system triggered by itself"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_id": self.account_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_record(self) -> dict:
        """
        Convert to a record for the key-value store.

        Keyed by `id` like every other stored record.
        """
        record = self.model_dump(mode="json")
        record["id"] = record.pop("event_id")
        return record

    @classmethod
    def from_record(cls, record: dict) -> "AuditEvent":
        data = dict(record)
        data["event_id"] = data.pop("id")
        return cls.model_validate(data)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_added("limit", limit.id, account_id)
        event = AuditEventBuilder.operation_rejected("category", "...", account_id)
    """

    @staticmethod
    def storage_initialized(account_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_INITIALIZED,
            description=f"Storage opened with {account_count} account(s)",
            details={"account_count": account_count},
            is_user_action=False,
        )

    @staticmethod
    def account_created(account_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            description=f'Account "{name}" has been created',
            details={"name": name},
        )

    @staticmethod
    def account_updated(account_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_UPDATED,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            description="Profile updated",
        )

    @staticmethod
    def account_deleted(account_id: str, removed: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            description="Account deleted successfully",
            details={"removed_records": removed},
        )

    @staticmethod
    def account_switched(account_id: str, previous_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_SWITCHED,
            account_id=account_id,
            entity_type="account",
            entity_id=account_id,
            description="Switched account",
            details={"previous_account_id": previous_id},
        )

    @staticmethod
    def record_added(entity_type: str, entity_id: str, account_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            account_id=account_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{_label(entity_type)} added successfully",
        )

    @staticmethod
    def record_updated(entity_type: str, entity_id: str, account_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            account_id=account_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{_label(entity_type)} updated successfully",
        )

    @staticmethod
    def record_deleted(entity_type: str, entity_id: str, account_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            account_id=account_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{_label(entity_type)} deleted successfully",
        )

    @staticmethod
    def operation_rejected(
        entity_type: str,
        reason: str,
        account_id: Optional[str],
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            account_id=account_id,
            entity_type=entity_type,
            description=reason,
            details=details or {},
        )

    @staticmethod
    def template_applied(template_id: str, transaction_id: str, account_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEMPLATE_APPLIED,
            account_id=account_id,
            entity_type="template",
            entity_id=template_id,
            description="Template applied successfully",
            details={"transaction_id": transaction_id},
        )

    @staticmethod
    def recurring_transaction_created(
        item_id: str,
        item_name: str,
        transaction_id: str,
        account_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_TRANSACTION_CREATED,
            account_id=account_id,
            entity_type="recurring_item",
            entity_id=item_id,
            description=f'"{item_name}" was added automatically',
            details={"transaction_id": transaction_id},
            is_user_action=False,
        )

    @staticmethod
    def data_exported(account_id: str, counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            account_id=account_id,
            description="Data exported successfully",
            details={"counts": counts},
        )

    @staticmethod
    def data_imported(account_id: str, counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_IMPORTED,
            account_id=account_id,
            description="Data imported successfully",
            details={"counts": counts},
        )

    @staticmethod
    def app_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.APP_RESET,
            severity=AuditSeverity.WARNING,
            description="App reset successfully",
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        account_id: Optional[str] = None,
        entity_type: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            account_id=account_id,
            entity_type=entity_type,
            description=f"Failed to {operation}",
            error_message=error_message,
            details={"operation": operation},
            is_user_action=False,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            is_user_action=False,
        )


def _label(entity_type: str) -> str:
    return entity_type.replace("_", " ").capitalize()
