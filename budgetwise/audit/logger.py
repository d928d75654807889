"""
Audit Logger

DESIGN DECISION: Every user action on budget data is logged.
This provides:
1. A history of changes per account
2. Debugging capability when a write fails
3. The success/failure feedback a front end shows to the user

The audit logger:
- Is async so it fits the storage interface
- Gracefully handles failures (a failed audit write never breaks the action)
- Always writes a structured local log line, persistence is optional
"""

from collections import deque
from typing import Optional

import structlog

from budgetwise.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from budgetwise.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Events kept in memory for the front end to show
HISTORY_SIZE = 200


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit_log object store (for history)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("budgetwise.audit")
        self.history: deque[AuditEvent] = deque(maxlen=HISTORY_SIZE)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()
        self.history.append(event)

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=event.event_id,
                )
                return False

        return True

    @property
    def last_event(self) -> Optional[AuditEvent]:
        return self.history[-1] if self.history else None

    async def log_record_added(
        self,
        entity_type: str,
        entity_id: str,
        account_id: str,
    ) -> None:
        await self.log(AuditEventBuilder.record_added(entity_type, entity_id, account_id))

    async def log_record_updated(
        self,
        entity_type: str,
        entity_id: str,
        account_id: str,
    ) -> None:
        await self.log(AuditEventBuilder.record_updated(entity_type, entity_id, account_id))

    async def log_record_deleted(
        self,
        entity_type: str,
        entity_id: str,
        account_id: Optional[str],
    ) -> None:
        await self.log(AuditEventBuilder.record_deleted(entity_type, entity_id, account_id))

    async def log_rejected(
        self,
        entity_type: str,
        reason: str,
        account_id: Optional[str],
        details: Optional[dict] = None,
    ) -> None:
        """Log an operation refused by a business rule."""
        await self.log(
            AuditEventBuilder.operation_rejected(entity_type, reason, account_id, details)
        )

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        account_id: Optional[str] = None,
        entity_type: Optional[str] = None,
    ) -> None:
        await self.log(
            AuditEventBuilder.storage_error(operation, error_message, account_id, entity_type)
        )

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(error_type, error_message, details))
