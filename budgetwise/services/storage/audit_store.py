"""
Audit Log Storage

Audit events live in the `audit_log` object store of the same key-value
store as the budget data. Events are append-only.
"""

from budgetwise.models.audit import AuditEvent
from budgetwise.services.storage.interface import (
    AUDIT_LOG,
    AuditStorageInterface,
    KeyValueStorageInterface,
    StorageError,
)


class KeyValueAuditStorage(AuditStorageInterface):
    """Audit log on top of any KeyValueStorageInterface."""

    def __init__(self, storage: KeyValueStorageInterface):
        self._storage = storage

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        await self._storage.add(AUDIT_LOG, event.to_record())
        return True

    async def _all_events(self) -> list[AuditEvent]:
        events = []
        for record in await self._storage.get_all(AUDIT_LOG):
            try:
                events.append(AuditEvent.from_record(record))
            except (KeyError, ValueError) as e:
                raise StorageError(f"Malformed audit record {record.get('id')}: {e}")
        return events

    async def get_events_by_account(self, account_id: str) -> list[AuditEvent]:
        events = [e for e in await self._all_events() if e.account_id == account_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in await self._all_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = await self._all_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
