"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep data in a local SQLite file in normal use
2. Use in-memory storage for testing
3. Keep the budget service decoupled from the storage implementation

The interface is intentionally a plain key-value store: named object
stores, one record per id, whole-record writes, last write wins.
There is no querying, indexing or cross-store transaction. Filtering by
account happens in Python.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from budgetwise.models.audit import AuditEvent
from budgetwise.models.budget import DEFAULT_ACCOUNT, DEFAULT_CATEGORIES


Record = dict[str, Any]


# Object store names. One store per entity type.
ACCOUNTS = "accounts"
TRANSACTIONS = "transactions"
CATEGORIES = "categories"
LIMITS = "limits"
TEMPLATES = "templates"
RECURRING_ITEMS = "recurring_items"
SAVINGS_GOALS = "savings_goals"
AUDIT_LOG = "audit_log"

# Stores holding records that belong to an account.
ACCOUNT_SCOPED_STORES = (
    TRANSACTIONS,
    CATEGORIES,
    LIMITS,
    TEMPLATES,
    RECURRING_ITEMS,
    SAVINGS_GOALS,
)

STORE_NAMES = (ACCOUNTS, *ACCOUNT_SCOPED_STORES, AUDIT_LOG)


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for the record store.

    Any storage implementation (SQLite, in-memory, ...) must implement
    these methods. Records are JSON-compatible dicts with an "id" key.
    """

    @abstractmethod
    async def initialize(self) -> bool:
        """
        Open the database and create every missing object store.

        Seeds the default account and its default categories when no
        account exists yet.

        Returns:
            True if default data was seeded

        Raises:
            ConnectionError: If the database cannot be opened
        """
        pass

    @abstractmethod
    async def add(self, store: str, record: Record) -> Record:
        """
        Insert a new record.

        Raises:
            DuplicateError: If a record with the same id exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, store: str, record_id: str) -> Optional[Record]:
        """
        Retrieve a record by id.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_all(self, store: str) -> list[Record]:
        """
        Retrieve every record of a store, in insertion order.
        """
        pass

    @abstractmethod
    async def put(self, store: str, record: Record) -> Record:
        """
        Insert or replace a record (last write wins).

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, store: str, record_id: str) -> bool:
        """
        Delete a record by id.

        Deleting a missing id is not an error.

        Returns:
            True if a record was removed
        """
        pass

    @abstractmethod
    async def reset(self) -> None:
        """
        Drop the whole database and initialize it again from scratch.
        """
        pass

    def _check_store(self, store: str) -> None:
        if store not in STORE_NAMES:
            raise StorageError(f"Unknown object store: {store}")

    async def _seed_defaults(self) -> bool:
        """Add the default account and categories to an empty database."""
        if await self.get_all(ACCOUNTS):
            return False

        await self.add(ACCOUNTS, DEFAULT_ACCOUNT.model_dump(mode="json"))
        for category in DEFAULT_CATEGORIES:
            await self.add(CATEGORIES, category.model_dump(mode="json"))
        return True


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_account(self, account_id: str) -> list[AuditEvent]:
        """
        Get all events of one account in chronological order.
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific record in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not open the storage backend."""
    pass
