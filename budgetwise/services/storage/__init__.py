"""
Storage Services Package

Provides the abstract key-value interface and its implementations.
SQLite is the default backend; the in-memory store serves tests.
"""

from budgetwise.services.storage.interface import (
    ACCOUNT_SCOPED_STORES,
    ACCOUNTS,
    AUDIT_LOG,
    CATEGORIES,
    LIMITS,
    RECURRING_ITEMS,
    SAVINGS_GOALS,
    STORE_NAMES,
    TEMPLATES,
    TRANSACTIONS,
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    KeyValueStorageInterface,
    NotFoundError,
    Record,
    StorageError,
)
from budgetwise.services.storage.memory_store import InMemoryKeyValueStorage
from budgetwise.services.storage.sqlite_store import SQLiteClient, SQLiteKeyValueStorage
from budgetwise.services.storage.audit_store import KeyValueAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStorageInterface",
    "Record",
    # Store names
    "ACCOUNT_SCOPED_STORES",
    "ACCOUNTS",
    "AUDIT_LOG",
    "CATEGORIES",
    "LIMITS",
    "RECURRING_ITEMS",
    "SAVINGS_GOALS",
    "STORE_NAMES",
    "TEMPLATES",
    "TRANSACTIONS",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStorage",
    "KeyValueAuditStorage",
    "SQLiteClient",
    "SQLiteKeyValueStorage",
]
