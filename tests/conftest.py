"""
Shared fixtures.

Storage-backed tests run once against the in-memory store and once
against a SQLite file in a temporary directory.
"""

import asyncio
from datetime import date

import pytest

from budgetwise.audit import AuditLogger
from budgetwise.config import StorageSettings
from budgetwise.service import BudgetService
from budgetwise.services.storage import (
    InMemoryKeyValueStorage,
    KeyValueAuditStorage,
    SQLiteClient,
    SQLiteKeyValueStorage,
)


@pytest.fixture
def today() -> date:
    return date(2024, 3, 15)


@pytest.fixture
def sqlite_settings(tmp_path) -> StorageSettings:
    return StorageSettings(backend="sqlite", db_path=str(tmp_path / "budgetwise.db"))


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, sqlite_settings):
    if request.param == "memory":
        store = InMemoryKeyValueStorage()
    else:
        store = SQLiteKeyValueStorage(SQLiteClient(sqlite_settings))

    yield store

    if isinstance(store, SQLiteKeyValueStorage):
        store.close()


@pytest.fixture
def service(storage, today) -> BudgetService:
    svc = BudgetService(storage, audit_logger=AuditLogger(KeyValueAuditStorage(storage)))
    asyncio.run(svc.initialize(today=today))
    return svc
