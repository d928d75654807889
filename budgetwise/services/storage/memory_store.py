"""
In-Memory Storage Implementation

Same contract as the SQLite store, backed by plain dicts.
Used by the test suite and by the 'memory' storage backend.
Records are deep-copied on the way in and out so callers can never
mutate stored state behind the store's back.
"""

import copy
from typing import Optional

from budgetwise.services.storage.interface import (
    STORE_NAMES,
    DuplicateError,
    KeyValueStorageInterface,
    Record,
    StorageError,
)


class InMemoryKeyValueStorage(KeyValueStorageInterface):
    """Dict-backed key-value store. Insertion order is preserved."""

    def __init__(self):
        self._stores: dict[str, dict[str, Record]] = {}

    async def initialize(self) -> bool:
        for store in STORE_NAMES:
            self._stores.setdefault(store, {})
        return await self._seed_defaults()

    def _store(self, store: str) -> dict[str, Record]:
        self._check_store(store)
        if store not in self._stores:
            raise StorageError(f"Object store not initialized: {store}")
        return self._stores[store]

    async def add(self, store: str, record: Record) -> Record:
        records = self._store(store)
        if record["id"] in records:
            raise DuplicateError(f"Record already exists in {store}: {record['id']}")
        records[record["id"]] = copy.deepcopy(record)
        return record

    async def get(self, store: str, record_id: str) -> Optional[Record]:
        record = self._store(store).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def get_all(self, store: str) -> list[Record]:
        return [copy.deepcopy(record) for record in self._store(store).values()]

    async def put(self, store: str, record: Record) -> Record:
        self._store(store)[record["id"]] = copy.deepcopy(record)
        return record

    async def delete(self, store: str, record_id: str) -> bool:
        return self._store(store).pop(record_id, None) is not None

    async def reset(self) -> None:
        self._stores = {}
        await self.initialize()
