"""
Storage port - the persistence contract the resolvers are written against.

Provides the abstract Store and an in-memory implementation used for
development and testing. A SQLite implementation lives in sqlite_store.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any
from uuid import uuid4

Record = dict[str, Any]


class Store(ABC):
    """
    Abstract storage backend.

    Every operation is addressed by entity name. ``where`` is an equality
    criterion over stored fields; None or an empty mapping matches every
    record. Stores own identifier assignment and their own concurrency
    control.
    """

    @abstractmethod
    async def find(self, entity_name: str, where: Record | None) -> list[Record] | None:
        """Return all matching records."""
        ...

    @abstractmethod
    async def find_one(self, entity_name: str, where: Record | None) -> Record | None:
        """Return the first matching record, or None."""
        ...

    @abstractmethod
    async def create(self, entity_name: str, data: Record) -> Record:
        """Persist a new record, assigning its id, and return it."""
        ...

    @abstractmethod
    async def update(
        self,
        entity_name: str,
        where: Record | None,
        data: Record,
        upsert: bool = False,
    ) -> bool:
        """Apply ``data`` to matching records. Truthy result means success."""
        ...

    @abstractmethod
    async def remove(self, entity_name: str, where: Record | None) -> bool:
        """Delete matching records. Returns True if any were removed."""
        ...


def new_id() -> str:
    return uuid4().hex


def matches(record: Record, where: Record | None) -> bool:
    """Check if a record satisfies an equality criterion."""
    if not where:
        return True
    return all(key in record and record[key] == value for key, value in where.items())


class InMemoryStore(Store):
    """
    Dictionary-backed store.

    Records are deep-copied on the way in and out so callers never alias
    stored state. Insertion order is the result order of ``find``.
    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, Record]] = {}

    def _table(self, entity_name: str) -> dict[str, Record]:
        return self._tables.setdefault(entity_name, {})

    def count(self, entity_name: str) -> int:
        """Number of stored records for an entity."""
        return len(self._table(entity_name))

    def clear(self) -> None:
        self._tables.clear()

    async def find(self, entity_name: str, where: Record | None) -> list[Record] | None:
        return [
            copy.deepcopy(record)
            for record in self._table(entity_name).values()
            if matches(record, where)
        ]

    async def find_one(self, entity_name: str, where: Record | None) -> Record | None:
        for record in self._table(entity_name).values():
            if matches(record, where):
                return copy.deepcopy(record)
        return None

    async def create(self, entity_name: str, data: Record) -> Record:
        record = copy.deepcopy(data)
        record["id"] = new_id()
        self._table(entity_name)[record["id"]] = record
        return copy.deepcopy(record)

    async def update(
        self,
        entity_name: str,
        where: Record | None,
        data: Record,
        upsert: bool = False,
    ) -> bool:
        table = self._table(entity_name)
        targets = [record for record in table.values() if matches(record, where)]

        if not targets:
            if not upsert:
                return False
            seed = {k: v for k, v in {**(where or {}), **data}.items() if k != "id"}
            await self.create(entity_name, seed)
            return True

        changes = {k: copy.deepcopy(v) for k, v in data.items() if k != "id"}
        for record in targets:
            record.update(changes)
        return True

    async def remove(self, entity_name: str, where: Record | None) -> bool:
        table = self._table(entity_name)
        doomed = [record_id for record_id, record in table.items() if matches(record, where)]
        for record_id in doomed:
            del table[record_id]
        return bool(doomed)
