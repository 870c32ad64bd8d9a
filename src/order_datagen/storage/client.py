"""
Backing-store client contract.

The orchestrator only ever talks to a store through
``client.from_(table).insert(rows)``, ``.delete(column, values)`` and
``.select(columns, filters)``. Every call returns a :class:`StoreResponse`;
failures are reported through ``error`` rather than raised.
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

Row = dict[str, Any]


@dataclass
class StoreResponse:
    """Result of a store call: rows on success, an error message on failure."""

    data: list[Row] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TableQuery(ABC):
    """Operations on a single table."""

    @abstractmethod
    async def insert(self, rows: Sequence[Row]) -> StoreResponse:
        """Insert rows; the response echoes the inserted rows."""

    @abstractmethod
    async def delete(self, column: str, values: Sequence[Any]) -> StoreResponse:
        """Delete rows whose ``column`` is in ``values``; the response holds the deleted rows."""

    @abstractmethod
    async def select(
        self, columns: Sequence[str] | None = None, filters: Mapping[str, Any] | None = None
    ) -> StoreResponse:
        """Rows matching every equality filter, projected to ``columns``."""


class BackingStoreClient(ABC):
    """Entry point of the store contract."""

    @abstractmethod
    def from_(self, table: str) -> TableQuery:
        """Return the query object for ``table``."""


# ----------------------------------------------------------------------
# In-memory implementation
# ----------------------------------------------------------------------


class _InMemoryTable(TableQuery):
    def __init__(self, store: "InMemoryStore", table: str):
        self._store = store
        self._table = table

    async def insert(self, rows: Sequence[Row]) -> StoreResponse:
        if self._table in self._store.failing_tables:
            return StoreResponse(error=f"Insert rejected for table {self._table}")
        copied = [copy.deepcopy(dict(row)) for row in rows]
        with self._store._lock:
            self._store.tables.setdefault(self._table, []).extend(copied)
        return StoreResponse(data=copy.deepcopy(copied))

    async def delete(self, column: str, values: Sequence[Any]) -> StoreResponse:
        targets = set(values)
        with self._store._lock:
            rows = self._store.tables.get(self._table, [])
            deleted = [row for row in rows if row.get(column) in targets]
            self._store.tables[self._table] = [
                row for row in rows if row.get(column) not in targets
            ]
        return StoreResponse(data=deleted)

    async def select(
        self, columns: Sequence[str] | None = None, filters: Mapping[str, Any] | None = None
    ) -> StoreResponse:
        filters = filters or {}
        with self._store._lock:
            rows = [
                row
                for row in self._store.tables.get(self._table, [])
                if all(row.get(key) == value for key, value in filters.items())
            ]
            if columns:
                rows = [{name: row.get(name) for name in columns} for row in rows]
            return StoreResponse(data=copy.deepcopy(rows))


class InMemoryStore(BackingStoreClient):
    """
    Dictionary-backed store, used for tests and dry integrations.

    Tables listed in ``failing_tables`` reject inserts with an error
    response, which lets callers exercise their failure paths.
    """

    def __init__(self, schema: str = "mock_data", failing_tables: Sequence[str] = ()):
        self.schema = schema
        self.failing_tables = set(failing_tables)
        self.tables: dict[str, list[Row]] = {}
        self._lock = threading.Lock()

    def from_(self, table: str) -> TableQuery:
        return _InMemoryTable(self, table)

    def row_count(self, table: str) -> int:
        with self._lock:
            return len(self.tables.get(table, []))
