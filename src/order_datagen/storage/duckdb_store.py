"""
DuckDB backing store.

Tables live in one schema and are created from the first batch inserted
into them, with column types inferred from the pandas frame. Nested values
(lists and mappings) are stored as JSON text.
"""

import json
import logging
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import duckdb
import numpy as np
import pandas as pd

from .client import BackingStoreClient, Row, StoreResponse, TableQuery

logger = logging.getLogger(__name__)


def _duck_type_from_series(s: pd.Series) -> str:
    dt = s.dtype
    if pd.api.types.is_bool_dtype(dt):
        return "BOOLEAN"
    if pd.api.types.is_integer_dtype(dt):
        return "BIGINT"
    if pd.api.types.is_float_dtype(dt):
        return "DOUBLE"
    if pd.api.types.is_datetime64_any_dtype(dt):
        return "TIMESTAMP"
    return "VARCHAR"


def _flatten(value: Any) -> Any:
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return value


def _clean(value: Any) -> Any:
    """Turn pandas/numpy scalars back into plain Python values."""
    if value is None:
        return None
    if isinstance(value, float) and np.isnan(value):
        return None
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


class _DuckDBTable(TableQuery):
    def __init__(self, store: "DuckDBStore", table: str):
        self._store = store
        self._table = table

    @property
    def _qualified(self) -> str:
        return f'"{self._store.schema}"."{self._table}"'

    async def insert(self, rows: Sequence[Row]) -> StoreResponse:
        if not rows:
            return StoreResponse()
        df = pd.DataFrame.from_records([{k: _flatten(v) for k, v in row.items()} for row in rows])
        # All-null columns would otherwise be typed INTEGER on table creation
        for col in df.columns:
            if df[col].isna().all():
                df[col] = df[col].astype("string")
        try:
            with self._store._lock:
                self._insert_dataframe(df)
        except duckdb.Error as e:
            logger.error(f"DuckDB insert into {self._qualified} failed: {e}")
            return StoreResponse(error=str(e))
        return StoreResponse(data=[dict(row) for row in rows])

    async def delete(self, column: str, values: Sequence[Any]) -> StoreResponse:
        values = list(values)
        if not values or not self._store.table_exists(self._table):
            return StoreResponse()
        placeholders = ", ".join("?" for _ in values)
        try:
            with self._store._lock:
                conn = self._store.conn
                deleted = self._fetch(
                    f'SELECT * FROM {self._qualified} WHERE "{column}" IN ({placeholders})',
                    values,
                )
                conn.execute(
                    f'DELETE FROM {self._qualified} WHERE "{column}" IN ({placeholders})',
                    values,
                )
        except duckdb.Error as e:
            logger.error(f"DuckDB delete from {self._qualified} failed: {e}")
            return StoreResponse(error=str(e))
        return StoreResponse(data=deleted)

    async def select(
        self, columns: Sequence[str] | None = None, filters: Mapping[str, Any] | None = None
    ) -> StoreResponse:
        if not self._store.table_exists(self._table):
            return StoreResponse()
        projection = ", ".join(f'"{name}"' for name in columns) if columns else "*"
        sql = f"SELECT {projection} FROM {self._qualified}"
        params: list[Any] = []
        if filters:
            sql += " WHERE " + " AND ".join(f'"{key}" = ?' for key in filters)
            params = list(filters.values())
        try:
            with self._store._lock:
                return StoreResponse(data=self._fetch(sql, params))
        except duckdb.Error as e:
            return StoreResponse(error=str(e))

    def _fetch(self, sql: str, params: list[Any]) -> list[Row]:
        df = self._store.conn.execute(sql, params).fetchdf()
        return [
            {key: _clean(value) for key, value in record.items()}
            for record in df.to_dict(orient="records")
        ]

    def _insert_dataframe(self, df: pd.DataFrame) -> None:
        conn = self._store.conn
        conn.register("_tmp_df", df)
        try:
            if not self._store.table_exists(self._table):
                # Create with data to ensure correct column types
                conn.execute(f"CREATE TABLE {self._qualified} AS SELECT * FROM _tmp_df")
            else:
                self._ensure_columns(df)
                col_list = ", ".join(f'"{c}"' for c in df.columns)
                conn.execute(
                    f"INSERT INTO {self._qualified} ({col_list}) SELECT {col_list} FROM _tmp_df"
                )
        finally:
            conn.unregister("_tmp_df")

    def _ensure_columns(self, df: pd.DataFrame) -> None:
        """Add columns that appear in later batches (e.g. optional fields first set later)."""
        existing = self._store.columns(self._table)
        for col in df.columns:
            if str(col).lower() not in existing:
                duck_type = _duck_type_from_series(df[col])
                self._store.conn.execute(
                    f'ALTER TABLE {self._qualified} ADD COLUMN "{col}" {duck_type}'
                )


class DuckDBStore(BackingStoreClient):
    """Store backed by a DuckDB file (or ``:memory:``) with all tables in one schema."""

    def __init__(self, path: str | Path = ":memory:", schema: str = "mock_data"):
        self.path = str(path)
        self.schema = schema
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = duckdb.connect(self.path)
        self.conn.execute(f'CREATE SCHEMA IF NOT EXISTS "{schema}"')
        self._lock = threading.Lock()

    def from_(self, table: str) -> TableQuery:
        return _DuckDBTable(self, table)

    def table_exists(self, table: str) -> bool:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM information_schema.tables "
            "WHERE table_schema = ? AND table_name = ?",
            [self.schema, table],
        ).fetchone()
        return bool(row and row[0])

    def columns(self, table: str) -> set[str]:
        rows = self.conn.execute(
            "SELECT column_name FROM information_schema.columns "
            "WHERE table_schema = ? AND table_name = ?",
            [self.schema, table],
        ).fetchall()
        return {str(r[0]).lower() for r in rows}

    def row_count(self, table: str) -> int:
        if not self.table_exists(table):
            return 0
        row = self.conn.execute(f'SELECT COUNT(*) FROM "{self.schema}"."{table}"').fetchone()
        return int(row[0]) if row else 0

    def close(self) -> None:
        self.conn.close()
