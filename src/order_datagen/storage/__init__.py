"""Backing-store contract and the bundled store implementations."""

from .client import BackingStoreClient, InMemoryStore, StoreResponse, TableQuery
from .duckdb_store import DuckDBStore

__all__ = [
    "BackingStoreClient",
    "TableQuery",
    "StoreResponse",
    "InMemoryStore",
    "DuckDBStore",
]
