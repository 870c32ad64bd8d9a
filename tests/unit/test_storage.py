"""
Unit tests for the in-memory and DuckDB backing stores.
"""

from datetime import datetime

import pytest

from order_datagen.storage import DuckDBStore, InMemoryStore


@pytest.fixture
def duck():
    store = DuckDBStore(":memory:")
    yield store
    store.close()


ROWS = [
    {"id": "a", "name": "Alpha", "amount": 1.5, "tags": ["x", "y"]},
    {"id": "b", "name": "Beta", "amount": 2.0, "tags": []},
]


class TestInMemoryStore:
    async def test_insert_and_select(self):
        store = InMemoryStore()
        response = await store.from_("users").insert(ROWS)
        assert response.ok
        assert [row["id"] for row in response.data] == ["a", "b"]
        assert store.row_count("users") == 2

        selected = await store.from_("users").select(["id"], {"name": "Beta"})
        assert selected.data == [{"id": "b"}]

    async def test_rows_are_copied(self):
        store = InMemoryStore()
        rows = [{"id": "a", "tags": ["x"]}]
        await store.from_("users").insert(rows)
        rows[0]["tags"].append("mutated")
        selected = await store.from_("users").select()
        assert selected.data[0]["tags"] == ["x"]

    async def test_delete(self):
        store = InMemoryStore()
        await store.from_("users").insert(ROWS)
        deleted = await store.from_("users").delete("id", ["a", "zzz"])
        assert [row["id"] for row in deleted.data] == ["a"]
        assert store.row_count("users") == 1

    async def test_failing_table(self):
        store = InMemoryStore(failing_tables=["payments"])
        response = await store.from_("payments").insert(ROWS)
        assert not response.ok
        assert "payments" in response.error
        assert store.row_count("payments") == 0

    async def test_unknown_table(self):
        store = InMemoryStore()
        assert (await store.from_("nothing").select()).data == []
        assert store.row_count("nothing") == 0


class TestDuckDBStore:
    async def test_insert_creates_table(self, duck):
        response = await duck.from_("products").insert(ROWS)
        assert response.ok
        assert duck.table_exists("products")
        assert duck.row_count("products") == 2
        assert {"id", "name", "amount", "tags"} <= duck.columns("products")

    async def test_nested_values_stored_as_json(self, duck):
        await duck.from_("products").insert(ROWS)
        selected = await duck.from_("products").select(["tags"], {"id": "a"})
        assert selected.data == [{"tags": '["x", "y"]'}]

    async def test_later_batches_add_columns(self, duck):
        await duck.from_("orders").insert([{"id": "o1", "paid_date": None}])
        await duck.from_("orders").insert(
            [{"id": "o2", "paid_date": None, "notes": "late", "created_at": datetime(2024, 1, 2)}]
        )
        assert {"notes", "created_at"} <= duck.columns("orders")
        selected = await duck.from_("orders").select(["id", "notes"], {"id": "o2"})
        assert selected.data == [{"id": "o2", "notes": "late"}]

    async def test_select_values_are_plain_python(self, duck):
        await duck.from_("orders").insert(
            [{"id": "o1", "total": 10.5, "items": 3, "created_at": datetime(2024, 1, 2, 9)}]
        )
        row = (await duck.from_("orders").select()).data[0]
        assert row["created_at"] == datetime(2024, 1, 2, 9)
        assert type(row["items"]) is int
        assert type(row["total"]) is float

    async def test_delete(self, duck):
        await duck.from_("products").insert(ROWS)
        deleted = await duck.from_("products").delete("id", ["b"])
        assert [row["id"] for row in deleted.data] == ["b"]
        assert duck.row_count("products") == 1

    async def test_missing_table(self, duck):
        assert (await duck.from_("nothing").select()).data == []
        assert (await duck.from_("nothing").delete("id", ["a"])).data == []
        assert duck.row_count("nothing") == 0

    async def test_empty_insert(self, duck):
        response = await duck.from_("products").insert([])
        assert response.ok and response.data == []
        assert not duck.table_exists("products")

    async def test_bad_query_reports_error(self, duck):
        await duck.from_("products").insert(ROWS)
        response = await duck.from_("products").select(["no_such_column"])
        assert not response.ok

    async def test_file_backed_store(self, tmp_path):
        path = tmp_path / "nested" / "data.duckdb"
        store = DuckDBStore(path, schema="sandbox")
        await store.from_("users").insert(ROWS)
        store.close()

        reopened = DuckDBStore(path, schema="sandbox")
        assert reopened.row_count("users") == 2
        reopened.close()
