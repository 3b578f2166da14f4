"""Tests for the SQLite catalog store."""

import sqlite3

import pytest

from bookvec.catalog_store import CatalogStore, SQLiteCatalogStore
from bookvec.types import Item


class TestProtocol:
    def test_sqlite_store_satisfies_protocol(self, catalog_store):
        assert isinstance(catalog_store, CatalogStore)


class TestCreate:
    def test_assigns_increasing_ids(self, catalog_store):
        a = catalog_store.create(Item(title="A"))
        b = catalog_store.create(Item(title="B"))
        assert a.id is not None
        assert b.id > a.id

    def test_vector_round_trips(self, catalog_store):
        item = catalog_store.create(Item(title="A", vector=[0.5, -0.25, 1.0]))
        assert catalog_store.get(item.id).vector == [0.5, -0.25, 1.0]

    def test_vector_stored_as_text(self, catalog_store):
        item = catalog_store.create(Item(title="A", vector=[0.5, 1.0]))
        row = catalog_store._conn.execute("SELECT vector FROM books WHERE id = ?", (item.id,)).fetchone()
        assert row["vector"] == "[0.5,1.0]"

    def test_returns_copy(self, catalog_store):
        original = Item(title="A", vector=[1.0])
        stored = catalog_store.create(original)
        stored.vector.append(2.0)
        assert original.vector == [1.0]
        assert original.id is None

    def test_rejects_invalid_title(self, catalog_store):
        with pytest.raises(ValueError):
            catalog_store.create(Item(title=" "))


class TestUpdateDelete:
    def test_update(self, catalog_store):
        item = catalog_store.create(Item(title="A"))
        item.description = "new"
        item.vector = [1.0]
        catalog_store.update(item)
        stored = catalog_store.get(item.id)
        assert stored.description == "new"
        assert stored.vector == [1.0]

    def test_update_missing(self, catalog_store):
        with pytest.raises(KeyError):
            catalog_store.update(Item(title="A", id=404))
        with pytest.raises(KeyError):
            catalog_store.update(Item(title="A"))

    def test_delete_removes_vector(self, catalog_store):
        item = catalog_store.create(Item(title="A", vector=[1.0]))
        assert catalog_store.delete(item.id)
        assert catalog_store.get(item.id) is None
        assert catalog_store.count() == 0


class TestQuery:
    def test_predicate_and_limit(self, catalog_store):
        for n in range(6):
            catalog_store.create(Item(title=f"Book {n}", location="A" if n % 2 else "B"))
        matches = catalog_store.query(lambda i: i.location == "A")
        assert [i.title for i in matches] == ["Book 1", "Book 3", "Book 5"]
        assert len(catalog_store.query(lambda i: True, limit=2)) == 2

    def test_corrupt_vector_decodes_empty(self, catalog_store):
        item = catalog_store.create(Item(title="A"))
        catalog_store._conn.execute("UPDATE books SET vector = 'garbage' WHERE id = ?", (item.id,))
        assert catalog_store.get(item.id).vector == []


class TestPersistence:
    def test_reopen_file(self, tmp_path):
        db = tmp_path / "lib" / "catalog.db"
        with SQLiteCatalogStore(db) as store:
            store.create(Item(title="Dune", location="A-12", vector=[1.0, 2.0]))
        with SQLiteCatalogStore(db) as store:
            [item] = store.list_all()
        assert (item.title, item.location, item.vector) == ("Dune", "A-12", [1.0, 2.0])

    def test_closed_store_raises(self):
        store = SQLiteCatalogStore(":memory:")
        conn = store._conn
        conn.close()
        with pytest.raises(sqlite3.ProgrammingError):
            store.list_all()
