"""
Catalog persistence.

The catalog core only talks to the ``CatalogStore`` protocol. This module
also provides a SQLite implementation with one ``books`` table; vectors
are kept in a TEXT column in the portable codec format.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Callable, Optional, Protocol, Union, runtime_checkable

from . import codec
from .types import Item, validate_location, validate_title

logger = logging.getLogger(__name__)

ItemPredicate = Callable[[Item], bool]


@runtime_checkable
class CatalogStore(Protocol):
    """
    Storage for catalog items.

    Implementations assign ids on create and hand out copies, so callers
    never share vector lists with the store.
    """

    def create(self, item: Item) -> Item:
        """Insert ``item`` and return it with its assigned id."""
        ...

    def get(self, item_id: int) -> Optional[Item]:
        ...

    def update(self, item: Item) -> Item:
        """Replace the stored item with the same id. Raises KeyError if absent."""
        ...

    def delete(self, item_id: int) -> bool:
        ...

    def list_all(self) -> list[Item]:
        """All items ordered by id."""
        ...

    def query(self, predicate: ItemPredicate, limit: Optional[int] = None) -> list[Item]:
        """Items (ordered by id) for which ``predicate`` is true."""
        ...


class SQLiteCatalogStore:
    """
    SQLite-backed catalog store.

    Pass ``":memory:"`` for a throwaway catalog.
    """

    def __init__(self, db_path: Union[Path, str]):
        """
        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the SQLite database."""
        if isinstance(self._db_path, Path):
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row

        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                description TEXT,
                location TEXT,
                vector TEXT NOT NULL DEFAULT '[]'
            )
        """)

        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_books_title
            ON books(title)
        """)

        self._conn.commit()

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> Item:
        return Item(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            location=row["location"],
            vector=codec.decode(row["vector"]),
        )

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def create(self, item: Item) -> Item:
        """
        Insert a new item.

        Args:
            item: Item to store (its id is ignored)

        Returns:
            A copy of the stored item with the assigned id
        """
        title = validate_title(item.title)
        validate_location(item.location)
        cursor = self._conn.execute("""
            INSERT INTO books (title, description, location, vector)
            VALUES (?, ?, ?, ?)
        """, (title, item.description, item.location, codec.encode(item.vector)))
        self._conn.commit()

        stored = item.copy()
        stored.title = title
        stored.id = cursor.lastrowid
        return stored

    def update(self, item: Item) -> Item:
        """
        Replace an existing item.

        Raises:
            KeyError: If no item has ``item.id``
        """
        if item.id is None:
            raise KeyError("Item has no id")
        title = validate_title(item.title)
        validate_location(item.location)
        cursor = self._conn.execute("""
            UPDATE books
            SET title = ?, description = ?, location = ?, vector = ?
            WHERE id = ?
        """, (title, item.description, item.location, codec.encode(item.vector), item.id))
        self._conn.commit()

        if cursor.rowcount == 0:
            raise KeyError(f"Item not found: {item.id}")
        stored = item.copy()
        stored.title = title
        return stored

    def delete(self, item_id: int) -> bool:
        """
        Delete an item and its vector.

        Returns:
            True if the item existed and was deleted
        """
        cursor = self._conn.execute("DELETE FROM books WHERE id = ?", (item_id,))
        self._conn.commit()
        return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def get(self, item_id: int) -> Optional[Item]:
        cursor = self._conn.execute("""
            SELECT id, title, description, location, vector
            FROM books
            WHERE id = ?
        """, (item_id,))
        row = cursor.fetchone()
        if row is None:
            return None
        return self._row_to_item(row)

    def list_all(self) -> list[Item]:
        cursor = self._conn.execute("""
            SELECT id, title, description, location, vector
            FROM books
            ORDER BY id
        """)
        return [self._row_to_item(row) for row in cursor]

    def query(self, predicate: ItemPredicate, limit: Optional[int] = None) -> list[Item]:
        """
        Items matching ``predicate``, ordered by id.

        Args:
            predicate: Test applied to each decoded item
            limit: Maximum number to return (None for all)
        """
        results = []
        for item in self.list_all():
            if limit is not None and len(results) >= limit:
                break
            if predicate(item):
                results.append(item)
        return results

    def count(self) -> int:
        cursor = self._conn.execute("SELECT COUNT(*) FROM books")
        return cursor.fetchone()[0]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        self.close()
