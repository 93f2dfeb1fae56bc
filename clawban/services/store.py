"""Durable store interface and the in-process implementation.

The task core only needs a handful of row operations from its store:
insert with unique constraint enforcement, filtered select, and per-row
atomic update/delete by ``id``. ``SupabaseStore`` provides them in
production; ``MemoryStore`` provides the same guarantees in-process for
tests and local development.
"""

import copy
import threading
from typing import Any, Optional, Protocol

from clawban.services.supabase_client import SupabaseStore
from clawban.utils.errors import ConflictError, StorageError
from clawban.utils.settings import Settings

TASKS_TABLE = "tasks"
TAGS_TABLE = "tags"

# Columns with a unique constraint, per table (the primary key ``id`` is implied)
UNIQUE_COLUMNS: dict[str, tuple[str, ...]] = {
    TAGS_TABLE: ("name",),
}


class DurableStore(Protocol):
    """Row operations the core relies on."""

    async def insert(self, table: str, row: dict) -> dict: ...

    async def select(
        self,
        table: str,
        *,
        eq: Optional[dict[str, Any]] = None,
        contains: Optional[dict[str, list]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict]: ...

    async def update(self, table: str, key: str, changes: dict) -> Optional[dict]: ...

    async def delete(self, table: str, key: str) -> bool: ...


class MemoryStore:
    """In-process store with primary key and unique constraint enforcement.

    Every operation holds the lock only for a single row read-modify-write,
    which gives the same per-row atomicity the database does.
    """

    def __init__(self, unique: Optional[dict[str, tuple[str, ...]]] = None):
        self.unique = dict(UNIQUE_COLUMNS if unique is None else unique)
        self.tables: dict[str, dict[str, dict]] = {}
        self._lock = threading.Lock()

    def _table(self, table: str) -> dict[str, dict]:
        return self.tables.setdefault(table, {})

    def _check_unique(self, table: str, row: dict, skip_key: Optional[str] = None) -> None:
        for column in self.unique.get(table, ()):
            if column not in row:
                continue
            for key, existing in self._table(table).items():
                if key != skip_key and existing.get(column) == row[column]:
                    raise ConflictError(
                        f"duplicate key value violates unique constraint on {table}.{column}"
                    )

    async def insert(self, table: str, row: dict) -> dict:
        key = row.get("id")
        if not key:
            raise StorageError(f"Row for {table} has no id")
        with self._lock:
            rows = self._table(table)
            if key in rows:
                raise ConflictError(f"duplicate key value violates primary key on {table}.id")
            self._check_unique(table, row)
            rows[key] = copy.deepcopy(row)
            return copy.deepcopy(rows[key])

    async def select(
        self,
        table: str,
        *,
        eq: Optional[dict[str, Any]] = None,
        contains: Optional[dict[str, list]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict]:
        with self._lock:
            rows = [copy.deepcopy(row) for row in self._table(table).values()]

        def matches(row: dict) -> bool:
            for column, value in (eq or {}).items():
                if row.get(column) != value:
                    return False
            for column, values in (contains or {}).items():
                if not set(values).issubset(row.get(column) or []):
                    return False
            return True

        found = [row for row in rows if matches(row)]
        if order_by:
            found.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by)), reverse=descending)
        return found

    async def update(self, table: str, key: str, changes: dict) -> Optional[dict]:
        with self._lock:
            rows = self._table(table)
            if key not in rows:
                return None
            self._check_unique(table, changes, skip_key=key)
            rows[key].update(copy.deepcopy(changes))
            return copy.deepcopy(rows[key])

    async def delete(self, table: str, key: str) -> bool:
        with self._lock:
            return self._table(table).pop(key, None) is not None


_store: Optional[DurableStore] = None


def get_store() -> DurableStore:
    """Get the configured store singleton (``CLAWBAN_STORE``)."""
    global _store

    if _store is None:
        if Settings.STORE_BACKEND == "memory":
            _store = MemoryStore()
        elif Settings.STORE_BACKEND == "supabase":
            _store = SupabaseStore()
        else:
            raise StorageError(f"Unknown store backend: {Settings.STORE_BACKEND}")
    return _store


def set_store(store: Optional[DurableStore]) -> None:
    """Replace the store singleton (None resets to the configured backend)."""
    global _store
    _store = store
