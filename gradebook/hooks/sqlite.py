"""SQLite document store — durable DocumentStore implementation.

Each collection is a table of ``(id INTEGER PRIMARY KEY, data TEXT)`` rows
where ``data`` is the JSON-encoded document. Equality filters compile to
``json_extract`` comparisons. Counters live in a ``counters`` table and are
advanced with a single upsert-returning statement, so two allocations can
never read the same pre-increment value even across processes sharing the
file.

sqlite3 is blocking; every statement runs in a worker thread via
asyncio.to_thread, serialised on one connection by a threading lock. Each
write commits before the coroutine returns.

Usage:
    from gradebook.hooks.sqlite import SqliteDocumentStore

    store = SqliteDocumentStore("gradebook.db")
    await store.next_sequence("teachers")  # 1
"""

import asyncio
import json
import logging
import re
import sqlite3
import threading
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from gradebook.hooks.interfaces import Document, DocumentStore

logger = logging.getLogger("gradebook.hooks.sqlite")

T = TypeVar("T")

# Collection names and filter keys are interpolated into SQL, so they are
# restricted to identifiers.
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_COUNTERS_TABLE = "counters"

# sqlite INTEGER is a signed 64-bit value; larger Python ints cannot be bound.
_MIN_INTEGER = -(2**63)
_MAX_INTEGER = 2**63 - 1


def _check_identifier(value: str) -> str:
    if not _IDENTIFIER.match(value):
        raise ValueError(f"Invalid collection or field name: {value!r}")
    return value


def _bindable(value: Any) -> bool:
    if isinstance(value, int) and not isinstance(value, bool):
        return _MIN_INTEGER <= value <= _MAX_INTEGER
    return True


def _where(filters: Document | None) -> tuple[str, list[Any]]:
    """Compiles equality filters into a WHERE clause and its parameters.

    An integer outside sqlite's range can equal no stored value, so its
    clause compiles to a constant false.
    """
    if not filters:
        return "", []
    clauses = []
    params: list[Any] = []
    for key, value in filters.items():
        _check_identifier(key)
        if value is None:
            clauses.append(f"json_extract(data, '$.{key}') IS NULL")
        elif not _bindable(value):
            clauses.append("0")
        else:
            clauses.append(f"json_extract(data, '$.{key}') = ?")
            params.append(value)
    return " WHERE " + " AND ".join(clauses), params


class SqliteDocumentStore(DocumentStore):
    """Durable document store on a single sqlite file.

    Args:
        database_path: Path to the sqlite file, or ":memory:" for a
            throwaway database.
    """

    def __init__(self, database_path: str = "gradebook.db") -> None:
        self._database_path = database_path
        self._conn: sqlite3.Connection | None = sqlite3.connect(
            database_path, check_same_thread=False
        )
        self._conn_lock = threading.Lock()
        self._tx_lock = asyncio.Lock()
        self._known_tables: set[str] = set()
        with self._conn_lock:
            self._conn.execute(
                f"CREATE TABLE IF NOT EXISTS {_COUNTERS_TABLE} "
                "(name TEXT PRIMARY KEY, seq INTEGER NOT NULL)"
            )
            self._conn.commit()
        logger.info("Opened sqlite document store at %s", database_path)

    # -- plumbing ----------------------------------------------------------

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        return await asyncio.to_thread(self._locked, fn)

    def _locked(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        with self._conn_lock:
            if self._conn is None:
                raise RuntimeError("SqliteDocumentStore is closed")
            try:
                result = fn(self._conn)
            except Exception:
                self._conn.rollback()
                raise
            self._conn.commit()
            return result

    def _ensure_table(self, conn: sqlite3.Connection, collection: str) -> None:
        if collection in self._known_tables:
            return
        _check_identifier(collection)
        conn.execute(
            f'CREATE TABLE IF NOT EXISTS "{collection}" '
            "(id INTEGER PRIMARY KEY, data TEXT NOT NULL)"
        )
        self._known_tables.add(collection)

    # -- reads -------------------------------------------------------------

    async def find(
        self, collection: str, filters: Document | None = None
    ) -> list[Document]:
        where, params = _where(filters)

        def query(conn: sqlite3.Connection) -> list[Document]:
            self._ensure_table(conn, collection)
            rows = conn.execute(
                f'SELECT data FROM "{collection}"{where} ORDER BY id ASC', params
            ).fetchall()
            return [json.loads(row[0]) for row in rows]

        return await self._run(query)

    async def find_one(self, collection: str, filters: Document) -> Document | None:
        where, params = _where(filters)

        def query(conn: sqlite3.Connection) -> Document | None:
            self._ensure_table(conn, collection)
            row = conn.execute(
                f'SELECT data FROM "{collection}"{where} ORDER BY id ASC LIMIT 1',
                params,
            ).fetchone()
            return json.loads(row[0]) if row else None

        return await self._run(query)

    async def exists(self, collection: str, filters: Document) -> bool:
        return await self.find_one(collection, filters) is not None

    # -- writes ------------------------------------------------------------

    async def insert(self, collection: str, document: Document) -> Document:
        record_id = document["id"]
        payload = json.dumps(document)

        def write(conn: sqlite3.Connection) -> Document:
            self._ensure_table(conn, collection)
            try:
                conn.execute(
                    f'INSERT INTO "{collection}" (id, data) VALUES (?, ?)',
                    (record_id, payload),
                )
            except sqlite3.IntegrityError as exc:
                raise KeyError(
                    f"Duplicate id {record_id!r} in collection {collection!r}"
                ) from exc
            return json.loads(payload)

        return await self._run(write)

    async def update(
        self, collection: str, record_id: int, changes: Document
    ) -> Document | None:
        if not _bindable(record_id):
            return None

        def write(conn: sqlite3.Connection) -> Document | None:
            self._ensure_table(conn, collection)
            row = conn.execute(
                f'SELECT data FROM "{collection}" WHERE id = ?', (record_id,)
            ).fetchone()
            if row is None:
                return None
            document = json.loads(row[0])
            document.update({k: v for k, v in changes.items() if k != "id"})
            conn.execute(
                f'UPDATE "{collection}" SET data = ? WHERE id = ?',
                (json.dumps(document), record_id),
            )
            return document

        return await self._run(write)

    async def delete(self, collection: str, record_id: int) -> Document | None:
        if not _bindable(record_id):
            return None

        def write(conn: sqlite3.Connection) -> Document | None:
            self._ensure_table(conn, collection)
            row = conn.execute(
                f'SELECT data FROM "{collection}" WHERE id = ?', (record_id,)
            ).fetchone()
            if row is None:
                return None
            conn.execute(f'DELETE FROM "{collection}" WHERE id = ?', (record_id,))
            return json.loads(row[0])

        return await self._run(write)

    async def next_sequence(self, name: str) -> int:
        def write(conn: sqlite3.Connection) -> int:
            rows = conn.execute(
                f"INSERT INTO {_COUNTERS_TABLE} (name, seq) VALUES (?, 1) "
                "ON CONFLICT(name) DO UPDATE SET seq = seq + 1 "
                "RETURNING seq",
                (name,),
            ).fetchall()
            return int(rows[0][0])

        return await self._run(write)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self._tx_lock:
            yield

    async def close(self) -> None:
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
