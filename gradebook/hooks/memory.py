"""In-memory document store — development stub for DocumentStore.

Python dict-backed collections. Data lives only in memory and is lost on
restart. Counter increments complete without an await in between, so they
are atomic under the event loop; transactions are an asyncio.Lock.

Usage:
    from gradebook.hooks.memory import InMemoryDocumentStore

    store = InMemoryDocumentStore()
    await store.insert("teachers", {"id": 1, "firstName": "Ada"})
    await store.find("teachers")
"""

import asyncio
import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from gradebook.hooks.interfaces import Document, DocumentStore


def _matches(document: Document, filters: Document | None) -> bool:
    if not filters:
        return True
    return all(document.get(key) == value for key, value in filters.items())


class InMemoryDocumentStore(DocumentStore):
    """STUB — dict-backed storage, loses data on restart.

    Each collection is a dict keyed by document id. Counters live in their
    own dict, separate from the collections.
    """

    def __init__(self) -> None:
        """Initialises empty collections and counters."""
        self._collections: dict[str, dict[int, Document]] = {}
        self._counters: dict[str, int] = {}
        self._lock = asyncio.Lock()

    async def find(
        self, collection: str, filters: Document | None = None
    ) -> list[Document]:
        documents = self._collections.get(collection, {})
        return [
            copy.deepcopy(documents[record_id])
            for record_id in sorted(documents)
            if _matches(documents[record_id], filters)
        ]

    async def find_one(self, collection: str, filters: Document) -> Document | None:
        matches = await self.find(collection, filters)
        return matches[0] if matches else None

    async def exists(self, collection: str, filters: Document) -> bool:
        documents = self._collections.get(collection, {})
        return any(_matches(document, filters) for document in documents.values())

    async def insert(self, collection: str, document: Document) -> Document:
        record_id = document["id"]
        documents = self._collections.setdefault(collection, {})
        if record_id in documents:
            raise KeyError(f"Duplicate id {record_id!r} in collection {collection!r}")
        documents[record_id] = copy.deepcopy(document)
        return copy.deepcopy(document)

    async def update(
        self, collection: str, record_id: int, changes: Document
    ) -> Document | None:
        document = self._collections.get(collection, {}).get(record_id)
        if document is None:
            return None
        for key, value in changes.items():
            if key != "id":
                document[key] = copy.deepcopy(value)
        return copy.deepcopy(document)

    async def delete(self, collection: str, record_id: int) -> Document | None:
        return self._collections.get(collection, {}).pop(record_id, None)

    async def next_sequence(self, name: str) -> int:
        value = self._counters.get(name, 0) + 1
        self._counters[name] = value
        return value

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self._lock:
            yield

    async def close(self) -> None:
        """Nothing to release — data stays readable until the object is dropped."""
