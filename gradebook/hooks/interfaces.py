"""Hook interfaces — the abstract document store behind every repository.

The record layer (allocator, repositories, integrity guard, expander,
aggregation) talks only to this ABC. Two implementations ship with the
project: an in-memory stub for development and tests, and a durable
sqlite-backed store. Both are exercised by the contract tests in
gradebook/tests/contracts/.

Leaf module: imports only from abc, contextlib and typing (stdlib).

To implement a real store, subclass DocumentStore and implement every
abstract method. Python will raise TypeError at instantiation if any
method is missing.

Usage:
    from gradebook.hooks.interfaces import DocumentStore
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any

Document = dict[str, Any]


class DocumentStore(ABC):
    """Schemaless collections of JSON-like documents keyed by an integer ``id``.

    Collections are created on first write. Filters are plain equality
    matches on top-level keys (``{"teacherId": 3}``); an empty or missing
    filter matches every document. Every read returns copies — mutating a
    returned document never changes stored state.

    Every write is durable before the coroutine returns.
    """

    @abstractmethod
    async def find(
        self, collection: str, filters: Document | None = None
    ) -> list[Document]:
        """Returns all documents matching ``filters``, sorted by ``id`` ascending.

        Args:
            collection: Collection name (e.g. "teachers").
            filters: Equality filters on top-level keys.

        Returns:
            Matching documents; an empty list for an unknown collection.
        """
        ...

    @abstractmethod
    async def find_one(self, collection: str, filters: Document) -> Document | None:
        """Returns the lowest-id document matching ``filters``, or None."""
        ...

    @abstractmethod
    async def exists(self, collection: str, filters: Document) -> bool:
        """Returns True if at least one document matches ``filters``."""
        ...

    @abstractmethod
    async def insert(self, collection: str, document: Document) -> Document:
        """Persists a new document and returns the stored copy.

        Args:
            collection: Collection name.
            document: The full document. Must contain an integer ``id``
                that is not already present in the collection.

        Raises:
            KeyError: If the document has no ``id`` or the id is taken.
        """
        ...

    @abstractmethod
    async def update(
        self, collection: str, record_id: int, changes: Document
    ) -> Document | None:
        """Overwrites the keys in ``changes`` on one document.

        Keys absent from ``changes`` keep their stored values. The ``id``
        key is never changed.

        Returns:
            The document after the update, or None if no document has
            this id.
        """
        ...

    @abstractmethod
    async def delete(self, collection: str, record_id: int) -> Document | None:
        """Removes one document physically.

        Returns:
            The removed document's last state, or None if it didn't exist.
        """
        ...

    @abstractmethod
    async def next_sequence(self, name: str) -> int:
        """Atomically increments the named counter and returns the new value.

        The counter starts at 0, so the first call returns 1. Concurrent
        callers never observe the same value.
        """
        ...

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Returns a context manager that serialises guarded writes.

        Code running inside ``async with store.transaction():`` is never
        interleaved with another transaction on the same store, which makes
        an integrity check and the write that depends on it one unit.
        Not re-entrant.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Releases any held resources. Safe to call more than once."""
        ...
