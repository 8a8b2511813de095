"""Identifier allocation — one monotonically increasing counter per kind.

Ids come from the store's atomic increment-and-fetch primitive, never from
reading the highest stored id and adding one.
"""

from gradebook.hooks.interfaces import DocumentStore
from gradebook.records.kinds import Kind


class IdAllocator:
    """Hands out ``1, 2, 3, ...`` per kind; a value is never reissued, even after deletes."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def next(self, kind: Kind) -> int:
        return await self._store.next_sequence(kind.value)
