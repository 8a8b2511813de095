"""Referential integrity guard — foreign keys emulated over a schemaless store.

The store knows nothing about relations, so every write path that touches a
reference field, and every delete of a kind that others point at, goes
through this guard first. Callers run the check and the dependent write
inside ``store.transaction()`` so the pair is one unit.

Two checks:
- references must exist on create/update (InvalidReferenceError, first
  failing field only, in the kind's declared order)
- a record with dependents cannot be deleted (ConflictError)
"""

import logging
from typing import Any

from gradebook.errors import ConflictError, InvalidReferenceError
from gradebook.hooks.interfaces import DocumentStore
from gradebook.records.kinds import Dependent, Kind, spec_for

logger = logging.getLogger("gradebook.records.integrity")


class ReferenceGuard:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def check_reference_exists(self, kind: Kind, record_id: Any) -> bool:
        """True if a ``kind`` record with this id exists.

        Non-integer ids never exist — the counter only issues integers.
        """
        if isinstance(record_id, bool) or not isinstance(record_id, int):
            return False
        return await self._store.exists(kind.value, {"id": record_id})

    async def _first_dependent(self, kind: Kind, record_id: int) -> Dependent | None:
        for dependent in spec_for(kind).dependents:
            if await self._store.exists(dependent.kind.value, {dependent.field: record_id}):
                return dependent
        return None

    async def check_no_dependents(self, kind: Kind, record_id: int) -> bool:
        """True if no record of any dependent kind points at this record."""
        return await self._first_dependent(kind, record_id) is None

    async def require_references(self, kind: Kind, fields: dict[str, Any]) -> None:
        """Verifies every reference field present in ``fields``.

        Fields not present are skipped, so the same call covers create (all
        references present) and partial update (only the supplied ones).

        Raises:
            InvalidReferenceError: For the first reference that doesn't
                resolve, e.g. "studentId is invalid!".
        """
        for reference in spec_for(kind).references:
            if reference.field not in fields:
                continue
            if not await self.check_reference_exists(reference.target, fields[reference.field]):
                logger.info(
                    "Rejected %s write: %s=%r does not resolve",
                    kind.value,
                    reference.field,
                    fields[reference.field],
                )
                raise InvalidReferenceError(f"{reference.field} is invalid!")

    async def require_no_dependents(self, kind: Kind, record_id: int) -> None:
        """Blocks deleting a record that others still reference.

        Raises:
            ConflictError: With the kind's own explanation of what to
                remove first.
        """
        dependent = await self._first_dependent(kind, record_id)
        if dependent is not None:
            raise ConflictError(dependent.message)
