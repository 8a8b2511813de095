"""Entity repositories — CRUD for one kind over the document store.

One generic EntityRepository serves all four kinds; the KindSpec descriptor
supplies the collection, the pydantic models and the relation metadata.

Every write validates first and writes last: a request that fails
validation, a reference check or a dependents check leaves the store
untouched. Writes that depend on an integrity check run inside
``store.transaction()``. Plain updates of the same record by two concurrent
requests are not serialised — the later write wins field by field.

Records cross this boundary as plain dicts with wire (camelCase) keys.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import AbstractAsyncContextManager, nullcontext
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from gradebook.errors import (
    InvalidReferenceError,
    NotFoundError,
    RecordError,
    ValidationError,
)
from gradebook.hooks.interfaces import Document, DocumentStore
from gradebook.records.allocator import IdAllocator
from gradebook.records.integrity import ReferenceGuard
from gradebook.records.kinds import Kind, KindSpec, spec_for

logger = logging.getLogger("gradebook.records.repository")

MISSING_FIELDS = "Missing required fields"
NO_FIELDS = "No fields provided to update"


def describe_validation_error(
    exc: PydanticValidationError, spec: KindSpec, *, creating: bool
) -> RecordError:
    """Turns a pydantic failure into the single error the client sees.

    Absent or empty required input on create is always reported as
    "Missing required fields", whatever else is wrong. A malformed
    reference id is an invalid reference, not a type error.
    """
    errors = exc.errors()
    if creating and any(e["type"] in ("missing", "string_too_short") for e in errors):
        return ValidationError(MISSING_FIELDS)

    first = errors[0]
    name = str(first["loc"][0]) if first["loc"] else None

    if name is not None and spec.reference_for(name) is not None:
        return InvalidReferenceError(f"{name} is invalid!")
    if first["type"] == "value_error":
        return ValidationError(first["msg"].removeprefix("Value error, "))
    if first["type"] == "string_too_short":
        return ValidationError(f"{name} cannot be empty")
    if any(e["type"] == "finite_number" and e["loc"][:1] == first["loc"][:1] for e in errors):
        return ValidationError(f"{name} must be a finite number")
    if first["type"] in ("greater_than", "greater_than_equal"):
        return ValidationError(f"{name} must be greater than 0")
    if name is None:
        return ValidationError(first["msg"])
    return ValidationError(f"{name}: {first['msg']}")


class EntityRepository:
    """CRUD for one entity kind.

    Args:
        kind: Which entity kind this repository owns.
        store: The document store.
        allocator: Source of new ids.
        guard: Referential integrity checks.
    """

    def __init__(
        self,
        kind: Kind,
        store: DocumentStore,
        allocator: IdAllocator,
        guard: ReferenceGuard,
    ) -> None:
        self.kind = kind
        self.spec = spec_for(kind)
        self._store = store
        self._allocator = allocator
        self._guard = guard

    # -- helpers -----------------------------------------------------------

    @property
    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.spec.label} not found")

    def _record(self, document: Document) -> Document:
        return self.spec.record.model_validate(document).to_document()

    def _guarded(self, needed: bool) -> AbstractAsyncContextManager[Any]:
        return self._store.transaction() if needed else nullcontext()

    # -- reads -------------------------------------------------------------

    async def list(self) -> list[Document]:
        """All records of the kind, ``id`` ascending."""
        documents = await self._store.find(self.spec.collection)
        return [self._record(d) for d in documents]

    async def get(self, record_id: int) -> Document:
        document = await self._store.find_one(self.spec.collection, {"id": record_id})
        if document is None:
            raise self._not_found
        return self._record(document)

    async def exists(self, record_id: int) -> bool:
        return await self._store.exists(self.spec.collection, {"id": record_id})

    async def list_by(self, field: str, value: int) -> list[Document]:
        """Records whose ``field`` equals ``value``, ``id`` ascending."""
        documents = await self._store.find(self.spec.collection, {field: value})
        return [self._record(d) for d in documents]

    # -- writes ------------------------------------------------------------

    async def create(self, fields: Mapping[str, Any]) -> Document:
        """Validates, checks references, allocates an id and persists.

        Raises:
            ValidationError: Required input is absent, empty or malformed.
            InvalidReferenceError: A reference doesn't resolve.
        """
        try:
            model = self.spec.create.model_validate(fields)
        except PydanticValidationError as exc:
            raise describe_validation_error(exc, self.spec, creating=True) from None

        values = model.to_document()
        async with self._guarded(bool(self.spec.references)):
            await self._guard.require_references(self.kind, values)
            record_id = await self._allocator.next(self.kind)
            stored = await self._store.insert(self.spec.collection, {"id": record_id, **values})

        logger.info("Created %s %d", self.spec.label.lower(), record_id)
        return self._record(stored)

    async def update(self, record_id: int, fields: Mapping[str, Any]) -> Document:
        """Overwrites exactly the supplied fields.

        Raises:
            ValidationError: Nothing to update, or a supplied value is invalid.
            NotFoundError: No record with this id.
            InvalidReferenceError: A supplied reference doesn't resolve.
        """
        try:
            model = self.spec.update.model_validate(fields)
        except PydanticValidationError as exc:
            raise describe_validation_error(exc, self.spec, creating=False) from None

        changes = model.changes()
        if not changes:
            raise ValidationError(NO_FIELDS)

        touches_reference = any(self.spec.reference_for(name) for name in changes)
        async with self._guarded(touches_reference):
            if not await self.exists(record_id):
                raise self._not_found
            await self._guard.require_references(self.kind, changes)
            updated = await self._store.update(self.spec.collection, record_id, changes)

        if updated is None:
            # Deleted between the existence check and the write.
            raise self._not_found
        return self._record(updated)

    async def delete(self, record_id: int) -> Document:
        """Physically removes a record that nothing references.

        Raises:
            ConflictError: Dependents still reference the record.
            NotFoundError: No record with this id.
        """
        async with self._guarded(bool(self.spec.dependents)):
            await self._guard.require_no_dependents(self.kind, record_id)
            deleted = await self._store.delete(self.spec.collection, record_id)

        if deleted is None:
            raise self._not_found
        logger.info("Deleted %s %d", self.spec.label.lower(), record_id)
        return self._record(deleted)
