"""Relation expansion ("populate") for Course and Test reads.

Clients opt in per request with ``?populate=teacher`` or
``?populate=student,course``. Without it, reference fields stay bare ids.
With it, each requested relation adds the referenced record under the
relation's name next to the id::

    {"id": 4, "teacherId": 2, ..., "teacher": {"id": 2, "firstName": ...}}

A reference that no longer resolves embeds ``None`` for that record only;
the rest of the response is unaffected.
"""

from __future__ import annotations

import logging
from enum import Enum

from gradebook.errors import ValidationError
from gradebook.hooks.interfaces import Document, DocumentStore
from gradebook.records.kinds import Kind, spec_for

logger = logging.getLogger("gradebook.records.expander")


class Relation(str, Enum):
    TEACHER = "teacher"
    STUDENT = "student"
    COURSE = "course"


def parse_populate(raw: str | None, kind: Kind) -> frozenset[Relation]:
    """Parses the comma-separated ``populate`` query value for ``kind``.

    Blank tokens and surrounding whitespace are ignored; matching is
    case-insensitive.

    Raises:
        ValidationError: A token is not a known relation, or the relation
            doesn't exist on this kind (e.g. ``teacher`` on a test).
    """
    if not raw:
        return frozenset()

    available = {reference.relation for reference in spec_for(kind).references}
    relations = set()
    for token in (part.strip().lower() for part in raw.split(",")):
        if not token:
            continue
        try:
            relation = Relation(token)
        except ValueError:
            raise ValidationError(f"Unknown populate token: {token!r}") from None
        if relation.value not in available:
            raise ValidationError(
                f"Cannot populate {token!r} on {kind.value}"
            )
        relations.add(relation)
    return frozenset(relations)


class RelationExpander:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def expand(
        self, kind: Kind, records: list[Document], relations: frozenset[Relation]
    ) -> list[Document]:
        """Returns copies of ``records`` with the requested relations embedded.

        Each distinct referenced id is fetched once per call, however many
        records share it.
        """
        if not relations or not records:
            return records

        references = [
            r for r in spec_for(kind).references if Relation(r.relation) in relations
        ]
        expanded = [dict(record) for record in records]
        for reference in references:
            cache: dict[object, Document | None] = {}
            for record in expanded:
                target_id = record.get(reference.field)
                if target_id not in cache:
                    cache[target_id] = await self._store.find_one(
                        reference.target.value, {"id": target_id}
                    )
                    if cache[target_id] is None:
                        logger.warning(
                            "Dangling %s=%r on %s %r",
                            reference.field,
                            target_id,
                            kind.value,
                            record.get("id"),
                        )
                record[reference.relation] = cache[target_id]
        return expanded

    async def expand_one(
        self, kind: Kind, record: Document, relations: frozenset[Relation]
    ) -> Document:
        return (await self.expand(kind, [record], relations))[0]
