"""Gradebook — the record layer wired onto one document store.

Builds the allocator, integrity guard, one repository per kind, the
relation expander and the aggregation service around a single
DocumentStore, and adds the two nested read operations (tests of a
student, tests of a course) that span repositories.

Usage:
    from gradebook.hooks.memory import InMemoryDocumentStore
    from gradebook.records.service import Gradebook

    book = Gradebook(InMemoryDocumentStore())
    teacher = await book.repository(Kind.TEACHER).create({...})
"""

from __future__ import annotations

from typing import Any

from gradebook.hooks.interfaces import Document, DocumentStore
from gradebook.records.aggregation import AggregationService
from gradebook.records.allocator import IdAllocator
from gradebook.records.expander import Relation, RelationExpander
from gradebook.records.integrity import ReferenceGuard
from gradebook.records.kinds import KINDS, Kind
from gradebook.records.repository import EntityRepository

# Subject kind -> reference field on tests
_TEST_SUBJECTS: dict[Kind, str] = {
    Kind.STUDENT: "studentId",
    Kind.COURSE: "courseId",
}


class Gradebook:
    """Facade over every record component sharing one store."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.allocator = IdAllocator(store)
        self.guard = ReferenceGuard(store)
        self.expander = RelationExpander(store)
        self.aggregation = AggregationService(store)
        self._repositories = {
            kind: EntityRepository(kind, store, self.allocator, self.guard)
            for kind in KINDS
        }

    def repository(self, kind: Kind) -> EntityRepository:
        return self._repositories[kind]

    async def tests_for(
        self, kind: Kind, record_id: int, relations: frozenset[Relation] = frozenset()
    ) -> list[Document]:
        """All tests of one student or course, ``id`` ascending.

        Raises:
            NotFoundError: The student or course doesn't exist.
        """
        await self.repository(kind).get(record_id)
        tests = await self.repository(Kind.TEST).list_by(_TEST_SUBJECTS[kind], record_id)
        return await self.expander.expand(Kind.TEST, tests, relations)

    async def average(self, kind: Kind, record_id: int) -> dict[str, Any]:
        return await self.aggregation.average(kind, record_id)
