"""Test-score averages for one student or one course.

The average is the plain mean of each test's percentage
(``100 * mark / outOf``). ``weight`` is stored on every test but is not
applied here. A subject with no tests yet gets ``average: None`` and
``testCount: 0`` rather than a division by zero.
"""

from __future__ import annotations

from typing import Any

from gradebook.errors import NotFoundError
from gradebook.hooks.interfaces import DocumentStore
from gradebook.records.kinds import Kind, spec_for

# Subject kind -> reference field on tests, also the id key in the result
_SUBJECTS: dict[Kind, str] = {
    Kind.STUDENT: "studentId",
    Kind.COURSE: "courseId",
}


def percentage(test: dict[str, Any]) -> float:
    return 100 * test["mark"] / test["outOf"]


class AggregationService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def average(self, kind: Kind, record_id: int) -> dict[str, Any]:
        """Returns ``{studentId|courseId, testCount, average}``.

        Raises:
            ValueError: ``kind`` is not student or course.
            NotFoundError: The student or course doesn't exist.
        """
        if kind not in _SUBJECTS:
            raise ValueError(f"Averages are computed for students or courses, not {kind.value}")
        key = _SUBJECTS[kind]

        if not await self._store.exists(kind.value, {"id": record_id}):
            raise NotFoundError(f"{spec_for(kind).label} not found")

        tests = await self._store.find(Kind.TEST.value, {key: record_id})
        if not tests:
            return {key: record_id, "testCount": 0, "average": None}

        percentages = [percentage(test) for test in tests]
        return {
            key: record_id,
            "testCount": len(tests),
            "average": sum(percentages) / len(percentages),
        }
