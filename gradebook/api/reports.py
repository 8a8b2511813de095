"""Nested read routes — tests and averages per student or course.

    GET /students/{record_id}/tests     tests of one student
    GET /courses/{record_id}/tests      tests of one course
    GET /students/{record_id}/average   {studentId, testCount, average}
    GET /courses/{record_id}/average    {courseId, testCount, average}

All four answer 404 when the student or course doesn't exist. The test
listings accept ``?populate=student,course``.
"""

from typing import Any

from fastapi import APIRouter, Depends

from gradebook.api.deps import get_gradebook
from gradebook.records.expander import parse_populate
from gradebook.records.kinds import Kind
from gradebook.records.service import Gradebook

router = APIRouter()


@router.get("/students/{record_id}/tests")
async def student_tests(
    record_id: int,
    populate: str | None = None,
    book: Gradebook = Depends(get_gradebook),
) -> list[dict[str, Any]]:
    relations = parse_populate(populate, Kind.TEST)
    return await book.tests_for(Kind.STUDENT, record_id, relations)


@router.get("/courses/{record_id}/tests")
async def course_tests(
    record_id: int,
    populate: str | None = None,
    book: Gradebook = Depends(get_gradebook),
) -> list[dict[str, Any]]:
    relations = parse_populate(populate, Kind.TEST)
    return await book.tests_for(Kind.COURSE, record_id, relations)


@router.get("/students/{record_id}/average")
async def student_average(
    record_id: int,
    book: Gradebook = Depends(get_gradebook),
) -> dict[str, Any]:
    """Unweighted mean percentage over the student's tests."""
    return await book.average(Kind.STUDENT, record_id)


@router.get("/courses/{record_id}/average")
async def course_average(
    record_id: int,
    book: Gradebook = Depends(get_gradebook),
) -> dict[str, Any]:
    """Unweighted mean percentage over the course's tests."""
    return await book.average(Kind.COURSE, record_id)
