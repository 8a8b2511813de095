"""Core data models — shared Pydantic types for the gradebook service.

Three shapes exist per entity kind:
- ``*Create``: the fields a client must supply on POST (ids are never accepted)
- ``*Update``: every field optional; ``model_fields_set`` is the partial update
- the record itself: what the store holds and the API returns

Python attributes are snake_case; the wire format is camelCase via the alias
generator (``first_name`` <-> ``firstName``, ``out_of`` <-> ``outOf``).

This is a leaf module: it imports only from pydantic and the stdlib.

Usage:
    from gradebook.schemas import TeacherCreate, Teacher, ApiError
"""

from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    PositiveFloat,
    PositiveInt,
    StringConstraints,
    model_validator,
)
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]
Number = int | float
PositiveNumber = PositiveInt | PositiveFloat


class RecordModel(BaseModel):
    """Base for every entity shape — camelCase aliases, lax string input.

    Numbers must be finite: NaN and Infinity are rejected wherever a number
    is accepted, including numeric strings like "nan".
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        allow_inf_nan=False,
    )

    def to_document(self) -> dict[str, Any]:
        """Dumps the model with wire (camelCase) keys."""
        return self.model_dump(by_alias=True)


class PartialUpdate(RecordModel):
    """Base for partial updates: absent means untouched, null is rejected."""

    @model_validator(mode="after")
    def _reject_explicit_nulls(self) -> "PartialUpdate":
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                alias = type(self).model_fields[name].alias or name
                raise ValueError(f"{alias} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Returns only the supplied fields, keyed by wire name."""
        return self.model_dump(by_alias=True, include=self.model_fields_set)


# ---------------------------------------------------------------------------
# Teacher
# ---------------------------------------------------------------------------


class TeacherCreate(RecordModel):
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    email: NonEmptyStr
    department: NonEmptyStr


class TeacherUpdate(PartialUpdate):
    first_name: NonEmptyStr | None = None
    last_name: NonEmptyStr | None = None
    email: NonEmptyStr | None = None
    department: NonEmptyStr | None = None


class Teacher(TeacherCreate):
    id: int


# ---------------------------------------------------------------------------
# Course
# ---------------------------------------------------------------------------


class CourseCreate(RecordModel):
    code: NonEmptyStr
    name: NonEmptyStr
    teacher_id: int
    semester: NonEmptyStr
    room: NonEmptyStr
    schedule: str = ""


class CourseUpdate(PartialUpdate):
    code: NonEmptyStr | None = None
    name: NonEmptyStr | None = None
    teacher_id: int | None = None
    semester: NonEmptyStr | None = None
    room: NonEmptyStr | None = None
    schedule: str | None = None


class Course(CourseCreate):
    id: int


# ---------------------------------------------------------------------------
# Student
# ---------------------------------------------------------------------------


class StudentCreate(RecordModel):
    first_name: NonEmptyStr
    last_name: NonEmptyStr
    grade: Number
    student_number: NonEmptyStr
    homeroom: str = ""


class StudentUpdate(PartialUpdate):
    first_name: NonEmptyStr | None = None
    last_name: NonEmptyStr | None = None
    grade: Number | None = None
    student_number: NonEmptyStr | None = None
    homeroom: str | None = None


class Student(StudentCreate):
    id: int


# ---------------------------------------------------------------------------
# Test
# ---------------------------------------------------------------------------


class TestCreate(RecordModel):
    """A single assessment result. ``out_of`` must be positive so percentages exist."""

    __test__ = False

    student_id: int
    course_id: int
    test_name: NonEmptyStr
    date: NonEmptyStr
    mark: Number
    out_of: PositiveNumber
    weight: Number


class TestUpdate(PartialUpdate):
    __test__ = False

    student_id: int | None = None
    course_id: int | None = None
    test_name: NonEmptyStr | None = None
    date: NonEmptyStr | None = None
    mark: Number | None = None
    out_of: PositiveNumber | None = None
    weight: Number | None = None


class Test(TestCreate):
    id: int


# ---------------------------------------------------------------------------
# API error body
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Body of every failed response: ``{"error": "...", "code": "..."}``.

    code is an uppercase string like "NOT_FOUND" or "CONFLICT"; error is the
    human-readable message.
    """

    model_config = ConfigDict(frozen=True)

    error: str
    code: str
