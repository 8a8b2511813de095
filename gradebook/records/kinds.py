"""Entity kind registry — one descriptor per record type.

A descriptor ties together everything the generic record machinery needs to
know about a kind: where its documents live, which pydantic models validate
it, which of its fields point at other kinds, and which other kinds point at
it. The repositories, the integrity guard and the expander read these
descriptors instead of hard-coding per-kind branches.

Leaf module for the record layer: imports only from gradebook.schemas.
"""

from dataclasses import dataclass
from enum import Enum

from gradebook.schemas import (
    Course,
    CourseCreate,
    CourseUpdate,
    PartialUpdate,
    RecordModel,
    Student,
    StudentCreate,
    StudentUpdate,
    Teacher,
    TeacherCreate,
    TeacherUpdate,
    Test,
    TestCreate,
    TestUpdate,
)


class Kind(str, Enum):
    """The four entity kinds. The value doubles as the collection name."""

    TEACHER = "teachers"
    COURSE = "courses"
    STUDENT = "students"
    TEST = "tests"


@dataclass(frozen=True)
class Reference:
    """A foreign-key field: ``field`` on the owning kind holds an id of ``target``.

    ``relation`` is the populate token that embeds the target record.
    """

    field: str
    target: Kind
    relation: str


@dataclass(frozen=True)
class Dependent:
    """Records of ``kind`` whose ``field`` holds the guarded record's id."""

    kind: Kind
    field: str
    message: str


@dataclass(frozen=True)
class KindSpec:
    kind: Kind
    label: str
    record: type[RecordModel]
    create: type[RecordModel]
    update: type[PartialUpdate]
    # Checked in this order; the first failure is the one reported.
    references: tuple[Reference, ...] = ()
    dependents: tuple[Dependent, ...] = ()

    @property
    def collection(self) -> str:
        return self.kind.value

    def reference_for(self, field_name: str) -> Reference | None:
        for reference in self.references:
            if reference.field == field_name:
                return reference
        return None


KINDS: dict[Kind, KindSpec] = {
    Kind.TEACHER: KindSpec(
        kind=Kind.TEACHER,
        label="Teacher",
        record=Teacher,
        create=TeacherCreate,
        update=TeacherUpdate,
        dependents=(
            Dependent(
                kind=Kind.COURSE,
                field="teacherId",
                message=(
                    "Cannot delete teacher who is assigned to courses. "
                    "Update/delete courses first."
                ),
            ),
        ),
    ),
    Kind.COURSE: KindSpec(
        kind=Kind.COURSE,
        label="Course",
        record=Course,
        create=CourseCreate,
        update=CourseUpdate,
        references=(Reference(field="teacherId", target=Kind.TEACHER, relation="teacher"),),
        dependents=(
            Dependent(
                kind=Kind.TEST,
                field="courseId",
                message="Cannot delete course that has tests. Delete/update tests first.",
            ),
        ),
    ),
    Kind.STUDENT: KindSpec(
        kind=Kind.STUDENT,
        label="Student",
        record=Student,
        create=StudentCreate,
        update=StudentUpdate,
        dependents=(
            Dependent(
                kind=Kind.TEST,
                field="studentId",
                message="Cannot delete student that has tests. Delete/update tests first.",
            ),
        ),
    ),
    Kind.TEST: KindSpec(
        kind=Kind.TEST,
        label="Test",
        record=Test,
        create=TestCreate,
        update=TestUpdate,
        references=(
            Reference(field="studentId", target=Kind.STUDENT, relation="student"),
            Reference(field="courseId", target=Kind.COURSE, relation="course"),
        ),
    ),
}


def spec_for(kind: Kind) -> KindSpec:
    """Returns the descriptor for a kind."""
    return KINDS[kind]
