"""Tests for gradebook.records.expander — populate parsing and relation expansion."""

import pytest

from gradebook.errors import ValidationError
from gradebook.hooks.memory import InMemoryDocumentStore
from gradebook.records.expander import Relation, RelationExpander, parse_populate
from gradebook.records.kinds import Kind
from gradebook.records.service import Gradebook


class _CountingStore(InMemoryDocumentStore):
    """Counts find_one calls so tests can assert per-id caching."""

    def __init__(self) -> None:
        super().__init__()
        self.find_one_calls = 0

    async def find_one(self, collection, filters):
        self.find_one_calls += 1
        return await super().find_one(collection, filters)


# ---------------------------------------------------------------------------
# parse_populate
# ---------------------------------------------------------------------------


class TestParsePopulate:
    def test_none_and_empty_mean_no_relations(self) -> None:
        assert parse_populate(None, Kind.TEST) == frozenset()
        assert parse_populate("", Kind.TEST) == frozenset()
        assert parse_populate(" , ,", Kind.TEST) == frozenset()

    def test_comma_separated_tokens(self) -> None:
        assert parse_populate("student, COURSE", Kind.TEST) == {
            Relation.STUDENT,
            Relation.COURSE,
        }

    def test_teacher_on_courses(self) -> None:
        assert parse_populate("teacher", Kind.COURSE) == {Relation.TEACHER}

    def test_unknown_token_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown populate token: 'classroom'"):
            parse_populate("student,classroom", Kind.TEST)

    def test_relation_not_on_kind_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Cannot populate 'teacher' on tests"):
            parse_populate("teacher", Kind.TEST)

    def test_kinds_without_references_accept_nothing(self) -> None:
        with pytest.raises(ValidationError):
            parse_populate("course", Kind.STUDENT)


# ---------------------------------------------------------------------------
# expand
# ---------------------------------------------------------------------------


class TestExpand:
    @pytest.mark.asyncio
    async def test_no_relations_leaves_records_untouched(
        self, book: Gradebook, make_teacher, make_course
    ) -> None:
        teacher = await book.repository(Kind.TEACHER).create(make_teacher())
        course = await book.repository(Kind.COURSE).create(make_course(teacherId=teacher["id"]))
        result = await book.expander.expand(Kind.COURSE, [course], frozenset())
        assert result == [course]
        assert "teacher" not in result[0]

    @pytest.mark.asyncio
    async def test_embeds_referenced_record_next_to_id(
        self, book: Gradebook, make_teacher, make_course
    ) -> None:
        teacher = await book.repository(Kind.TEACHER).create(make_teacher())
        course = await book.repository(Kind.COURSE).create(make_course(teacherId=teacher["id"]))
        expanded = await book.expander.expand_one(Kind.COURSE, course, frozenset({Relation.TEACHER}))
        assert expanded["teacherId"] == teacher["id"]
        assert expanded["teacher"] == teacher
        assert "teacher" not in course  # input not mutated

    @pytest.mark.asyncio
    async def test_only_requested_relations_are_embedded(
        self, book: Gradebook, make_teacher, make_course, make_student, make_test
    ) -> None:
        teacher = await book.repository(Kind.TEACHER).create(make_teacher())
        course = await book.repository(Kind.COURSE).create(make_course(teacherId=teacher["id"]))
        student = await book.repository(Kind.STUDENT).create(make_student())
        test = await book.repository(Kind.TEST).create(
            make_test(studentId=student["id"], courseId=course["id"])
        )
        expanded = await book.expander.expand_one(Kind.TEST, test, frozenset({Relation.STUDENT}))
        assert expanded["student"] == student
        assert "course" not in expanded

    @pytest.mark.asyncio
    async def test_dangling_reference_embeds_none(self) -> None:
        store = InMemoryDocumentStore()
        await store.insert("courses", {"id": 1, "teacherId": 2})
        await store.insert("courses", {"id": 2, "teacherId": 9})
        await store.insert("teachers", {"id": 2, "firstName": "Ada"})
        records = await store.find("courses")

        expanded = await RelationExpander(store).expand(
            Kind.COURSE, records, frozenset({Relation.TEACHER})
        )

        assert expanded[0]["teacher"] == {"id": 2, "firstName": "Ada"}
        assert expanded[1]["teacher"] is None
        assert expanded[1]["teacherId"] == 9

    @pytest.mark.asyncio
    async def test_each_referenced_id_fetched_once(self) -> None:
        store = _CountingStore()
        await store.insert("teachers", {"id": 1})
        for record_id in range(1, 6):
            await store.insert("courses", {"id": record_id, "teacherId": 1})
        records = await store.find("courses")

        await RelationExpander(store).expand(Kind.COURSE, records, frozenset({Relation.TEACHER}))

        assert store.find_one_calls == 1

    @pytest.mark.asyncio
    async def test_empty_list(self, book: Gradebook) -> None:
        assert await book.expander.expand(Kind.TEST, [], frozenset({Relation.COURSE})) == []
