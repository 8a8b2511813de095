"""Contract tests for DocumentStore — behavioural contract.

Verifies that any DocumentStore implementation satisfies:
- insert / find / find_one / exists with equality filters
- id-ascending ordering regardless of insertion order
- partial updates that leave other keys untouched
- physical delete returning the removed document
- atomic, per-name counters (including under concurrency)
- returned documents are copies, not live references

These tests use only the public interface — no internal state inspection.
"""

import asyncio

import pytest


class TestDocumentStoreContract:
    """Behavioral contract for DocumentStore implementations."""

    # -- reads and writes --------------------------------------------------

    @pytest.mark.asyncio
    async def test_insert_then_find_one(self, document_store) -> None:
        doc = {"id": 1, "firstName": "Ada", "grade": 10}
        stored = await document_store.insert("students", doc)
        assert stored == doc
        assert await document_store.find_one("students", {"id": 1}) == doc

    @pytest.mark.asyncio
    async def test_find_unknown_collection_is_empty(self, document_store) -> None:
        assert await document_store.find("nothing_here") == []
        assert await document_store.find_one("nothing_here", {"id": 1}) is None
        assert await document_store.exists("nothing_here", {"id": 1}) is False

    @pytest.mark.asyncio
    async def test_find_sorts_by_id(self, document_store) -> None:
        for record_id in (3, 1, 2):
            await document_store.insert("teachers", {"id": record_id})
        ids = [d["id"] for d in await document_store.find("teachers")]
        assert ids == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_find_with_equality_filter(self, document_store) -> None:
        await document_store.insert("courses", {"id": 1, "teacherId": 7})
        await document_store.insert("courses", {"id": 2, "teacherId": 8})
        await document_store.insert("courses", {"id": 3, "teacherId": 7})
        matches = await document_store.find("courses", {"teacherId": 7})
        assert [d["id"] for d in matches] == [1, 3]

    @pytest.mark.asyncio
    async def test_string_filter(self, document_store) -> None:
        await document_store.insert("teachers", {"id": 1, "department": "Art"})
        assert await document_store.exists("teachers", {"department": "Art"})
        assert not await document_store.exists("teachers", {"department": "Music"})

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, document_store) -> None:
        await document_store.insert("teachers", {"id": 1})
        with pytest.raises(KeyError):
            await document_store.insert("teachers", {"id": 1})

    # -- update ------------------------------------------------------------

    @pytest.mark.asyncio
    async def test_update_overwrites_only_given_keys(self, document_store) -> None:
        await document_store.insert("students", {"id": 1, "firstName": "Ada", "grade": 9})
        updated = await document_store.update("students", 1, {"grade": 10})
        assert updated == {"id": 1, "firstName": "Ada", "grade": 10}
        assert await document_store.find_one("students", {"id": 1}) == updated

    @pytest.mark.asyncio
    async def test_update_never_changes_id(self, document_store) -> None:
        await document_store.insert("students", {"id": 1, "grade": 9})
        updated = await document_store.update("students", 1, {"id": 99})
        assert updated["id"] == 1

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, document_store) -> None:
        assert await document_store.update("students", 42, {"grade": 10}) is None

    # -- delete ------------------------------------------------------------

    @pytest.mark.asyncio
    async def test_delete_returns_removed_document(self, document_store) -> None:
        await document_store.insert("tests", {"id": 5, "mark": 8})
        removed = await document_store.delete("tests", 5)
        assert removed == {"id": 5, "mark": 8}
        assert await document_store.find_one("tests", {"id": 5}) is None

    @pytest.mark.asyncio
    async def test_delete_missing_returns_none(self, document_store) -> None:
        assert await document_store.delete("tests", 5) is None

    @pytest.mark.asyncio
    async def test_out_of_range_integer_ids_match_nothing(self, document_store) -> None:
        await document_store.insert("teachers", {"id": 1, "firstName": "Ada"})
        await document_store.insert("courses", {"id": 1, "teacherId": 1})
        huge = 10**20
        assert await document_store.find_one("teachers", {"id": huge}) is None
        assert await document_store.exists("teachers", {"id": huge}) is False
        assert await document_store.find("courses", {"teacherId": -huge}) == []
        assert await document_store.update("teachers", huge, {"firstName": "Alan"}) is None
        assert await document_store.delete("teachers", huge) is None
        assert len(await document_store.find("teachers")) == 1

    # -- isolation of returned copies --------------------------------------

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self, document_store) -> None:
        await document_store.insert("teachers", {"id": 1, "firstName": "Ada"})
        found = await document_store.find_one("teachers", {"id": 1})
        found["firstName"] = "Changed"
        again = await document_store.find_one("teachers", {"id": 1})
        assert again["firstName"] == "Ada"

    # -- counters ----------------------------------------------------------

    @pytest.mark.asyncio
    async def test_sequence_starts_at_one_and_increments(self, document_store) -> None:
        assert await document_store.next_sequence("teachers") == 1
        assert await document_store.next_sequence("teachers") == 2

    @pytest.mark.asyncio
    async def test_sequences_are_independent(self, document_store) -> None:
        await document_store.next_sequence("teachers")
        await document_store.next_sequence("teachers")
        assert await document_store.next_sequence("courses") == 1

    @pytest.mark.asyncio
    async def test_concurrent_sequence_calls_are_unique(self, document_store) -> None:
        values = await asyncio.gather(
            *(document_store.next_sequence("tests") for _ in range(40))
        )
        assert sorted(values) == list(range(1, 41))

    # -- transactions ------------------------------------------------------

    @pytest.mark.asyncio
    async def test_transactions_do_not_interleave(self, document_store) -> None:
        events: list[str] = []

        async def unit(name: str) -> None:
            async with document_store.transaction():
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(unit("a"), unit("b"))
        assert events in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )
