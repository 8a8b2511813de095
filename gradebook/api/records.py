"""CRUD routes — one router per entity kind, built from the same factory.

Every kind exposes the same five endpoints:

    GET    /{kind}                list, id ascending
    GET    /{kind}/{record_id}    fetch one
    POST   /{kind}                create (201)
    PUT    /{kind}/{record_id}    partial update
    DELETE /{kind}/{record_id}    delete, returns the removed record

Read endpoints accept ``?populate=`` for kinds that have references
(courses: teacher; tests: student, course). Failures are raised as
RecordError subclasses and rendered by the handlers in main.py.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from gradebook.api.deps import get_gradebook
from gradebook.records.expander import parse_populate
from gradebook.records.kinds import Kind
from gradebook.records.service import Gradebook


def build_router(kind: Kind) -> APIRouter:
    """Creates the CRUD router for one kind. Mount it at ``/{kind.value}``."""
    router = APIRouter()

    @router.get("")
    async def list_records(
        populate: str | None = None,
        book: Gradebook = Depends(get_gradebook),
    ) -> list[dict[str, Any]]:
        relations = parse_populate(populate, kind)
        records = await book.repository(kind).list()
        return await book.expander.expand(kind, records, relations)

    @router.get("/{record_id}")
    async def get_record(
        record_id: int,
        populate: str | None = None,
        book: Gradebook = Depends(get_gradebook),
    ) -> dict[str, Any]:
        relations = parse_populate(populate, kind)
        record = await book.repository(kind).get(record_id)
        return await book.expander.expand_one(kind, record, relations)

    @router.post("", status_code=201)
    async def create_record(
        fields: dict[str, Any] | None = Body(default=None),
        book: Gradebook = Depends(get_gradebook),
    ) -> dict[str, Any]:
        return await book.repository(kind).create(fields or {})

    @router.put("/{record_id}")
    async def update_record(
        record_id: int,
        fields: dict[str, Any] | None = Body(default=None),
        book: Gradebook = Depends(get_gradebook),
    ) -> dict[str, Any]:
        return await book.repository(kind).update(record_id, fields or {})

    @router.delete("/{record_id}")
    async def delete_record(
        record_id: int,
        book: Gradebook = Depends(get_gradebook),
    ) -> dict[str, Any]:
        return await book.repository(kind).delete(record_id)

    return router
