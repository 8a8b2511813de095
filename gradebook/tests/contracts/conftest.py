"""Fixtures for contract tests — one parameterized fixture per store backend.

Each param yields a fresh DocumentStore. To test a new backend against the
contract, add its param string and a branch that yields an instance:

    python -m pytest gradebook/tests/contracts/ -v

Uses @pytest_asyncio.fixture (not @pytest.fixture) for async fixture support
in strict mode.
"""

import pytest_asyncio

from gradebook.hooks.memory import InMemoryDocumentStore
from gradebook.hooks.sqlite import SqliteDocumentStore


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def document_store(request, tmp_path):
    """Yields a DocumentStore implementation; sqlite gets an isolated temp file."""
    if request.param == "memory":
        store = InMemoryDocumentStore()
    elif request.param == "sqlite":
        store = SqliteDocumentStore(str(tmp_path / "contract.db"))
    yield store
    await store.close()
