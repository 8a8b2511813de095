"""Shared fixtures for the gradebook test suite.

Factory-pattern fixtures return callables accepting **overrides, so each test
states only the fields it cares about.

Fixtures:
    store: Fresh InMemoryDocumentStore
    book: Gradebook wired onto ``store``
    client: httpx.AsyncClient against the app, with ``book`` injected
    make_teacher / make_course / make_student / make_test:
        Factories for valid create payloads (wire keys)
"""

import httpx
import pytest
from httpx import ASGITransport

from gradebook.api.deps import get_gradebook
from gradebook.hooks.memory import InMemoryDocumentStore
from gradebook.main import app
from gradebook.records.service import Gradebook


# ---------------------------------------------------------------------------
# Store and record layer
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def book(store: InMemoryDocumentStore) -> Gradebook:
    return Gradebook(store)


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest.fixture
def client(book: Gradebook) -> httpx.AsyncClient:
    """Async test client wired to the app, backed by this test's Gradebook."""
    app.dependency_overrides[get_gradebook] = lambda: book
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    yield httpx.AsyncClient(transport=transport, base_url="http://test")
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Payload factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_teacher():
    """Returns a factory for valid teacher create payloads."""

    def _make(**overrides) -> dict:
        data = {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": "ada.lovelace@school.test",
            "department": "Mathematics",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def make_course():
    """Returns a factory for valid course create payloads.

    ``teacherId`` must be supplied by the caller — there is no sensible default.
    """

    def _make(**overrides) -> dict:
        data = {
            "code": "MTH-101",
            "name": "Algebra I",
            "semester": "Fall 2026",
            "room": "B-204",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def make_student():
    """Returns a factory for valid student create payloads."""

    def _make(**overrides) -> dict:
        data = {
            "firstName": "Grace",
            "lastName": "Hopper",
            "grade": 10,
            "studentNumber": "S-1001",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def make_test():
    """Returns a factory for valid test create payloads.

    ``studentId`` and ``courseId`` must be supplied by the caller.
    """

    def _make(**overrides) -> dict:
        data = {
            "testName": "Unit 1 Quiz",
            "date": "2026-09-15",
            "mark": 8,
            "outOf": 10,
            "weight": 0.1,
        }
        data.update(overrides)
        return data

    return _make
