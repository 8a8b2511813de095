"""Shared FastAPI dependencies — store and record-layer injection.

Module-level singletons for the document store and the Gradebook built on
it. Route handlers access them via FastAPI's Depends() system, never by
importing the store directly. main.py replaces the in-memory default with
the configured backend at startup; tests swap in a fresh Gradebook through
``app.dependency_overrides[get_gradebook]``.

Usage:
    from gradebook.api.deps import get_gradebook

    @router.get("/something")
    async def do_thing(book: Gradebook = Depends(get_gradebook)): ...
"""

import logging

from gradebook.config import Settings
from gradebook.hooks.interfaces import DocumentStore
from gradebook.hooks.memory import InMemoryDocumentStore
from gradebook.records.service import Gradebook

logger = logging.getLogger("gradebook")

# ---------------------------------------------------------------------------
# Service singletons — the swap point
# ---------------------------------------------------------------------------

_store: DocumentStore = InMemoryDocumentStore()
_gradebook: Gradebook = Gradebook(_store)


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def get_store() -> DocumentStore:
    """Returns the document store singleton."""
    return _store


def get_gradebook() -> Gradebook:
    """Returns the Gradebook singleton."""
    return _gradebook


# ---------------------------------------------------------------------------
# Store factory
# ---------------------------------------------------------------------------


def create_store(settings: Settings) -> DocumentStore:
    """Routes the configured backend name to a concrete DocumentStore.

    Args:
        settings: Application settings (store_backend, database_path).

    Returns:
        An InMemoryDocumentStore or SqliteDocumentStore.

    Raises:
        ValueError: If the backend name is not recognized.
    """
    if settings.store_backend == "memory":
        return InMemoryDocumentStore()

    if settings.store_backend == "sqlite":
        # Local import keeps sqlite out of the import path for memory-only runs.
        from gradebook.hooks.sqlite import SqliteDocumentStore

        return SqliteDocumentStore(settings.database_path)

    raise ValueError(
        f"Unknown store backend: {settings.store_backend!r}. "
        f"Expected 'memory' or 'sqlite'."
    )


def install_store(store: DocumentStore) -> Gradebook:
    """Makes ``store`` the active singleton and rebuilds the Gradebook on it."""
    global _store, _gradebook
    _store = store
    _gradebook = Gradebook(store)
    return _gradebook
