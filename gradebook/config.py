"""App configuration — environment variable loading with typed defaults.

Loads settings from .env file (via python-dotenv) and os.environ.
Real environment variables take precedence over .env file values.

The store backend name is validated at load time: an unknown STORE_BACKEND
fails fast instead of silently falling back to the in-memory store.

Usage:
    from gradebook.config import get_settings
    settings = get_settings()
    print(settings.store_backend)  # "memory"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Only load .env from the project root — don't traverse parent directories.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DOTENV_PATH = PROJECT_ROOT / ".env"

STORE_BACKENDS: tuple[str, ...] = ("memory", "sqlite")


@dataclass(frozen=True)
class Settings:
    """Typed configuration for the gradebook service.

    All fields have sensible defaults for local development.
    """

    # App
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # Storage
    store_backend: str
    database_path: str


def _resolve_backend(value: str) -> str:
    """Normalises and validates the STORE_BACKEND value.

    Raises:
        ValueError: If the value is not one of STORE_BACKENDS.
    """
    backend = value.strip().lower()
    if backend in STORE_BACKENDS:
        return backend
    valid = ", ".join(STORE_BACKENDS)
    raise ValueError(
        f"Invalid value for STORE_BACKEND: {value!r}. "
        f"Valid options: {valid}"
    )


def _split_csv(value: str) -> list[str]:
    """Splits a comma-separated string into a list of stripped, non-empty values."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_settings() -> Settings:
    """Loads configuration from .env file and environment variables.

    Returns:
        A fully resolved Settings instance.
    """
    load_dotenv(_DOTENV_PATH)

    return Settings(
        # App
        app_env=os.environ.get("APP_ENV", "development"),
        app_port=int(os.environ.get("APP_PORT", "3000")),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        cors_origins=_split_csv(
            os.environ.get("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
        ),
        # Storage
        store_backend=_resolve_backend(os.environ.get("STORE_BACKEND", "memory")),
        database_path=os.environ.get("DATABASE_PATH", "gradebook.db"),
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the singleton Settings instance. Loads .env on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings
