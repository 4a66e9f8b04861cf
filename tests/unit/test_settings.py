"""Unit tests for settings and engine URL handling."""

import pytest

from backend.app.config import PLACEHOLDER_POSTGRES_URL, Settings
from backend.app.db.engine import create_async_engine_from_settings, resolve_database_url


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test defaults when the environment sets nothing."""
    for name in ("DATABASE_URL", "DOCUMENT_ROOT", "STORAGE_BACKEND"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.database_url is None
    assert settings.document_root == "public"
    assert settings.storage_backend == "filesystem"
    assert settings.max_document_bytes == 10 * 1024 * 1024
    assert settings.retrieval_timeout_ms == 10000


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOCUMENT_ROOT", "/srv/docs")
    monkeypatch.setenv("STORAGE_BACKEND", "database")
    monkeypatch.setenv("RETRIEVAL_TIMEOUT_MS", "2500")

    settings = Settings(_env_file=None)

    assert settings.document_root == "/srv/docs"
    assert settings.storage_backend == "database"
    assert settings.retrieval_timeout_ms == 2500


def test_invalid_storage_backend_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORAGE_BACKEND", "s3")

    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_placeholder_url_rejected() -> None:
    settings = Settings(_env_file=None, database_url=None, postgres_url=PLACEHOLDER_POSTGRES_URL)

    with pytest.raises(ValueError, match="DATABASE_URL must be set"):
        resolve_database_url(settings)


def test_postgres_url_uses_asyncpg() -> None:
    settings = Settings(
        _env_file=None, database_url="postgresql://u:p@db.internal:5432/caregiver_docs"
    )

    engine = create_async_engine_from_settings(settings)

    assert engine.url.drivername == "postgresql+asyncpg"
