"""Shared fixtures: every test gets its own SQLite file and upload directory."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from bookshare.core.config import Settings
from bookshare.main import create_app
from bookshare.services.catalog_store import CatalogStore
from bookshare.services.storage.file_store import FileStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'books.db'}",
        upload_dir=str(tmp_path / "uploads"),
        max_upload_size_mb=50,
        cors_origins=["*"],
    )


@pytest.fixture
def catalog_store(settings):
    store = CatalogStore(settings.database_url)
    store.open()
    yield store
    store.close()


@pytest.fixture
def file_store(settings) -> FileStore:
    store = FileStore(settings.upload_dir, max_bytes=settings.max_upload_bytes)
    store.ensure_ready()
    return store


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_pdf() -> bytes:
    # ~2KB payload; content is never parsed.
    return b"%PDF-1.4\n" + b"0" * 2048


@pytest.fixture
def upload(client, sample_pdf):
    def _upload(
        title: str = "كتاب تجريبي",
        author: str = "مؤلف",
        filename: str = "sample.pdf",
        content: bytes | None = None,
        **extra: str,
    ):
        data = {"title": title, "author": author, **extra}
        files = {"file": (filename, sample_pdf if content is None else content, "application/octet-stream")}
        return client.post("/api/books", data=data, files=files)

    return _upload
