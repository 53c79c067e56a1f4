"""FileStore validation, naming and streamed writes."""
from __future__ import annotations

import asyncio
import io
import re

import pytest
from fastapi import UploadFile

from bookshare.core import messages
from bookshare.core.errors import FileTooLarge, StorageUnavailable, UnsupportedFileType
from bookshare.services.storage.file_store import FileStore


def _upload_file(name: str, content: bytes) -> UploadFile:
    return UploadFile(file=io.BytesIO(content), filename=name)


def _save(store: FileStore, name: str, content: bytes):
    return asyncio.run(store.save(_upload_file(name, content)))


def test_ensure_ready_creates_missing_directory(tmp_path):
    target = tmp_path / "nested" / "uploads"
    FileStore(target).ensure_ready()
    assert target.is_dir()


def test_ensure_ready_fails_when_path_is_a_file(tmp_path):
    blocker = tmp_path / "uploads"
    blocker.write_text("not a directory")

    with pytest.raises(StorageUnavailable):
        FileStore(blocker).ensure_ready()


@pytest.mark.parametrize("name", ["book.pdf", "BOOK.PDF", "story.Epub", "notes.txt"])
def test_validate_filename_accepts_allowed_types(file_store, name):
    assert file_store.validate_filename(name).lower() in {".pdf", ".epub", ".txt"}


@pytest.mark.parametrize("name", ["malware.exe", "archive.pdf.zip", "README", "book.mobi"])
def test_validate_filename_rejects_other_types(file_store, name):
    with pytest.raises(UnsupportedFileType) as exc_info:
        file_store.validate_filename(name)
    assert exc_info.value.message == messages.UNSUPPORTED_TYPE
    assert exc_info.value.status_code == 400


def test_generated_name_keeps_extension_and_shape(file_store):
    name = file_store.generate_name("My Book.EPUB")
    assert re.fullmatch(r"\d{13}-\d+\.EPUB", name)


def test_generated_names_do_not_repeat(file_store):
    names = {file_store.generate_name("a.pdf") for _ in range(200)}
    assert len(names) == 200


def test_save_writes_bytes_under_generated_name(file_store, sample_pdf):
    stored = _save(file_store, "sample.pdf", sample_pdf)

    assert stored.original_name == "sample.pdf"
    assert stored.stored_name != "sample.pdf"
    assert stored.stored_name.endswith(".pdf")
    assert stored.size == len(sample_pdf)
    assert file_store.path_for(stored.stored_name).read_bytes() == sample_pdf


def test_save_rejects_bad_type_before_writing(file_store):
    with pytest.raises(UnsupportedFileType):
        _save(file_store, "virus.exe", b"MZ")
    assert list(file_store.upload_dir.iterdir()) == []


def test_save_rejects_oversized_file_and_leaves_no_partial(tmp_path):
    store = FileStore(tmp_path / "uploads", max_bytes=1024)
    store.ensure_ready()

    with pytest.raises(FileTooLarge) as exc_info:
        _save(store, "big.txt", b"x" * 1025)

    assert exc_info.value.code == "FILE_TOO_LARGE"
    assert list(store.upload_dir.iterdir()) == []


def test_file_at_exact_limit_is_accepted(tmp_path):
    store = FileStore(tmp_path / "uploads", max_bytes=1024)
    stored = _save(store, "edge.txt", b"x" * 1024)
    assert store.exists(stored.stored_name)


def test_path_for_ignores_directory_components(file_store):
    path = file_store.path_for("../../etc/passwd")
    assert path.parent == file_store.upload_dir


def test_delete_is_quiet_for_missing_files(file_store):
    file_store.delete("does-not-exist.pdf")
