import logging
import os
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from bookshare.core.errors import FileTooLarge, StorageUnavailable, UnsupportedFileType

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf", ".epub", ".txt"}
DEFAULT_MAX_BYTES = 50 * 1024 * 1024
CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredFile:
    stored_name: str
    original_name: str
    size: int


class FileStore:
    """
    Keeps uploaded book files in a single flat directory.
    Files are written under a generated name so the uploader's filename
    never decides where bytes land on disk.
    """

    def __init__(
        self,
        upload_dir: str | Path,
        max_bytes: int = DEFAULT_MAX_BYTES,
        allowed_extensions: Iterable[str] = ALLOWED_EXTENSIONS,
    ) -> None:
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes
        self.allowed_extensions = {ext.lower() for ext in allowed_extensions}

    @property
    def max_size_mb(self) -> int:
        return self.max_bytes // (1024 * 1024)

    def ensure_ready(self) -> None:
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(details=f"cannot create {self.upload_dir}") from e
        if not os.access(self.upload_dir, os.W_OK):
            raise StorageUnavailable(details=f"upload directory not writable: {self.upload_dir}")
        logger.info("Upload directory ready at %s", self.upload_dir.resolve())

    def validate_filename(self, filename: str) -> str:
        ext = Path(filename).suffix
        if ext.lower() not in self.allowed_extensions:
            raise UnsupportedFileType(details=ext or None)
        return ext

    def generate_name(self, filename: str) -> str:
        ext = Path(filename).suffix
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"

    def path_for(self, stored_name: str) -> Path:
        # Stored names are generated here, but never trust a DB value blindly.
        return self.upload_dir / Path(stored_name).name

    def exists(self, stored_name: str) -> bool:
        return self.path_for(stored_name).is_file()

    def delete(self, stored_name: str) -> None:
        path = self.path_for(stored_name)
        try:
            path.unlink()
            logger.info("Removed stored file %s", path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("Could not remove stored file %s", path)

    async def save(self, upload: UploadFile) -> StoredFile:
        original_name = Path(upload.filename or "").name
        self.validate_filename(original_name)

        os.makedirs(self.upload_dir, exist_ok=True)
        stored_name = self.generate_name(original_name)
        path = self.path_for(stored_name)

        size = 0
        try:
            with open(path, "wb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise FileTooLarge(self.max_size_mb)
                    await run_in_threadpool(f.write, chunk)
        except FileTooLarge:
            self.delete(stored_name)
            logger.info("Rejected %s: larger than %d MB", original_name, self.max_size_mb)
            raise
        except OSError as e:
            self.delete(stored_name)
            raise StorageUnavailable(details=f"write failed for {path}") from e

        logger.info("Stored %s as %s (%d bytes)", original_name, stored_name, size)
        return StoredFile(stored_name=stored_name, original_name=original_name, size=size)
