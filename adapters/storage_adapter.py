"""
File storage adapters for uploaded registration documents.
This handles all direct communication with the local disk and Supabase Storage.
"""

import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from common.exceptions import StorageException
from common.logging import get_logger, log_storage_event

logger = get_logger("storage_adapter")


@dataclass
class StoredFile:
    """An uploaded payload ready to be written."""
    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


def unique_filename(filename: str) -> str:
    """Prefix the base name with a nanosecond timestamp."""
    base = os.path.basename(filename.replace("\\", "/")) or "upload"
    return f"{time.time_ns()}-{base}"


class BaseStorageAdapter(ABC):
    """Abstract base class for storage adapters."""

    backend_name = "base"

    @abstractmethod
    async def store(self, file: StoredFile, destination_folder: str) -> str:
        """Persist the file and return a URL clients can use directly."""
        pass

    def _write_local(self, root: Path, folder: str, name: str, content: bytes) -> Path:
        target_dir = root / folder
        path = target_dir / name
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}", exc_info=True)
            raise StorageException(
                detail=f"Failed to save file '{name}'",
                filename=name,
                backend=self.backend_name
            )
        return path


class LocalStorageAdapter(BaseStorageAdapter):
    """
    Writes files under a publicly served root and returns relative URLs.
    """

    backend_name = "local"

    def __init__(self, public_root: str):
        self.public_root = Path(public_root)

    async def store(self, file: StoredFile, destination_folder: str) -> str:
        name = unique_filename(file.filename)
        folder = destination_folder.strip("/")
        path = self._write_local(self.public_root, folder, name, file.content)

        log_storage_event(self.backend_name, "write", str(path), file.size)
        return f"/{folder}/{name}"


class SupabaseStorageAdapter(BaseStorageAdapter):
    """
    Uploads to a Supabase Storage bucket through a transient local copy.

    The local copy is written under `public_root/temp_folder`, uploaded, and
    removed after a successful upload when `delete_local` is set. Remote
    objects are never rolled back.
    """

    backend_name = "supabase"

    def __init__(
        self,
        connection,
        bucket: str,
        public_root: str,
        temp_folder: str = "uploads",
        delete_local: bool = True,
    ):
        self.connection = connection
        self.bucket = bucket
        self.public_root = Path(public_root)
        self.temp_folder = temp_folder.strip("/")
        self.delete_local = delete_local

    async def store(self, file: StoredFile, destination_folder: str) -> str:
        name = unique_filename(file.filename)
        temp_path = self._write_local(self.public_root, self.temp_folder, name, file.content)

        remote_path = f"{destination_folder.strip('/')}/{name}"
        try:
            bucket = self.connection.client.storage.from_(self.bucket)
            bucket.upload(
                remote_path,
                str(temp_path),
                {"content-type": file.content_type or "application/octet-stream"},
            )
            url = bucket.get_public_url(remote_path)
        except StorageException:
            raise
        except Exception as e:
            logger.error(f"Upload to bucket '{self.bucket}' failed for {remote_path}: {e}", exc_info=True)
            raise StorageException(
                detail=f"Failed to upload file '{file.filename}'",
                filename=file.filename,
                backend=self.backend_name,
                context={"bucket": self.bucket, "path": remote_path, "error": str(e)}
            )

        if self.delete_local:
            try:
                temp_path.unlink(missing_ok=True)
                log_storage_event("local", "delete", str(temp_path))
            except OSError as e:
                logger.warning(f"Could not remove temporary upload {temp_path}: {e}")

        log_storage_event(self.backend_name, "upload", f"{self.bucket}/{remote_path}", file.size)
        return url.rstrip("?")


def create_storage_adapter(settings, connection) -> BaseStorageAdapter:
    """Pick the storage backend configured via STORAGE_BACKEND."""
    if settings.is_remote_storage():
        return SupabaseStorageAdapter(
            connection=connection,
            bucket=settings.supabase_storage_bucket,
            public_root=settings.public_root,
            temp_folder=settings.upload_folder,
            delete_local=settings.delete_local_after_upload,
        )
    return LocalStorageAdapter(public_root=settings.public_root)
