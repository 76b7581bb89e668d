import os
import re
from typing import List

from fastapi import UploadFile

from adapters.storage_adapter import StoredFile
from common.exceptions import InvalidFileException
from common.validation import validate_file_type
from entities.user import DocumentMetadata

import logging

logger = logging.getLogger(__name__)


class UploadSecurityError(Exception):
    """Custom exception for upload security violations."""
    pass


class FileUploadValidator:
    """
    Checks uploaded document payloads before they reach storage.

    - filename sanitization (no traversal, control or reserved names)
    - per-file size limit
    - payload kind matches the declared document type
    """

    MAX_CHUNK_SIZE = 8192
    MAX_FILENAME_LENGTH = 255

    DANGEROUS_FILENAME_PATTERNS = [
        r'^\.',                    # Hidden files
        r'[<>:"|?*]',              # Invalid Windows characters
        r'[\x00-\x1f\x7f-\x9f]',   # Control characters
        r'^(CON|PRN|AUX|NUL|COM[1-9]|LPT[1-9])(\.|$)',  # Windows reserved names
    ]

    def __init__(self, max_file_size: int = 10 * 1024 * 1024):
        self.max_file_size = max_file_size

    def validate_filename(self, filename: str) -> str:
        """
        Validate and sanitize filename.

        Args:
            filename: Original filename as sent by the client

        Returns:
            Sanitized base name

        Raises:
            UploadSecurityError: If filename is invalid
        """
        if not filename:
            raise UploadSecurityError("Filename cannot be empty")

        # Strip any client-side directory part, POSIX or Windows
        base = os.path.basename(filename.replace("\\", "/"))
        if not base or base in (".", ".."):
            raise UploadSecurityError("Filename cannot be empty")

        if len(base) > self.MAX_FILENAME_LENGTH:
            raise UploadSecurityError(f"Filename too long (max {self.MAX_FILENAME_LENGTH} characters)")

        for pattern in self.DANGEROUS_FILENAME_PATTERNS:
            if re.search(pattern, base, re.IGNORECASE):
                logger.warning(f"Dangerous filename pattern detected: {pattern} in {filename}")
                raise UploadSecurityError("Filename contains invalid characters or patterns")

        return re.sub(r'[^\w\-\.]', '_', base)

    async def read_limited(self, upload_file: UploadFile) -> bytes:
        """Read the upload in chunks, enforcing the size limit."""
        chunks: List[bytes] = []
        total = 0
        while True:
            chunk = await upload_file.read(self.MAX_CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > self.max_file_size:
                mb = self.max_file_size // (1024 * 1024)
                raise UploadSecurityError(f"File too large. Max {mb}MB.")
            chunks.append(chunk)
        return b"".join(chunks)

    async def validate_upload(self, upload_file: UploadFile, document: DocumentMetadata) -> StoredFile:
        """
        Validate one uploaded payload against its metadata entry.

        Returns:
            StoredFile with the sanitized name, content type and bytes.

        Raises:
            InvalidFileException: On any rejected payload (400).
        """
        original = upload_file.filename or ""
        file_type = document.file_type.value
        try:
            sanitized = self.validate_filename(original)
            if not validate_file_type(file_type, original, upload_file.content_type):
                kind = "an IMAGE" if file_type == "image" else "a PDF"
                raise UploadSecurityError(
                    f"Invalid file type for {document.file_name}. Please upload {kind} file."
                )
            content = await self.read_limited(upload_file)
        except UploadSecurityError as e:
            logger.warning(f"Upload security error: {e}")
            raise InvalidFileException(detail=str(e), filename=original, file_type=file_type)
        finally:
            await upload_file.close()

        return StoredFile(filename=sanitized, content=content, content_type=upload_file.content_type)


def create_upload_validator(max_file_size: int) -> FileUploadValidator:
    return FileUploadValidator(max_file_size=max_file_size)
