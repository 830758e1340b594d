"""
BookBrief Backend — Document Store (File Service)
===================================================

What:  Validates, stores, resolves and deletes uploaded PDF files.
Why:   Keeps every file system operation (and its security checks) in one place.
How:   Checks extension, declared content type and size, then writes the
       bytes to a date-organized directory under a UUID filename.
Who:   Upload route (store), ingestion/regeneration (resolve), book deletion (cleanup).

Security Model:
    1. Extension check:     only .pdf
    2. Content-type check:  only application/pdf (as declared by the client)
    3. Size check:          MAX_FILE_SIZE (15MB), before anything is written
    4. UUID filename:       no user input reaches the file system path
    5. resolve() refuses refs that escape STORAGE_ROOT

    The bytes themselves are verified by pypdf at extraction time; a file
    that only pretends to be a PDF ends up as InvalidFormatError there.
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".pdf"}
ALLOWED_CONTENT_TYPES = {"application/pdf"}


class FileService:
    """
    Directory Structure:
        storage/
        └── 2026/
            └── 10/
                └── 19/
                    └── a1b2c3d4-....pdf
    """

    def __init__(self, storage_root: Optional[str] = None, max_file_size: Optional[int] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.max_file_size = max_file_size or settings.max_file_size
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message="Only PDF files are allowed",
                field="pdf",
                context={"extension": ext},
            )
        return ext

    def validate_content_type(self, content_type: Optional[str]) -> None:
        # Parameters such as "; charset=binary" are ignored
        base_type = (content_type or "").split(";")[0].strip().lower()
        if base_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(
                message="Only PDF files are allowed",
                field="pdf",
                context={"content_type": base_type or None},
            )

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Content-Length is checked first, then the real byte count, since
        clients can send a wrong header.
        """
        max_mb = self.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="The uploaded PDF is empty", field="pdf")

        if content_length and content_length > self.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="pdf",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="pdf",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        relative_path = f"{date_dir}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write validated bytes to disk.

        Returns:
            (absolute_path, relative_path). The relative path is what gets
            persisted as Book.pdf_path.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save the uploaded PDF. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return str(absolute_path), relative_path

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Cheapest checks first: extension, content type, size, then the write.
        """
        ext = self.validate_extension(filename)
        self.validate_content_type(content_type)
        self.validate_size(content_length, len(content))
        return await self.store_file(content, ext)

    def resolve(self, relative_path: str) -> str:
        """Map a stored document ref back to an absolute path inside storage_root."""
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            raise FileStorageError(
                message="Invalid document reference",
                context={"document_ref": relative_path},
            )
        return str(full_path)

    async def cleanup_file(self, file_path: str) -> None:
        """
        Best-effort delete. Missing files are fine; other failures are logged
        and never raised, since cleanup runs after the response is decided.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except Exception as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))


file_service = FileService()
