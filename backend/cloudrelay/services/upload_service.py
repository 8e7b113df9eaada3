"""
Cloud Relay — Temporary Upload Storage
========================================

What:  Holds an uploaded image on disk for the duration of one request.
How:   Writes the bytes under a UUID filename in `upload_dir` with async I/O,
       reads them back for the OCR call, and deletes the file when the
       `staged()` context exits, on success and on failure alike.
Who:   Used by TextExtractionService for POST /extract-text.

Filenames never contain user input, so a crafted upload name cannot
escape the upload directory.
"""

import logging
import os
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiofiles

from cloudrelay.exceptions import PipelineError, ValidationError

logger = logging.getLogger(__name__)


class UploadService:
    """
    Stage, read and remove temporary uploads.

    Args:
        upload_dir:  Directory for staged files (created if missing)
        max_size:    Largest accepted upload in bytes
    """

    def __init__(self, upload_dir: str, max_size: int):
        self.upload_dir = Path(upload_dir).resolve()
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.max_size = max_size
        logger.info("UploadService initialized with upload_dir=%s", self.upload_dir)

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Reject uploads over the configured limit.

        Empty files are allowed through; the OCR provider decides whether
        there is anything to read.
        """
        max_mb = self.max_size / (1024 * 1024)
        if content_length and content_length > self.max_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="image",
                context={"reported_size": content_length},
            )
        if actual_size > self.max_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="image",
                context={"actual_size": actual_size},
            )

    async def store(self, content: bytes, filename: Optional[str] = None) -> Path:
        """Write `content` to a fresh file and return its path."""
        extension = Path(filename or "").suffix.lower()[:10]
        path = self.upload_dir / f"{uuid.uuid4().hex}{extension}"
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to stage upload at %s: %s", path, str(e))
            await self.cleanup_file(path)
            raise PipelineError(
                message="Failed to stage uploaded image",
                stage="upload",
                context={"os_error": str(e)},
            ) from e
        logger.info("Upload staged: %s (%d bytes)", path.name, len(content))
        return path

    async def read(self, path: Path) -> bytes:
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            raise PipelineError(
                message="Failed to read staged upload",
                stage="upload",
                context={"os_error": str(e)},
            ) from e

    async def cleanup_file(self, path: Path) -> None:
        """
        Remove a staged file if it still exists.

        Deletion failures are logged, not raised: the request outcome is
        already decided by the time cleanup runs.
        """
        try:
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up upload: %s", path.name)
            else:
                logger.debug("Cleanup: upload already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up upload %s: %s", path, str(e))

    @asynccontextmanager
    async def staged(self, content: bytes, filename: Optional[str] = None) -> AsyncIterator[Path]:
        """Stage `content` for the body of the `async with` block, then delete it."""
        path = await self.store(content, filename)
        try:
            yield path
        finally:
            await self.cleanup_file(path)
