"""
Cloud Relay — Upload Service Tests
====================================

What:  Temporary upload staging, size validation and guaranteed cleanup.
"""

import errno
from pathlib import Path
from unittest.mock import patch

import pytest

from cloudrelay.exceptions import PipelineError, ValidationError
from cloudrelay.services.upload_service import UploadService


class FullDiskFile:
    """aiofiles.open stand-in: creates the file, then fails the write."""

    def __init__(self, path, mode):
        self.path = Path(path)

    async def __aenter__(self):
        self.path.touch()
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def write(self, data):
        raise OSError(errno.ENOSPC, "No space left on device")


class TestUploadService:

    @pytest.fixture(autouse=True)
    def _service(self, tmp_path):
        self.upload_dir = tmp_path / "uploads"
        self.service = UploadService(str(self.upload_dir), max_size=1024)

    def test_creates_upload_dir(self):
        assert self.upload_dir.is_dir()

    def test_size_within_limit(self):
        self.service.validate_size(None, 1024)

    def test_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(None, 1025)

    def test_reported_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(4096, 10)

    def test_empty_upload_is_not_rejected(self):
        self.service.validate_size(0, 0)

    @pytest.mark.asyncio
    async def test_store_uses_generated_name(self, sample_image_bytes):
        path = await self.service.store(sample_image_bytes, "../../etc/passwd.jpg")

        assert path.parent == self.upload_dir.resolve()
        assert path.suffix == ".jpg"
        assert "passwd" not in path.name
        assert await self.service.read(path) == sample_image_bytes

    @pytest.mark.asyncio
    async def test_staged_removes_file_on_success(self, sample_image_bytes):
        async with self.service.staged(sample_image_bytes, "a.png") as path:
            assert path.exists()
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_staged_removes_file_on_error(self, sample_image_bytes):
        with pytest.raises(RuntimeError):
            async with self.service.staged(sample_image_bytes, "a.png") as path:
                raise RuntimeError("OCR exploded")
        assert not path.exists()
        assert list(self.upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_cleanup_file_nonexistent(self):
        await self.service.cleanup_file(self.upload_dir / "missing.jpg")

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_partial_file(self, sample_image_bytes):
        with patch("cloudrelay.services.upload_service.aiofiles.open", FullDiskFile):
            with pytest.raises(PipelineError) as exc_info:
                async with self.service.staged(sample_image_bytes, "a.jpg"):
                    pass

        assert exc_info.value.stage == "upload"
        assert list(self.upload_dir.iterdir()) == []
