"""Tests for batch media uploads."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from civicwatch.errors import InternalError
from civicwatch.services.media import MediaFile, MediaUploadService
from civicwatch.services.storage import StorageClient, StorageClientError


def _files(*names: str) -> list[MediaFile]:
    return [MediaFile(data=b"bytes", filename=name) for name in names]


class TestMediaUploadService:
    """Tests for MediaUploadService."""

    @pytest.mark.asyncio
    async def test_all_files_uploaded(self, stub_storage):
        service = MediaUploadService(storage=stub_storage)

        result = await service.upload_report_media(
            _files("a.jpg", "b.jpg"), MediaFile(data=b"voice", filename="note.m4a")
        )

        assert result.media_urls == [
            "https://res.cloudinary.com/test/a.jpg",
            "https://res.cloudinary.com/test/b.jpg",
        ]
        assert result.audio_url == "https://res.cloudinary.com/test/note.m4a"
        assert result.attempted == 3
        assert result.succeeded == 3
        assert result.failures == []

    @pytest.mark.asyncio
    async def test_failed_file_is_skipped(self, stub_storage):
        """One bad file does not sink the rest of the batch."""
        service = MediaUploadService(storage=stub_storage)

        result = await service.upload_report_media(_files("a.jpg", "broken.jpg", "c.jpg"))

        assert result.media_urls == [
            "https://res.cloudinary.com/test/a.jpg",
            "https://res.cloudinary.com/test/c.jpg",
        ]
        assert result.audio_url is None
        assert result.attempted == 3
        assert result.succeeded == 2
        assert [(f.index, f.filename) for f in result.failures] == [(1, "broken.jpg")]
        assert "corrupt" in result.failures[0].error

    @pytest.mark.asyncio
    async def test_failed_audio(self, stub_storage):
        service = MediaUploadService(storage=stub_storage)

        result = await service.upload_report_media(
            _files("a.jpg"), MediaFile(data=b"voice", filename="broken.m4a")
        )

        assert result.media_urls == ["https://res.cloudinary.com/test/a.jpg"]
        assert result.audio_url is None
        assert result.failures[0].index == 1

    @pytest.mark.asyncio
    async def test_order_kept_when_uploads_finish_out_of_order(self):
        """URLs follow input order, not completion order."""
        storage = AsyncMock()

        async def slow_first(data, filename):
            await asyncio.sleep(0.02 if filename == "first.jpg" else 0)
            return f"https://cdn.test/{filename}"

        storage.upload = AsyncMock(side_effect=slow_first)
        service = MediaUploadService(storage=storage, concurrency=2)

        result = await service.upload_report_media(_files("first.jpg", "second.jpg"))

        assert result.media_urls == ["https://cdn.test/first.jpg", "https://cdn.test/second.jpg"]

    @pytest.mark.asyncio
    async def test_empty_batch(self, stub_storage):
        service = MediaUploadService(storage=stub_storage)

        result = await service.upload_report_media([])

        assert result.media_urls == []
        assert result.attempted == 0
        stub_storage.upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_single(self, stub_storage):
        service = MediaUploadService(storage=stub_storage)

        url = await service.upload_single(MediaFile(data=b"x", filename="one.png"))

        assert url == "https://res.cloudinary.com/test/one.png"

    @pytest.mark.asyncio
    async def test_upload_single_failure(self):
        storage = AsyncMock()
        storage.upload = AsyncMock(side_effect=StorageClientError("timeout"))
        service = MediaUploadService(storage=storage)

        with pytest.raises(InternalError) as exc_info:
            await service.upload_single(MediaFile(data=b"x", filename="one.png"))

        assert exc_info.value.message == "Failed to upload file to cloud storage"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_skipped(self):
        """Errors other than StorageClientError still only fail their own file."""
        storage = AsyncMock()

        async def upload(data, filename):
            if filename == "bad.jpg":
                raise ValueError("Must supply api_key")
            return f"https://cdn.test/{filename}"

        storage.upload = AsyncMock(side_effect=upload)
        service = MediaUploadService(storage=storage)

        result = await service.upload_report_media(_files("good.jpg", "bad.jpg"))

        assert result.attempted == 2
        assert result.succeeded == 1
        assert result.media_urls == ["https://cdn.test/good.jpg"]
        assert result.failures[0].filename == "bad.jpg"
        assert "api_key" in result.failures[0].error

    @pytest.mark.asyncio
    async def test_unconfigured_storage(self):
        """Without Cloudinary credentials every file fails but the batch completes."""
        storage = StorageClient(cloud_name=None, api_key=None, api_secret=None, max_retries=1)
        storage._upload_sync = MagicMock(side_effect=ValueError("Must supply api_key"))
        service = MediaUploadService(storage=storage)

        result = await service.upload_report_media(_files("a.jpg"))

        assert result.attempted == 1
        assert result.succeeded == 0
        assert result.media_urls == []
        assert "not configured" in result.failures[0].error
