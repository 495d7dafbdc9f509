"""Tests for the Cloudinary storage client."""

from unittest.mock import AsyncMock, MagicMock, patch

import cloudinary.exceptions
import pytest

from civicwatch.services.storage import StorageClient, StorageClientError


def _client(**kwargs) -> StorageClient:
    return StorageClient(
        cloud_name="demo", api_key="key", api_secret="secret", folder="reports", **kwargs
    )


class TestStorageClient:
    """Tests for StorageClient."""

    def test_init(self):
        """Test client carries its credentials as upload options."""
        client = _client(max_retries=5)
        assert client.folder == "reports"
        assert client.max_retries == 5
        assert client.config["cloud_name"] == "demo"
        assert client.config["api_key"] == "key"
        assert client.config["secure"] is True

    def test_upload_sync_options(self):
        """Uploads go to the configured folder with auto resource type."""
        client = _client()

        with patch("cloudinary.uploader.upload") as mock_upload:
            mock_upload.return_value = {"secure_url": "https://res.cloudinary.com/x.jpg"}
            client._upload_sync(b"data", "photo.jpg")

        args, kwargs = mock_upload.call_args
        assert args == (b"data",)
        assert kwargs["resource_type"] == "auto"
        assert kwargs["folder"] == "reports"
        assert kwargs["filename_override"] == "photo.jpg"
        assert kwargs["api_secret"] == "secret"

    @pytest.mark.asyncio
    async def test_upload_success(self):
        client = _client()
        client._upload_with_retry = AsyncMock(
            return_value={"secure_url": "https://res.cloudinary.com/demo/photo.jpg"}
        )

        url = await client.upload(b"data", "photo.jpg")

        assert url == "https://res.cloudinary.com/demo/photo.jpg"
        client._upload_with_retry.assert_called_once_with(b"data", "photo.jpg")

    @pytest.mark.asyncio
    async def test_upload_empty_file(self):
        client = _client()
        client._upload_with_retry = AsyncMock()

        with pytest.raises(StorageClientError):
            await client.upload(b"", "empty.jpg")

        client._upload_with_retry.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_without_secure_url(self):
        client = _client()
        client._upload_with_retry = AsyncMock(return_value={"public_id": "abc"})

        with pytest.raises(StorageClientError) as exc_info:
            await client.upload(b"data", "photo.jpg")

        assert "secure_url" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_retry_on_provider_error(self):
        """Test exponential backoff on transient provider errors."""
        client = _client(max_retries=3)
        client._upload_sync = MagicMock(
            side_effect=[
                cloudinary.exceptions.GeneralError("Server error"),
                cloudinary.exceptions.GeneralError("Server error"),
                {"secure_url": "https://res.cloudinary.com/demo/ok.jpg"},
            ]
        )

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            response = await client._upload_with_retry(b"data", "ok.jpg")

        assert response["secure_url"] == "https://res.cloudinary.com/demo/ok.jpg"
        assert client._upload_sync.call_count == 3
        assert [call.args[0] for call in mock_sleep.call_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_retry_exhausted(self):
        client = _client(max_retries=2)
        client._upload_sync = MagicMock(side_effect=OSError("Connection reset"))

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(StorageClientError) as exc_info:
                await client._upload_with_retry(b"data", "photo.jpg")

        assert "Failed after" in str(exc_info.value)
        assert client._upload_sync.call_count == 2

    @pytest.mark.asyncio
    async def test_no_retry_on_bad_request(self):
        """Rejected uploads are not retried."""
        client = _client(max_retries=3)
        client._upload_sync = MagicMock(
            side_effect=cloudinary.exceptions.BadRequest("Invalid image file")
        )

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(StorageClientError) as exc_info:
                await client._upload_with_retry(b"data", "photo.jpg")

        assert "rejected" in str(exc_info.value)
        assert client._upload_sync.call_count == 1
        mock_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        """SDK configuration errors are reported as storage errors, without retry."""
        client = StorageClient(cloud_name=None, api_key=None, api_secret=None, max_retries=3)
        client._upload_sync = MagicMock(side_effect=ValueError("Must supply api_key"))

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(StorageClientError) as exc_info:
                await client._upload_with_retry(b"data", "photo.jpg")

        assert "not configured" in str(exc_info.value)
        assert client._upload_sync.call_count == 1
        mock_sleep.assert_not_called()
