"""Cloudinary storage client with retry logic."""

import asyncio
import logging
from typing import Any

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from civicwatch.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class StorageClientError(Exception):
    """Base exception for storage client errors."""

    pass


class StorageClient:
    """
    Client for uploading report media to Cloudinary.

    Features:
    - Uploads run in a worker thread (the SDK is blocking)
    - Exponential backoff retry on transient failures
    - ``resource_type="auto"`` so images, video and audio share one path
    """

    def __init__(
        self,
        cloud_name: str | None = settings.cloudinary_cloud_name,
        api_key: str | None = settings.cloudinary_api_key,
        api_secret: str | None = settings.cloudinary_api_secret,
        folder: str = settings.cloudinary_folder,
        max_retries: int = settings.media_upload_max_retries,
    ):
        self.folder = folder
        self.max_retries = max_retries
        self.config: dict[str, Any] = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
            "secure": True,
        }

    def _upload_sync(self, data: bytes, filename: str | None) -> dict[str, Any]:
        options: dict[str, Any] = {
            "resource_type": "auto",
            "folder": self.folder,
            **self.config,
        }
        if filename:
            options["filename_override"] = filename
            options["use_filename"] = True
        return cloudinary.uploader.upload(data, **options)

    async def _upload_with_retry(self, data: bytes, filename: str | None) -> dict[str, Any]:
        """Upload with exponential backoff retry."""
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                return await asyncio.to_thread(self._upload_sync, data, filename)

            except cloudinary.exceptions.Error as e:
                last_error = e
                # Bad request / auth errors will not get better on retry
                if isinstance(
                    e,
                    (
                        cloudinary.exceptions.BadRequest,
                        cloudinary.exceptions.AuthorizationRequired,
                        cloudinary.exceptions.NotAllowed,
                    ),
                ):
                    raise StorageClientError(f"Upload rejected: {e}") from e
                wait_time = 2**attempt
                logger.warning(f"Upload error: {e}, retry in {wait_time}s")
                await asyncio.sleep(wait_time)

            except ValueError as e:
                # The SDK raises ValueError for missing credentials
                raise StorageClientError(f"Storage is not configured: {e}") from e

            except OSError as e:
                last_error = e
                wait_time = 2**attempt
                logger.warning(f"Connection error: {e}, retry in {wait_time}s")
                await asyncio.sleep(wait_time)

        raise StorageClientError(f"Failed after {self.max_retries} retries: {last_error}")

    async def upload(self, data: bytes, filename: str | None = None) -> str:
        """
        Upload one file.

        Args:
            data: Raw file bytes
            filename: Original filename, kept as the public id prefix

        Returns:
            Public HTTPS URL of the stored file
        """
        if not data:
            raise StorageClientError("Cannot upload an empty file")

        logger.info(f"Uploading {filename or 'file'} ({len(data)} bytes)")
        response = await self._upload_with_retry(data, filename)

        url = response.get("secure_url")
        if not url:
            raise StorageClientError("Upload response has no secure_url")
        return url
