"""Best-effort batch upload of report media."""

import asyncio
import logging
from dataclasses import dataclass

from civicwatch.config import get_settings
from civicwatch.errors import InternalError
from civicwatch.schemas.media import UploadOutcome
from civicwatch.services.storage import StorageClient, StorageClientError

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class MediaFile:
    """A file received from the client, read into memory."""

    data: bytes
    filename: str | None = None


@dataclass
class MediaUploadResult:
    """Outcome of a batch upload."""

    media_urls: list[str]
    audio_url: str | None
    outcomes: list[UploadOutcome]

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failures(self) -> list[UploadOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


class MediaUploadService:
    """
    Uploads report photos, videos and a voice note to object storage.

    Each file is an independent task; a failed upload is logged and skipped
    so the rest of the batch still goes through.
    """

    def __init__(
        self,
        storage: StorageClient | None = None,
        concurrency: int = settings.media_upload_concurrency,
    ):
        self.storage = storage or StorageClient()
        self.concurrency = max(1, concurrency)

    async def _upload_one(
        self, index: int, file: MediaFile, semaphore: asyncio.Semaphore
    ) -> UploadOutcome:
        async with semaphore:
            try:
                url = await self.storage.upload(file.data, file.filename)
            except StorageClientError as e:
                logger.warning(f"Failed to upload {file.filename or f'file #{index}'}: {e}")
                return UploadOutcome(index=index, filename=file.filename, error=str(e))
            except Exception as e:
                # One broken file must not sink the rest of the batch
                logger.error(
                    f"Unexpected error uploading {file.filename or f'file #{index}'}: {e}",
                    exc_info=True,
                )
                return UploadOutcome(index=index, filename=file.filename, error=str(e))

        logger.info(f"Uploaded {file.filename or f'file #{index}'}: {url}")
        return UploadOutcome(index=index, filename=file.filename, url=url)

    async def upload_report_media(
        self,
        media_files: list[MediaFile],
        audio_file: MediaFile | None = None,
    ) -> MediaUploadResult:
        """
        Upload a report's media in parallel.

        The audio file, when given, is the last outcome (index
        ``len(media_files)``). Media URLs keep the order of ``media_files``
        with failed uploads left out.
        """
        files = list(media_files)
        if audio_file is not None:
            files.append(audio_file)

        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes = list(
            await asyncio.gather(
                *(self._upload_one(i, file, semaphore) for i, file in enumerate(files))
            )
        )

        media_outcomes = outcomes[: len(media_files)]
        audio_url = None
        if audio_file is not None:
            audio_url = outcomes[-1].url

        result = MediaUploadResult(
            media_urls=[outcome.url for outcome in media_outcomes if outcome.url],
            audio_url=audio_url,
            outcomes=outcomes,
        )
        logger.info(f"Upload summary: {result.succeeded}/{result.attempted} files stored")
        return result

    async def upload_single(self, file: MediaFile) -> str:
        """Upload one file, failing loudly instead of skipping."""
        try:
            return await self.storage.upload(file.data, file.filename)
        except StorageClientError as e:
            logger.error(f"Failed to upload {file.filename or 'file'}: {e}")
            raise InternalError("Failed to upload file to cloud storage") from e
