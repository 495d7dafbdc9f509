"""Services for report business logic and media storage."""

from civicwatch.services.media import MediaFile, MediaUploadService
from civicwatch.services.reports import ReportService
from civicwatch.services.storage import StorageClient, StorageClientError

__all__ = [
    "MediaFile",
    "MediaUploadService",
    "ReportService",
    "StorageClient",
    "StorageClientError",
]
