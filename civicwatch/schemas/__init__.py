"""Pydantic schemas for API request/response validation."""

from civicwatch.schemas.media import (
    MediaUploadResponse,
    SingleMediaUploadResponse,
    UploadOutcome,
)
from civicwatch.schemas.report import (
    DeleteReportResponse,
    NearbyReportOut,
    NearbyReportsResponse,
    Pagination,
    ReportCreate,
    ReportFilters,
    ReportOut,
    ReportResponse,
    ReportsResponse,
    ReportStats,
    ReportStatsResponse,
    ReportUpdate,
    ResolveRequest,
)

__all__ = [
    "DeleteReportResponse",
    "MediaUploadResponse",
    "NearbyReportOut",
    "NearbyReportsResponse",
    "Pagination",
    "ReportCreate",
    "ReportFilters",
    "ReportOut",
    "ReportResponse",
    "ReportsResponse",
    "ReportStats",
    "ReportStatsResponse",
    "ReportUpdate",
    "ResolveRequest",
    "SingleMediaUploadResponse",
    "UploadOutcome",
]
