"""Pydantic schemas for reports."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from civicwatch.models.report import ReportPriority

# Column widths in models/report.py
USER_ID_MAX = 64
TITLE_MAX = 255
LABEL_MAX = 100
URL_MAX = 1024


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite hands them back without tzinfo)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ReportCreate(CamelModel):
    """Request body for filing a report. Blank optional fields take defaults."""

    user_id: str | None = Field(None, max_length=USER_ID_MAX)
    title: str | None = Field(None, max_length=TITLE_MAX)
    description: str | None = None
    category: str | None = Field(None, max_length=LABEL_MAX)
    priority: ReportPriority | None = None
    media_urls: list[str] | None = None
    audio_url: str | None = Field(None, max_length=URL_MAX)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    address: str | None = None
    department: str | None = Field(None, max_length=LABEL_MAX)

    @field_validator("priority", mode="before")
    @classmethod
    def _blank_priority(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ReportUpdate(CamelModel):
    """
    Partial update body.

    Only keys present in the request are applied, so ``""`` or ``0`` are real
    values while an absent key leaves the column untouched.
    """

    model_config = ConfigDict(extra="forbid")

    user_id: str | None = None

    title: str | None = Field(None, max_length=TITLE_MAX)
    description: str | None = None
    category: str | None = Field(None, max_length=LABEL_MAX)
    priority: ReportPriority | None = None
    media_urls: list[str] | None = None
    audio_url: str | None = Field(None, max_length=URL_MAX)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    address: str | None = None
    department: str | None = Field(None, max_length=LABEL_MAX)

    def changes(self) -> dict:
        """Fields explicitly sent by the client, minus the ownership check."""
        fields = self.model_dump(exclude_unset=True, exclude={"user_id"})
        if isinstance(fields.get("priority"), ReportPriority):
            fields["priority"] = fields["priority"].value
        return fields


class ResolveRequest(CamelModel):
    """Optional body for resolving a report."""

    user_id: str | None = None


class ReportFilters(BaseModel):
    """Filters for listing a user's reports. Unset filters match everything."""

    is_resolved: bool | None = None
    category: str | None = None
    priority: ReportPriority | None = None


class ReportOut(CamelModel):
    """Report response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    title: str
    description: str
    category: str
    priority: str
    media_urls: list[str] = []
    audio_url: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    address: str
    department: str
    is_resolved: bool
    created_at: datetime
    resolved_at: datetime | None = None
    time_taken_to_resolve: float | None = None  # seconds

    @field_validator("created_at", "resolved_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class NearbyReportOut(ReportOut):
    """Report found by proximity search."""

    user_name: str | None = None
    distance: float  # km, 2 decimal places


class Pagination(CamelModel):
    """Offset pagination echo. ``total`` for user lists, ``radius`` for nearby."""

    limit: int
    offset: int
    total: int | None = None
    radius: float | None = None


class ReportResponse(CamelModel):
    """Envelope for a single report."""

    success: bool = True
    message: str | None = None
    report: ReportOut


class ReportsResponse(CamelModel):
    """Envelope for a page of reports."""

    success: bool = True
    message: str | None = None
    reports: list[ReportOut]
    pagination: Pagination


class NearbyReportsResponse(CamelModel):
    """Envelope for proximity search results."""

    success: bool = True
    message: str | None = None
    reports: list[NearbyReportOut]
    pagination: Pagination


class DeleteReportResponse(CamelModel):
    """Envelope for a deleted report."""

    success: bool = True
    message: str | None = None
    deleted_report_id: int


class ReportStats(CamelModel):
    """Aggregate counts over one user's reports."""

    total_reports: int = 0
    resolved_reports: int = 0
    pending_reports: int = 0
    critical_reports: int = 0
    high_priority_reports: int = 0
    reports_last_30_days: int = 0
    avg_resolution_time_hours: float | None = None


class ReportStatsResponse(CamelModel):
    """Envelope for report statistics."""

    success: bool = True
    message: str | None = None
    stats: ReportStats
