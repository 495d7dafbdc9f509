"""API routes for citizen reports."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from civicwatch.config import get_settings
from civicwatch.database import get_db
from civicwatch.errors import ValidationError
from civicwatch.models import ReportPriority
from civicwatch.schemas import (
    DeleteReportResponse,
    MediaUploadResponse,
    NearbyReportsResponse,
    Pagination,
    ReportCreate,
    ReportFilters,
    ReportOut,
    ReportResponse,
    ReportsResponse,
    ReportStatsResponse,
    ReportUpdate,
    ResolveRequest,
    SingleMediaUploadResponse,
)
from civicwatch.services.media import MediaFile, MediaUploadService
from civicwatch.services.reports import ReportService

logger = logging.getLogger(__name__)
settings = get_settings()
router = APIRouter(prefix="/reports", tags=["reports"])


def get_media_service() -> MediaUploadService:
    """Dependency to get the media upload service."""
    return MediaUploadService()


async def _read_upload(upload: UploadFile) -> MediaFile:
    return MediaFile(data=await upload.read(), filename=upload.filename)


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReportResponse:
    """File a new report for an existing user."""
    report = await ReportService(db).create(payload)
    return ReportResponse(
        message="Report created successfully",
        report=ReportOut.model_validate(report),
    )


@router.get("/nearby", response_model=NearbyReportsResponse)
async def nearby_reports(
    db: Annotated[AsyncSession, Depends(get_db)],
    latitude: float | None = Query(None, ge=-90, le=90),
    longitude: float | None = Query(None, ge=-180, le=180),
    radius: float | None = Query(None, description="Search radius in km"),
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
) -> NearbyReportsResponse:
    """
    Find reports within ``radius`` km of a point, closest first.

    Each report carries its distance in km and the reporter's name.
    """
    if radius is None:
        radius = settings.nearby_default_radius_km
    limit, offset = ReportService.clamp_page(limit, offset, settings.nearby_default_limit)

    reports = await ReportService(db).nearby(latitude, longitude, radius, limit, offset)

    return NearbyReportsResponse(
        reports=reports,
        pagination=Pagination(limit=limit, offset=offset, radius=radius),
    )


@router.post("/media", response_model=MediaUploadResponse)
async def upload_report_media(
    media: Annotated[MediaUploadService, Depends(get_media_service)],
    user_id: Annotated[str | None, Form(alias="userId")] = None,
    media_files: Annotated[list[UploadFile] | None, File(alias="mediaFiles")] = None,
    audio_file: Annotated[UploadFile | None, File(alias="audioFile")] = None,
) -> MediaUploadResponse:
    """
    Upload a report's photos/videos and optional voice note.

    Files that fail to upload are skipped; ``attempted`` and ``succeeded``
    tell the client whether everything made it.
    """
    if not user_id:
        raise ValidationError("User ID is required")

    files = [await _read_upload(upload) for upload in media_files or []]
    audio = await _read_upload(audio_file) if audio_file is not None else None

    logger.info(
        f"Uploading report media for user {user_id}: "
        f"{len(files)} media files, {'1' if audio else 'no'} audio file"
    )
    result = await media.upload_report_media(files, audio)

    if result.succeeded == result.attempted:
        message = "Media files uploaded successfully"
    else:
        message = f"Uploaded {result.succeeded} of {result.attempted} files"

    return MediaUploadResponse(
        message=message,
        media_urls=result.media_urls,
        audio_url=result.audio_url,
        attempted=result.attempted,
        succeeded=result.succeeded,
        failures=result.failures,
    )


@router.post("/media/single", response_model=SingleMediaUploadResponse)
async def upload_single_media(
    media: Annotated[MediaUploadService, Depends(get_media_service)],
    user_id: Annotated[str | None, Form(alias="userId")] = None,
    file: Annotated[UploadFile | None, File()] = None,
) -> SingleMediaUploadResponse:
    """Upload one media file and return its URL."""
    if not user_id:
        raise ValidationError("User ID is required")
    if file is None:
        raise ValidationError("No file uploaded")

    url = await media.upload_single(await _read_upload(file))
    return SingleMediaUploadResponse(
        message="Media file uploaded successfully",
        media_url=url,
    )


@router.get("/user/{user_id}", response_model=ReportsResponse)
async def list_user_reports(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    is_resolved: bool | None = Query(None, alias="isResolved"),
    category: str | None = Query(None),
    priority: ReportPriority | None = Query(None),
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
) -> ReportsResponse:
    """List a user's reports, newest first, with optional filters."""
    limit, offset = ReportService.clamp_page(limit, offset, settings.default_page_size)
    filters = ReportFilters(is_resolved=is_resolved, category=category, priority=priority)

    reports, total = await ReportService(db).list_by_user(user_id, filters, limit, offset)

    return ReportsResponse(
        reports=[ReportOut.model_validate(report) for report in reports],
        pagination=Pagination(limit=limit, offset=offset, total=total),
    )


@router.get("/user/{user_id}/stats", response_model=ReportStatsResponse)
async def user_report_stats(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReportStatsResponse:
    """Summary counts over a user's reports."""
    stats = await ReportService(db).stats_for_user(user_id)
    return ReportStatsResponse(stats=stats)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: str | None = Query(None, alias="userId"),
) -> ReportResponse:
    """Get a report. With ``userId`` only that user's report is returned."""
    report = await ReportService(db).get_by_id(report_id, user_id)
    return ReportResponse(report=ReportOut.model_validate(report))


@router.patch("/{report_id}", response_model=ReportResponse)
async def update_report(
    report_id: int,
    payload: ReportUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ReportResponse:
    """Partially update an unresolved report."""
    report = await ReportService(db).update(report_id, payload.changes(), payload.user_id)
    return ReportResponse(
        message="Report updated successfully",
        report=ReportOut.model_validate(report),
    )


@router.post("/{report_id}/resolve", response_model=ReportResponse)
async def resolve_report(
    report_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    payload: ResolveRequest | None = None,
) -> ReportResponse:
    """Mark a report as resolved."""
    user_id = payload.user_id if payload else None
    report = await ReportService(db).resolve(report_id, user_id)
    return ReportResponse(
        message="Report marked as resolved",
        report=ReportOut.model_validate(report),
    )


@router.delete("/{report_id}", response_model=DeleteReportResponse)
async def delete_report(
    report_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    user_id: str | None = Query(None, alias="userId"),
) -> DeleteReportResponse:
    """Delete a report and reconcile its owner's counters."""
    deleted_id = await ReportService(db).delete(report_id, user_id)
    return DeleteReportResponse(
        message="Report deleted successfully",
        deleted_report_id=deleted_id,
    )
