"""Report lifecycle: filing, querying, editing, resolving and deleting reports."""

import logging
import math
from datetime import UTC, datetime, timedelta

from pydantic.alias_generators import to_camel
from sqlalchemy import Float, case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from civicwatch.config import get_settings
from civicwatch.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from civicwatch.models import Report, ReportPriority, User
from civicwatch.schemas.report import (
    NearbyReportOut,
    ReportCreate,
    ReportFilters,
    ReportOut,
    ReportStats,
    ensure_utc,
)
from civicwatch.services.geo import bounding_box, haversine_km

logger = logging.getLogger(__name__)
settings = get_settings()

UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "category",
        "priority",
        "media_urls",
        "audio_url",
        "latitude",
        "longitude",
        "address",
        "department",
    }
)
NULLABLE_FIELDS = frozenset({"audio_url", "latitude", "longitude"})


class ReportService:
    """
    Service for the reports table and the report counters on users.

    One instance wraps one request's session, so every write an operation
    makes (the report row and the owner's counters) lands in the same
    transaction. Nothing is cached between calls; each operation re-reads
    the row it acts on.
    """

    def __init__(
        self,
        db: AsyncSession,
        disclose_forbidden_deletes: bool | None = None,
        nearby_max_candidates: int | None = None,
    ):
        self.db = db
        if disclose_forbidden_deletes is None:
            disclose_forbidden_deletes = settings.disclose_forbidden_deletes
        self.disclose_forbidden_deletes = disclose_forbidden_deletes
        self.nearby_max_candidates = nearby_max_candidates or settings.nearby_max_candidates

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def clamp_page(limit: int | None, offset: int | None, default: int) -> tuple[int, int]:
        """Keep limit within [1, max_page_size] and offset non-negative."""
        if limit is None:
            limit = default
        limit = max(1, min(int(limit), settings.max_page_size))
        offset = max(0, int(offset or 0))
        return limit, offset

    async def _get(self, report_id: int, user_id: str | None = None) -> Report | None:
        """Fetch a report, optionally scoped to its owner."""
        query = select(Report).where(Report.id == report_id)
        if user_id:
            query = query.where(Report.user_id == user_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _user_exists(self, user_id: str) -> bool:
        result = await self.db.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    async def _adjust_counters(self, user_id: str, total: int = 0, resolved: int = 0) -> None:
        """
        Shift a user's report counters relative to their stored values.

        Decrements never take a counter below zero.
        """
        values: dict = {"updated_at": func.now()}
        if total:
            values["total_reports"] = self._shifted(User.total_reports, total)
        if resolved:
            values["resolved_reports"] = self._shifted(User.resolved_reports, resolved)

        await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _shifted(column, delta: int):
        shifted = column + delta
        if delta > 0:
            return shifted
        return case((shifted < 0, 0), else_=shifted)

    async def _mark_resolved(self, report: Report) -> bool:
        """
        Flip a report to resolved unless someone else already has.

        Returns False when the row was resolved between our read and this
        write, so callers never double count a resolution.
        """
        resolved_at = datetime.now(UTC)
        elapsed = (resolved_at - ensure_utc(report.created_at)).total_seconds()

        result = await self.db.execute(
            update(Report)
            .where(Report.id == report.id, Report.is_resolved.is_(False))
            .values(
                is_resolved=True,
                resolved_at=resolved_at,
                time_taken_to_resolve=max(elapsed, 0.0),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(self, payload: ReportCreate) -> Report:
        """File a new report and bump the owner's ``total_reports``."""
        user_id = (payload.user_id or "").strip()
        title = (payload.title or "").strip()
        if not user_id or not title:
            raise ValidationError("User ID and title are required")

        if not await self._user_exists(user_id):
            raise NotFoundError("User not found")

        priority = payload.priority or ReportPriority.medium
        report = Report(
            user_id=user_id,
            title=title,
            description=payload.description or "",
            category=payload.category or "other",
            priority=priority.value,
            media_urls=list(payload.media_urls or []),
            audio_url=payload.audio_url or None,
            latitude=payload.latitude,
            longitude=payload.longitude,
            address=payload.address or "",
            department=payload.department or "General",
            is_resolved=False,
        )
        self.db.add(report)
        await self.db.flush()

        await self._adjust_counters(user_id, total=1)

        logger.info(f"Report {report.id} created for user {user_id}")
        return report

    async def list_by_user(
        self,
        user_id: str,
        filters: ReportFilters | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[Report], int]:
        """
        List a user's reports, newest first.

        Returns:
            Tuple of (page of reports, total number of matching reports)
        """
        if not user_id:
            raise ValidationError("User ID is required")

        filters = filters or ReportFilters()
        limit, offset = self.clamp_page(limit, offset, settings.default_page_size)

        conditions = [Report.user_id == user_id]
        if filters.is_resolved is not None:
            conditions.append(Report.is_resolved.is_(filters.is_resolved))
        if filters.category:
            conditions.append(Report.category == filters.category)
        if filters.priority:
            conditions.append(Report.priority == filters.priority.value)

        query = (
            select(Report)
            .where(*conditions)
            .order_by(Report.created_at.desc(), Report.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        reports = list(result.scalars().all())

        total = await self.db.scalar(select(func.count(Report.id)).where(*conditions))

        logger.info(f"Found {len(reports)} of {total} reports for user {user_id}")
        return reports, total or 0

    async def get_by_id(self, report_id: int | None, user_id: str | None = None) -> Report:
        """
        Fetch one report.

        With ``user_id`` set, a report owned by someone else is reported as
        missing rather than forbidden.
        """
        if report_id is None:
            raise ValidationError("Report ID is required")

        report = await self._get(report_id, user_id)
        if report is None:
            raise NotFoundError("Report not found")
        return report

    async def update(
        self, report_id: int | None, changes: dict, user_id: str | None = None
    ) -> Report:
        """Apply a partial update to an unresolved report."""
        if report_id is None:
            raise ValidationError("Report ID is required")
        if not changes:
            raise ValidationError("No fields to update")

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        for field, value in changes.items():
            if value is None and field not in NULLABLE_FIELDS:
                raise ValidationError(f"{to_camel(field)} cannot be null")
        if "title" in changes and not changes["title"].strip():
            raise ValidationError("Title cannot be empty")

        report = await self._get(report_id, user_id)
        if report is None:
            raise NotFoundError("Report not found or access denied")
        if report.is_resolved:
            raise ConflictError("Cannot update a resolved report")

        result = await self.db.execute(
            update(Report)
            .where(Report.id == report.id, Report.is_resolved.is_(False))
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError("Cannot update a resolved report")

        await self.db.refresh(report)
        logger.info(f"Report {report.id} updated: {', '.join(sorted(changes))}")
        return report

    async def resolve(self, report_id: int | None, user_id: str | None = None) -> Report:
        """Mark a report resolved and bump the owner's ``resolved_reports``."""
        if report_id is None:
            raise ValidationError("Report ID is required")

        report = await self._get(report_id, user_id)
        if report is None:
            raise NotFoundError("Report not found or access denied")
        if report.is_resolved:
            raise ConflictError("Report is already resolved")

        if not await self._mark_resolved(report):
            logger.warning(f"Report {report.id} was resolved concurrently")
            raise ConflictError("Report is already resolved")

        await self._adjust_counters(report.user_id, resolved=1)
        await self.db.refresh(report)

        logger.info(f"Report {report.id} resolved")
        return report

    async def delete(self, report_id: int | None, user_id: str | None = None) -> int:
        """Delete a report and reconcile its owner's counters."""
        if report_id is None:
            raise ValidationError("Report ID is required")

        report = await self._get(report_id)
        if report is None:
            raise NotFoundError("Report not found")

        if user_id and report.user_id != user_id:
            logger.warning(f"User {user_id} tried to delete report {report.id}")
            if self.disclose_forbidden_deletes:
                raise ForbiddenError("Access denied: You can only delete your own reports")
            raise NotFoundError("Report not found")

        owner_id = report.user_id
        was_resolved = report.is_resolved
        deleted_id = report.id

        result = await self.db.execute(
            delete(Report)
            .where(Report.id == deleted_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Report not found")
        self.db.expunge(report)

        await self._adjust_counters(owner_id, total=-1, resolved=-1 if was_resolved else 0)

        logger.info(f"Report {deleted_id} deleted")
        return deleted_id

    async def nearby(
        self,
        latitude: float | None,
        longitude: float | None,
        radius_km: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[NearbyReportOut]:
        """
        Find reports within ``radius_km`` of a point, closest first.

        A bounding box narrows candidates in SQL, keeping at most
        ``nearby_max_candidates`` rows by rough planar distance; exact
        great-circle distance is then computed per candidate.
        """
        if latitude is None or longitude is None:
            raise ValidationError("Latitude and longitude are required")

        if radius_km is None:
            radius_km = settings.nearby_default_radius_km
        if radius_km < 0:
            raise ValidationError("Radius must not be negative")
        limit, offset = self.clamp_page(limit, offset, settings.nearby_default_limit)

        min_lat, max_lat, min_lng, max_lng = bounding_box(latitude, longitude, radius_km)
        query = (
            select(Report, User.full_name)
            .join(User, User.id == Report.user_id)
            .where(
                Report.latitude.isnot(None),
                Report.longitude.isnot(None),
                Report.latitude.between(min_lat, max_lat),
            )
        )
        if min_lng is not None:
            query = query.where(Report.longitude.between(min_lng, max_lng))

        # Planar distance in degrees, longitude wrapped across the antimeridian.
        # Only used to keep the closest candidates when the box is crowded.
        lng_gap = func.abs(Report.longitude - longitude, type_=Float)
        lng_gap = case((lng_gap > 180, 360 - lng_gap), else_=lng_gap)
        lng_scale = math.cos(math.radians(latitude))
        lat_gap = Report.latitude - latitude
        rough_distance = lat_gap * lat_gap + lng_gap * lng_gap * (lng_scale * lng_scale)
        query = query.order_by(rough_distance).limit(
            max(self.nearby_max_candidates, offset + limit)
        )

        result = await self.db.execute(query)

        matches = []
        for report, user_name in result.all():
            distance = haversine_km(latitude, longitude, report.latitude, report.longitude)
            if distance <= radius_km:
                matches.append((distance, report, user_name))

        # Closest first; among equals, newest first
        matches.sort(key=lambda m: (m[0], -ensure_utc(m[1].created_at).timestamp()))
        page = matches[offset : offset + limit]

        logger.info(
            f"Found {len(matches)} reports within {radius_km}km of ({latitude}, {longitude})"
        )
        return [
            NearbyReportOut(
                **ReportOut.model_validate(report).model_dump(),
                user_name=user_name,
                distance=round(distance, 2),
            )
            for distance, report, user_name in page
        ]

    async def stats_for_user(self, user_id: str) -> ReportStats:
        """Aggregate counts over a user's reports. Unknown users get zeros."""
        if not user_id:
            raise ValidationError("User ID is required")

        cutoff = datetime.now(UTC) - timedelta(days=30)
        resolved = Report.is_resolved.is_(True)

        query = select(
            func.count(Report.id).label("total"),
            func.count(case((resolved, 1))).label("resolved"),
            func.count(case((Report.priority == ReportPriority.critical.value, 1))).label(
                "critical"
            ),
            func.count(case((Report.priority == ReportPriority.high.value, 1))).label("high"),
            func.count(case((Report.created_at >= cutoff, 1))).label("last_30_days"),
            func.avg(case((resolved, Report.time_taken_to_resolve))).label("avg_seconds"),
        ).where(Report.user_id == user_id)

        row = (await self.db.execute(query)).one()

        avg_hours = None
        if row.avg_seconds is not None:
            avg_hours = round(float(row.avg_seconds) / 3600, 2)

        return ReportStats(
            total_reports=row.total,
            resolved_reports=row.resolved,
            pending_reports=row.total - row.resolved,
            critical_reports=row.critical,
            high_priority_reports=row.high,
            reports_last_30_days=row.last_30_days,
            avg_resolution_time_hours=avg_hours,
        )
