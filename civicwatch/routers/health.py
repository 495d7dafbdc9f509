"""Health and readiness endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from civicwatch.database import get_db
from civicwatch.models import Report, User

router = APIRouter(tags=["health"])


class ReportCounts(BaseModel):
    """Row counts for the reports table."""

    total: int
    resolved: int
    pending: int
    newest_report: datetime | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    users: int
    reports: ReportCounts


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> HealthResponse:
    """
    Health check endpoint with database status.

    Touches both tables so a broken connection or missing schema fails here.
    """
    user_count_result = await db.execute(select(func.count(User.id)))
    user_count = user_count_result.scalar() or 0

    report_count_result = await db.execute(select(func.count(Report.id)))
    report_count = report_count_result.scalar() or 0

    resolved_count_result = await db.execute(
        select(func.count(Report.id)).where(Report.is_resolved.is_(True))
    )
    resolved_count = resolved_count_result.scalar() or 0

    newest_result = await db.execute(select(func.max(Report.created_at)))
    newest = newest_result.scalar()

    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        users=user_count,
        reports=ReportCounts(
            total=report_count,
            resolved=resolved_count,
            pending=report_count - resolved_count,
            newest_report=newest,
        ),
    )


@router.get("/ready")
async def readiness_check() -> dict:
    """Simple readiness probe for container orchestration."""
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> dict:
    """Simple liveness probe for container orchestration."""
    return {"status": "alive"}
