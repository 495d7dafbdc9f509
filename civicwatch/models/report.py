"""Report model for citizen-submitted civic issues."""

import enum
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, String, Text, false, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from civicwatch.database import Base


class ReportPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class Report(Base):
    """
    A civic issue (pothole, broken light, ...) filed by a user.

    Lifecycle is Submitted -> Resolved. Once ``is_resolved`` is set the row is
    only ever deleted, never edited.
    """

    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Content
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", server_default="", nullable=False)
    category: Mapped[str] = mapped_column(
        String(100), default="other", server_default="other", nullable=False
    )
    priority: Mapped[str] = mapped_column(
        String(20),
        default=ReportPriority.medium.value,
        server_default=ReportPriority.medium.value,
        nullable=False,
    )
    department: Mapped[str] = mapped_column(
        String(100), default="General", server_default="General", nullable=False
    )

    # Media (URLs of files already in object storage)
    media_urls: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), default=list, nullable=False
    )
    audio_url: Mapped[str | None] = mapped_column(String(1024))

    # Location
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    address: Mapped[str] = mapped_column(Text, default="", server_default="", nullable=False)

    # Resolution
    is_resolved: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    time_taken_to_resolve: Mapped[float | None] = mapped_column(Float)  # seconds

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        # Per-user listing, newest first
        Index("idx_reports_user_created", user_id, created_at.desc()),
        # Bounding box prefilter for nearby search
        Index("idx_reports_coordinates", latitude, longitude),
    )

    def __repr__(self) -> str:
        return f"<Report {self.id}: {self.title}>"
