"""User model with the report counters kept in step with the reports table."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from civicwatch.database import Base


class User(Base):
    """
    A citizen account that files reports.

    Accounts are managed elsewhere; this service only checks existence and
    maintains ``total_reports`` / ``resolved_reports``.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255), unique=True)

    # Counters
    total_reports: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    resolved_reports: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    # Metadata
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.total_reports} reports>"
