"""Initial schema for CivicWatch.

Revision ID: 7f3a9c2d1e04
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "7f3a9c2d1e04"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("total_reports", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("resolved_reports", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("email"),
        if_not_exists=True,
    )

    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.String(length=64),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), server_default="", nullable=False),
        sa.Column("category", sa.String(length=100), server_default="other", nullable=False),
        sa.Column("priority", sa.String(length=20), server_default="medium", nullable=False),
        sa.Column("department", sa.String(length=100), server_default="General", nullable=False),
        sa.Column(
            "media_urls",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("audio_url", sa.String(length=1024), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("address", sa.Text(), server_default="", nullable=False),
        sa.Column("is_resolved", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_taken_to_resolve", sa.Float(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'critical')",
            name="ck_reports_priority",
        ),
        sa.CheckConstraint(
            "is_resolved = (resolved_at IS NOT NULL)",
            name="ck_reports_resolved_at",
        ),
        if_not_exists=True,
    )

    # Indexes - reports
    op.create_index(
        "idx_reports_user_created",
        "reports",
        ["user_id", sa.text("created_at DESC")],
        if_not_exists=True,
    )
    op.create_index(
        "idx_reports_coordinates",
        "reports",
        ["latitude", "longitude"],
        if_not_exists=True,
    )


def downgrade() -> None:
    op.drop_index("idx_reports_coordinates", table_name="reports", if_exists=True)
    op.drop_index("idx_reports_user_created", table_name="reports", if_exists=True)

    op.drop_table("reports", if_exists=True)
    op.drop_table("users", if_exists=True)
