"""Database models."""

from civicwatch.models.report import Report, ReportPriority
from civicwatch.models.user import User

__all__ = [
    "Report",
    "ReportPriority",
    "User",
]
