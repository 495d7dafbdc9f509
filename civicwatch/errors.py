"""Errors raised by report operations, each mapped to an HTTP status."""


class ReportServiceError(Exception):
    """Base exception for report service errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ReportServiceError):
    """Missing or malformed required input."""

    status_code = 400


class NotFoundError(ReportServiceError):
    """Referenced entity does not exist or is not visible to the caller."""

    status_code = 404


class ConflictError(ReportServiceError):
    """Operation not allowed in the report's current state."""

    status_code = 400


class ForbiddenError(ReportServiceError):
    """Caller does not own the report."""

    status_code = 403


class InternalError(ReportServiceError):
    """Backing store or storage provider failure."""

    status_code = 500
