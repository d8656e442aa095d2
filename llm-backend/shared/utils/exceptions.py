"""Custom exception hierarchy for better error handling."""
from typing import Optional

from fastapi import HTTPException, status


class BoringCourseException(Exception):
    """Base exception for all application errors."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(self)
        )


class UpstreamUnavailableError(BoringCourseException):
    """Raised when the grading system or the generative model cannot be reached."""

    def __init__(self, upstream: str, message: str):
        self.upstream = upstream
        self.message = message
        super().__init__(f"{upstream} unavailable: {message}")

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(self)
        )


class CanvasAPIError(UpstreamUnavailableError):
    """Raised when Canvas answers with a non-2xx status or is unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        if status_code is not None:
            message = f"Canvas API error {status_code}: {message}"
        super().__init__("Canvas", message)


class ValidationFailureError(BoringCourseException):
    """Raised when caller-supplied input fails validation before any upstream call."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid {field}: {message}")

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"field": self.field, "message": str(self)}
        )

