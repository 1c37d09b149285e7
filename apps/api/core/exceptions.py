"""
Custom exception classes and error handling.

Two families live here:
- APIException and friends: HTTP-facing errors with a consistent structure.
- TimeShiftError and friends: failures that abort processing of a single
  webhook event. The webhook router is the only place that turns these
  into an HTTP status.
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class APIException(HTTPException):
    """Base API exception with consistent structure."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Validation error."""

    def __init__(self, detail: str, field: Optional[str] = None):
        error_code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )


class ForbiddenError(APIException):
    """Access denied."""

    def __init__(self, detail: str = "Access denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class TimeShiftError(RuntimeError):
    """Fatal for the current webhook event. No retry, nothing further uploaded."""


class StravaAPIError(TimeShiftError):
    """Strava answered with an error status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StravaNotFoundError(StravaAPIError):
    """
    Strava reports the object missing (404).

    For activity fetches this is benign: the activity was deleted or the
    webhook is stale.
    """

    def __init__(self, message: str):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class TokenExchangeError(StravaAPIError):
    """The OAuth token endpoint rejected a code or refresh token."""


class UploadError(StravaAPIError):
    """Submitting the synthesized track to Strava failed."""


class MissingRequiredStreamError(TimeShiftError):
    """A mandatory telemetry channel (time or latlng) is absent."""

    def __init__(self, channel: str):
        super().__init__(f"no {channel} stream")
        self.channel = channel


class StreamAlignmentError(TimeShiftError):
    """An optional telemetry channel does not share the time channel's length."""

    def __init__(self, channel: str, length: int, expected: int):
        super().__init__(f"channel_length_mismatch:{channel}={length},time={expected}")
        self.channel = channel
        self.length = length
        self.expected = expected
