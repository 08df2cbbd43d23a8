"""
Custom exception classes for calendar sync service.

Each exception carries the HTTP status code it is reported with, so
routers can let them propagate to the application exception handler.
"""

from typing import Any, Dict, Optional


class CalendarServiceException(Exception):
    """
    Base exception for all calendar sync service errors.

    Attributes:
        message: Human-readable error message returned to the caller
        status_code: HTTP status code for the error response
        details: Optional upstream or storage error details
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Any = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Build the JSON error body."""
        body: Dict[str, Any] = {"success": False, "error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ConfigurationError(CalendarServiceException):
    """Raised when required server credentials are not configured."""

    def __init__(self, component: str) -> None:
        self.component = component
        super().__init__(
            f"Server configuration error: Missing {component} credentials",
            status_code=500,
        )


class AuthenticationError(CalendarServiceException):
    """Raised when the caller cannot be authenticated."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401)


class InvalidRequestError(CalendarServiceException):
    """Raised for malformed requests or unknown actions."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class ProfileLookupError(CalendarServiceException):
    """Raised when the user's profile cannot be read."""

    def __init__(self, details: Any = None) -> None:
        super().__init__("Failed to fetch user profile", details=details, status_code=400)


class ReauthenticationRequiredError(CalendarServiceException):
    """Raised when stored Google credentials are missing or unusable."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, details=details, status_code=400)


class TokenRefreshError(ReauthenticationRequiredError):
    """Raised when the Google token endpoint does not yield a new access token."""

    def __init__(self, details: Any = None) -> None:
        super().__init__(
            "Failed to refresh Google access token. "
            "Please reconnect your Google Calendar.",
            details=details,
        )


class CalendarApiError(CalendarServiceException):
    """
    Raised when the Google Calendar API request fails.

    HTTP error responses keep the upstream status; transport failures
    are reported as 500 without an api_status.
    """

    def __init__(
        self,
        details: Any = None,
        api_status: Optional[int] = None,
    ) -> None:
        self.api_status = api_status
        super().__init__(
            "Failed to fetch calendar events",
            details=details,
            status_code=api_status or 500,
        )

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.api_status is not None:
            body["apiStatus"] = self.api_status
        return body


class RepositoryError(CalendarServiceException):
    """Raised when a managed database call fails."""

    def __init__(self, operation: str, reason: Optional[str] = None) -> None:
        self.operation = operation
        self.reason = reason
        message = f"Database operation '{operation}' failed"
        super().__init__(message, details=reason, status_code=500)
