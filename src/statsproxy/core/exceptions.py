"""Exception hierarchy for StatsProxy.

Two families live here:

- ``StatsProxyError`` and its subclasses are API-facing. They carry the HTTP
  status and the public message rendered to callers as ``{"error": message}``.
- ``AnalyticsError`` and its subclasses describe what went wrong talking to
  the upstream analytics service. They are raised by the services layer and
  logged, but never rendered to callers directly.

Usage:
    from statsproxy.core.exceptions import InvalidWebsiteError

    raise InvalidWebsiteError(website="unknown")
"""

from typing import Any


class StatsProxyError(Exception):
    """Base exception for all API-facing errors.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_WEBSITE")
        message: Human-readable error message returned to the caller
        status_code: HTTP status code to return
        details: Additional context for logs (never rendered)
    """

    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Override default message
            code: Override default error code
            details: Additional error details
        """
        if message:
            self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the API error body."""
        return {"error": self.message}


class InvalidWebsiteError(StatsProxyError):
    """Raised when the requested website alias is not in the alias table."""

    code: str = "INVALID_WEBSITE"
    message: str = "Invalid website parameter"
    status_code: int = 400

    def __init__(self, website: str | None = None) -> None:
        details: dict[str, Any] = {}
        if website is not None:
            details["website"] = website
        super().__init__(details=details)


class AnalyticsUnavailableError(StatsProxyError):
    """Raised when visitor data could not be fetched for any reason."""

    code: str = "ANALYTICS_UNAVAILABLE"
    message: str = "Failed to fetch analytics data"
    status_code: int = 500


# =============================================================================
# Upstream analytics errors
# =============================================================================


class AnalyticsError(Exception):
    """Base exception for upstream analytics failures."""

    pass


class AuthenticationFailedError(AnalyticsError):
    """Login was rejected, errored, or returned no token."""

    pass


class TokenUnavailableError(AnalyticsError):
    """No bearer token could be obtained for a stats request."""

    def __init__(self, message: str = "No valid analytics token available") -> None:
        super().__init__(message)


class UpstreamStatusError(AnalyticsError):
    """Stats endpoint answered with an unexpected status or body."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"Upstream request failed: {status_code}")


class UpstreamTransportError(AnalyticsError):
    """Network-level failure talking to the analytics service."""

    pass
