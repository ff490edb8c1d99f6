"""Error kinds surfaced by the upstream client and the nearby service."""


class TransitAPIError(Exception):
    """Base class for all errors raised while fetching nearby routes."""

    kind = "upstream"


class RequestValidationError(TransitAPIError):
    """Request parameters were rejected before any network call."""

    kind = "invalid_request"


class RateLimitError(TransitAPIError):
    """Upstream API responded with HTTP 429."""

    kind = "rate_limited"

    def __init__(self, message: str = "Rate limit exceeded", retry_after_seconds: int = 60):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class AuthenticationError(TransitAPIError):
    """Upstream API rejected the configured API key."""

    kind = "authentication"


class UpstreamTimeoutError(TransitAPIError, TimeoutError):
    """Upstream API did not respond within the request timeout."""

    kind = "timeout"


class BackendUnavailableError(TransitAPIError):
    """Upstream API could not be reached or reported itself unavailable."""

    kind = "unavailable"


class UpstreamError(TransitAPIError):
    """Any other upstream failure."""

    kind = "upstream"

    def __init__(self, message: str = "Transit API error", status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
