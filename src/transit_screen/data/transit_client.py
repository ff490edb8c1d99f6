import logging
from typing import Any

import httpx
from pydantic import ValidationError

from transit_screen.data.config import TransitConfig
from transit_screen.data.normalizer import normalize_nearby_payload
from transit_screen.errors import (
    AuthenticationError,
    BackendUnavailableError,
    RateLimitError,
    UpstreamError,
    UpstreamTimeoutError,
)
from transit_screen.models.nearby import NearbyRoutesResponse

logger = logging.getLogger(__name__)

NEARBY_ROUTES_ENDPOINT = "nearby_routes"

DEFAULT_RETRY_AFTER_SECONDS = 60

# Gateway statuses meaning the API itself is down rather than rejecting the request
UNAVAILABLE_STATUSES = {502, 503}


def parse_retry_after(value: str | None) -> int:
    """Parse a Retry-After header in seconds, defaulting to 60 when absent or unparsable."""
    if value is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return max(0, int(value.strip()))
    except ValueError:
        return DEFAULT_RETRY_AFTER_SECONDS


class TransitClient:
    """Async HTTP client for the upstream nearby-routes endpoint.

    Usage:
        async with TransitClient(config) as client:
            response = await client.fetch_nearby_routes(45.5017, -73.5673, 500)
    """

    def __init__(self, config: TransitConfig):
        """Initialize the client.

        Args:
            config: Configuration with API key, base URL and request timeout.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "TransitClient":
        """Enter async context - create HTTP client."""
        headers = {"Accept": "application/json"}
        if self._config.api_key:
            headers["apiKey"] = self._config.api_key
        self._client = httpx.AsyncClient(headers=headers, timeout=self._config.request_timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_nearby_payload(
        self, latitude: float, longitude: float, max_distance: int
    ) -> dict[str, Any]:
        """Fetch the raw nearby-routes JSON payload.

        Raises:
            RuntimeError: If client not initialized.
            RateLimitError: On HTTP 429.
            AuthenticationError: On HTTP 401/403.
            UpstreamTimeoutError: If the request timed out.
            BackendUnavailableError: If the API could not be reached or returned 502/503.
            UpstreamError: On any other non-success response or an undecodable body.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        url = f"{self._config.api_base_url.rstrip('/')}/{NEARBY_ROUTES_ENDPOINT}"
        params = {"lat": latitude, "lon": longitude, "max_distance": max_distance}

        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"Transit API timed out after {self._config.request_timeout}s: {e}")
            raise UpstreamTimeoutError("Transit API did not respond in time") from e
        except httpx.TransportError as e:
            logger.warning(f"Transit API unreachable: {e}")
            raise BackendUnavailableError("Transit API unavailable") from e

        self._raise_for_status(response)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("Transit API returned invalid JSON", response.status_code) from e

    async def fetch_nearby_routes(
        self, latitude: float, longitude: float, max_distance: int
    ) -> NearbyRoutesResponse:
        """Fetch nearby routes and normalize them into the flat response model.

        Raises:
            UpstreamError: If the payload doesn't have the expected structure.
            See fetch_nearby_payload for transport errors.
        """
        payload = await self.fetch_nearby_payload(latitude, longitude, max_distance)
        try:
            return NearbyRoutesResponse.model_validate(normalize_nearby_payload(payload))
        except (TypeError, ValidationError) as e:
            logger.error(f"Malformed nearby_routes payload: {e}")
            raise UpstreamError("Transit API returned a malformed payload") from e

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Translate a non-success response into the matching error kind."""
        status = response.status_code
        if status < 400:
            return

        if status == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.error(f"Rate limited by Transit API (retry after {retry_after}s)")
            raise RateLimitError(retry_after_seconds=retry_after)

        if status in (401, 403):
            logger.error(f"Transit API rejected credentials (status {status})")
            raise AuthenticationError("Transit API authentication failed")

        if status in UNAVAILABLE_STATUSES:
            logger.warning(f"Transit API unavailable (status {status})")
            raise BackendUnavailableError("Transit API unavailable")

        if status == 504:
            logger.warning("Transit API gateway timed out")
            raise UpstreamTimeoutError("Transit API did not respond in time")

        logger.error(f"Error response from Transit API: status={status} body={response.text[:500]}")
        raise UpstreamError("Transit API error", status)
