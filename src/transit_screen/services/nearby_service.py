"""Nearby routes service: cached upstream fetch plus the display pipeline.

The upstream response is cached normalized but unfiltered. Everything that
depends on configuration or on the current time runs on every read:

    de-duplicate routes -> distance filter -> merge/split itineraries
    -> departure window -> redundant-terminus filter

The module-level helpers at the bottom back the MCP tools. They catch the
service's errors and return api_available=False responses instead.
"""

import logging
import math
import time
from collections.abc import Callable

from transit_screen.data.cache import ResponseCache, classify_freshness, make_cache_key
from transit_screen.data.config import ItineraryStrategy, TransitConfig, get_transit_config
from transit_screen.data.transit_client import NEARBY_ROUTES_ENDPOINT, TransitClient
from transit_screen.errors import RateLimitError, RequestValidationError, TransitAPIError, UpstreamError
from transit_screen.matching.terminus_matcher import is_terminus_itinerary
from transit_screen.models.nearby import NearbyRoutesResponse, Route
from transit_screen.models.responses import (
    AlertData,
    ErrorInfo,
    ErrorKind,
    GetNearbyRoutesResponse,
    GetServiceAlertsResponse,
)
from transit_screen.services.alerts_service import get_active_alerts, to_alert_summary
from transit_screen.services.departure_filters import filter_departure_window
from transit_screen.services.distance_filter import filter_routes_by_distance
from transit_screen.services.itinerary_service import apply_itinerary_strategy

logger = logging.getLogger(__name__)


def validate_request(latitude: float | None, longitude: float | None, max_distance: int | None) -> None:
    """Reject unusable coordinates or distance before any network call.

    Raises:
        RequestValidationError: If a parameter is missing or out of range.
    """
    if latitude is None or longitude is None:
        raise RequestValidationError("Missing required parameters: latitude and longitude")
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise RequestValidationError("Invalid parameters: latitude and longitude must be numbers")
    if not -90 <= latitude <= 90:
        raise RequestValidationError(f"Invalid latitude {latitude}: must be between -90 and 90")
    if not -180 <= longitude <= 180:
        raise RequestValidationError(f"Invalid longitude {longitude}: must be between -180 and 180")
    if max_distance is None or max_distance <= 0:
        raise RequestValidationError(f"Invalid max_distance {max_distance}: must be positive")


def dedupe_routes(routes: list[Route]) -> list[Route]:
    """Drop repeated routes, keeping the first occurrence of each global_route_id."""
    seen: set[str] = set()
    result: list[Route] = []
    for route in routes:
        if route.global_route_id in seen:
            logger.debug(f"Dropping duplicate route {route.global_route_id}")
            continue
        seen.add(route.global_route_id)
        result.append(route)
    return result


def filter_terminus_itineraries(routes: list[Route]) -> list[Route]:
    """Drop itineraries whose headsign names their own stop, then routes left empty."""
    result: list[Route] = []
    for route in routes:
        itineraries = [i for i in route.itineraries if not is_terminus_itinerary(i)]
        if itineraries:
            result.append(route.model_copy(update={"itineraries": itineraries}))
    return result


def build_display_routes(
    routes: list[Route],
    config: TransitConfig,
    latitude: float,
    longitude: float,
    max_distance: int,
    now: float | None = None,
) -> list[Route]:
    """Run the display pipeline over normalized routes.

    Args:
        routes: Normalized, unfiltered routes (as cached).
        config: Pipeline configuration (strategy, window, terminus filter).
        latitude, longitude: Screen location.
        max_distance: Maximum stop distance in meters.
        now: Current Unix time in seconds (default: time.time()).

    Returns:
        New Route objects; the input list and its routes are not modified.
    """
    result = dedupe_routes(routes)
    result = filter_routes_by_distance(result, latitude, longitude, max_distance)

    strategy = config.itinerary_strategy
    if strategy != ItineraryStrategy.NONE:
        result = [apply_itinerary_strategy(route, strategy) for route in result]

    result = filter_departure_window(result, config.departure_window_minutes, now)

    if config.filter_redundant_terminus:
        result = filter_terminus_itineraries(result)

    return result


class NearbyService:
    """Owns the response cache and fetches display-ready nearby routes.

    Usage:
        service = NearbyService(config)
        service.start()
        routes = await service.get_nearby_routes(45.5017, -73.5673)
        await service.stop()
    """

    def __init__(
        self,
        config: TransitConfig,
        cache: ResponseCache[NearbyRoutesResponse] | None = None,
        client_factory: Callable[[TransitConfig], TransitClient] = TransitClient,
    ):
        self._config = config
        if cache is None:
            cache = ResponseCache[NearbyRoutesResponse](
                realtime_ttl=config.realtime_ttl_ms / 1000,
                schedule_ttl=config.schedule_ttl_ms / 1000,
                max_entries=config.max_cache_entries,
                sweep_interval=config.cache_sweep_interval_seconds,
            )
        self._cache = cache
        self._client_factory = client_factory

    @property
    def config(self) -> TransitConfig:
        return self._config

    @property
    def cache(self) -> ResponseCache[NearbyRoutesResponse]:
        return self._cache

    def start(self) -> None:
        """Start the cache's background sweep. Must be called from a running event loop."""
        self._cache.start()

    async def stop(self) -> None:
        """Stop the background sweep and drop every cached response."""
        await self._cache.stop()

    async def __aenter__(self) -> "NearbyService":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    def _resolve(
        self, latitude: float | None, longitude: float | None, max_distance: int | None
    ) -> tuple[float, float, int]:
        if latitude is None:
            latitude = self._config.latitude
        if longitude is None:
            longitude = self._config.longitude
        if max_distance is None:
            max_distance = self._config.max_distance_meters
        validate_request(latitude, longitude, max_distance)
        return latitude, longitude, max_distance

    async def fetch_routes(
        self,
        latitude: float | None = None,
        longitude: float | None = None,
        max_distance: int | None = None,
    ) -> NearbyRoutesResponse:
        """Fetch the normalized, unfiltered response through the cache.

        Missing arguments fall back to the configured screen location.

        Raises:
            RequestValidationError: If the parameters are unusable.
            TransitAPIError: Any upstream failure (see TransitClient).
        """
        latitude, longitude, max_distance = self._resolve(latitude, longitude, max_distance)
        key = make_cache_key(
            NEARBY_ROUTES_ENDPOINT,
            {"lat": latitude, "lon": longitude, "max_distance": max_distance},
        )

        async def produce() -> NearbyRoutesResponse:
            async with self._client_factory(self._config) as client:
                response = await client.fetch_nearby_routes(latitude, longitude, max_distance)
            logger.debug(f"Fetched {len(response.routes)} routes for {key}")
            return response

        return await self._cache.fetch(key, produce)

    async def get_nearby_routes(
        self,
        latitude: float | None = None,
        longitude: float | None = None,
        max_distance: int | None = None,
        now: float | None = None,
    ) -> list[Route]:
        """Get display-ready routes near a location.

        Returns:
            Routes with itineraries reshaped and filtered per configuration.
        """
        latitude, longitude, max_distance = self._resolve(latitude, longitude, max_distance)
        response = await self.fetch_routes(latitude, longitude, max_distance)
        return build_display_routes(
            response.routes,
            self._config,
            latitude,
            longitude,
            max_distance,
            now if now is not None else time.time(),
        )

    async def get_alerts(
        self,
        latitude: float | None = None,
        longitude: float | None = None,
        max_distance: int | None = None,
        now: float | None = None,
    ) -> list[AlertData]:
        """Get ranked alerts relevant to the routes on screen."""
        routes = await self.get_nearby_routes(latitude, longitude, max_distance, now)
        return get_active_alerts(routes)


def error_info(error: TransitAPIError) -> ErrorInfo:
    """Describe a service error for the screen."""
    return ErrorInfo(
        kind=ErrorKind(error.kind),
        message=str(error),
        retry_after_seconds=error.retry_after_seconds if isinstance(error, RateLimitError) else None,
        status_code=error.status_code if isinstance(error, UpstreamError) else None,
    )


# Module-level service (lazy-initialized)
_service: NearbyService | None = None
_config: TransitConfig | None = None


def _get_config() -> TransitConfig:
    """Get or create the config singleton."""
    global _config
    if _config is None:
        _config = get_transit_config()
    return _config


def _get_service() -> NearbyService:
    """Get or create the service singleton, starting its cache sweep."""
    global _service
    if _service is None:
        _service = NearbyService(_get_config())
        _service.start()
    return _service


async def get_nearby_routes(
    latitude: float | None = None,
    longitude: float | None = None,
    max_distance: int | None = None,
) -> GetNearbyRoutesResponse:
    """Get display-ready nearby routes, reporting failures in the response.

    Returns:
        GetNearbyRoutesResponse; api_available is False with an error block on failure.
    """
    service = _get_service()
    try:
        routes = await service.get_nearby_routes(latitude, longitude, max_distance)
    except TransitAPIError as e:
        logger.warning(f"Failed to fetch nearby routes: {e}")
        return GetNearbyRoutesResponse(routes=[], count=0, api_available=False, error=error_info(e))

    return GetNearbyRoutesResponse(
        routes=routes, count=len(routes), freshness=classify_freshness(routes)
    )


async def get_service_alerts(
    latitude: float | None = None,
    longitude: float | None = None,
    max_distance: int | None = None,
    limit: int = 50,
) -> GetServiceAlertsResponse:
    """Get ranked alerts for the routes on screen, reporting failures in the response."""
    service = _get_service()
    try:
        alerts = await service.get_alerts(latitude, longitude, max_distance)
    except TransitAPIError as e:
        logger.warning(f"Failed to fetch service alerts: {e}")
        return GetServiceAlertsResponse(alerts=[], count=0, api_available=False, error=error_info(e))

    summaries = [to_alert_summary(alert) for alert in alerts[:limit]]
    return GetServiceAlertsResponse(
        alerts=summaries,
        count=len(summaries),
        escalated_count=sum(1 for s in summaries if s.is_escalated),
    )


def reset_service() -> None:
    """Reset the service state completely.

    Clears the cache and resets config. Useful for testing.
    """
    global _service, _config
    if _service is not None:
        _service.cache.cleanup()
    _service = None
    _config = None
    # Clear the lru_cache on get_transit_config so it re-reads .env/environment
    if hasattr(get_transit_config, "cache_clear"):
        get_transit_config.cache_clear()
