import argparse
import asyncio
import logging
from datetime import UTC, datetime

from pydantic import BaseModel

from transit_screen.app import mcp
from transit_screen.data.config import get_transit_config
from transit_screen.errors import TransitAPIError
from transit_screen.services.alerts_service import format_alert_text, get_active_alerts
from transit_screen.services.nearby_service import NearbyService

# Register tools on the shared MCP instance
from transit_screen.tools import alerts_tools, nearby_tools  # noqa: F401

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


@mcp.tool()
def health() -> HealthResponse:
    """Check if the transit screen MCP server is running and healthy.

    Returns the server status, version, and current timestamp.
    """
    from transit_screen import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


async def run_nearby(latitude: float | None, longitude: float | None, max_distance: int | None) -> int:
    """Fetch display routes once and print them."""
    async with NearbyService(get_transit_config()) as service:
        try:
            routes = await service.get_nearby_routes(latitude, longitude, max_distance)
        except TransitAPIError as e:
            logger.error(f"Failed to fetch nearby routes ({e.kind}): {e}")
            return 1

    print(f"\n{len(routes)} routes nearby:")
    for route in routes:
        name = route.route_short_name or route.route_long_name or route.global_route_id
        for itinerary in route.itineraries:
            times = ", ".join(
                datetime.fromtimestamp(item.departure_time).strftime("%H:%M")
                + ("*" if item.is_real_time else "")
                for item in itinerary.schedule_items
            )
            print(f"  {name:>8}  {itinerary.display_headsign or '?'}: {times}")

    alerts = get_active_alerts(routes)
    if alerts:
        print("\nAlerts:")
        for alert in alerts:
            print(f"  {'!' if alert.is_escalated else '-'} {format_alert_text(alert)}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="transit-screen",
        description="Transit Screen MCP Server",
    )
    subparsers = parser.add_subparsers(dest="command")

    # nearby command
    nearby_parser = subparsers.add_parser(
        "nearby",
        help="Print upcoming departures near a location",
    )
    nearby_parser.add_argument(
        "--lat",
        type=float,
        default=None,
        help="Latitude (default: TRANSIT_LATITUDE env var)",
    )
    nearby_parser.add_argument(
        "--lon",
        type=float,
        default=None,
        help="Longitude (default: TRANSIT_LONGITUDE env var)",
    )
    nearby_parser.add_argument(
        "--max-distance",
        type=int,
        default=None,
        help="Search radius in meters (default: TRANSIT_MAX_DISTANCE env var or 500)",
    )
    nearby_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.command == "nearby":
        # Configure logging
        log_level = logging.DEBUG if args.verbose else logging.INFO
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

        raise SystemExit(asyncio.run(run_nearby(args.lat, args.lon, args.max_distance)))
    else:
        # Default: run MCP server
        mcp.run()


if __name__ == "__main__":
    main()
