"""Build the ranked alert feed for the routes on screen.

Only alerts relevant to a displayed route (see matching.alert_matcher) are
kept. Severe and warning alerts are listed first; order is otherwise preserved.
"""

from transit_screen.matching.alert_matcher import collect_stop_ids, is_alert_relevant
from transit_screen.models.nearby import Route
from transit_screen.models.responses import AlertData, AlertSummary

DEFAULT_ROUTE_NAME = "Route"
DEFAULT_ALERT_TEXT = "Service alert"


def rank_alerts(alerts: list[AlertData]) -> list[AlertData]:
    """Stable partition: escalated alerts first, each tier in original order."""
    return [a for a in alerts if a.is_escalated] + [a for a in alerts if not a.is_escalated]


def get_active_alerts(routes: list[Route]) -> list[AlertData]:
    """Collect alerts relevant to the given routes, ranked by severity.

    Args:
        routes: Routes on screen, each carrying its own alerts.

    Returns:
        AlertData entries for every relevant (route, alert) pair.
    """
    if not routes:
        return []

    stop_ids = collect_stop_ids(routes)

    alerts: list[AlertData] = []
    for route in routes:
        for alert in route.alerts:
            if is_alert_relevant(alert, route, stop_ids):
                alerts.append(AlertData(route=route, alert=alert, is_escalated=alert.is_escalated))

    return rank_alerts(alerts)


def has_alerts(route: Route | None) -> bool:
    return route is not None and len(route.alerts) > 0


def get_alert_level(route: Route | None) -> str:
    """Icon level for a route: "alert" if any of its alerts is escalated, else "info"."""
    if has_alerts(route) and any(alert.is_escalated for alert in route.alerts):
        return "alert"
    return "info"


def route_display_name(route: Route) -> str:
    return route.route_short_name or route.route_long_name or DEFAULT_ROUTE_NAME


def format_alert_text(alert_data: AlertData) -> str:
    """Format an alert for the ticker.

    Example: "24: Detour on Sherbrooke"
    """
    title = alert_data.alert.title or alert_data.alert.description or DEFAULT_ALERT_TEXT
    return f"{route_display_name(alert_data.route)}: {title}"


def to_alert_summary(alert_data: AlertData) -> AlertSummary:
    return AlertSummary(
        global_route_id=alert_data.route.global_route_id,
        route_name=route_display_name(alert_data.route),
        text=format_alert_text(alert_data),
        severity=alert_data.alert.severity,
        is_escalated=alert_data.is_escalated,
    )
