from enum import Enum

from pydantic import BaseModel, Field

from transit_screen.data.cache import Freshness
from transit_screen.models.alerts import Alert
from transit_screen.models.nearby import Route


class ErrorKind(str, Enum):
    """Distinguishes failures the screen reacts to differently."""

    RATE_LIMITED = "rate_limited"
    AUTHENTICATION = "authentication"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    UPSTREAM = "upstream"
    INVALID_REQUEST = "invalid_request"


class ErrorInfo(BaseModel):
    kind: ErrorKind
    message: str
    retry_after_seconds: int | None = Field(
        default=None, description="Seconds to wait before retrying (rate limits only)"
    )
    status_code: int | None = Field(default=None, description="Upstream HTTP status, if any")


class AlertData(BaseModel):
    """An alert paired with the route it was published on."""

    route: Route
    alert: Alert
    is_escalated: bool = Field(description="True for severe/warning alerts")


class GetNearbyRoutesResponse(BaseModel):
    routes: list[Route]
    count: int = Field(description="Number of routes returned")
    freshness: Freshness | None = Field(
        default=None, description="'realtime' if any departure is a live prediction"
    )
    api_available: bool = True
    error: ErrorInfo | None = None


class AlertSummary(BaseModel):
    """Flattened alert for the alert ticker."""

    global_route_id: str
    route_name: str
    text: str = Field(description="Ticker text, e.g. '24: Detour on Sherbrooke'")
    severity: str | None = None
    is_escalated: bool


class GetServiceAlertsResponse(BaseModel):
    alerts: list[AlertSummary]
    count: int = Field(description="Number of alerts returned")
    escalated_count: int = Field(default=0, description="Number of severe/warning alerts")
    api_available: bool = True
    error: ErrorInfo | None = None
