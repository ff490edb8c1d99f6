from pydantic import BaseModel, ConfigDict

# Severities (lowercased) shown with the alert icon instead of the info icon
ESCALATED_SEVERITIES = frozenset({"severe", "warning"})


class InformedEntity(BaseModel):
    """Entity affected by an alert (route, stop, or trip).

    Each field is optional as entities can specify any combination.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    global_route_id: str | None = None
    global_stop_id: str | None = None
    rt_trip_id: str | None = None

    @property
    def is_unscoped(self) -> bool:
        """True when the entity names no route, stop, or trip."""
        return self.global_route_id is None and self.global_stop_id is None and self.rt_trip_id is None


class Alert(BaseModel):
    """A single service alert attached to a route."""

    model_config = ConfigDict(extra="ignore")

    severity: str | None = None
    effect: str | None = None
    title: str | None = None
    description: str | None = None
    created_at: int | None = None
    informed_entities: list[InformedEntity] = []

    @property
    def is_escalated(self) -> bool:
        """True for "severe" and "warning" alerts (case-insensitive)."""
        return (self.severity or "info").strip().lower() in ESCALATED_SEVERITIES
