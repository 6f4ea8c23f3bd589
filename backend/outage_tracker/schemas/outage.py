from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# --- Provider payloads ---

class HullPoint(BaseModel):
    lat: float
    lng: float


class OutageEvent(BaseModel):
    """One event as reported by the outages endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias="sourceEventNumber")
    device_lat: float = Field(alias="deviceLatitudeLocation")
    device_lon: float = Field(alias="deviceLongitudeLocation")
    customers_affected: int = Field(default=0, ge=0, alias="customersAffectedNumber")
    convex_hull: list[HullPoint] = Field(default_factory=list, alias="convexHull")
    cause: str | None = Field(default=None, alias="outageCause")


class AreaOfInterest(BaseModel):
    """Per-county summary from the counties endpoint, flattened."""
    name: str
    county_name: str
    customers_served: int = 0
    active_events_count: int = 0
    max_customers_affected: int = 0


class AreaSummary(BaseModel):
    active_events_count: int = Field(default=0, ge=0, alias="activeEventsCount")
    max_customers_affected: int = Field(default=0, ge=0, alias="maxCustomersAffected")


class CountyRecord(BaseModel):
    """One record as reported by the counties endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="areaOfInterestName")
    county_name: str = Field(alias="countyName")
    customers_served: int = Field(default=0, ge=0, alias="customersServed")
    summary: AreaSummary | None = Field(default=None, alias="areaOfInterestSummary")

    def to_area(self) -> AreaOfInterest:
        summary = self.summary or AreaSummary()
        return AreaOfInterest(
            name=self.name,
            county_name=self.county_name,
            customers_served=self.customers_served,
            active_events_count=summary.active_events_count,
            max_customers_affected=summary.max_customers_affected,
        )


class ProviderCredentials(BaseModel):
    consumer_key: str = Field(alias="consumer_key_emp")
    consumer_secret: str = Field(alias="consumer_secret_emp")


# --- Cycle results ---

class MatchedEvent(BaseModel):
    event_id: str
    county: str
    customers_affected: int
    device_lat: float
    device_lon: float
    raw_county: str | None = None  # geocoder text, e.g. "Forsyth County"
    cause: str | None = None
    hull_points: int = 0
    hull: list[HullPoint] = []
    map_url: str


class EventError(BaseModel):
    event_id: str
    kind: str  # fetch, malformed
    detail: str


class CycleReport(BaseModel):
    started_at: datetime
    finished_at: datetime | None = None
    jurisdiction: str
    areas: list[AreaOfInterest] = []
    matched: list[MatchedEvent] = []
    deactivated: list[str] = []
    fetched_count: int = 0
    skipped_count: int = 0
    errors: list[EventError] = []

    @property
    def deactivated_count(self) -> int:
        return len(self.deactivated)


# --- API responses ---

class BoundaryPointOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    seq: int
    lat: float
    lon: float
    active: bool


class OutageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_id: str
    active: bool
    county: str | None = None
    customers_affected: int = 0
    device_lat: float | None = None
    device_lon: float | None = None
    cause: str | None = None
    first_seen_at: datetime | None = None
    last_seen_at: datetime | None = None


class OutageDetail(OutageOut):
    boundary_points: list[BoundaryPointOut] = []
