"""Intersection and per-intersection statistics schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class IntersectionResponse(BaseModel):
    """Intersection map marker."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    sector: int | None
    lat: float | None
    lng: float | None


class SemaphoreResponse(BaseModel):
    """Semaphore attached to an intersection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    street: str | None
    sense: str | None


class StationResponse(BaseModel):
    """Station attached to an intersection, tagged with its kind."""

    id: int
    name: str
    intersection_id: int
    type: str


class IntersectionDetail(IntersectionResponse):
    """Intersection with its semaphores and stations."""

    semaphores: list[SemaphoreResponse]
    stations: list[StationResponse]


class VolumeStats(BaseModel):
    """Crossing counts per vehicle class."""

    cars: int = 0
    buses: int = 0
    trams: int = 0
    troleibuses: int = 0
    persons: int = 0
    total: int = 0


class FlowPoint(BaseModel):
    """Vehicle counts for one minute."""

    time: str
    cars: int
    buses: int
    trams: int
    troleibuses: int
    total: int


class SemaphoreStatus(SemaphoreResponse):
    """Semaphore with its current light color."""

    current_color: str


class ScheduleEntry(BaseModel):
    """Observed stop of a public transport vehicle."""

    type: str
    line: str | None
    reg_number: str | None
    station_name: str
    expected_arrival: datetime
    actual_arrival: datetime | None
    stopped_minutes: int
    delayed: bool


class ViolationsByType(BaseModel):
    """Red-light violations per vehicle class."""

    cars: int = 0
    buses: int = 0
    trams: int = 0
    troleibuses: int = 0
    persons: int = 0


class HourlyActivity(BaseModel):
    """Crossings in one hour of the day."""

    hour: str
    count: int


class HistoryResponse(BaseModel):
    """Daily summary for the calendar tab."""

    date: str
    violations: int
    violations_by_type: ViolationsByType
    total_vehicles: int
    hourly_activity: list[HourlyActivity]


class ComparisonStats(BaseModel):
    """Counts used to compare intersections side by side."""

    cars: int
    buses: int
    trams: int
    total: int


class IntersectionComparison(BaseModel):
    """One intersection in a comparison."""

    id: int
    name: str
    sector: int | None
    stats: ComparisonStats
