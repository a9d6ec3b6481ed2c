"""Report and analytics schemas."""

from datetime import datetime

from pydantic import BaseModel


class CongestionEntry(BaseModel):
    """Delayed stop in the congestion report."""

    type: str
    line: str | None
    reg_number: str | None
    intersection: str
    station: str
    stopped_minutes: int
    expected_arrival: datetime
    actual_arrival: datetime | None


class ViolationEntry(BaseModel):
    """Red-light crossing in the violations report."""

    id: int
    type: str
    intersection: str
    street: str | None
    sense: str | None
    timestamp: datetime
    speed: float | None
    reg_number: str | None
    line: str | None


class DashboardResponse(BaseModel):
    """Headline analytics."""

    total_intersections: int
    total_delays: int
    avg_delay_minutes: float
    total_violations: int


class DailyTraffic(BaseModel):
    """Crossing counts for one day."""

    date: str
    cars: int
    buses: int
    trams: int
    troleibuses: int
    persons: int
    total: int


class DailyDelays(BaseModel):
    """Number of delayed stops for one day."""

    date: str
    delays: int
