"""System-wide reports and analytics over the traffic fact tables."""

import logging
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from traffic_flower.config import Settings, get_settings
from traffic_flower.exceptions import storage_errors
from traffic_flower.models import Crossing, Intersection, Semaphore, Station, StopEvent, Vehicle
from traffic_flower.models.enums import VehicleClass
from traffic_flower.services.traffic_stats import is_violation, zero_counts

logger = logging.getLogger(__name__)


def _day_key(value: Any) -> str:
    # func.date() yields a string on SQLite and a date on PostgreSQL
    if isinstance(value, datetime | date):
        return value.strftime("%Y-%m-%d")
    return str(value)[:10]


def trailing_days(days: int, now: datetime) -> list[date]:
    """The last ``days`` calendar days ending today, oldest first."""
    today = now.date()
    return [today - timedelta(days=offset) for offset in range(max(days, 1) - 1, -1, -1)]


class ReportService:
    """Congestion and violation reports plus dashboard analytics."""

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def congestion_report(
        self, days: int = 7, limit: int = 50, now: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Delayed stops in the window, most delayed first."""
        now = now or datetime.now(UTC)
        since = now - timedelta(days=days)

        with storage_errors("building congestion report"):
            rows = (
                self.db.query(StopEvent, Station, Vehicle, Intersection.name)
                .join(Station, Station.id == StopEvent.station_id)
                .join(Vehicle, Vehicle.id == StopEvent.vehicle_id)
                .join(Intersection, Intersection.id == Station.intersection_id)
                .filter(
                    StopEvent.expected_arrival >= since,
                    StopEvent.stopped_minutes >= self.settings.delay_threshold_minutes,
                )
                .order_by(StopEvent.stopped_minutes.desc(), StopEvent.expected_arrival.desc())
                .limit(limit)
                .all()
            )

        return [
            {
                "type": station.kind.value,
                "line": vehicle.line,
                "reg_number": vehicle.reg_nr,
                "intersection": intersection_name,
                "station": station.name,
                "stopped_minutes": stop.stopped_minutes,
                "expected_arrival": stop.expected_arrival,
                "actual_arrival": stop.actual_arrival,
            }
            for stop, station, vehicle, intersection_name in rows
        ]

    def violations_report(
        self, days: int = 7, limit: int = 50, now: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Red-light crossings in the window, newest first."""
        now = now or datetime.now(UTC)
        since = now - timedelta(days=days)

        with storage_errors("building violations report"):
            rows = (
                self.db.query(Crossing, Semaphore, Intersection.name, Vehicle)
                .join(Semaphore, Semaphore.id == Crossing.semaphore_id)
                .join(Intersection, Intersection.id == Semaphore.intersection_id)
                .outerjoin(Vehicle, Vehicle.id == Crossing.vehicle_id)
                .filter(Crossing.timestamp >= since, is_violation())
                .order_by(Crossing.timestamp.desc(), Crossing.id.desc())
                .limit(limit)
                .all()
            )

        return [
            {
                "id": crossing.id,
                "type": crossing.vehicle_class.value,
                "intersection": intersection_name,
                "street": semaphore.street,
                "sense": semaphore.sense,
                "timestamp": crossing.timestamp,
                "speed": crossing.speed,
                "reg_number": vehicle.reg_nr if vehicle else None,
                "line": vehicle.line if vehicle else None,
            }
            for crossing, semaphore, intersection_name, vehicle in rows
        ]

    def dashboard(self, days: int = 7, now: datetime | None = None) -> dict[str, Any]:
        """Headline numbers for the analytics page."""
        now = now or datetime.now(UTC)
        since = now - timedelta(days=days)

        with storage_errors("building analytics dashboard"):
            total_intersections = self.db.query(func.count(Intersection.id)).scalar() or 0
            total_delays, avg_delay = (
                self.db.query(func.count(StopEvent.id), func.avg(StopEvent.stopped_minutes))
                .filter(
                    StopEvent.expected_arrival >= since,
                    StopEvent.stopped_minutes >= self.settings.delay_threshold_minutes,
                )
                .one()
            )
            total_violations = (
                self.db.query(func.count(Crossing.id))
                .filter(Crossing.timestamp >= since, is_violation())
                .scalar()
                or 0
            )

        return {
            "total_intersections": total_intersections,
            "total_delays": total_delays or 0,
            "avg_delay_minutes": round(float(avg_delay or 0), 1),
            "total_violations": total_violations,
        }

    def traffic_flow(self, days: int = 7, now: datetime | None = None) -> list[dict[str, Any]]:
        """Daily crossing counts per class for the trailing ``days`` days."""
        now = now or datetime.now(UTC)
        day_list = trailing_days(days, now)
        start = datetime.combine(day_list[0], time.min, tzinfo=UTC)
        day = func.date(Crossing.timestamp)

        with storage_errors("building traffic flow"):
            rows = (
                self.db.query(day, Crossing.vehicle_class, func.count(Crossing.id))
                .filter(Crossing.timestamp >= start)
                .group_by(day, Crossing.vehicle_class)
                .all()
            )

        series = {d.isoformat(): {"date": d.isoformat(), **zero_counts()} for d in day_list}
        for day_value, vehicle_class, count in rows:
            entry = series.get(_day_key(day_value))
            if entry is None:
                continue
            entry[VehicleClass(vehicle_class).count_key] += count
            entry["total"] += count
        return list(series.values())

    def congestion_trends(
        self, days: int = 7, now: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Daily number of delayed stops for the trailing ``days`` days."""
        now = now or datetime.now(UTC)
        day_list = trailing_days(days, now)
        start = datetime.combine(day_list[0], time.min, tzinfo=UTC)
        day = func.date(StopEvent.expected_arrival)

        with storage_errors("building congestion trends"):
            rows = (
                self.db.query(day, func.count(StopEvent.id))
                .filter(
                    StopEvent.expected_arrival >= start,
                    StopEvent.stopped_minutes >= self.settings.delay_threshold_minutes,
                )
                .group_by(day)
                .all()
            )

        delays = {_day_key(day_value): count for day_value, count in rows}
        return [{"date": d.isoformat(), "delays": delays.get(d.isoformat(), 0)} for d in day_list]
