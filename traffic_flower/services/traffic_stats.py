"""Per-intersection aggregation queries over the traffic fact tables."""

import logging
from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from sqlalchemy import and_, extract, func, select
from sqlalchemy.orm import Session

from traffic_flower.config import Settings, get_settings
from traffic_flower.exceptions import NotFoundError, storage_errors
from traffic_flower.models import (
    ColorChange,
    Crossing,
    Intersection,
    Semaphore,
    Station,
    StopEvent,
    Vehicle,
)
from traffic_flower.models.enums import SignalColor, VehicleClass

logger = logging.getLogger(__name__)

# Classes shown in the per-minute flow chart and the comparison view
FLOW_CLASSES = (VehicleClass.CAR, VehicleClass.BUS, VehicleClass.TRAM, VehicleClass.TROLEIBUS)
COMPARISON_CLASSES = (VehicleClass.CAR, VehicleClass.BUS, VehicleClass.TRAM)


def zero_counts(classes: Iterable[VehicleClass] = VehicleClass) -> dict[str, int]:
    """Counts payload with every class (and the total) at zero."""
    counts = {vehicle_class.count_key: 0 for vehicle_class in classes}
    counts["total"] = 0
    return counts


def counts_from_rows(
    rows: Iterable[tuple[VehicleClass, int]],
    classes: Iterable[VehicleClass] = VehicleClass,
) -> dict[str, int]:
    """Fold ``(vehicle_class, count)`` rows into a counts payload."""
    counts = zero_counts(classes)
    for vehicle_class, count in rows:
        key = VehicleClass(vehicle_class).count_key
        if key in counts:
            counts[key] += count
            counts["total"] += count
    return counts


def color_at_crossing():
    """Scalar subquery: the semaphore color in force when a crossing happened."""
    return (
        select(ColorChange.color)
        .where(
            ColorChange.semaphore_id == Crossing.semaphore_id,
            ColorChange.timestamp <= Crossing.timestamp,
        )
        .order_by(ColorChange.timestamp.desc(), ColorChange.id.desc())
        .limit(1)
        .correlate(Crossing)
        .scalar_subquery()
    )


def is_violation():
    """Filter clause matching crossings made on a red light."""
    return color_at_crossing() == SignalColor.RED


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class TrafficStatsService:
    """Read-only queries for the intersection dashboard tabs."""

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def list_intersections(self) -> list[Intersection]:
        """All intersections ordered by name."""
        with storage_errors("listing intersections"):
            return self.db.query(Intersection).order_by(Intersection.name, Intersection.id).all()

    def get_intersection(self, intersection_id: int) -> Intersection:
        """Get an intersection or raise NotFoundError."""
        with storage_errors("loading intersection"):
            intersection = (
                self.db.query(Intersection).filter(Intersection.id == intersection_id).first()
            )
        if intersection is None:
            raise NotFoundError("Intersection not found")
        return intersection

    def get_intersection_detail(self, intersection_id: int) -> dict[str, Any]:
        """Intersection with its semaphores and stations tagged by kind."""
        intersection = self.get_intersection(intersection_id)

        with storage_errors("loading intersection detail"):
            semaphores = (
                self.db.query(Semaphore)
                .filter(Semaphore.intersection_id == intersection_id)
                .order_by(Semaphore.id)
                .all()
            )
            stations = (
                self.db.query(Station)
                .filter(Station.intersection_id == intersection_id)
                .order_by(Station.kind, Station.id)
                .all()
            )

        return {
            "id": intersection.id,
            "name": intersection.name,
            "sector": intersection.sector,
            "lat": intersection.lat,
            "lng": intersection.lng,
            "semaphores": [
                {
                    "id": semaphore.id,
                    "type": semaphore.type,
                    "street": semaphore.street,
                    "sense": semaphore.sense,
                }
                for semaphore in semaphores
            ],
            "stations": [
                {
                    "id": station.id,
                    "name": station.name,
                    "intersection_id": station.intersection_id,
                    "type": station.kind.value,
                }
                for station in stations
            ],
        }

    def volume_since(self, intersection_id: int, since: datetime) -> dict[str, int]:
        """Crossing counts per class at an intersection since ``since``.

        An intersection without semaphores simply has no rows and yields zeros.
        """
        with storage_errors("computing volume"):
            rows = (
                self.db.query(Crossing.vehicle_class, func.count(Crossing.id))
                .select_from(Crossing)
                .join(Semaphore, Semaphore.id == Crossing.semaphore_id)
                .filter(
                    Semaphore.intersection_id == intersection_id,
                    Crossing.timestamp >= since,
                )
                .group_by(Crossing.vehicle_class)
                .all()
            )
        return counts_from_rows(rows)

    def volume_stats(
        self, intersection_id: int, days: int = 7, now: datetime | None = None
    ) -> dict[str, int]:
        """Crossing counts per class over the last ``days`` days."""
        now = now or datetime.now(UTC)
        return self.volume_since(intersection_id, now - timedelta(days=days))

    def flow_stats(
        self, intersection_id: int, minutes: int = 20, now: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Per-minute vehicle counts for the trailing ``minutes``, oldest first."""
        now = as_utc(now or datetime.now(UTC))
        last_minute = now.replace(second=0, microsecond=0)
        first_minute = last_minute - timedelta(minutes=max(minutes, 1) - 1)

        with storage_errors("computing flow"):
            rows = (
                self.db.query(Crossing.vehicle_class, Crossing.timestamp)
                .select_from(Crossing)
                .join(Semaphore, Semaphore.id == Crossing.semaphore_id)
                .filter(
                    Semaphore.intersection_id == intersection_id,
                    Crossing.vehicle_class.in_(FLOW_CLASSES),
                    Crossing.timestamp >= first_minute,
                    Crossing.timestamp <= now,
                )
                .all()
            )

        buckets: dict[datetime, dict[str, Any]] = {}
        for i in range(max(minutes, 1)):
            minute = first_minute + timedelta(minutes=i)
            buckets[minute] = {"time": minute.strftime("%H:%M"), **zero_counts(FLOW_CLASSES)}

        for vehicle_class, timestamp in rows:
            bucket = buckets.get(as_utc(timestamp).replace(second=0, microsecond=0))
            if bucket is None:
                continue
            bucket[VehicleClass(vehicle_class).count_key] += 1
            bucket["total"] += 1

        return list(buckets.values())

    def current_semaphore_status(self, intersection_id: int) -> list[dict[str, Any]]:
        """Each semaphore with the color of its newest color change.

        The latest row per semaphore is picked with a window function in a
        single query; semaphores without history get the default color.
        """
        default_color = SignalColor(self.settings.default_semaphore_color)
        ranked = (
            self.db.query(
                ColorChange.semaphore_id.label("semaphore_id"),
                ColorChange.color.label("color"),
                func.row_number()
                .over(
                    partition_by=ColorChange.semaphore_id,
                    order_by=(ColorChange.timestamp.desc(), ColorChange.id.desc()),
                )
                .label("rank"),
            )
        ).subquery()

        with storage_errors("loading semaphore status"):
            rows = (
                self.db.query(Semaphore, ranked.c.color)
                .outerjoin(
                    ranked,
                    and_(ranked.c.semaphore_id == Semaphore.id, ranked.c.rank == 1),
                )
                .filter(Semaphore.intersection_id == intersection_id)
                .order_by(Semaphore.id)
                .all()
            )

        return [
            {
                "id": semaphore.id,
                "type": semaphore.type,
                "street": semaphore.street,
                "sense": semaphore.sense,
                "current_color": SignalColor(color or default_color).value,
            }
            for semaphore, color in rows
        ]

    def schedule(
        self, intersection_id: int, days: int = 7, now: datetime | None = None
    ) -> list[dict[str, Any]]:
        """Stop events at the intersection's stations, earliest expected first."""
        now = now or datetime.now(UTC)
        since = now - timedelta(days=days)

        with storage_errors("loading schedule"):
            rows = (
                self.db.query(StopEvent, Station, Vehicle)
                .join(Station, Station.id == StopEvent.station_id)
                .join(Vehicle, Vehicle.id == StopEvent.vehicle_id)
                .filter(
                    Station.intersection_id == intersection_id,
                    StopEvent.expected_arrival >= since,
                )
                .order_by(StopEvent.expected_arrival, StopEvent.id)
                .all()
            )

        threshold = self.settings.delay_threshold_minutes
        return [
            {
                "type": station.kind.value,
                "line": vehicle.line,
                "reg_number": vehicle.reg_nr,
                "station_name": station.name,
                "expected_arrival": stop.expected_arrival,
                "actual_arrival": stop.actual_arrival,
                "stopped_minutes": stop.stopped_minutes,
                "delayed": stop.stopped_minutes >= threshold,
            }
            for stop, station, vehicle in rows
        ]

    def history(self, intersection_id: int, day: date) -> dict[str, Any]:
        """Hourly activity and red-light violations for one calendar day (UTC).

        The trailing-window restriction on ``day`` belongs to the caller.
        """
        start = datetime.combine(day, time.min, tzinfo=UTC)
        end = start + timedelta(days=1)
        hour = extract("hour", Crossing.timestamp)

        def day_crossings(*columns):
            return (
                self.db.query(*columns)
                .select_from(Crossing)
                .join(Semaphore, Semaphore.id == Crossing.semaphore_id)
                .filter(
                    Semaphore.intersection_id == intersection_id,
                    Crossing.timestamp >= start,
                    Crossing.timestamp < end,
                )
            )

        with storage_errors("loading history"):
            hourly_rows = (
                day_crossings(hour, func.count(Crossing.id)).group_by(hour).all()
            )
            violation_rows = (
                day_crossings(Crossing.vehicle_class, func.count(Crossing.id))
                .filter(is_violation())
                .group_by(Crossing.vehicle_class)
                .all()
            )

        by_hour = {int(h): count for h, count in hourly_rows}
        hourly_activity = [{"hour": f"{h}:00", "count": by_hour.get(h, 0)} for h in range(24)]
        violations = counts_from_rows(violation_rows)
        total_violations = violations.pop("total")

        return {
            "date": day.isoformat(),
            "violations": total_violations,
            "violations_by_type": violations,
            "total_vehicles": sum(row["count"] for row in hourly_activity),
            "hourly_activity": hourly_activity,
        }

    def compare_intersections(self, intersection_ids: list[int]) -> list[dict[str, Any]]:
        """All-time car, bus and tram counts for each known intersection."""
        with storage_errors("comparing intersections"):
            intersections = (
                self.db.query(Intersection)
                .filter(Intersection.id.in_(intersection_ids))
                .order_by(Intersection.id)
                .all()
            )
            if not intersections:
                return []

            rows = (
                self.db.query(
                    Semaphore.intersection_id, Crossing.vehicle_class, func.count(Crossing.id)
                )
                .select_from(Crossing)
                .join(Semaphore, Semaphore.id == Crossing.semaphore_id)
                .filter(
                    Semaphore.intersection_id.in_([i.id for i in intersections]),
                    Crossing.vehicle_class.in_(COMPARISON_CLASSES),
                )
                .group_by(Semaphore.intersection_id, Crossing.vehicle_class)
                .all()
            )

        rows_by_intersection: dict[int, list[tuple[VehicleClass, int]]] = {}
        for intersection_id, vehicle_class, count in rows:
            rows_by_intersection.setdefault(intersection_id, []).append((vehicle_class, count))

        return [
            {
                "id": intersection.id,
                "name": intersection.name,
                "sector": intersection.sector,
                "stats": counts_from_rows(
                    rows_by_intersection.get(intersection.id, []), COMPARISON_CLASSES
                ),
            }
            for intersection in intersections
        ]
