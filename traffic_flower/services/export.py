"""CSV exports of intersections and recent traffic."""

import csv
import io
import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from traffic_flower.exceptions import storage_errors
from traffic_flower.models import Crossing, Intersection, Semaphore, Station, Vehicle
from traffic_flower.models.enums import VehicleClass

logger = logging.getLogger(__name__)

INTERSECTION_HEADER = ["ID", "Name", "Sector", "Latitude", "Longitude", "Semaphores", "Stations"]
TRAFFIC_HEADER = ["Type", "Timestamp", "Intersection", "Street", "Speed", "Vehicle"]

# Exported crossing classes and their labels, in output order
TRAFFIC_CLASSES = {
    VehicleClass.CAR: "Car",
    VehicleClass.BUS: "Bus",
    VehicleClass.TRAM: "Tram",
}
MAX_ROWS_PER_CLASS = 1000


def _blank(value) -> str:
    return "" if value is None else str(value)


class ExportService:
    """Builds CSV documents for download."""

    def __init__(self, db: Session):
        self.db = db

    def intersections_csv(self) -> str:
        """One row per intersection with its semaphore and station counts."""
        with storage_errors("exporting intersections"):
            intersections = self.db.query(Intersection).order_by(Intersection.id).all()
            semaphore_counts = dict(
                self.db.query(Semaphore.intersection_id, func.count(Semaphore.id))
                .group_by(Semaphore.intersection_id)
                .all()
            )
            station_counts = dict(
                self.db.query(Station.intersection_id, func.count(Station.id))
                .group_by(Station.intersection_id)
                .all()
            )

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(INTERSECTION_HEADER)
        for intersection in intersections:
            writer.writerow(
                [
                    intersection.id,
                    intersection.name or "",
                    _blank(intersection.sector),
                    _blank(intersection.lat),
                    _blank(intersection.lng),
                    semaphore_counts.get(intersection.id, 0),
                    station_counts.get(intersection.id, 0),
                ]
            )
        return buffer.getvalue()

    def traffic_csv(self, start: datetime | None = None, end: datetime | None = None) -> str:
        """Car, bus and tram crossings between ``start`` and ``end``.

        Defaults to the last seven days. Each class is capped at
        ``MAX_ROWS_PER_CLASS`` rows, oldest first.
        """
        end = end or datetime.now(UTC)
        start = start or end - timedelta(days=7)

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(TRAFFIC_HEADER)

        for vehicle_class, label in TRAFFIC_CLASSES.items():
            with storage_errors(f"exporting {vehicle_class.value} crossings"):
                rows = (
                    self.db.query(Crossing, Semaphore.street, Intersection.name, Vehicle.reg_nr)
                    .join(Semaphore, Semaphore.id == Crossing.semaphore_id)
                    .join(Intersection, Intersection.id == Semaphore.intersection_id)
                    .outerjoin(Vehicle, Vehicle.id == Crossing.vehicle_id)
                    .filter(
                        Crossing.vehicle_class == vehicle_class,
                        Crossing.timestamp >= start,
                        Crossing.timestamp <= end,
                    )
                    .order_by(Crossing.timestamp, Crossing.id)
                    .limit(MAX_ROWS_PER_CLASS)
                    .all()
                )

            for crossing, street, intersection_name, reg_nr in rows:
                writer.writerow(
                    [
                        label,
                        crossing.timestamp.isoformat(),
                        intersection_name or "",
                        street or "",
                        _blank(crossing.speed),
                        # Cars are exported anonymously
                        "" if vehicle_class == VehicleClass.CAR else reg_nr or "",
                    ]
                )

        return buffer.getvalue()
