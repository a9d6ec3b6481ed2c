"""Celery task publishing live per-intersection traffic counts."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from traffic_flower.celery_app import app as celery_app
from traffic_flower.config import get_settings
from traffic_flower.database import SessionLocal
from traffic_flower.models import Intersection, Semaphore
from traffic_flower.services.realtime import TrafficEventType, publish_intersection_event
from traffic_flower.services.traffic_stats import COMPARISON_CLASSES, TrafficStatsService

logger = logging.getLogger(__name__)


def collect_traffic_updates(db: Session, now: datetime | None = None) -> dict[int, dict]:
    """Recent car, bus and tram counts for every intersection with semaphores."""
    settings = get_settings()
    now = now or datetime.now(UTC)
    since = now - timedelta(seconds=settings.broadcast_lookback_seconds)
    service = TrafficStatsService(db, settings)

    intersection_ids = [
        intersection_id
        for (intersection_id,) in (
            db.query(Intersection.id)
            .join(Semaphore, Semaphore.intersection_id == Intersection.id)
            .distinct()
            .order_by(Intersection.id)
            .all()
        )
    ]

    updates = {}
    for intersection_id in intersection_ids:
        counts = service.volume_since(intersection_id, since)
        stats = {
            vehicle_class.count_key: counts[vehicle_class.count_key]
            for vehicle_class in COMPARISON_CLASSES
        }
        stats["total"] = sum(stats.values())
        updates[intersection_id] = stats
    return updates


@celery_app.task
def broadcast_traffic_updates() -> dict:
    """Publish the latest traffic counts to each intersection channel.

    Runs on a fixed interval via celery-beat.

    Returns:
        dict with publishing statistics
    """
    db: Session = SessionLocal()
    stats = {"intersections": 0, "published": 0}

    try:
        updates = collect_traffic_updates(db)
        for intersection_id, counts in updates.items():
            stats["intersections"] += 1
            if publish_intersection_event(
                intersection_id, TrafficEventType.TRAFFIC_UPDATE, counts
            ):
                stats["published"] += 1
    finally:
        db.close()

    logger.debug(f"Traffic broadcast: {stats}")
    return stats
