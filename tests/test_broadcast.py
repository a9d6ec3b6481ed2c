"""Tests for the live traffic broadcast task."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from traffic_flower.models.enums import VehicleClass
from traffic_flower.tasks.broadcast import broadcast_traffic_updates, collect_traffic_updates


def test_collect_counts_last_minute(db, traffic):
    now = datetime.now(UTC)
    intersection = traffic.intersection()
    semaphore = traffic.semaphore(intersection)
    traffic.crossing(semaphore, VehicleClass.CAR, now - timedelta(seconds=5))
    traffic.crossing(semaphore, VehicleClass.CAR, now - timedelta(seconds=20))
    traffic.crossing(semaphore, VehicleClass.TRAM, now - timedelta(seconds=30))
    traffic.crossing(semaphore, VehicleClass.PERSON, now - timedelta(seconds=30))
    traffic.crossing(semaphore, VehicleClass.BUS, now - timedelta(minutes=5))

    updates = collect_traffic_updates(db, now=now)

    assert updates == {intersection.id: {"cars": 2, "buses": 0, "trams": 1, "total": 3}}


def test_collect_skips_intersections_without_semaphores(db, traffic):
    traffic.intersection(name="Bare")
    with_semaphore = traffic.intersection(name="Lit")
    traffic.semaphore(with_semaphore)
    traffic.semaphore(with_semaphore, sense="SOUTH")

    updates = collect_traffic_updates(db)

    assert list(updates) == [with_semaphore.id]
    assert updates[with_semaphore.id]["total"] == 0


def test_broadcast_publishes_each_intersection(db, traffic):
    first = traffic.intersection(name="A")
    second = traffic.intersection(name="B")
    traffic.crossing(traffic.semaphore(first), VehicleClass.BUS)
    traffic.semaphore(second)

    with (
        patch("traffic_flower.tasks.broadcast.SessionLocal", return_value=db),
        patch(
            "traffic_flower.tasks.broadcast.publish_intersection_event", return_value=True
        ) as mock_publish,
    ):
        stats = broadcast_traffic_updates()

    assert stats == {"intersections": 2, "published": 2}
    published = {call.args[0]: call.args[2] for call in mock_publish.call_args_list}
    assert published[first.id]["buses"] == 1
    assert published[second.id]["total"] == 0


def test_broadcast_counts_failed_publishes(db, traffic):
    traffic.semaphore(traffic.intersection())

    with (
        patch("traffic_flower.tasks.broadcast.SessionLocal", return_value=db),
        patch("traffic_flower.tasks.broadcast.publish_intersection_event", return_value=False),
    ):
        stats = broadcast_traffic_updates()

    assert stats == {"intersections": 1, "published": 0}
