"""Pytest configuration and fixtures."""

import os
from datetime import UTC, datetime

# Cheap hashes for tests; must be set before the auth service is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from traffic_flower.api.dependencies import login_limiter, register_limiter
from traffic_flower.database import Base, engine_options, get_db
from traffic_flower.main import app
from traffic_flower.models import (
    ColorChange,
    Crossing,
    Intersection,
    Semaphore,
    Station,
    StopEvent,
    Vehicle,
)
from traffic_flower.models.enums import SignalColor, StationKind, VehicleClass, VehicleKind


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/traffic_flower", "/traffic_flower_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_options(SQLALCHEMY_DATABASE_URL))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def fake_redis():
    """Point the signup rate limiters at a fresh in-memory Redis for each test."""
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer())
    login_limiter.client = client
    register_limiter.client = client
    yield client
    login_limiter.client = None
    register_limiter.client = None


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Register Ann and return auth headers with user info."""
    response = client.post(
        "/api/signup/register",
        json={
            "name": "Ann",
            "username": "ann",
            "email": "ann@example.com",
            "password": "secret123",
            "repeat_password": "secret123",
        },
    )
    assert response.status_code == 200
    data = response.json()
    token = data["token"]
    user_id = data["user"]["id"]

    return AuthHeaders(
        {"Authorization": f"Bearer {token}"}, user_id=user_id, email=data["user"]["email"]
    )


class TrafficFactory:
    """Small helpers for inserting traffic fixtures."""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def intersection(self, name="Piata Unirii", sector=1, lat=44.4268, lng=26.1025):
        return self._save(Intersection(name=name, sector=sector, lat=lat, lng=lng))

    def semaphore(self, intersection, street="Bd. Unirii", sense="NORTH", type="CAR"):
        return self._save(
            Semaphore(intersection_id=intersection.id, street=street, sense=sense, type=type)
        )

    def color_change(self, semaphore, color: SignalColor, timestamp: datetime):
        return self._save(
            ColorChange(semaphore_id=semaphore.id, color=color, timestamp=timestamp)
        )

    def vehicle(self, kind=VehicleKind.BUS, reg_nr="B-123-ABC", line="336"):
        return self._save(Vehicle(kind=kind, reg_nr=reg_nr, line=line))

    def crossing(
        self,
        semaphore,
        vehicle_class=VehicleClass.CAR,
        timestamp: datetime | None = None,
        vehicle=None,
        speed=40.0,
    ):
        return self._save(
            Crossing(
                semaphore_id=semaphore.id,
                vehicle_class=vehicle_class,
                vehicle_id=vehicle.id if vehicle else None,
                speed=speed,
                timestamp=timestamp or datetime.now(UTC),
            )
        )

    def station(self, intersection, kind=StationKind.BUS, name="Unirii 1"):
        return self._save(Station(intersection_id=intersection.id, kind=kind, name=name))

    def stop(self, vehicle, station, stopped_minutes, expected_arrival, actual_arrival=None):
        return self._save(
            StopEvent(
                vehicle_id=vehicle.id,
                station_id=station.id,
                stopped_minutes=stopped_minutes,
                expected_arrival=expected_arrival,
                actual_arrival=actual_arrival,
            )
        )


@pytest.fixture
def traffic(db):
    """Factory for intersections, semaphores, crossings and stops."""
    return TrafficFactory(db)
