"""SQLAlchemy models."""

from traffic_flower.models.crossing import Crossing
from traffic_flower.models.intersection import ColorChange, Intersection, Semaphore
from traffic_flower.models.transit import Station, StopEvent, Vehicle
from traffic_flower.models.user import User

__all__ = [
    "User",
    "Intersection",
    "Semaphore",
    "ColorChange",
    "Station",
    "Vehicle",
    "StopEvent",
    "Crossing",
]
