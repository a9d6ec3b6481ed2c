"""Enums for model fields."""

from enum import Enum


class VehicleClass(str, Enum):
    """Class of road user recorded by a crossing event."""

    CAR = "car"
    BUS = "bus"
    TRAM = "tram"
    TROLEIBUS = "troleibus"
    PERSON = "person"

    @property
    def count_key(self) -> str:
        """Plural key used in count payloads (cars, buses, ...)."""
        return _COUNT_KEYS[self]


_COUNT_KEYS = {
    VehicleClass.CAR: "cars",
    VehicleClass.BUS: "buses",
    VehicleClass.TRAM: "trams",
    VehicleClass.TROLEIBUS: "troleibuses",
    VehicleClass.PERSON: "persons",
}


class VehicleKind(str, Enum):
    """Registered vehicle kinds. Persons are not vehicles."""

    CAR = "car"
    BUS = "bus"
    TRAM = "tram"
    TROLEIBUS = "troleibus"


class StationKind(str, Enum):
    """Public transport station kinds."""

    BUS = "BUS"
    TRAM = "TRAM"
    TROLEIBUS = "TROLEIBUS"

    @property
    def vehicle_kind(self) -> VehicleKind:
        """Vehicle kind that stops at this station kind."""
        return VehicleKind(self.value.lower())


class SignalColor(str, Enum):
    """Traffic light colors."""

    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Values callable for SQLAlchemy Enum columns (store values, not names)."""
    return [e.value for e in enum_cls]
