"""Public transport models: stations, vehicles and stop events."""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from traffic_flower.database import Base
from traffic_flower.models.enums import StationKind, VehicleKind, enum_values
from traffic_flower.models.mixins import TimestampMixin


class Station(Base, TimestampMixin):
    """Bus, tram or troleibus station attached to an intersection."""

    __tablename__ = "stations"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(
        Enum(StationKind, name="stationkind", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    sense = Column(String(50), nullable=True)
    intersection_id = Column(
        Integer, ForeignKey("intersections.id"), nullable=False, index=True
    )

    # Relationships
    intersection = relationship("Intersection", back_populates="stations")


class Vehicle(Base, TimestampMixin):
    """Registered vehicle. Line is only set for public transport."""

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(
        Enum(VehicleKind, name="vehiclekind", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    reg_nr = Column(String(50), nullable=True)
    line = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)


class StopEvent(Base):
    """One scheduled-arrival observation of a vehicle at a station."""

    __tablename__ = "stop_events"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    station_id = Column(Integer, ForeignKey("stations.id"), nullable=False, index=True)
    stopped_minutes = Column(Integer, nullable=False, default=0)
    expected_arrival = Column(DateTime(timezone=True), nullable=False, index=True)
    actual_arrival = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    vehicle = relationship("Vehicle")
    station = relationship("Station")
