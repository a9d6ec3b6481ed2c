"""Crossing event model."""

from sqlalchemy import Column, DateTime, Enum, Float, ForeignKey, Integer
from sqlalchemy.orm import relationship

from traffic_flower.database import Base
from traffic_flower.models.enums import VehicleClass, enum_values


class Crossing(Base):
    """Append-only record of a vehicle or pedestrian passing a semaphore."""

    __tablename__ = "crossings"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_class = Column(
        Enum(VehicleClass, name="vehicleclass", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    semaphore_id = Column(Integer, ForeignKey("semaphores.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)  # None for persons
    speed = Column(Float, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    semaphore = relationship("Semaphore")
    vehicle = relationship("Vehicle")
