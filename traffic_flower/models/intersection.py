"""Intersection, semaphore and color change models."""

from sqlalchemy import Column, DateTime, Enum, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from traffic_flower.database import Base
from traffic_flower.models.enums import SignalColor, enum_values
from traffic_flower.models.mixins import TimestampMixin


class Intersection(Base, TimestampMixin):
    """Static reference entity placed on the city map."""

    __tablename__ = "intersections"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    sector = Column(Integer, nullable=True)  # administrative grouping label
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)

    # Relationships
    semaphores = relationship("Semaphore", back_populates="intersection")
    stations = relationship("Station", back_populates="intersection")


class Semaphore(Base, TimestampMixin):
    """Traffic light fixture at one approach of an intersection."""

    __tablename__ = "semaphores"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(50), nullable=False, default="CAR")
    street = Column(String(255), nullable=True)
    sense = Column(String(50), nullable=True)  # NORTH, SOUTH, EAST, WEST
    intersection_id = Column(
        Integer, ForeignKey("intersections.id"), nullable=False, index=True
    )

    # Relationships
    intersection = relationship("Intersection", back_populates="semaphores")


class ColorChange(Base):
    """Append-only light color history. The newest row is the current color."""

    __tablename__ = "color_changes"
    __table_args__ = (Index("ix_color_changes_semaphore_timestamp", "semaphore_id", "timestamp"),)

    id = Column(Integer, primary_key=True, index=True)
    semaphore_id = Column(Integer, ForeignKey("semaphores.id"), nullable=False, index=True)
    color = Column(
        Enum(SignalColor, name="signalcolor", values_callable=enum_values),
        nullable=False,
    )
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    semaphore = relationship("Semaphore", backref="color_changes")
