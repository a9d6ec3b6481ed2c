"""User model."""

from sqlalchemy import Column, Integer, String

from traffic_flower.database import Base
from traffic_flower.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """Dashboard account. The password is only ever stored as a bcrypt hash."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    username = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
