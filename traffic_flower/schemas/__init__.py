"""Pydantic schemas for API requests and responses."""

from traffic_flower.schemas.auth import (
    AuthResponse,
    MessageResponse,
    SignupAlert,
    UserLogin,
    UserRegister,
    UserResponse,
)
from traffic_flower.schemas.intersection import (
    HistoryResponse,
    IntersectionDetail,
    IntersectionResponse,
    ScheduleEntry,
    SemaphoreStatus,
    VolumeStats,
)
from traffic_flower.schemas.report import CongestionEntry, DashboardResponse, ViolationEntry

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "SignupAlert",
    "MessageResponse",
    "IntersectionResponse",
    "IntersectionDetail",
    "VolumeStats",
    "SemaphoreStatus",
    "ScheduleEntry",
    "HistoryResponse",
    "CongestionEntry",
    "ViolationEntry",
    "DashboardResponse",
]
