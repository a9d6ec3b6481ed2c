"""FastAPI dependencies for authentication, rate limiting and services."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from traffic_flower.config import get_settings
from traffic_flower.database import get_db
from traffic_flower.exceptions import AuthError, ValidationError, storage_errors
from traffic_flower.models.user import User
from traffic_flower.services.auth import get_user_by_id, verify_token
from traffic_flower.services.export import ExportService
from traffic_flower.services.rate_limit import SlidingWindowRateLimiter
from traffic_flower.services.reports import ReportService
from traffic_flower.services.traffic_stats import TrafficStatsService

settings = get_settings()

security = HTTPBearer(auto_error=False)

login_limiter = SlidingWindowRateLimiter(
    "login",
    limit=settings.login_rate_limit,
    window_seconds=settings.rate_limit_window_seconds,
    message="Too many login attempts, please try again later",
)
register_limiter = SlidingWindowRateLimiter(
    "register",
    limit=settings.register_rate_limit,
    window_seconds=settings.rate_limit_window_seconds,
    message="Too many requests, please try again later",
)


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def limit_login_attempts(request: Request) -> None:
    """Reject the request once the client exceeds the login limit."""
    login_limiter.hit(_client_key(request))


def limit_registrations(request: Request) -> None:
    """Reject the request once the client exceeds the registration limit."""
    register_limiter.hit(_client_key(request))


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str | None:
    """Raw bearer token from the Authorization header, if any."""
    return credentials.credentials if credentials else None


def get_current_user_id(
    token: Annotated[str | None, Depends(get_bearer_token)],
) -> int:
    """Authenticated user id from the token alone, without a storage lookup."""
    return verify_token(token)


def get_current_user(
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    with storage_errors("resolving current user"):
        user = get_user_by_id(db, user_id)

    if user is None:
        raise AuthError("User not found")

    return user


def parse_intersection_id(intersection_id: str) -> int:
    """Path parameter parser that reports malformed ids as ValidationError."""
    try:
        return int(intersection_id)
    except ValueError:
        raise ValidationError("Invalid intersection id") from None


MAX_DAYS = 3650
MAX_MINUTES = 1440
MAX_LIMIT = 1000


def _int_or_default(raw: str | None, default: int) -> int:
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        return default


def _clamp(value: int, upper: int) -> int:
    return min(max(value, 1), upper)


def get_days(days: str | None = None) -> int:
    """``days`` query parameter; non-integers fall back to 7, others clamp to 1..3650."""
    return _clamp(_int_or_default(days, 7), MAX_DAYS)


def get_minutes(minutes: str | None = None) -> int:
    """``minutes`` query parameter; non-integers fall back to 20, others clamp to 1..1440."""
    return _clamp(_int_or_default(minutes, 20), MAX_MINUTES)


def get_limit(limit: str | None = None) -> int:
    """``limit`` query parameter; missing, invalid or zero falls back to 50, max 1000."""
    return _clamp(_int_or_default(limit, 50) or 50, MAX_LIMIT)


def get_traffic_stats_service(
    db: Annotated[Session, Depends(get_db)],
) -> TrafficStatsService:
    """Get traffic stats service with dependencies."""
    return TrafficStatsService(db)


def get_report_service(
    db: Annotated[Session, Depends(get_db)],
) -> ReportService:
    """Get report service with dependencies."""
    return ReportService(db)


def get_export_service(
    db: Annotated[Session, Depends(get_db)],
) -> ExportService:
    """Get export service with dependencies."""
    return ExportService(db)
