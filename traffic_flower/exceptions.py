"""Typed errors shared by the services, the HTTP layer and the API client."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class TrafficFlowerError(Exception):
    """Base error rendered as ``{"detail": ...}`` with ``status_code``."""

    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(TrafficFlowerError):
    """Bad input shape or content, raised before any I/O."""

    status_code = 400
    default_detail = "Invalid request"


class AuthError(TrafficFlowerError):
    """Bad credentials or an invalid/expired token.

    The message is intentionally the same whether the account is missing or
    the password is wrong.
    """

    status_code = 401
    default_detail = "Invalid authentication credentials"


class NotFoundError(TrafficFlowerError):
    """Referenced entity is absent."""

    status_code = 404
    default_detail = "Not found"


class ConflictError(TrafficFlowerError):
    """Uniqueness violation."""

    status_code = 409
    default_detail = "The account already exists."


class RateLimitError(TrafficFlowerError):
    """Too many attempts inside the rate limit window."""

    status_code = 429
    default_detail = "Too many requests, please try again later"


class StorageError(TrafficFlowerError):
    """Underlying persistence failure. Always surfaced as a generic 500."""

    status_code = 500
    default_detail = "Internal server error"


ERRORS_BY_STATUS: dict[int, type[TrafficFlowerError]] = {
    400: ValidationError,
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
    409: ConflictError,
    429: RateLimitError,
}


def error_for_status(status_code: int, detail: str | None = None) -> TrafficFlowerError:
    """Build the error matching an HTTP status code (client side)."""
    error_cls = ERRORS_BY_STATUS.get(status_code)
    if error_cls is None:
        error_cls = StorageError if status_code >= 500 else TrafficFlowerError
    error = error_cls(detail)
    error.status_code = status_code
    return error


@contextmanager
def storage_errors(operation: str, db: Session | None = None) -> Iterator[None]:
    """Convert SQLAlchemy failures raised inside the block into StorageError."""
    try:
        yield
    except SQLAlchemyError as e:
        if db is not None:
            db.rollback()
        logger.error(f"Database error during {operation}: {e}")
        raise StorageError() from e
