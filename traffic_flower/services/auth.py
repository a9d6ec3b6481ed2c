"""Authentication service for JWT and password handling."""

import html
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from traffic_flower.config import get_settings
from traffic_flower.exceptions import AuthError, ConflictError, ValidationError, storage_errors
from traffic_flower.models.user import User

logger = logging.getLogger(__name__)
settings = get_settings()

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[a-zA-Z]{2,}$")

INVALID_CREDENTIALS = "Invalid email/username or password"
INVALID_TOKEN = "Invalid or expired token"


@dataclass(frozen=True)
class AuthResult:
    """Token and account returned by register and login."""

    token: str
    user: User


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(user_id: int, email: str, issued_at: datetime | None = None) -> str:
    """Create a JWT access token expiring ``jwt_expiration_minutes`` after issue."""
    issued_at = issued_at or datetime.now(UTC)
    expire = issued_at + timedelta(minutes=settings.jwt_expiration_minutes)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "iat": issued_at,
        "exp": expire,
    }
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return payload
    except JWTError:
        return None


def verify_token(token: str | None) -> int:
    """Return the user id bound to a token.

    Only the signature and expiry are checked; storage is not consulted, so a
    token stays valid until it expires even after logout or account deletion.
    """
    if not token:
        raise AuthError("Not authenticated")

    payload = decode_access_token(token)
    if payload is None:
        raise AuthError(INVALID_TOKEN)

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthError(INVALID_TOKEN) from None


def validate_registration(
    name: str,
    username: str,
    email: str,
    password: str,
    repeat_password: str,
) -> None:
    """Check registration input, raising on the first violated rule."""
    if not email.strip():
        raise ValidationError("Email is required")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email address")
    if email != html.escape(email, quote=True):
        raise ValidationError("Invalid email format")
    if not name.strip():
        raise ValidationError("Name is required")
    if not username.strip():
        raise ValidationError("Username is required")
    if "@" in username:
        raise ValidationError("Username cannot contain @")
    if not password.strip():
        raise ValidationError("Password is required")
    if not repeat_password.strip():
        raise ValidationError("Repeating the password is required")
    if password != repeat_password:
        raise ValidationError("Passwords do not match")


def get_users_by_identifier(db: Session, identifier: str) -> list[User]:
    """Users whose email or username equals ``identifier``, email match first."""
    users = (
        db.query(User)
        .filter(or_(User.email == identifier, User.username == identifier))
        .all()
    )
    return sorted(users, key=lambda user: (user.email != identifier, user.id))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    """Get a user by id."""
    return db.query(User).filter(User.id == user_id).first()


def authenticate_user(db: Session, identifier: str, password: str) -> User | None:
    """Authenticate a user by email or username and password."""
    for user in get_users_by_identifier(db, identifier):
        if verify_password(password, user.password_hash):
            return user
    return None


def create_user(db: Session, name: str, username: str, email: str, password: str) -> User:
    """Create a new user.

    The unique constraints on email and username are the authoritative guard;
    a violation on insert is reported as a conflict.
    """
    hashed_password = get_password_hash(password)
    user = User(name=name, username=username, email=email, password_hash=hashed_password)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError() from None
    db.refresh(user)
    return user


def register_user(
    db: Session,
    name: str,
    username: str,
    email: str,
    password: str,
    repeat_password: str,
) -> AuthResult:
    """Validate, create the account and issue its first token."""
    validate_registration(name, username, email, password, repeat_password)

    with storage_errors("registration", db):
        # Pre-flight check for a friendlier error; the insert is still guarded
        existing = (
            db.query(User.id)
            .filter(
                or_(
                    User.email.in_([email, username]),
                    User.username.in_([email, username]),
                )
            )
            .first()
        )
        if existing:
            raise ConflictError()

        user = create_user(db, name, username, email, password)

    logger.info(f"New user registered with id {user.id}")
    return AuthResult(token=create_access_token(user.id, user.email), user=user)


def login_user(db: Session, identifier: str, password: str) -> AuthResult:
    """Check credentials and issue a fresh token."""
    if not identifier or not password:
        raise ValidationError("Email/username and password are required")

    with storage_errors("login"):
        user = authenticate_user(db, identifier, password)

    if not user:
        logger.info("Rejected login attempt")
        raise AuthError(INVALID_CREDENTIALS)

    return AuthResult(token=create_access_token(user.id, user.email), user=user)


def delete_account(db: Session, token: str | None) -> None:
    """Hard-delete the account bound to ``token``."""
    user_id = verify_token(token)

    with storage_errors("account deletion", db):
        deleted = db.query(User).filter(User.id == user_id).delete()
        db.commit()

    logger.info(f"Deleted account {user_id} ({deleted} row(s))")
