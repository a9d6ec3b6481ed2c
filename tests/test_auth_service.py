"""Tests for the authentication service."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from traffic_flower.exceptions import AuthError, ConflictError, StorageError, ValidationError
from traffic_flower.models.user import User
from traffic_flower.services import auth as auth_service
from traffic_flower.services.auth import (
    create_access_token,
    create_user,
    decode_access_token,
    get_password_hash,
    login_user,
    register_user,
    validate_registration,
    verify_password,
    verify_token,
)


class TestPasswords:
    """Tests for password hashing."""

    def test_hash_is_not_plaintext(self):
        hashed = get_password_hash("secret123")
        assert hashed != "secret123"
        assert hashed.startswith("$2")

    def test_verify_password(self):
        hashed = get_password_hash("secret123")
        assert verify_password("secret123", hashed)
        assert not verify_password("secret124", hashed)


class TestTokens:
    """Tests for token issue and verification."""

    def test_token_carries_user_id_and_email(self):
        token = create_access_token(42, "ann@example.com")
        payload = decode_access_token(token)
        assert payload["sub"] == "42"
        assert payload["email"] == "ann@example.com"
        assert payload["exp"] - payload["iat"] == 7 * 24 * 60 * 60

    def test_token_valid_just_before_seven_days(self):
        issued_at = datetime.now(UTC) - timedelta(days=7) + timedelta(minutes=1)
        token = create_access_token(42, "ann@example.com", issued_at=issued_at)
        assert verify_token(token) == 42

    def test_token_invalid_after_seven_days(self):
        issued_at = datetime.now(UTC) - timedelta(days=7, minutes=1)
        token = create_access_token(42, "ann@example.com", issued_at=issued_at)
        with pytest.raises(AuthError, match="Invalid or expired token"):
            verify_token(token)

    def test_missing_token(self):
        with pytest.raises(AuthError, match="Not authenticated"):
            verify_token(None)

    def test_tampered_token(self):
        token = create_access_token(42, "ann@example.com")
        with pytest.raises(AuthError):
            verify_token(token[:-2] + "xx")

    def test_verify_token_does_not_touch_storage(self, db):
        """A token for a user that never existed still verifies."""
        token = create_access_token(99999, "ghost@example.com")
        assert verify_token(token) == 99999


class TestValidateRegistration:
    """Validation runs in a fixed order and stops at the first failure."""

    def _validate(self, **overrides):
        data = {
            "name": "Ann",
            "username": "ann",
            "email": "ann@example.com",
            "password": "secret123",
            "repeat_password": "secret123",
        }
        data.update(overrides)
        validate_registration(**data)

    def test_valid_input(self):
        self._validate()

    @pytest.mark.parametrize(
        ("overrides", "message"),
        [
            ({"email": "", "name": ""}, "Email is required"),
            ({"email": "not-an-email", "name": ""}, "Please enter a valid email address"),
            ({"email": "a<b>@example.com"}, "Invalid email format"),
            ({"name": "", "username": ""}, "Name is required"),
            ({"username": "", "password": ""}, "Username is required"),
            ({"username": "ann@home", "password": ""}, "Username cannot contain @"),
            ({"password": "", "repeat_password": ""}, "Password is required"),
            ({"repeat_password": ""}, "Repeating the password is required"),
            ({"repeat_password": "other"}, "Passwords do not match"),
        ],
    )
    def test_first_failure_wins(self, overrides, message):
        with pytest.raises(ValidationError) as exc_info:
            self._validate(**overrides)
        assert exc_info.value.detail == message


class TestRegisterUser:
    """Tests for register_user and create_user."""

    def test_register_stores_hash_only(self, db):
        result = register_user(db, "Ann", "ann", "ann@example.com", "secret123", "secret123")

        user = db.query(User).filter(User.id == result.user.id).one()
        assert user.password_hash != "secret123"
        assert verify_token(result.token) == user.id

    def test_register_conflict_on_existing_email(self, db):
        register_user(db, "Ann", "ann", "ann@example.com", "secret123", "secret123")
        with pytest.raises(ConflictError):
            register_user(db, "Ann B", "annb", "ann@example.com", "secret123", "secret123")

    def test_register_conflict_when_email_is_taken_as_username(self, db):
        create_user(db, "Legacy", "carol@example.com", "legacy@example.com", "secret123")
        with pytest.raises(ConflictError):
            register_user(
                db, "Carol", "carol", "carol@example.com", "secret123", "secret123"
            )

    def test_unique_constraint_race_is_a_conflict(self, db):
        """An insert losing the race to a concurrent registration is a conflict."""
        create_user(db, "Ann", "ann", "ann@example.com", "secret123")

        with pytest.raises(ConflictError):
            create_user(db, "Ann", "ann2", "ann@example.com", "secret123")

        assert db.query(User).count() == 1

    def test_storage_failure_is_generic(self, db):
        with (
            patch.object(
                auth_service,
                "create_user",
                side_effect=OperationalError("INSERT", {}, Exception("disk full")),
            ),
            pytest.raises(StorageError) as exc_info,
        ):
            register_user(db, "Ann", "ann", "ann@example.com", "secret123", "secret123")

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Internal server error"


class TestLoginUser:
    """Tests for login_user."""

    def test_login_requires_both_fields(self, db):
        with pytest.raises(ValidationError):
            login_user(db, "", "secret123")
        with pytest.raises(ValidationError):
            login_user(db, "ann", "")

    def test_login_returns_fresh_token(self, db):
        register_user(db, "Ann", "ann", "ann@example.com", "secret123", "secret123")
        result = login_user(db, "ann", "secret123")
        assert result.user.email == "ann@example.com"
        assert verify_token(result.token) == result.user.id

    def test_login_is_case_sensitive(self, db):
        register_user(db, "Ann", "ann", "ann@example.com", "secret123", "secret123")
        with pytest.raises(AuthError):
            login_user(db, "ANN@example.com", "secret123")

    def test_email_owner_can_log_in_when_another_username_matches(self, db):
        """A username equal to someone's email does not shadow the email owner."""
        squatter = create_user(db, "Al", "bob@example.com", "al@example.com", "alpass12")
        bob = create_user(db, "Bob", "bob", "bob@example.com", "bobpass1")

        assert login_user(db, "bob@example.com", "bobpass1").user.id == bob.id
        assert login_user(db, "bob@example.com", "alpass12").user.id == squatter.id
