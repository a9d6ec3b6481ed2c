"""API endpoint tests for health and the account flows."""

from traffic_flower.main import SECURITY_HEADERS

REGISTER_URL = "/api/signup/register"
LOGIN_URL = "/api/signup/login"


def _registration(**overrides):
    data = {
        "name": "Bob",
        "username": "bob",
        "email": "bob@example.com",
        "password": "hunter22",
        "repeat_password": "hunter22",
    }
    data.update(overrides)
    return data


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "Traffic Flower API is running"}


def test_register_user(client):
    """Test user registration returns a token and the public user."""
    response = client.post(REGISTER_URL, json=_registration())
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Account created successfully"
    assert data["token"]
    assert data["user"]["email"] == "bob@example.com"
    assert data["user"]["username"] == "bob"
    assert "password_hash" not in data["user"]


def test_register_duplicate_email(client, auth_headers):
    """Duplicate email is reported inline as a form alert."""
    response = client.post(
        REGISTER_URL, json=_registration(email=auth_headers.email, username="other")
    )
    assert response.status_code == 200
    assert response.json() == {
        "message": "The account already exists.",
        "alert": "error",
        "email": "",
    }


def test_register_duplicate_username(client, auth_headers):
    """Duplicate username is a conflict too."""
    response = client.post(REGISTER_URL, json=_registration(username="ann"))
    assert response.json()["message"] == "The account already exists."


def test_register_username_with_at_sign(client):
    """Usernames cannot look like email addresses."""
    response = client.post(REGISTER_URL, json=_registration(username="bob@example.com"))
    assert response.status_code == 200
    assert response.json()["alert"] == "error"
    assert response.json()["message"] == "Username cannot contain @"


def test_register_password_mismatch(client):
    """Mismatched passwords are rejected before anything is stored."""
    response = client.post(REGISTER_URL, json=_registration(repeat_password="other"))
    assert response.status_code == 200
    assert response.json()["alert"] == "error"
    assert response.json()["message"] == "Passwords do not match"

    login = client.post(LOGIN_URL, json={"identifier": "bob", "password": "hunter22"})
    assert login.status_code == 401


def test_register_missing_email(client):
    """Email is the first field checked."""
    response = client.post(REGISTER_URL, json=_registration(email="", name=""))
    assert response.json()["message"] == "Email is required"


def test_login_with_email(client, auth_headers):
    """Test login by email."""
    response = client.post(
        LOGIN_URL, json={"identifier": auth_headers.email, "password": "secret123"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Login successful"
    assert data["token"]
    assert data["user"]["id"] == auth_headers.user_id


def test_login_with_username(client, auth_headers):
    """Test login by username."""
    response = client.post(LOGIN_URL, json={"identifier": "ann", "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "ann@example.com"


def test_login_failures_are_indistinguishable(client, auth_headers):
    """Wrong password and unknown account produce the same response."""
    wrong_password = client.post(LOGIN_URL, json={"identifier": "ann", "password": "nope"})
    unknown_user = client.post(
        LOGIN_URL, json={"identifier": "ghost@example.com", "password": "nope"}
    )

    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()
    assert wrong_password.json()["detail"] == "Invalid email/username or password"


def test_login_missing_fields(client):
    """Missing identifier or password is a bad request."""
    response = client.post(LOGIN_URL, json={"identifier": "ann"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Email/username and password are required"


def test_get_current_user(client, auth_headers):
    """Test getting current user info."""
    response = client.get("/api/signup/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {
        "id": auth_headers.user_id,
        "name": "Ann",
        "username": "ann",
        "email": "ann@example.com",
    }


def test_get_current_user_without_token(client):
    """Test that /me requires a token."""
    response = client.get("/api/signup/me")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_get_current_user_invalid_token(client):
    """Test that a garbage token is rejected."""
    response = client.get("/api/signup/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"


def test_delete_account(client, auth_headers):
    """Deleted accounts can no longer log in or resolve."""
    response = client.delete("/api/signup/account", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Account deleted"

    login = client.post(LOGIN_URL, json={"identifier": "ann", "password": "secret123"})
    assert login.status_code == 401

    me = client.get("/api/signup/me", headers=auth_headers)
    assert me.status_code == 401


def test_token_survives_account_deletion_on_read_endpoints(client, auth_headers):
    """Tokens are stateless; read endpoints only verify signature and expiry."""
    client.delete("/api/signup/account", headers=auth_headers)

    response = client.get("/api/intersections", headers=auth_headers)
    assert response.status_code == 200


def test_delete_account_requires_token(client):
    """Test that deletion requires authentication."""
    response = client.delete("/api/signup/account")
    assert response.status_code == 401


def test_logout(client, auth_headers):
    """Logout is advisory and always succeeds."""
    response = client.post("/api/signup/logout", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"


def test_security_headers_on_account_endpoints(client):
    """Account endpoints carry the browser hardening headers."""
    response = client.post(LOGIN_URL, json={"identifier": "x", "password": "y"})
    for header, value in SECURITY_HEADERS.items():
        assert response.headers[header] == value


def test_login_rate_limit(client, auth_headers):
    """The 21st login attempt inside a minute is rejected."""
    for _ in range(20):
        response = client.post(LOGIN_URL, json={"identifier": "ann", "password": "wrong"})
        assert response.status_code == 401

    response = client.post(LOGIN_URL, json={"identifier": "ann", "password": "secret123"})
    assert response.status_code == 429
    assert response.json()["detail"] == "Too many login attempts, please try again later"


def test_register_rate_limit(client):
    """The 7th registration inside a minute is rejected."""
    for i in range(6):
        response = client.post(
            REGISTER_URL, json=_registration(email=f"user{i}@example.com", username=f"user{i}")
        )
        assert response.status_code == 200

    response = client.post(
        REGISTER_URL, json=_registration(email="late@example.com", username="late")
    )
    assert response.status_code == 429


def test_login_attempts_are_counted_in_redis(client, fake_redis):
    """Attempts land in a Redis window that expires on its own."""
    client.post(LOGIN_URL, json={"identifier": "x", "password": "y"})

    keys = fake_redis.keys("rate_limit:login:*")
    assert len(keys) == 1
    assert fake_redis.zcard(keys[0]) == 1
    assert 0 < fake_redis.ttl(keys[0]) <= 60
