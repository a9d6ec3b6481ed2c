"""Async HTTP client for the Traffic Flower API."""

from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx

from traffic_flower.config import get_client_settings
from traffic_flower.exceptions import (
    ConflictError,
    ValidationError,
    error_for_status,
)
from traffic_flower.schemas.auth import UserResponse


@dataclass(frozen=True)
class AuthResult:
    """Token and account returned by register and login."""

    token: str
    user: UserResponse


def _error_detail(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("detail") or body.get("message")
    return None


class TrafficFlowerClient:
    """Thin wrapper over ``httpx.AsyncClient`` that carries the bearer token.

    HTTP failures are raised as the matching ``TrafficFlowerError`` subclass;
    transport failures propagate as ``httpx`` errors.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_client_settings()
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_url,
            timeout=timeout or settings.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "TrafficFlowerClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = await self._client.request(method, path, headers=headers, **kwargs)
        if response.is_error:
            raise error_for_status(response.status_code, _error_detail(response))
        return response.json()

    @staticmethod
    def _auth_result(data: dict) -> AuthResult:
        return AuthResult(token=data["token"], user=UserResponse.model_validate(data["user"]))

    # Account

    async def register(
        self, name: str, username: str, email: str, password: str, repeat_password: str
    ) -> AuthResult:
        """Create an account. Form errors come back as HTTP 200 with an alert."""
        data = await self._request(
            "POST",
            "/api/signup/register",
            json={
                "name": name,
                "username": username,
                "email": email,
                "password": password,
                "repeat_password": repeat_password,
            },
        )
        if data.get("alert") == "error":
            message = data.get("message")
            if message == ConflictError.default_detail:
                raise ConflictError(message)
            raise ValidationError(message)
        return self._auth_result(data)

    async def login(self, identifier: str, password: str) -> AuthResult:
        """Authenticate with an email or username."""
        data = await self._request(
            "POST",
            "/api/signup/login",
            json={"identifier": identifier, "password": password},
        )
        return self._auth_result(data)

    async def me(self) -> UserResponse:
        """Resolve the user bound to the current token."""
        return UserResponse.model_validate(await self._request("GET", "/api/signup/me"))

    async def logout(self) -> None:
        """Advisory logout; the server keeps no session state."""
        await self._request("POST", "/api/signup/logout")

    async def delete_account(self) -> None:
        """Delete the account bound to the current token."""
        await self._request("DELETE", "/api/signup/account")

    # Intersections

    async def list_intersections(self) -> list[dict]:
        return await self._request("GET", "/api/intersections")

    async def get_intersection(self, intersection_id: int) -> dict:
        return await self._request("GET", f"/api/intersections/{intersection_id}")

    async def volume_stats(self, intersection_id: int, days: int = 7) -> dict:
        return await self._request(
            "GET", f"/api/intersections/{intersection_id}/stats/volume", params={"days": days}
        )

    async def semaphore_status(self, intersection_id: int) -> list[dict]:
        return await self._request(
            "GET", f"/api/intersections/{intersection_id}/semaphores/current"
        )

    async def schedule(self, intersection_id: int, days: int = 7) -> list[dict]:
        return await self._request(
            "GET", f"/api/intersections/{intersection_id}/schedule", params={"days": days}
        )

    async def history(self, intersection_id: int, day: date) -> dict:
        return await self._request(
            "GET",
            f"/api/intersections/{intersection_id}/history",
            params={"date": day.isoformat()},
        )

