"""Client-side session: current user, token and loading state."""

import json
import logging
from datetime import UTC, date, datetime, timedelta

import httpx

from traffic_flower.client.api import AuthResult, TrafficFlowerClient
from traffic_flower.client.storage import SessionStorage
from traffic_flower.config import get_client_settings
from traffic_flower.exceptions import AuthError, TrafficFlowerError
from traffic_flower.schemas.auth import UserResponse

logger = logging.getLogger(__name__)

USER_STORAGE_KEY = "trafficFlowUser"
TOKEN_STORAGE_KEY = "trafficFlowToken"

HISTORY_WINDOW_DAYS = 7


def is_within_history_window(
    day: date, today: date | None = None, window_days: int = HISTORY_WINDOW_DAYS
) -> bool:
    """True for today and the ``window_days - 1`` days before it."""
    today = today or datetime.now(UTC).date()
    return today - timedelta(days=window_days - 1) <= day <= today


class SessionContext:
    """Explicit session object handed to the views.

    Persists the user and token through an injected ``SessionStorage`` and
    keeps the API client's bearer token in sync with its own.
    """

    def __init__(self, api: TrafficFlowerClient, storage: SessionStorage) -> None:
        self.api = api
        self.storage = storage
        self.user: UserResponse | None = self._read_stored_user()
        self.token: str | None = storage.get(TOKEN_STORAGE_KEY) or None
        self.loading = True
        self.error: Exception | None = None
        self.api.token = self.token

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.token is not None

    def _read_stored_user(self) -> UserResponse | None:
        raw = self.storage.get(USER_STORAGE_KEY)
        if not raw:
            return None
        try:
            return UserResponse.model_validate(json.loads(raw))
        except ValueError:
            # Corrupt entry; drop it rather than failing every start
            self.storage.remove(USER_STORAGE_KEY)
            return None

    def _set_user(self, user: UserResponse | None) -> None:
        self.user = user
        if user is None:
            self.storage.remove(USER_STORAGE_KEY)
        else:
            self.storage.set(USER_STORAGE_KEY, user.model_dump_json())

    def _set_token(self, token: str | None) -> None:
        self.token = token
        self.api.token = token
        if token is None:
            self.storage.remove(TOKEN_STORAGE_KEY)
        else:
            self.storage.set(TOKEN_STORAGE_KEY, token)

    def _clear(self) -> None:
        self._set_user(None)
        self._set_token(None)

    async def initialize(self) -> None:
        """Confirm the stored session with the server.

        Authorization failures clear the stored session. Any other failure
        keeps the optimistically restored user and is kept in ``error``.
        """
        self.loading = True
        self.error = None
        try:
            if self.token is None:
                self._clear()
                return
            self._set_user(await self.api.me())
        except AuthError:
            logger.info("Stored session rejected; clearing credentials")
            self._clear()
        except (TrafficFlowerError, httpx.HTTPError) as e:
            logger.warning(f"Could not confirm stored session: {e}")
            self.error = e
        finally:
            self.loading = False

    def login(self, result: AuthResult) -> None:
        """Adopt the token and user returned by register or login."""
        self._set_user(result.user)
        self._set_token(result.token)

    async def logout(self) -> None:
        """Tell the server, then forget the session whatever it answered."""
        try:
            await self.api.logout()
        except (TrafficFlowerError, httpx.HTTPError) as e:
            logger.debug(f"Ignoring logout failure: {e}")
        finally:
            self._clear()

    async def delete_account(self) -> None:
        """Delete the account; local state is only cleared on success."""
        await self.api.delete_account()
        self._clear()

    async def fetch_history(
        self, intersection_id: int, day: date, today: date | None = None
    ) -> dict | None:
        """Daily history, or None without a request when ``day`` is out of window."""
        window_days = get_client_settings().history_window_days
        if not is_within_history_window(day, today, window_days):
            return None
        return await self.api.history(intersection_id, day)
