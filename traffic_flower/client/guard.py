"""Navigation guard for views that need a session."""

from enum import StrEnum

from traffic_flower.client.session import SessionContext
from traffic_flower.config import get_client_settings

LOGIN_PATH = "/login"


class RouteDecision(StrEnum):
    """Outcome of guarding a navigation."""

    WAIT = "wait"  # session still loading; render nothing yet
    ALLOW = "allow"
    REDIRECT = "redirect"  # replace the navigation with LOGIN_PATH


def guard_route(session: SessionContext, bypass: bool | None = None) -> RouteDecision:
    """Decide whether a protected view may render.

    The attempted location is not remembered on redirect.
    """
    if session.loading:
        return RouteDecision.WAIT

    if bypass is None:
        bypass = get_client_settings().bypass_auth
    if bypass:
        return RouteDecision.ALLOW

    if session.user is None or session.token is None:
        return RouteDecision.REDIRECT

    return RouteDecision.ALLOW
