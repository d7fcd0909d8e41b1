"""
google_oauth.py

Builds the Google OAuth2 authorization URL for the loopback redirect flow.
The authorization code itself is captured by auth.oauth_listener; the
token exchange happens in the front end.
Part of DayLight — Desktop Planner Bridge.

Auth Flow: OAuth2 Authorization Code Flow (loopback redirect)
Provider: Google
Scopes: https://www.googleapis.com/auth/calendar.readonly
Auth URL: https://accounts.google.com/o/oauth2/v2/auth
Redirect URI: http://127.0.0.1:{port}
"""

from typing import Sequence
from urllib.parse import urlencode

import config

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
DEFAULT_SCOPES = ("https://www.googleapis.com/auth/calendar.readonly",)


def loopback_redirect_uri(port: int, path: str = "") -> str:
    """
    Build the redirect URI pointing at the capture listener.

    Args:
        port: Port returned by start_oauth_listener().
        path: Optional path such as "/callback". The listener accepts any.

    Returns:
        The redirect URI string.

    Example:
        loopback_redirect_uri(53187)  # -> "http://127.0.0.1:53187"
    """
    if path and not path.startswith("/"):
        path = f"/{path}"
    host = config.OAUTH_BIND_HOST
    if ":" in host:
        host = f"[{host}]"
    return f"http://{host}:{port}{path}"


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    scopes: Sequence[str] = DEFAULT_SCOPES,
) -> str:
    """
    Generate the Google OAuth2 authorization URL.

    Args:
        client_id: OAuth client id of the desktop app.
        redirect_uri: Loopback redirect URI from loopback_redirect_uri().
        scopes: Scopes to request. Defaults to calendar read-only.

    Returns:
        The full authorization URL to open in the user's browser.

    Example:
        url = build_authorization_url("123.apps.googleusercontent.com", redirect_uri)
    """
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "access_type": "offline",
        "prompt": "consent",
        "scope": " ".join(scopes),
    }
    return f"{AUTH_URL}?{urlencode(params)}"
