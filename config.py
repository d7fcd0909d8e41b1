"""
config.py

Loads environment variables from .env using python-dotenv.
Exposes them as typed constants grouped by section.
Part of DayLight — Desktop Planner Bridge.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load .env file from project root
# ---------------------------------------------------------------------------
_ENV_PATH = Path(__file__).resolve().parent / ".env"
load_dotenv(_ENV_PATH)


def _get_optional(key: str, default: str = "") -> str:
    """
    Retrieve an optional environment variable with a default.

    Args:
        key: The environment variable name.
        default: Fallback value if not set.

    Returns:
        The value string or default.
    """
    return os.getenv(key, default).strip() or default


def _get_int(key: str, default: int = 0) -> int:
    """
    Retrieve an environment variable as an integer.

    Args:
        key: The environment variable name.
        default: Fallback if not set or not a valid int.

    Returns:
        The integer value.
    """
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float(key: str, default: float = 0.0) -> float:
    """
    Retrieve an environment variable as a float.

    Args:
        key: The environment variable name.
        default: Fallback if not set or not a valid float.

    Returns:
        The float value.
    """
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ===========================================================================
# Section 1 — OAuth loopback listener
# ===========================================================================

# must be a loopback IP literal; anything else is refused at bind time
OAUTH_BIND_HOST: str = _get_optional("OAUTH_BIND_HOST", "127.0.0.1")
OAUTH_DEFAULT_TIMEOUT_MS: int = _get_int("OAUTH_DEFAULT_TIMEOUT_MS", 120_000)
OAUTH_ACCEPT_POLL_SECONDS: float = _get_float("OAUTH_ACCEPT_POLL_SECONDS", 0.25)

# Google Calendar (OAuth2) — only needed for the CLI login helper
GOOGLE_CLIENT_ID: str = _get_optional("GOOGLE_CLIENT_ID")

# ===========================================================================
# Section 2 — Network
# ===========================================================================

FETCH_TIMEOUT_SECONDS: float = _get_float("FETCH_TIMEOUT_SECONDS", 30.0)

# ===========================================================================
# Section 3 — GTK theme
# ===========================================================================

GTK_CONFIG_DIR: str = _get_optional("GTK_CONFIG_DIR")  # empty = XDG default
THEME_DEBOUNCE_MS: int = _get_int("THEME_DEBOUNCE_MS", 200)

# ===========================================================================
# Section 4 — General Config
# ===========================================================================

LOG_LEVEL: str = _get_optional("LOG_LEVEL", "INFO").upper()

# ===========================================================================
# Project paths (derived, not from .env)
# ===========================================================================

PROJECT_ROOT: Path = Path(__file__).resolve().parent
LOGS_DIR: Path = Path(_get_optional("DAYLIGHT_LOGS_DIR", str(PROJECT_ROOT / "logs")))

# Ensure logs directory exists
LOGS_DIR.mkdir(parents=True, exist_ok=True)


def as_dict() -> dict[str, str | int | float]:
    """
    Return all configuration values as a flat dictionary.
    Logged at DEBUG by main(); the client id is masked.

    Returns:
        A dict of all config keys and their current values.

    Example:
        cfg = as_dict()
    """
    return {
        # OAuth
        "OAUTH_BIND_HOST": OAUTH_BIND_HOST,
        "OAUTH_DEFAULT_TIMEOUT_MS": OAUTH_DEFAULT_TIMEOUT_MS,
        "OAUTH_ACCEPT_POLL_SECONDS": OAUTH_ACCEPT_POLL_SECONDS,
        "GOOGLE_CLIENT_ID": "***set***" if GOOGLE_CLIENT_ID else "",
        # Network
        "FETCH_TIMEOUT_SECONDS": FETCH_TIMEOUT_SECONDS,
        # Theme
        "GTK_CONFIG_DIR": GTK_CONFIG_DIR or "(xdg default)",
        "THEME_DEBOUNCE_MS": THEME_DEBOUNCE_MS,
        # General
        "LOG_LEVEL": LOG_LEVEL,
        "LOGS_DIR": str(LOGS_DIR),
    }
