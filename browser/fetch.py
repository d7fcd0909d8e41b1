"""
fetch.py

Plain HTTP GET for the front end (ICS calendar feeds and similar).
Returns the body as text or raises a descriptive error.
Part of DayLight — Desktop Planner Bridge.
"""

import logging

import requests

import config

_log = logging.getLogger("daylight.browser")
_log_file = config.LOGS_DIR / "browser.log"
_handler = logging.FileHandler(_log_file, encoding="utf-8")
_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s"))
_log.addHandler(_handler)
_log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))


class FetchError(Exception):
    """Base class for fetch_url failures."""


class NetworkFailure(FetchError):
    """The request never produced a response (DNS, TLS, timeout, reset)."""


class HttpStatusError(FetchError):
    """The server answered outside the 2xx range."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def fetch_url(url: str, timeout: float = config.FETCH_TIMEOUT_SECONDS) -> str:
    """
    Fetch a URL and return its body as text.

    Args:
        url: Absolute http(s) URL.
        timeout: Seconds before the request is abandoned.

    Returns:
        The decoded response body.

    Raises:
        HttpStatusError: If the status is not 2xx. Message is "HTTP <status>".
        NetworkFailure: On any transport error.

    Example:
        ics = fetch_url("https://calendar.example.com/feed.ics")
    """
    _log.info("FETCH | url='%s'", url[:120])

    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        _log.error("FETCH FAILED | url='%s' | error=%s", url[:120], exc)
        raise NetworkFailure(str(exc)) from exc

    if not 200 <= response.status_code < 300:
        _log.warning("FETCH REJECTED | url='%s' | status=%d", url[:120], response.status_code)
        raise HttpStatusError(response.status_code)

    _log.info("FETCH COMPLETE | url='%s' | bytes=%d", url[:120], len(response.content))
    return response.text
