"""
errors.py

Error taxonomy for the OAuth loopback listener.
Each failure carries a descriptive message for the UI layer and a
recoverable flag telling the caller whether restarting the flow can help.
Part of DayLight — Desktop Planner Bridge.
"""


class OAuthListenerError(Exception):
    """Base class for every OAuth listener failure."""

    message: str = "OAuth listener error"
    recoverable: bool = True

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class AlreadyRunning(OAuthListenerError):
    """A capture is already pending; await it before starting another."""

    message = "OAuth listener already running"


class LockPoisoned(OAuthListenerError):
    """The listener slot was left inconsistent by an earlier failure."""

    message = "Lock poisoned"
    recoverable = False


class BindFailure(OAuthListenerError):
    """The OS refused to bind the loopback socket."""

    message = "Failed to bind OAuth listener"


class UnsupportedAddress(OAuthListenerError):
    """The bound address is not a plain IP/port pair."""

    message = "Unsupported listener address"
    recoverable = False


class ListenerNotStarted(OAuthListenerError):
    """No capture is pending."""

    message = "OAuth listener not started"


class ListenerClosed(OAuthListenerError):
    """The server thread ended without delivering a code."""

    message = "OAuth listener closed"


class TimedOut(OAuthListenerError):
    """No redirect arrived in time. The receiver is gone; start again."""

    message = "OAuth listener timed out"
