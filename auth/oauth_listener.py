"""
oauth_listener.py

Start and await operations for the loopback authorization-code capture.
start_oauth_listener() binds the callback server and parks its receiver in
the ListenerSlot; await_oauth_code() takes the receiver and races it
against a timeout without blocking the event loop.
Part of DayLight — Desktop Planner Bridge.
"""

from __future__ import annotations

import asyncio
import logging

import config
from auth import oneshot
from auth.callback_server import CallbackServer
from auth.errors import AlreadyRunning, ListenerClosed, TimedOut
from auth.listener_state import ListenerSlot

_log = logging.getLogger("daylight.auth.listener")
_log_file = config.LOGS_DIR / "auth.log"
_handler = logging.FileHandler(_log_file, encoding="utf-8")
_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s"))
_log.addHandler(_handler)
_log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))


def start_oauth_listener(slot: ListenerSlot) -> int:
    """
    Open the loopback listener for a new authorization-code capture.

    Returns as soon as the accept thread is running; it does not wait for
    a connection.

    Args:
        slot: The application's listener slot.

    Returns:
        The OS-assigned port to embed in the redirect URI.

    Raises:
        AlreadyRunning: If a capture is already pending.
        BindFailure: If the loopback socket cannot be bound.
        UnsupportedAddress: If the bound address has no IP port.
        LockPoisoned: If the slot is poisoned.

    Example:
        port = start_oauth_listener(state.oauth_slot)
    """
    slot.ensure_empty()

    sender, receiver = oneshot.channel()
    server = CallbackServer(sender)

    try:
        slot.put(receiver)
    except AlreadyRunning:
        _log.warning("START REJECTED | lost race | port=%d", server.port)
        server.close()
        raise
    except BaseException as exc:
        # a bound-but-unregistered server would hold the port forever
        _log.error("START REJECTED | port=%d | error=%s", server.port, exc)
        server.close()
        raise

    server.start()
    _log.info("START | port=%d", server.port)
    return server.port


async def await_oauth_code(slot: ListenerSlot, timeout_ms: int) -> str:
    """
    Wait for the pending capture to deliver its authorization code.

    The receiver is taken out of the slot first, so a second concurrent
    call fails with ListenerNotStarted. On timeout the receiver is dropped,
    which also shuts the listener down.

    Args:
        slot: The application's listener slot.
        timeout_ms: Maximum wait in milliseconds.

    Returns:
        The URL-decoded authorization code.

    Raises:
        ListenerNotStarted: If no capture is pending.
        ListenerClosed: If the listener ended without a code.
        TimedOut: If no code arrived within timeout_ms.
        LockPoisoned: If the slot is poisoned.

    Example:
        code = await await_oauth_code(state.oauth_slot, 120_000)
    """
    receiver = slot.take()
    _log.info("AWAIT | timeout_ms=%d", timeout_ms)

    try:
        code = await asyncio.wait_for(receiver.recv(), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        _log.warning("AWAIT TIMED OUT | timeout_ms=%d", timeout_ms)
        raise TimedOut() from None
    except oneshot.ChannelClosed:
        _log.warning("AWAIT FAILED | listener closed without a code")
        raise ListenerClosed() from None
    finally:
        # covers cancellation of the awaiting task as well
        receiver.close()

    _log.info("AWAIT COMPLETE")
    return code
