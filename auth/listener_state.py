"""
listener_state.py

Holds the receiving end of the one pending OAuth capture.
One ListenerSlot is constructed per application and handed to both the
start and await operations; it enforces "one capture in flight" and
"receiver consumed exactly once".
Part of DayLight — Desktop Planner Bridge.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import config
from auth.errors import AlreadyRunning, ListenerNotStarted, LockPoisoned
from auth.oneshot import OneShotReceiver

_log = logging.getLogger("daylight.auth.state")
_log_file = config.LOGS_DIR / "auth.log"
_handler = logging.FileHandler(_log_file, encoding="utf-8")
_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s"))
_log.addHandler(_handler)
_log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))


class ListenerSlot:
    """
    Lock-guarded optional slot for the pending receiver.

    Critical sections only read or swap the slot reference; nothing blocks
    while the lock is held. If an exception escapes a critical section the
    slot is marked poisoned and every later access raises LockPoisoned.

    Example:
        slot = ListenerSlot()
        slot.put(receiver)
        receiver = slot.take()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._receiver: Optional[OneShotReceiver] = None
        self._poisoned = False

    @contextmanager
    def _guard(self) -> Iterator[None]:
        with self._lock:
            if self._poisoned:
                raise LockPoisoned()
            try:
                yield
            except (AlreadyRunning, ListenerNotStarted):
                raise
            except BaseException:
                self._poisoned = True
                _log.error("SLOT POISONED | unexpected failure inside critical section")
                raise

    @property
    def pending(self) -> bool:
        """True while a receiver is waiting to be awaited."""
        with self._guard():
            return self._receiver is not None

    def ensure_empty(self) -> None:
        """
        Raises:
            AlreadyRunning: If a capture is pending.
            LockPoisoned: If the slot is poisoned.
        """
        with self._guard():
            if self._receiver is not None:
                raise AlreadyRunning()

    def put(self, receiver: OneShotReceiver) -> None:
        """
        Install the receiver of a freshly started capture.

        Args:
            receiver: Receiving end of the new capture's channel.

        Raises:
            AlreadyRunning: If another capture got there first.
            LockPoisoned: If the slot is poisoned.
        """
        with self._guard():
            if self._receiver is not None:
                raise AlreadyRunning()
            self._receiver = receiver
        _log.debug("SLOT FILLED")

    def take(self) -> OneShotReceiver:
        """
        Remove and return the pending receiver.

        Returns:
            The receiver; the slot is empty afterwards.

        Raises:
            ListenerNotStarted: If nothing is pending.
            LockPoisoned: If the slot is poisoned.
        """
        with self._guard():
            receiver = self._receiver
            if receiver is None:
                raise ListenerNotStarted()
            self._receiver = None
        _log.debug("SLOT TAKEN")
        return receiver
