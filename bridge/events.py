"""
events.py

Named-event bridge from the backend to the front end.
Background threads (theme watcher, shortcut handler) emit events here;
the front-end adapter subscribes to the names it cares about.
Part of DayLight — Desktop Planner Bridge.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable

import config

_log = logging.getLogger("daylight.bridge.events")
_log_file = config.LOGS_DIR / "bridge.log"
_handler = logging.FileHandler(_log_file, encoding="utf-8")
_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s"))
_log.addHandler(_handler)
_log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

Listener = Callable[[Any], None]


class EventEmitter:
    """
    Thread-safe publish/subscribe by event name.

    Example:
        events = EventEmitter()
        events.on("gtk-theme-changed", lambda _payload: reload_theme())
        events.emit("gtk-theme-changed")
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, name: str, listener: Listener) -> None:
        with self._lock:
            self._listeners[name].append(listener)

    def off(self, name: str, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners.get(name, []):
                self._listeners[name].remove(listener)

    def emit(self, name: str, payload: Any = None) -> int:
        """
        Deliver an event to every listener registered for its name.

        A failing listener is logged and skipped; the rest still run.

        Args:
            name: Event name, e.g. "gtk-theme-changed".
            payload: Optional value passed to each listener.

        Returns:
            Number of listeners that ran without raising.
        """
        with self._lock:
            listeners = list(self._listeners.get(name, []))

        delivered = 0
        for listener in listeners:
            try:
                listener(payload)
                delivered += 1
            except Exception as exc:
                _log.error("EMIT FAILED | event=%s | error=%s", name, exc)

        _log.debug("EMIT | event=%s | listeners=%d", name, delivered)
        return delivered
