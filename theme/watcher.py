"""
watcher.py

Watches the GTK 4 config directory (and the imported theme's directory)
and reports a theme change once a burst of file events has settled.
Part of DayLight — Desktop Planner Bridge.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

import config
from bridge.events import EventEmitter
from theme.gtk_theme import gtk_config_dir, resolve_gtk_theme_path

_log = logging.getLogger("daylight.theme.watcher")
_log_file = config.LOGS_DIR / "theme.log"
_handler = logging.FileHandler(_log_file, encoding="utf-8")
_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s"))
_log.addHandler(_handler)
_log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

THEME_CHANGED_EVENT = "gtk-theme-changed"


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, watcher: GtkThemeWatcher) -> None:
        self.watcher = watcher

    # open/close-without-write events are ignored; reading the theme after
    # a notification must not trigger another one
    def on_created(self, event: FileSystemEvent) -> None:
        self.watcher._on_change(str(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        self.watcher._on_change(str(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        self.watcher._on_change(str(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        self.watcher._on_change(str(event.dest_path))


class GtkThemeWatcher:
    """
    Debounced, non-recursive watcher over a set of directories.

    Every file event restarts a timer; on_change runs once no further
    event arrived for debounce_ms.

    Attributes:
        directories: Distinct directories being watched.
        debounce_ms: Quiet period in milliseconds.

    Example:
        watcher = GtkThemeWatcher([gtk_config_dir()], on_change=reload)
        watcher.start()
    """

    def __init__(
        self,
        directories: Iterable[Path],
        on_change: Callable[[], None],
        debounce_ms: int = config.THEME_DEBOUNCE_MS,
    ) -> None:
        self.directories: list[Path] = []
        for directory in directories:
            resolved = Path(directory).resolve()
            if resolved not in self.directories:
                self.directories.append(resolved)
        self.debounce_ms = debounce_ms
        self._on_change_callback = on_change
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._observer: Optional[Observer] = None

    def _on_change(self, file_path: str) -> None:
        _log.debug("Change detected: %s", file_path)
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_ms / 1000, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        _log.info("THEME CHANGED | dirs=%s", ", ".join(str(d) for d in self.directories))
        try:
            self._on_change_callback()
        except Exception as exc:
            _log.error("THEME CHANGE CALLBACK FAILED | error=%s", exc)

    def start(self) -> None:
        """Start the watchdog observer. Returns immediately."""
        handler = _ChangeHandler(self)
        self._observer = Observer()
        for directory in self.directories:
            self._observer.schedule(handler, str(directory), recursive=False)
        self._observer.start()
        _log.info("WATCHER STARTED | dirs=%s", ", ".join(str(d) for d in self.directories))

    def stop(self) -> None:
        """Stop watching and drop any pending notification."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

        _log.info("WATCHER STOPPED")


def setup_gtk_watcher(emitter: EventEmitter) -> Optional[GtkThemeWatcher]:
    """
    Watch the GTK config for theme changes and notify the front end.

    Args:
        emitter: Event bridge that receives "gtk-theme-changed".

    Returns:
        The started watcher, or None when the GTK config directory is missing.

    Example:
        watcher = setup_gtk_watcher(state.events)
    """
    gtk_dir = gtk_config_dir()
    if not gtk_dir.is_dir():
        _log.info("WATCHER SKIPPED | missing dir=%s", gtk_dir)
        return None

    directories = [gtk_dir]
    theme_path = resolve_gtk_theme_path()
    if theme_path is not None:
        directories.append(theme_path.parent)

    watcher = GtkThemeWatcher(
        directories,
        on_change=lambda: emitter.emit(THEME_CHANGED_EVENT),
    )
    watcher.start()
    return watcher
