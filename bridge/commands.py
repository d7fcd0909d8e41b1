"""
commands.py

Command surface exposed to the front end.
AppState owns the per-application collaborators (listener slot, event
bridge); CommandRouter dispatches a command name to its handler and turns
every expected failure into a CommandError carrying a readable message.
Part of DayLight — Desktop Planner Bridge.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import config
from auth.errors import OAuthListenerError
from auth.listener_state import ListenerSlot
from auth.oauth_listener import await_oauth_code, start_oauth_listener
from bridge.events import EventEmitter
from browser.fetch import FetchError, fetch_url
from theme.gtk_theme import ThemeReadError, get_gtk_colors

_log = logging.getLogger("daylight.bridge.commands")
_log_file = config.LOGS_DIR / "bridge.log"
_handler = logging.FileHandler(_log_file, encoding="utf-8")
_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s"))
_log.addHandler(_handler)
_log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

_EXPECTED_ERRORS = (OAuthListenerError, FetchError, ThemeReadError)


class CommandError(Exception):
    """A command failed; str(exc) is the message shown to the user."""


@dataclass
class AppState:
    """State shared by all commands for the lifetime of the application."""

    oauth_slot: ListenerSlot = field(default_factory=ListenerSlot)
    events: EventEmitter = field(default_factory=EventEmitter)


class CommandRouter:
    """
    Dispatches front-end commands by name.

    Example:
        router = CommandRouter(AppState())
        port = await router.invoke("start_oauth_listener")
        code = await router.invoke("await_oauth_code", timeout_ms=120_000)
    """

    def __init__(self, state: AppState) -> None:
        self.state = state
        self._handlers: dict[str, Callable[..., Awaitable[Any]]] = {
            "start_oauth_listener": self.start_oauth_listener,
            "await_oauth_code": self.await_oauth_code,
            "fetch_url": self.fetch_url,
            "tauri_ready": self.tauri_ready,
            "get_gtk_colors": self.get_gtk_colors,
        }

    @property
    def commands(self) -> list[str]:
        return sorted(self._handlers)

    async def invoke(self, name: str, **args: Any) -> Any:
        """
        Run a command.

        Args:
            name: Command name, e.g. "await_oauth_code".
            **args: Command arguments.

        Returns:
            The command's result.

        Raises:
            CommandError: On unknown commands and on every expected failure.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise CommandError(f"Unknown command: {name}")

        try:
            return await handler(**args)
        except _EXPECTED_ERRORS as exc:
            _log.warning("COMMAND FAILED | name=%s | error=%s", name, exc)
            raise CommandError(str(exc)) from exc

    async def start_oauth_listener(self) -> int:
        return start_oauth_listener(self.state.oauth_slot)

    async def await_oauth_code(self, timeout_ms: int) -> str:
        return await await_oauth_code(self.state.oauth_slot, timeout_ms)

    async def fetch_url(self, url: str) -> str:
        return await asyncio.to_thread(fetch_url, url)

    async def tauri_ready(self) -> bool:
        return True

    async def get_gtk_colors(self) -> dict:
        return get_gtk_colors().to_dict()
