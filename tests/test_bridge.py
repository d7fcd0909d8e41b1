# tests/test_bridge.py
import pytest

import config
from auth.google_oauth import build_authorization_url, loopback_redirect_uri
from bridge.events import EventEmitter
from bridge.shortcuts import ADD_TASK_EVENT, LOG_TIME_EVENT, dispatch_shortcut, resolve_shortcut


# --- events ------------------------------------------------------------------

def test_emit_reaches_listeners_in_order():
    events = EventEmitter()
    seen = []
    events.on("gtk-theme-changed", lambda p: seen.append(("a", p)))
    events.on("gtk-theme-changed", lambda p: seen.append(("b", p)))
    events.on("other", lambda p: seen.append(("c", p)))

    assert events.emit("gtk-theme-changed", 1) == 2
    assert seen == [("a", 1), ("b", 1)]


def test_failing_listener_does_not_block_others():
    events = EventEmitter()
    seen = []

    def bad(_payload):
        raise ValueError("nope")

    events.on("x", bad)
    events.on("x", seen.append)
    assert events.emit("x", "ok") == 1
    assert seen == ["ok"]


def test_off_removes_listener():
    events = EventEmitter()
    seen = []
    events.on("x", seen.append)
    events.off("x", seen.append)
    events.off("missing", seen.append)
    assert events.emit("x") == 0
    assert seen == []


# --- shortcuts ---------------------------------------------------------------

@pytest.mark.parametrize(
    "key, mods, expected",
    [
        ("n", {"ctrl": True}, ADD_TASK_EVENT),
        ("N", {"meta": True}, ADD_TASK_EVENT),
        ("t", {"super_": True}, LOG_TIME_EVENT),
        ("t", {"ctrl": True, "alt": True}, None),
        ("n", {}, None),
        ("x", {"ctrl": True}, None),
    ],
)
def test_resolve_shortcut(key, mods, expected):
    assert resolve_shortcut(key, **mods) == expected


def test_dispatch_shortcut_emits():
    events = EventEmitter()
    seen = []
    events.on(LOG_TIME_EVENT, lambda _p: seen.append("log"))
    assert dispatch_shortcut(events, "T", ctrl=True) is True
    assert dispatch_shortcut(events, "q", ctrl=True) is False
    assert seen == ["log"]


# --- redirect helpers ----------------------------------------------------------

def test_loopback_redirect_uri():
    assert loopback_redirect_uri(53187) == "http://127.0.0.1:53187"
    assert loopback_redirect_uri(53187, "callback") == "http://127.0.0.1:53187/callback"


def test_loopback_redirect_uri_brackets_ipv6(monkeypatch):
    monkeypatch.setattr(config, "OAUTH_BIND_HOST", "::1")
    assert loopback_redirect_uri(53187, "/cb") == "http://[::1]:53187/cb"


def test_build_authorization_url():
    url = build_authorization_url("cid.apps", "http://127.0.0.1:53187")
    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    assert "client_id=cid.apps" in url
    assert "redirect_uri=http%3A%2F%2F127.0.0.1%3A53187" in url
    assert "response_type=code" in url
    assert "access_type=offline" in url
    assert "prompt=consent" in url
    assert "scope=https%3A%2F%2Fwww.googleapis.com%2Fauth%2Fcalendar.readonly" in url
