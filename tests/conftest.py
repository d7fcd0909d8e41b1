# tests/conftest.py
import os
import sys

import pytest

# project root on sys.path so the flat top-level packages import
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from auth.listener_state import ListenerSlot  # noqa: E402


@pytest.fixture(autouse=True)
def _no_proxy(monkeypatch):
    """Loopback requests must never be routed through an environment proxy."""
    for key in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("no_proxy", "127.0.0.1,localhost")


@pytest.fixture
def slot() -> ListenerSlot:
    """A fresh listener slot per test."""
    return ListenerSlot()


@pytest.fixture
def gtk_dir(tmp_path, monkeypatch):
    """Point the GTK config lookup at an empty temporary directory."""
    import config

    directory = tmp_path / "gtk-4.0"
    directory.mkdir()
    monkeypatch.setattr(config, "GTK_CONFIG_DIR", str(directory))
    return directory
