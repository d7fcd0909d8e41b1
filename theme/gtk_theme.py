"""
gtk_theme.py

Reads the user's GTK 4 theme so the front end can follow it.
Resolves the active theme CSS from ~/.config/gtk-4.0/gtk.css, collects its
@define-color declarations and the dark-theme preference from settings.ini.
Part of DayLight — Desktop Planner Bridge.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import config

_log = logging.getLogger("daylight.theme")
_log_file = config.LOGS_DIR / "theme.log"
_handler = logging.FileHandler(_log_file, encoding="utf-8")
_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s"))
_log.addHandler(_handler)
_log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

_IMPORT_URL_RE = re.compile(r"""url\(\s*["']?([^"')]*)""")
DARK_THEME_KEY = "gtk-application-prefer-dark-theme"


class ThemeReadError(Exception):
    """The resolved theme CSS exists but could not be read."""


@dataclass
class GtkThemeColors:
    """Named colors from the active GTK theme plus the dark preference."""

    colors: dict[str, str] = field(default_factory=dict)
    prefer_dark: bool = False
    theme_path: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "colors": dict(self.colors),
            "prefer_dark": self.prefer_dark,
            "theme_path": self.theme_path,
        }


def gtk_config_dir() -> Path:
    """
    Locate the GTK 4 config directory.

    Returns:
        GTK_CONFIG_DIR if configured, else $XDG_CONFIG_HOME/gtk-4.0,
        else ~/.config/gtk-4.0.
    """
    if config.GTK_CONFIG_DIR:
        return Path(config.GTK_CONFIG_DIR).expanduser()
    xdg = os.getenv("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "gtk-4.0"


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except OSError:
        return None


def _import_target(line: str, gtk_css: Path) -> Optional[Path]:
    """Resolve the path of an @import url(...) line, or None."""
    match = _IMPORT_URL_RE.search(line)
    if not match:
        return None

    raw = match.group(1)
    if raw.startswith("~/"):
        path = Path.home() / raw[2:]
    else:
        path = Path(raw)

    if not path.is_absolute():
        path = gtk_css.parent / path
    return path


def resolve_gtk_theme_path() -> Optional[Path]:
    """
    Find the CSS file holding the active theme's colors.

    Follows the first @import url("...") in gtk.css whose target exists.
    Without one, gtk.css itself is used if it declares colors.

    Returns:
        Path to the theme CSS, or None if nothing usable is configured.

    Example:
        path = resolve_gtk_theme_path()
    """
    gtk_css = gtk_config_dir() / "gtk.css"
    content = _read_text(gtk_css)
    if content is None:
        return None

    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed.startswith("@import"):
            continue
        target = _import_target(trimmed[len("@import"):], gtk_css)
        if target is not None and target.exists():
            return target

    if "@define-color" in content:
        return gtk_css

    return None


def parse_define_colors(css: str) -> dict[str, str]:
    """
    Collect all @define-color declarations.

    Args:
        css: Stylesheet text.

    Returns:
        Mapping of color name to its raw CSS value.

    Example:
        parse_define_colors("@define-color accent_color #3584e4;")
        # -> {"accent_color": "#3584e4"}
    """
    colors: dict[str, str] = {}
    for line in css.splitlines():
        trimmed = line.strip()
        if not trimmed.startswith("@define-color "):
            continue
        rest = trimmed[len("@define-color "):]
        name, sep, value = rest.partition(" ")
        if not sep:
            continue
        colors[name] = value.rstrip(";").strip()
    return colors


def read_dark_preference() -> bool:
    """Return True if settings.ini asks applications for a dark theme."""
    content = _read_text(gtk_config_dir() / "settings.ini")
    if content is None:
        return False

    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed.startswith(DARK_THEME_KEY):
            continue
        _, sep, value = trimmed[len(DARK_THEME_KEY):].partition("=")
        if sep:
            return value.strip().lower() in ("true", "1")
    return False


def get_gtk_colors() -> GtkThemeColors:
    """
    Read the active GTK theme.

    Returns:
        GtkThemeColors; colors is empty when no theme CSS is configured.

    Raises:
        ThemeReadError: If the resolved theme file cannot be read.

    Example:
        payload = get_gtk_colors().to_dict()
    """
    theme_path = resolve_gtk_theme_path()

    colors: dict[str, str] = {}
    if theme_path is not None:
        try:
            css = theme_path.read_text(encoding="utf-8")
        except OSError as exc:
            _log.error("THEME READ FAILED | path=%s | error=%s", theme_path, exc)
            raise ThemeReadError(f"Failed to read theme CSS: {exc}") from exc
        colors = parse_define_colors(css)

    result = GtkThemeColors(
        colors=colors,
        prefer_dark=read_dark_preference(),
        theme_path=str(theme_path) if theme_path is not None else None,
    )
    _log.info(
        "THEME | path=%s | colors=%d | prefer_dark=%s",
        result.theme_path,
        len(colors),
        result.prefer_dark,
    )
    return result
