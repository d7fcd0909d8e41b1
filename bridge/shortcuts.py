"""
shortcuts.py

Maps Ctrl/Cmd key chords that the Linux webview swallows onto the
front end's shortcut events.
Part of DayLight — Desktop Planner Bridge.
"""

from typing import Optional

from bridge.events import EventEmitter

ADD_TASK_EVENT = "daylight:shortcut:add-task"
LOG_TIME_EVENT = "daylight:shortcut:log-time"

_SHORTCUTS = {
    "n": ADD_TASK_EVENT,
    "t": LOG_TIME_EVENT,
}


def resolve_shortcut(
    key: str,
    ctrl: bool = False,
    meta: bool = False,
    super_: bool = False,
    alt: bool = False,
) -> Optional[str]:
    """
    Resolve a key press to a shortcut event name.

    Args:
        key: The character produced by the key, any case.
        ctrl: Control held.
        meta: Meta held.
        super_: Super/Command held.
        alt: Alt held; Alt chords are left to the webview.

    Returns:
        The event name, or None if the chord is not a shortcut.

    Example:
        resolve_shortcut("N", ctrl=True)  # -> "daylight:shortcut:add-task"
    """
    if not (ctrl or meta or super_) or alt:
        return None
    return _SHORTCUTS.get(key.lower())


def dispatch_shortcut(emitter: EventEmitter, key: str, **modifiers: bool) -> bool:
    """Emit the shortcut event for a key press. Returns True if it was one."""
    event = resolve_shortcut(key, **modifiers)
    if event is None:
        return False
    emitter.emit(event)
    return True
