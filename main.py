"""
main.py

Command-line entry point for the DayLight desktop bridge.
Runs the loopback OAuth login, prints the GTK theme, or fetches a URL
through the same command surface the front end uses.
Part of DayLight — Desktop Planner Bridge.
"""

import argparse
import asyncio
import json
import logging
import sys
import time
import webbrowser

import config
from auth.google_oauth import build_authorization_url, loopback_redirect_uri
from bridge.commands import AppState, CommandError, CommandRouter
from theme.watcher import THEME_CHANGED_EVENT, setup_gtk_watcher

_log = logging.getLogger("daylight.main")
_handler = logging.FileHandler(config.LOGS_DIR / "main.log", encoding="utf-8")
_handler.setFormatter(logging.Formatter("%(asctime)s  %(levelname)-8s  %(message)s"))
_log.addHandler(_handler)
_log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))


def print_banner() -> None:
    """Print the DayLight banner."""
    print()
    print("=" * 60)
    print("   DAYLIGHT - Desktop Planner Bridge")
    print("=" * 60)
    print()


async def login(router: CommandRouter, client_id: str, timeout_ms: int, open_browser: bool) -> str:
    """
    Run the loopback authorization-code capture end to end.

    Args:
        router: Command router bound to the application state.
        client_id: Google OAuth client id; empty to skip URL building.
        timeout_ms: How long to wait for the redirect.
        open_browser: Open the authorization URL automatically.

    Returns:
        The captured authorization code.
    """
    port = await router.invoke("start_oauth_listener")
    redirect_uri = loopback_redirect_uri(port)
    print(f"Listening for the redirect on {redirect_uri}")

    if client_id:
        auth_url = build_authorization_url(client_id, redirect_uri)
        print(f"Open/authorize: {auth_url}")
        if open_browser and webbrowser.open(auth_url):
            _log.info("Opened browser for authorization")
    else:
        print("No client id configured; point your provider's redirect at the URI above.")

    print(f"Waiting up to {timeout_ms / 1000:.0f}s for authorization...")
    return await router.invoke("await_oauth_code", timeout_ms=timeout_ms)


def watch_theme(state: AppState) -> None:
    """Print a line on every debounced GTK theme change until Ctrl+C."""
    state.events.on(
        THEME_CHANGED_EVENT,
        lambda _payload: print(f"[{time.strftime('%H:%M:%S')}] {THEME_CHANGED_EVENT}"),
    )
    watcher = setup_gtk_watcher(state.events)
    if watcher is None:
        print("GTK config directory not found; nothing to watch.")
        return

    print("Watching GTK theme. Press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(description="DayLight - Desktop Planner Bridge")
    sub = parser.add_subparsers(dest="command", required=True)

    login_parser = sub.add_parser("login", help="Capture an OAuth authorization code")
    login_parser.add_argument(
        "--timeout-ms",
        type=int,
        default=config.OAUTH_DEFAULT_TIMEOUT_MS,
        help=f"Redirect wait in milliseconds (default: {config.OAUTH_DEFAULT_TIMEOUT_MS})",
    )
    login_parser.add_argument(
        "--client-id",
        default=config.GOOGLE_CLIENT_ID,
        help="Google OAuth client id (default: GOOGLE_CLIENT_ID)",
    )
    login_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Print the authorization URL without opening a browser",
    )

    theme_parser = sub.add_parser("theme", help="Print the active GTK theme colors")
    theme_parser.add_argument("--watch", action="store_true", help="Report theme changes")

    fetch_parser = sub.add_parser("fetch", help="GET a URL and print the body")
    fetch_parser.add_argument("url")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit code.
    """
    args = parse_args(argv)
    _log.debug("Config: %s", config.as_dict())
    state = AppState()
    router = CommandRouter(state)

    try:
        if args.command == "login":
            print_banner()
            code = asyncio.run(
                login(router, args.client_id, args.timeout_ms, not args.no_browser)
            )
            print(f"Authorization code: {code}")
        elif args.command == "theme":
            if args.watch:
                watch_theme(state)
            else:
                colors = asyncio.run(router.invoke("get_gtk_colors"))
                print(json.dumps(colors, indent=2))
        else:
            print(asyncio.run(router.invoke("fetch_url", url=args.url)))
    except CommandError as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        _log.error("Command %s failed: %s", args.command, exc)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130

    _log.info("DayLight %s complete", args.command)
    return 0


if __name__ == "__main__":
    sys.exit(main())
