"""
callback_server.py

Local HTTP server that catches the OAuth2 redirect callback.
Binds an OS-assigned port on the loopback interface, serves one request at
a time on a dedicated thread, and forwards the first authorization code it
sees through a one-shot channel.
Part of DayLight — Desktop Planner Bridge.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import socketserver
import threading
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import parse_qsl

import config
from auth.errors import BindFailure, UnsupportedAddress
from auth.oneshot import OneShotSender

_log = logging.getLogger("daylight.auth.callback")
_log_file = config.LOGS_DIR / "auth.log"
_handler = logging.FileHandler(_log_file, encoding="utf-8")
_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s"))
_log.addHandler(_handler)
_log.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

COMPLETE_BODY = "Authorization complete. You may close this window."
WAITING_BODY = "Waiting for authorization. You may close this window."


def extract_code(url: str) -> Optional[str]:
    """
    Pull the authorization code out of a redirect request target.

    Args:
        url: Path plus query string, e.g. "/callback?code=abc&state=xyz".

    Returns:
        The form-decoded value of the first "code" parameter, or None when
        the query has no such parameter.

    Example:
        extract_code("/cb?state=1&code=abc%2Bdef")  # -> "abc+def"
    """
    parts = url.split("?")
    if len(parts) < 2:
        return None
    for key, value in parse_qsl(parts[1], keep_blank_values=True):
        if key == "code":
            return value
    return None


def listen_addr_port(address: Any) -> int:
    """
    Map a bound socket address to its numeric port.

    Args:
        address: The value of socket.getsockname() / server_address.

    Returns:
        The port for an IPv4 (host, port) or IPv6 (host, port, flow, scope)
        tuple.

    Raises:
        UnsupportedAddress: For UNIX socket paths, abstract sockets and any
            other non-IP representation.
    """
    if isinstance(address, tuple) and len(address) in (2, 4):
        host, port = address[0], address[1]
        if isinstance(host, str) and isinstance(port, int) and 0 < port <= 0xFFFF:
            return port
    raise UnsupportedAddress()


def is_loopback_host(host: str) -> bool:
    """True for IP literals on the loopback interface (127.0.0.0/8, ::1)."""
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def _redact(code: str) -> str:
    return f"{code[:4]}..." if len(code) > 4 else "***"


class _CallbackRequestHandler(BaseHTTPRequestHandler):
    """Answers each request with a fixed plain-text body."""

    server: "_LoopbackServer"

    # idle browser preconnects must not stall the sequential loop
    timeout = 5

    def do_GET(self) -> None:
        code = extract_code(self.path)
        if code is None:
            _log.info("CALLBACK | no code in request | path=%s", self.path.split("?")[0])
            self._respond(WAITING_BODY)
            return

        # the code is ours once the request line is parsed; the browser
        # closing early must not lose it
        self.server.deliver(code)
        self._respond(COMPLETE_BODY)

    def _respond(self, body: str) -> None:
        payload = body.encode("utf-8")
        try:
            self.send_response(200)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)
        except OSError as exc:
            _log.warning("RESPONSE FAILED | client went away | error=%s", exc)
            self.close_connection = True

    def log_message(self, format: str, *args: Any) -> None:
        _log.debug("HTTP | %s", format % args)


class _LoopbackServer(socketserver.TCPServer):
    """Sequential TCP server whose handle_request() wakes up periodically."""

    def __init__(self, address: tuple[str, int], sender: OneShotSender) -> None:
        if ipaddress.ip_address(address[0]).version == 6:
            self.address_family = socket.AF_INET6
        super().__init__(address, _CallbackRequestHandler)
        self.sender = sender
        self.delivered = False
        self.accept_error: Optional[OSError] = None

    def get_request(self) -> tuple[socket.socket, Any]:
        # TCPServer swallows accept errors; record them so the loop can stop
        try:
            return super().get_request()
        except OSError as exc:
            self.accept_error = exc
            raise

    def handle_error(self, request: Any, client_address: Any) -> None:
        _log.exception("REQUEST FAILED | client=%s", client_address)

    def deliver(self, code: str) -> None:
        self.delivered = True
        if self.sender.send(code):
            _log.info("CODE DELIVERED | code=%s", _redact(code))
        else:
            _log.warning("CODE DISCARDED | receiver already dropped")


class CallbackServer:
    """
    One-shot loopback listener for an OAuth2 authorization-code redirect.

    The accept loop runs on its own thread and ends when a code has been
    delivered, when stop() is called, when the receiver is dropped, or when
    accepting fails. On exit it closes the socket and the sender.

    Attributes:
        port: The OS-assigned port the listener is bound to.

    Example:
        tx, rx = oneshot.channel()
        server = CallbackServer(tx)
        server.start()
        redirect_uri = f"http://127.0.0.1:{server.port}/callback"
    """

    def __init__(
        self,
        sender: OneShotSender,
        host: Optional[str] = None,
        poll_interval: float = config.OAUTH_ACCEPT_POLL_SECONDS,
    ) -> None:
        """
        Bind the listener. Does not start accepting yet.

        Args:
            sender: Sending end the extracted code is delivered through.
            host: Loopback IP literal to bind. Defaults to OAUTH_BIND_HOST.
            poll_interval: Seconds between stop checks in the accept loop.

        Raises:
            BindFailure: If host is not a loopback address or the OS
                refuses the bind.
            UnsupportedAddress: If the bound address has no IP port.
        """
        host = host or config.OAUTH_BIND_HOST
        if not is_loopback_host(host):
            _log.error("BIND REFUSED | host=%s is not a loopback address", host)
            raise BindFailure(f"Refusing to bind non-loopback address {host}")

        try:
            self._httpd = _LoopbackServer((host, 0), sender)
        except OSError as exc:
            _log.error("BIND FAILED | host=%s | error=%s", host, exc)
            raise BindFailure(str(exc)) from exc

        try:
            self.port = listen_addr_port(self._httpd.server_address)
        except UnsupportedAddress:
            self._httpd.server_close()
            raise

        self._httpd.timeout = poll_interval
        self._sender = sender
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        sender.on_receiver_dropped(self.stop)

    def start(self) -> None:
        """Spawn the accept-loop thread and return immediately."""
        self._thread = threading.Thread(
            target=self._serve,
            name=f"oauth-callback-{self.port}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Ask the accept loop to exit at its next poll."""
        self._stop_event.set()

    def close(self) -> None:
        """Release a server that was bound but never started."""
        self.stop()
        if self._thread is None:
            self._httpd.server_close()
            self._sender.close()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _serve(self) -> None:
        _log.info("LISTENER STARTED | port=%d", self.port)
        try:
            while not self._stop_event.is_set():
                self._httpd.handle_request()
                if self._httpd.delivered:
                    break
                if self._httpd.accept_error is not None:
                    raise self._httpd.accept_error
        except OSError as exc:
            _log.error("LISTENER ACCEPT FAILED | port=%d | error=%s", self.port, exc)
        finally:
            self._httpd.server_close()
            self._sender.close()
            if self._httpd.delivered:
                reason = "delivered"
            elif self._httpd.accept_error is not None:
                reason = "accept-error"
            else:
                reason = "stopped"
            _log.info("LISTENER CLOSED | port=%d | reason=%s", self.port, reason)
