# tests/test_callback_server.py
import asyncio
import errno
import socket
import socketserver
import struct
import time

import pytest
import requests

import config
from auth import oneshot
from auth.callback_server import (
    COMPLETE_BODY,
    WAITING_BODY,
    CallbackServer,
    _CallbackRequestHandler,
    extract_code,
    is_loopback_host,
    listen_addr_port,
)
from auth.errors import BindFailure, UnsupportedAddress


# --- extract_code ------------------------------------------------------------

@pytest.mark.parametrize(
    "url",
    [
        "/callback?code=abc123&state=xyz",
        "/callback?state=xyz&code=abc123",
        "/callback?scope=a+b&code=abc123&state=xyz",
        "/?code=abc123",
    ],
)
def test_extract_code_any_parameter_order(url):
    assert extract_code(url) == "abc123"


def test_extract_code_decodes_percent_and_plus():
    assert extract_code("/cb?code=abc%2Bdef") == "abc+def"
    assert extract_code("/cb?code=4%2F0Aab+cd") == "4/0Aab cd"


def test_extract_code_absent_returns_none():
    assert extract_code("/callback?state=xyz&error=access_denied") is None
    assert extract_code("/callback") is None
    assert extract_code("/callback?") is None
    # key must match exactly
    assert extract_code("/callback?auth_code=abc") is None


def test_extract_code_blank_value_is_empty_string():
    assert extract_code("/callback?code=&state=1") == ""


def test_extract_code_first_occurrence_wins():
    assert extract_code("/cb?code=first&code=second") == "first"


# --- listen_addr_port --------------------------------------------------------

def test_listen_addr_port_ipv4_and_ipv6():
    assert listen_addr_port(("127.0.0.1", 53187)) == 53187
    assert listen_addr_port(("::1", 8080, 0, 0)) == 8080


@pytest.mark.parametrize(
    "address",
    ["/run/user/1000/daylight.sock", b"\x00abstract", ("127.0.0.1",), None, ("::1", "80")],
)
def test_listen_addr_port_rejects_non_ip(address):
    with pytest.raises(UnsupportedAddress) as exc:
        listen_addr_port(address)
    assert str(exc.value) == "Unsupported listener address"


def test_listen_addr_port_real_socket():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        assert listen_addr_port(sock.getsockname()) == sock.getsockname()[1]


# --- CallbackServer ----------------------------------------------------------

@pytest.fixture
def running_server():
    tx, rx = oneshot.channel()
    server = CallbackServer(tx, poll_interval=0.05)
    server.start()
    yield server, rx
    server.stop()
    server.join(2)


def test_server_binds_loopback_ephemeral_port(running_server):
    server, _rx = running_server
    assert 0 < server.port <= 65535
    assert server.running


def test_request_without_code_keeps_waiting(running_server):
    server, rx = running_server
    base = f"http://127.0.0.1:{server.port}"

    response = requests.get(f"{base}/favicon.ico", timeout=5)
    assert response.status_code == 200
    assert response.text == WAITING_BODY
    assert server.running

    response = requests.get(f"{base}/callback?code=abc123&state=xyz", timeout=5)
    assert response.text == COMPLETE_BODY
    assert asyncio.run(rx.recv()) == "abc123"


def test_thread_exits_after_delivery(running_server):
    server, rx = running_server
    url = f"http://127.0.0.1:{server.port}/callback?code=abc123"

    assert requests.get(url, timeout=5).text == COMPLETE_BODY
    server.join(5)
    assert not server.running
    assert asyncio.run(rx.recv()) == "abc123"

    with pytest.raises((requests.ConnectionError, requests.Timeout)):
        requests.get(url, timeout=1)


def test_dropping_receiver_stops_server(running_server):
    server, rx = running_server
    rx.close()
    server.join(5)
    assert not server.running


def test_stop_closes_sender(running_server):
    server, rx = running_server
    server.stop()
    server.join(5)
    with pytest.raises(oneshot.ChannelClosed):
        asyncio.run(rx.recv())


def test_close_unstarted_server_releases_port():
    tx, rx = oneshot.channel()
    server = CallbackServer(tx)
    port = server.port
    server.close()

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        assert sock.connect_ex(("127.0.0.1", port)) != 0
    with pytest.raises(oneshot.ChannelClosed):
        asyncio.run(rx.recv())


def test_code_delivered_when_response_write_fails(running_server, monkeypatch):
    server, rx = running_server

    def broken_pipe(self, *args, **kwargs):
        raise BrokenPipeError(32, "Broken pipe")

    monkeypatch.setattr(_CallbackRequestHandler, "send_response", broken_pipe)

    with socket.create_connection(("127.0.0.1", server.port), timeout=5) as client:
        client.sendall(b"GET /callback?code=abc123 HTTP/1.1\r\nHost: x\r\n\r\n")
        server.join(5)

    assert not server.running
    assert asyncio.run(rx.recv()) == "abc123"


def test_handler_crash_after_delivery_is_logged_not_lost(running_server, monkeypatch):
    server, rx = running_server

    def crash(self, body):
        raise RuntimeError("render failed")

    monkeypatch.setattr(_CallbackRequestHandler, "_respond", crash)

    with socket.create_connection(("127.0.0.1", server.port), timeout=5) as client:
        client.sendall(b"GET /?code=abc123 HTTP/1.1\r\nHost: x\r\n\r\n")
        server.join(5)

    assert not server.running
    assert asyncio.run(rx.recv()) == "abc123"


def test_client_reset_after_request_keeps_code(running_server):
    server, rx = running_server

    client = socket.create_connection(("127.0.0.1", server.port), timeout=5)
    # linger 0 turns close() into a RST
    client.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
    client.sendall(b"GET /callback?code=abc123 HTTP/1.1\r\nHost: x\r\n\r\n")
    time.sleep(0.2)
    client.close()

    server.join(5)
    assert asyncio.run(asyncio.wait_for(rx.recv(), 5)) == "abc123"


def test_accept_failure_closes_listener(monkeypatch):
    def emfile(self):
        raise OSError(errno.EMFILE, "Too many open files")

    monkeypatch.setattr(socketserver.TCPServer, "get_request", emfile)

    tx, rx = oneshot.channel()
    server = CallbackServer(tx, poll_interval=0.05)
    server.start()
    with socket.create_connection(("127.0.0.1", server.port), timeout=5):
        server.join(5)

    assert not server.running
    with pytest.raises(oneshot.ChannelClosed):
        asyncio.run(rx.recv())


# --- bind address ------------------------------------------------------------

@pytest.mark.parametrize("host", ["127.0.0.1", "127.0.0.2", "::1"])
def test_is_loopback_host_accepts_loopback(host):
    assert is_loopback_host(host)


@pytest.mark.parametrize("host", ["0.0.0.0", "203.0.113.1", "::", "localhost", ""])
def test_is_loopback_host_rejects_others(host):
    assert not is_loopback_host(host)


@pytest.mark.parametrize("host", ["0.0.0.0", "203.0.113.1", "localhost"])
def test_non_loopback_host_refused_before_bind(host, monkeypatch):
    def must_not_bind(self):
        raise AssertionError("bind attempted")

    monkeypatch.setattr(socketserver.TCPServer, "server_bind", must_not_bind)
    tx, rx = oneshot.channel()

    with pytest.raises(BindFailure) as exc:
        CallbackServer(tx, host=host)
    assert host in str(exc.value)


def test_configured_host_read_at_construction(monkeypatch):
    monkeypatch.setattr(config, "OAUTH_BIND_HOST", "203.0.113.1")
    tx, rx = oneshot.channel()
    with pytest.raises(BindFailure):
        CallbackServer(tx)


def test_os_bind_error_becomes_bind_failure(monkeypatch):
    def denied(self):
        raise PermissionError(errno.EACCES, "Permission denied")

    monkeypatch.setattr(socketserver.TCPServer, "server_bind", denied)
    tx, rx = oneshot.channel()

    with pytest.raises(BindFailure) as exc:
        CallbackServer(tx)
    assert "Permission denied" in str(exc.value)
    assert exc.value.recoverable


def test_ipv6_loopback_bind():
    tx, rx = oneshot.channel()
    try:
        server = CallbackServer(tx, host="::1", poll_interval=0.05)
    except BindFailure:
        pytest.skip("no IPv6 loopback on this host")
    server.start()
    try:
        with socket.create_connection(("::1", server.port), timeout=5) as client:
            client.sendall(b"GET /?code=v6code HTTP/1.1\r\nHost: x\r\n\r\n")
            server.join(5)
        assert asyncio.run(rx.recv()) == "v6code"
    finally:
        server.stop()
        server.join(2)
