"""Shared pytest fixtures for the drainhook test suite.

Every test starts from a clean environment so settings only come from
what the test passes in explicitly.
"""

import socket
import threading
import time
from datetime import datetime, timezone

import httpx
import pytest

from drainhook import config
from drainhook.config import Settings
from drainhook.models import InterruptionEvent, NodeMetadata

_ENV_VARS = (
    "WEBHOOK_URL",
    "WEBHOOK_TEMPLATE",
    "WEBHOOK_TEMPLATE_FILE",
    "WEBHOOK_HEADERS",
    "WEBHOOK_PROXY",
    "CLUSTER_NAME",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Drop webhook env vars and the cached settings instance."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "_settings", None)


@pytest.fixture()
def metadata():
    """Node metadata for a spot instance."""
    return NodeMetadata(
        account_id="123456789012",
        instance_id="i-0abc123",
        instance_life_cycle="spot",
        instance_type="m5.large",
        local_hostname="ip-10-0-0-12.ec2.internal",
        local_ip="10.0.0.12",
        availability_zone="us-east-1a",
        region="us-east-1",
    )


@pytest.fixture()
def event():
    """A spot interruption notice."""
    return InterruptionEvent(
        event_id="spot-itn-1",
        kind="SPOT_ITN",
        monitor="SPOT_ITN_MONITOR",
        description="Spot ITN received. Instance will be interrupted",
        node_name="ip-10-0-0-12.ec2.internal",
        start_time=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
        node_labels={"role": "worker"},
    )


@pytest.fixture()
def settings():
    """Settings pointing at a test webhook endpoint."""
    return Settings(
        webhook_url="http://hooks.example.com/drain",
        webhook_template="{{ Kind }} {{ InstanceID }} {{ Cluster }} {{ Pods }}",
        webhook_headers='{"Content-type":"application/json"}',
        cluster_name="prod-1",
    )


class RecordingTransport(httpx.MockTransport):
    """Mock transport that answers with a fixed status and keeps requests."""

    def __init__(self, status_code=200, exc=None):
        self.requests = []
        self.status_code = status_code
        self.exc = exc
        super().__init__(self._handle)

    def _handle(self, request):
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, content=b"ignored")


@pytest.fixture()
def transport():
    """A transport that accepts every request with ``200 OK``."""
    return RecordingTransport()


@pytest.fixture()
def make_transport():
    """Factory for transports with a chosen status or raised error."""
    return RecordingTransport


class RawHTTPServer:
    """Localhost TCP server that records raw requests and replies by hand.

    *respond* is called with the connected socket after each request has
    been read, so tests control exactly how and when bytes go back.
    """

    def __init__(self, respond):
        self.requests = []
        self._respond = respond
        self._closed = False
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(5)
        self._sock.settimeout(0.1)
        self.port = self._sock.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def url(self):
        return f"http://127.0.0.1:{self.port}"

    def _serve(self):
        while not self._closed:
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            with conn:
                conn.settimeout(5)
                try:
                    self.requests.append(self._read_request(conn))
                    self._respond(conn)
                except OSError:
                    pass

    @staticmethod
    def _read_request(conn):
        data = b""
        while b"\r\n\r\n" not in data:
            chunk = conn.recv(4096)
            if not chunk:
                return data
            data += chunk
        head, _, body = data.partition(b"\r\n\r\n")
        length = 0
        for line in head.split(b"\r\n")[1:]:
            name, _, value = line.partition(b":")
            if name.strip().lower() == b"content-length":
                length = int(value.strip())
        while len(body) < length:
            chunk = conn.recv(4096)
            if not chunk:
                break
            body += chunk
        return head + b"\r\n\r\n" + body

    def close(self):
        self._closed = True
        self._thread.join(timeout=2)
        self._sock.close()


def reply_ok(conn):
    """Answer ``200 OK`` with an empty body."""
    conn.sendall(b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\nConnection: close\r\n\r\n")


def reply_slowly(conn):
    """Send the status line, then one header line every 100 ms for 3 s."""
    conn.sendall(b"HTTP/1.1 200 OK\r\n")
    for i in range(30):
        time.sleep(0.1)
        conn.sendall(b"X-Drip: %d\r\n" % i)
    conn.sendall(b"Content-Length: 0\r\nConnection: close\r\n\r\n")


@pytest.fixture()
def http_server():
    """Factory starting a :class:`RawHTTPServer`; stopped after the test."""
    servers = []

    def _start(respond=reply_ok):
        server = RawHTTPServer(respond)
        servers.append(server)
        return server

    yield _start
    for server in servers:
        server.close()


@pytest.fixture()
def slow_reply():
    """Responder that drips response headers over three seconds."""
    return reply_slowly
