import json
import socket
import threading
import time
import pytest
import requests
from fastapi.testclient import TestClient
from fancychat.core.config import Settings, get_settings
from fancychat.main import app

TEST_API_KEY = "sk-or-test-key-1234"

OK_PAYLOAD = {
    "choices": [{"message": {"content": "Hi there"}}],
    "usage": {"total_tokens": 5},
}


def make_settings(**overrides) -> Settings:
    values = dict(
        OPENROUTER_API_KEY=TEST_API_KEY,
        APP_URL="http://localhost:3000",
        APP_NAME="FancyChat App",
        STRICT_MESSAGE_VALIDATION=False,
    )
    values.update(overrides)
    return Settings(**values)


def make_response(status_code=200, payload=None, body=None) -> requests.Response:
    """Build a fully-read ``requests.Response`` without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    if body is None:
        body = json.dumps(payload if payload is not None else {}).encode("utf-8")
    response._content = body
    response._content_consumed = True
    response.encoding = "utf-8"
    return response


class UpstreamStub:
    """Stands in for ``requests.Session.post`` and records every call."""

    def __init__(self):
        self.calls = []
        self.result = make_response(200, OK_PAYLOAD)

    def __call__(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.result, BaseException):
            raise self.result
        if callable(self.result):
            return self.result()
        return self.result

    @property
    def last_call(self):
        return self.calls[-1]


@pytest.fixture
def upstream(monkeypatch):
    stub = UpstreamStub()
    monkeypatch.setattr(requests.Session, "post", stub)
    return stub


@pytest.fixture
def settings():
    current = make_settings()
    app.dependency_overrides[get_settings] = lambda: current
    yield current
    app.dependency_overrides.clear()


@pytest.fixture
def use_settings():
    """Install a settings object with the given overrides for the test."""
    def _install(**overrides):
        current = make_settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: current
        return current
    yield _install
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


class DripServer:
    """One-shot HTTP server that sends its canned reply a byte at a time."""

    def __init__(self, reply: bytes, interval: float):
        self.reply = reply
        self.interval = interval
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(1)
        self.thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def url(self) -> str:
        host, port = self.sock.getsockname()
        return f"http://{host}:{port}/api/v1/chat/completions"

    def _serve(self):
        try:
            conn, _ = self.sock.accept()
        except OSError:
            return
        with conn:
            try:
                request = b""
                while b"\r\n\r\n" not in request:
                    chunk = conn.recv(65536)
                    if not chunk:
                        break
                    request += chunk
                head, _, body = request.partition(b"\r\n\r\n")
                length = 0
                for line in head.split(b"\r\n")[1:]:
                    name, _, value = line.partition(b":")
                    if name.strip().lower() == b"content-length":
                        length = int(value.strip())
                while len(body) < length:
                    chunk = conn.recv(65536)
                    if not chunk:
                        break
                    body += chunk
                for byte in self.reply:
                    conn.sendall(bytes([byte]))
                    time.sleep(self.interval)
            except OSError:
                pass

    def close(self):
        self.sock.close()


@pytest.fixture
def drip_server(monkeypatch):
    for name in ("HTTP_PROXY", "http_proxy", "ALL_PROXY", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    servers = []

    def _start(reply: bytes, interval: float = 0.05) -> DripServer:
        server = DripServer(reply, interval)
        server.thread.start()
        servers.append(server)
        return server

    yield _start
    for server in servers:
        server.close()
