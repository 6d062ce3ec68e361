"""
Shared pytest fixtures.

FakeOpener stands in for the urllib opener owned by HttpClient: it records
every request and answers from a route table, so unit tests never open sockets.
"""

import io
import json
import urllib.error
import urllib.parse
import urllib.request

import pytest

DRIVER_URL = "http://localhost:4444"
SESSION_ID = "sess-1"


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network or processes")
    config.addinivalue_line("markers", "integration: tests against a stub or real driver")


class FakeResponse:
    def __init__(self, status, raw):
        self.status = status
        self._raw = raw

    def read(self):
        return self._raw

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeOpener:
    """Route table keyed by (method, path).

    A route value is (status, payload); payload may be bytes (sent verbatim),
    an exception instance (raised) or any JSON value.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.timeouts = []

    def route(self, method, path, payload=None, status=200):
        self.routes[(method, path)] = (status, payload)

    def calls(self, method=None, path=None):
        return [
            r for r in self.requests
            if (method is None or r[0] == method) and (path is None or r[1] == path)
        ]

    def open(self, request, timeout=None):
        method = request.get_method()
        path = urllib.parse.urlsplit(request.full_url).path
        body = json.loads(request.data.decode("utf-8")) if request.data else None
        self.requests.append((method, path, body))
        self.timeouts.append(timeout)

        status, payload = self.routes.get(
            (method, path),
            (404, {"value": {"error": "unknown command", "message": f"No route for {method} {path}"}}),
        )
        if isinstance(payload, BaseException):
            raise payload
        raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        if status >= 400:
            raise urllib.error.HTTPError(request.full_url, status, "error", {}, io.BytesIO(raw))
        return FakeResponse(status, raw)


@pytest.fixture
def opener(monkeypatch):
    """FakeOpener installed as the result of urllib.request.build_opener()."""
    fake = FakeOpener()
    monkeypatch.setattr(urllib.request, "build_opener", lambda *handlers: fake)
    return fake


@pytest.fixture
def session(opener):
    """Active DriverSession ``sess-1`` on a fake firefox driver."""
    from webdriver_client import DriverSession, HttpDriver

    opener.route(
        "POST",
        "/session",
        {"value": {"sessionId": SESSION_ID, "capabilities": {"browserName": "firefox"}}},
    )
    opener.route("DELETE", f"/session/{SESSION_ID}", {"value": None})

    sess = DriverSession.create(HttpDriver(DRIVER_URL))
    yield sess
    sess.close()
