"""
In-process stub WebDriver server for integration tests.

StubWebDriver answers the W3C endpoints the client uses from a small model
of a few pages (history, elements, frames, alerts, windows). It runs on a
ThreadingHTTPServer bound to a free localhost port, so the real urllib
transport is exercised end to end without a browser.
"""

import base64
import html
import json
import re
import threading
import uuid
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urljoin, urlsplit

import pytest

W3C_KEY = "element-6066-11e4-a52e-4f735466cecf"
LEGACY_KEY = "ELEMENT"

ERROR_STATUS = {
    "invalid argument": 400,
    "invalid selector": 400,
    "invalid session id": 404,
    "javascript error": 500,
    "no such alert": 404,
    "no such element": 404,
    "no such frame": 404,
    "no such window": 404,
    "session not created": 500,
    "stale element reference": 404,
    "unknown command": 404,
}

ASYNC_CALLBACK = re.compile(r"arguments\[arguments\.length\s*-\s*1\]\((.*)\);?$")


class StubError(Exception):
    def __init__(self, error, message):
        super().__init__(message)
        self.error = error
        self.message = message


class StubElement:
    def __init__(self, tag, text="", attrs=None, children=(), frame=None):
        self.tag = tag
        self.text = text
        self.attrs = dict(attrs or {})
        self.children = list(children)
        self.frame = frame
        self.value = self.attrs.get("value", "")

    def full_text(self):
        return self.text + "".join(c.full_text() for c in self.children)

    def inner_html(self):
        return html.escape(self.text) + "".join(c.outer_html() for c in self.children)

    def outer_html(self):
        attrs = "".join(f' {k}="{v}"' for k, v in self.attrs.items())
        return f"<{self.tag}{attrs}>{self.inner_html()}</{self.tag}>"

    def walk(self):
        for child in self.children:
            yield child
            yield from child.walk()

    def matches_css(self, selector):
        head, _, cls = selector.partition(".")
        tag, _, ident = head.partition("#")
        if tag and tag != self.tag:
            return False
        if ident and self.attrs.get("id") != ident:
            return False
        if cls and cls not in self.attrs.get("class", "").split():
            return False
        return True


class StubDocument:
    def __init__(self, title, children, alert=None, cookies=()):
        self.title = title
        self.body = StubElement("body", children=children)
        self.alert = alert
        self.cookies = list(cookies)

    def all_elements(self):
        yield self.body
        yield from self.body.walk()

    def source(self):
        return f"<html><head><title>{html.escape(self.title)}</title></head>{self.body.outer_html()}</html>"


def build_page(url):
    """Fresh document for ``url``; every load yields new element identities."""
    path = urlsplit(url).path
    if path == "/a.html":
        return StubDocument(
            "Page A",
            [
                StubElement("h1", "Page A", {"id": "title"}),
                StubElement("p", attrs={"class": "intro"}, children=[StubElement("b", "hi")]),
                StubElement("a", "Go to page B", {"href": "/b.html"}),
                StubElement("span", "first", {"class": "item"}),
                StubElement("span", "second", {"class": "item"}),
                StubElement("input", attrs={"id": "name", "type": "text"}),
            ],
            cookies=[
                {
                    "name": "flavour",
                    "value": "oatmeal",
                    "path": "/",
                    "domain": "example.test",
                    "secure": False,
                    "httpOnly": False,
                }
            ],
        )
    if path == "/b.html":
        return StubDocument("Page B", [StubElement("h1", "Page B")])
    if path == "/frames.html":
        inner = StubDocument("Inner", [StubElement("h1", "Inner frame")])
        outer = StubDocument(
            "Outer",
            [StubElement("h1", "Outer frame"), StubElement("iframe", attrs={"id": "inner"}, frame=inner)],
        )
        return StubDocument(
            "Frames",
            [StubElement("h1", "Top"), StubElement("iframe", attrs={"id": "outer"}, frame=outer)],
        )
    if path == "/alert.html":
        return StubDocument("Alert", [StubElement("h1", "Alert")], alert="Hello alert")
    if url == "about:blank":
        return StubDocument("", [])
    return StubDocument("Not Found", [StubElement("h1", "404")])


def fake_png(label):
    return base64.b64encode(b"\x89PNG\r\n\x1a\n" + label.encode("utf-8")).decode("ascii")


class StubSession:
    def __init__(self, element_key):
        self.element_key = element_key
        self.history = ["about:blank"]
        self.index = 0
        self.document = build_page("about:blank")
        self.frames = []
        self.elements = {}
        self.alert = None
        self.alert_input = None
        self.windows = ["window-1", "window-2"]
        self.window = "window-1"

    @property
    def current_url(self):
        return self.history[self.index]

    @property
    def context(self):
        return self.frames[-1] if self.frames else self.document

    # Navigation

    def load(self, url):
        self.document = build_page(url)
        self.frames = []
        self.alert = self.document.alert

    def navigate(self, url):
        self.history = self.history[: self.index + 1] + [url]
        self.index += 1
        self.load(url)

    def back(self):
        if self.index > 0:
            self.index -= 1
            self.load(self.current_url)

    def forward(self):
        if self.index < len(self.history) - 1:
            self.index += 1
            self.load(self.current_url)

    def refresh(self):
        self.load(self.current_url)

    # Elements

    def register(self, element):
        ref = str(uuid.uuid4())
        self.elements[ref] = (self.document, element)
        return {self.element_key: ref}

    def lookup(self, ref):
        if ref not in self.elements:
            raise StubError("no such element", f"Unknown element reference {ref}")
        root, element = self.elements[ref]
        if root is not self.document:
            raise StubError("stale element reference", f"The element reference of {ref} is stale")
        return element

    def decode_arg(self, value):
        if isinstance(value, dict):
            ref = value.get(W3C_KEY, value.get(LEGACY_KEY))
            if ref is not None:
                return self.lookup(ref)
            return {k: self.decode_arg(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self.decode_arg(v) for v in value]
        return value

    def find(self, body, scope, single):
        using, selector = body["using"], body["value"]
        candidates = scope.walk() if scope is not None else self.context.all_elements()
        if using == "css selector":
            matches = [e for e in candidates if e.matches_css(selector)]
        elif using == "xpath":
            if not selector.startswith("//"):
                raise StubError("invalid selector", f"Unsupported xpath {selector}")
            matches = [e for e in candidates if e.tag == selector[2:]]
        elif using == "link text":
            matches = [e for e in candidates if e.tag == "a" and e.full_text() == selector]
        elif using == "partial link text":
            matches = [e for e in candidates if e.tag == "a" and selector in e.full_text()]
        else:
            raise StubError("invalid argument", f"Unknown strategy {using}")

        if single:
            if not matches:
                raise StubError("no such element", f"Unable to locate element: {selector}")
            return self.register(matches[0])
        return [self.register(e) for e in matches]

    def element_command(self, method, element, sub, body):
        if method == "GET":
            if sub == "text":
                return element.full_text()
            if sub == "name":
                return element.tag
            if sub.startswith("attribute/"):
                return element.attrs.get(sub[len("attribute/"):])
            if sub.startswith("property/"):
                name = sub[len("property/"):]
                if name == "value":
                    return element.value
                if name == "tagName":
                    return element.tag.upper()
                return element.attrs.get(name)
            if sub.startswith("css/"):
                return "rgb(0, 0, 0)" if sub == "css/color" else ""
            if sub == "screenshot":
                return fake_png(element.tag)
        elif method == "POST":
            if sub == "click":
                href = element.attrs.get("href")
                if element.tag == "a" and href:
                    self.navigate(urljoin(self.current_url, href))
                return None
            if sub == "clear":
                element.value = ""
                return None
            if sub == "value":
                element.value += body["text"]
                return None
            if sub in ("element", "elements"):
                return self.find(body, element, single=sub == "element")
        raise StubError("unknown command", f"{method} element/{sub}")

    # Scripts

    def execute(self, body, sync):
        script = body["script"].strip()
        raw_args = body.get("args", [])
        args = self.decode_arg(raw_args)

        if script.startswith("throw"):
            raise StubError("javascript error", script[len("throw"):].strip(" ;'\""))
        if script == "return document.title;":
            return self.context.title
        if script == "return arguments[0] + arguments[1];":
            return args[0] + args[1]
        if script == "return arguments[0].innerHTML;":
            return args[0].inner_html()
        if script == "return arguments[0].outerHTML;":
            return args[0].outer_html()
        if script == "return arguments[0];":
            return raw_args[0]
        if not sync:
            match = ASYNC_CALLBACK.search(script)
            if match:
                expr = match.group(1).strip()
                if expr == "arguments[0]":
                    return raw_args[0]
                return json.loads(expr.replace("'", '"')) if expr else None
        return None

    # Frames, windows, alerts

    def switch_frame(self, frame_id):
        if frame_id is None:
            self.frames = []
            return None
        if isinstance(frame_id, int):
            iframes = [e for e in self.context.all_elements() if e.tag == "iframe"]
            if not 0 <= frame_id < len(iframes):
                raise StubError("no such frame", f"No frame with index {frame_id}")
            self.frames.append(iframes[frame_id].frame)
            return None
        element = self.decode_arg(frame_id)
        if not isinstance(element, StubElement) or element.frame is None:
            raise StubError("no such frame", "Element is not a frame")
        self.frames.append(element.frame)
        return None

    def parent_frame(self):
        if self.frames:
            self.frames.pop()

    def switch_window(self, handle):
        if handle not in self.windows:
            raise StubError("no such window", f"Unable to locate window: {handle}")
        self.window = handle

    def close_window(self):
        self.windows.remove(self.window)
        return list(self.windows)

    def require_alert(self):
        if self.alert is None:
            raise StubError("no such alert", "No modal dialog is currently open")
        return self.alert

    def close_alert(self):
        self.require_alert()
        self.alert = None

    def send_alert_text(self, text):
        self.require_alert()
        self.alert_input = text

    def handle(self, method, rest, body):
        routes = {
            ("POST", "url"): lambda: self.navigate(body["url"]),
            ("GET", "url"): lambda: self.current_url,
            ("POST", "back"): self.back,
            ("POST", "forward"): self.forward,
            ("POST", "refresh"): self.refresh,
            ("GET", "title"): lambda: self.document.title,
            ("GET", "source"): lambda: self.context.source(),
            ("GET", "cookie"): lambda: self.document.cookies,
            ("GET", "window"): lambda: self.window,
            ("GET", "window/handles"): lambda: list(self.windows),
            ("POST", "window"): lambda: self.switch_window(body.get("handle")),
            ("DELETE", "window"): self.close_window,
            ("POST", "frame"): lambda: self.switch_frame(body["id"]),
            ("POST", "frame/parent"): self.parent_frame,
            ("POST", "element"): lambda: self.find(body, None, single=True),
            ("POST", "elements"): lambda: self.find(body, None, single=False),
            ("POST", "execute/sync"): lambda: self.execute(body, sync=True),
            ("POST", "execute/async"): lambda: self.execute(body, sync=False),
            ("GET", "screenshot"): lambda: fake_png("page"),
            ("GET", "alert/text"): self.require_alert,
            ("POST", "alert/text"): lambda: self.send_alert_text(body["text"]),
            ("POST", "alert/accept"): self.close_alert,
            ("POST", "alert/dismiss"): self.close_alert,
        }
        route = routes.get((method, "/".join(rest)))
        if route is not None:
            return route()
        if len(rest) >= 3 and rest[0] == "element":
            return self.element_command(method, self.lookup(rest[1]), "/".join(rest[2:]), body)
        raise StubError("unknown command", f"{method} /{'/'.join(rest)}")


class StubWebDriver:
    """Session registry plus request log.

    Attributes:
        requests: Every (method, path) received, in order
        deleted: Ids of sessions removed by DELETE /session/{id}
        legacy: Answer new-session and element lookups in the pre-W3C shape
    """

    def __init__(self, legacy=False):
        self.legacy = legacy
        self.sessions = {}
        self.requests = []
        self.deleted = []
        self.url = None
        self._lock = threading.Lock()

    def count(self, method, path):
        return sum(1 for r in self.requests if r == (method, path))

    def dispatch(self, method, path, raw):
        with self._lock:
            self.requests.append((method, path))
            try:
                body = json.loads(raw) if raw else None
                if method == "POST" and not isinstance(body, dict):
                    raise StubError("invalid argument", "POST body must be a JSON object")
                parts = [unquote(p) for p in urlsplit(path).path.strip("/").split("/")]
                return 200, self._route(method, parts, body)
            except StubError as e:
                return ERROR_STATUS.get(e.error, 500), {
                    "value": {"error": e.error, "message": e.message, "stacktrace": ""}
                }
            except (KeyError, TypeError, ValueError) as e:
                return 400, {"value": {"error": "invalid argument", "message": str(e), "stacktrace": ""}}

    def _route(self, method, parts, body):
        if parts == ["status"] and method == "GET":
            return {"value": {"ready": True, "message": "stub ready"}}
        if parts == ["session"] and method == "POST":
            return self._new_session(body)
        if parts[0] != "session" or len(parts) < 2:
            raise StubError("unknown command", f"{method} /{'/'.join(parts)}")

        session_id, rest = parts[1], parts[2:]
        session = self.sessions.get(session_id)
        if session is None:
            raise StubError("invalid session id", f"No active session with id {session_id}")
        if not rest and method == "DELETE":
            del self.sessions[session_id]
            self.deleted.append(session_id)
            return {"value": None}
        return {"value": session.handle(method, rest, body)}

    def _new_session(self, body):
        always_match = body["capabilities"].get("alwaysMatch", {})
        if always_match.get("browserName") not in (None, "firefox", "chrome"):
            raise StubError("session not created", f"Unsupported browser {always_match['browserName']}")
        session_id = str(uuid.uuid4())
        self.sessions[session_id] = StubSession(LEGACY_KEY if self.legacy else W3C_KEY)
        capabilities = {"browserName": "firefox", "browserVersion": "0.0", **always_match}
        if self.legacy:
            return {"sessionId": session_id, "status": 0, "value": capabilities}
        return {"value": {"sessionId": session_id, "capabilities": capabilities}}


class StubHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def log_message(self, format, *args):
        pass

    def _handle(self):
        length = int(self.headers.get("Content-Length") or 0)
        raw = self.rfile.read(length) if length else b""
        status, payload = self.server.stub.dispatch(self.command, self.path, raw)
        data = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    do_GET = _handle
    do_POST = _handle
    do_DELETE = _handle


def _serve(stub):
    server = ThreadingHTTPServer(("localhost", 0), StubHandler)
    server.daemon_threads = True
    server.stub = stub
    stub.url = f"http://localhost:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server


@pytest.fixture
def stub_driver():
    """Running StubWebDriver; ``stub_driver.url`` is its base URL."""
    stub = StubWebDriver()
    server = _serve(stub)
    yield stub
    server.shutdown()
    server.server_close()


@pytest.fixture
def legacy_stub_driver():
    """StubWebDriver answering in the pre-W3C response shapes."""
    stub = StubWebDriver(legacy=True)
    server = _serve(stub)
    yield stub
    server.shutdown()
    server.server_close()
