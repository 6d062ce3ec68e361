"""WebDriver wire message catalog.

Request bodies are built as plain dicts ready for ``json.dumps``. Response
decoders take the already-parsed JSON body and return the expected shape,
raising KeyError/TypeError/ValueError when the body does not match (the
transport turns those into JsonDecodeError).
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

# W3C element identifier and the key used by pre-W3C drivers
ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"
LEGACY_ELEMENT_KEY = "ELEMENT"


class LocationStrategy(Enum):
    """Element location strategies and their wire names."""

    CSS = "css selector"
    LINK_TEXT = "link text"
    PARTIAL_LINK_TEXT = "partial link text"
    XPATH = "xpath"

    @classmethod
    def parse(cls, value) -> "LocationStrategy":
        """Accept a LocationStrategy, its wire name or its member name."""
        if isinstance(value, cls):
            return value
        for strategy in cls:
            if value == strategy.value or str(value).upper() == strategy.name:
                return strategy
        raise ValueError(f"Unknown location strategy: {value!r}")


# --------------------------------------------------------------------------
# Capabilities


def merge(a: Any, b: Any) -> Any:
    """Recursively merge ``b`` over ``a`` and return a new value.

    When both sides are dicts, keys are merged one by one, recursing into
    nested dicts. Otherwise ``b`` wins outright. ``a`` is not mutated.
    """
    if not (isinstance(a, dict) and isinstance(b, dict)):
        return copy.deepcopy(b)
    result = copy.deepcopy(a)
    merge_into(result, b)
    return result


def merge_into(a: Dict[str, Any], b: Dict[str, Any]) -> None:
    """In-place variant of merge(): apply ``b`` onto dict ``a``."""
    for key, value in b.items():
        existing = a.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merge_into(existing, value)
        else:
            a[key] = copy.deepcopy(value)


class NewSessionCmd:
    """Capabilities payload for the new-session handshake.

    Usage:
        cmd = NewSessionCmd()
        cmd.always_match("moz:firefoxOptions", {"args": ["-headless"]})
        cmd.extend_always_match("moz:firefoxOptions", {"prefs": {"a": 1}})
    """

    def __init__(self, always_match: Optional[Dict[str, Any]] = None):
        self._always_match: Dict[str, Any] = copy.deepcopy(always_match or {})

    def always_match(self, name: str, value: Any) -> "NewSessionCmd":
        """Set a capability, replacing any existing value."""
        self._always_match[name] = copy.deepcopy(value)
        return self

    def extend_always_match(self, name: str, value: Any) -> "NewSessionCmd":
        """Merge ``value`` into the existing capability (see merge())."""
        if name in self._always_match:
            self._always_match[name] = merge(self._always_match[name], value)
        else:
            self._always_match[name] = copy.deepcopy(value)
        return self

    def reset_always_match(self) -> "NewSessionCmd":
        self._always_match.clear()
        return self

    @property
    def capabilities(self) -> Dict[str, Any]:
        return copy.deepcopy(self._always_match)

    def to_json(self) -> Dict[str, Any]:
        return {"capabilities": {"alwaysMatch": copy.deepcopy(self._always_match)}}

    def __repr__(self):
        return f"NewSessionCmd(always_match={self._always_match!r})"


# --------------------------------------------------------------------------
# Element references


@dataclass(frozen=True)
class ElementReference:
    """Opaque remote element id. Never parsed, only round-tripped."""

    reference: str

    def to_json(self) -> Dict[str, str]:
        return {ELEMENT_KEY: self.reference, LEGACY_ELEMENT_KEY: self.reference}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "ElementReference":
        if not isinstance(data, dict):
            raise TypeError(f"Element reference must be an object, got {data!r}")
        reference = data.get(ELEMENT_KEY, data.get(LEGACY_ELEMENT_KEY))
        if not isinstance(reference, str) or not reference:
            raise ValueError(f"Not an element reference: {data!r}")
        return cls(reference)


# --------------------------------------------------------------------------
# Request bodies


@dataclass
class ExecuteCmd:
    script: str
    args: Sequence[Any] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {"script": self.script, "args": [encode_argument(a) for a in self.args]}


def encode_argument(value: Any) -> Any:
    """Encode a script argument, turning element handles into references."""
    if isinstance(value, ElementReference):
        return value.to_json()
    to_reference = getattr(value, "reference", None)
    if callable(to_reference) and hasattr(value, "raw_reference"):
        return to_reference()
    if isinstance(value, (list, tuple)):
        return [encode_argument(v) for v in value]
    if isinstance(value, dict):
        return {k: encode_argument(v) for k, v in value.items()}
    return value


def go_cmd(url: str) -> Dict[str, str]:
    return {"url": url}


def switch_window_cmd(handle: str) -> Dict[str, str]:
    return {"handle": handle}


def switch_frame_cmd(frame_ref: Any) -> Dict[str, Any]:
    """Frame id may be an element reference, an index or None (top level)."""
    return {"id": encode_argument(frame_ref)}


def find_element_cmd(selector: str, strategy: LocationStrategy) -> Dict[str, str]:
    return {"using": LocationStrategy.parse(strategy).value, "value": selector}


def send_keys_cmd(text: str) -> Dict[str, str]:
    return {"text": text}


def empty_cmd() -> Dict[str, Any]:
    return {}


# --------------------------------------------------------------------------
# Response shapes


@dataclass
class Session:
    session_id: str
    capabilities: Dict[str, Any]


@dataclass
class Cookie:
    name: str
    value: str
    path: Optional[str] = None
    domain: Optional[str] = None
    secure: bool = False
    http_only: bool = False
    expiry: Optional[int] = None
    same_site: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Cookie":
        return cls(
            name=data["name"],
            value=data["value"],
            path=data.get("path"),
            domain=data.get("domain"),
            secure=bool(data.get("secure", False)),
            http_only=bool(data.get("httpOnly", False)),
            expiry=data.get("expiry"),
            same_site=data.get("sameSite"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "path": self.path,
            "domain": self.domain,
            "secure": self.secure,
            "httpOnly": self.http_only,
            "expiry": self.expiry,
            "sameSite": self.same_site,
        }


def decode_body(body: Any) -> Any:
    """Identity decoder."""
    return body


def decode_value(body: Any) -> Any:
    """Unwrap the ``{"value": ...}`` success envelope."""
    if not isinstance(body, dict) or "value" not in body:
        raise ValueError("Response has no 'value' field")
    return body["value"]


def decode_string(body: Any) -> str:
    value = decode_value(body)
    if not isinstance(value, str):
        raise TypeError(f"Expected string value, got {type(value).__name__}")
    return value


def decode_strings(body: Any) -> List[str]:
    value = decode_value(body)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TypeError("Expected a list of strings")
    return value


def decode_empty(body: Any) -> None:
    """Accept ``{"value": null}``, ``{}`` and other ignorable payloads."""
    if body is not None and not isinstance(body, dict):
        raise TypeError(f"Expected an object, got {type(body).__name__}")
    return None


def decode_session(body: Any) -> Session:
    """Decode the new-session response.

    W3C drivers answer ``{"value": {"sessionId", "capabilities"}}``; older
    drivers put ``sessionId`` at the top level and capabilities in ``value``.
    """
    value = body.get("value") if isinstance(body, dict) else None
    if isinstance(value, dict) and "sessionId" in value:
        session_id = value["sessionId"]
        capabilities = value.get("capabilities") or {}
    elif isinstance(body, dict) and "sessionId" in body:
        session_id = body["sessionId"]
        capabilities = value or {}
    else:
        raise ValueError("New session response has no sessionId")
    if not isinstance(session_id, str) or not session_id:
        raise ValueError(f"Invalid sessionId: {session_id!r}")
    if not isinstance(capabilities, dict):
        raise TypeError("Session capabilities must be an object")
    return Session(session_id=session_id, capabilities=capabilities)


def decode_element_reference(body: Any) -> ElementReference:
    return ElementReference.from_json(decode_value(body))


def decode_element_references(body: Any) -> List[ElementReference]:
    value = decode_value(body)
    if not isinstance(value, list):
        raise TypeError("Expected a list of element references")
    return [ElementReference.from_json(v) for v in value]


def decode_cookies(body: Any) -> List[Cookie]:
    value = decode_value(body)
    if not isinstance(value, list):
        raise TypeError("Expected a list of cookies")
    return [Cookie.from_json(c) for c in value]


@dataclass
class ErrorEnvelope:
    error: str
    message: str
    stacktrace: Optional[str] = None


def decode_error(body: Any) -> ErrorEnvelope:
    """Decode a driver error body, W3C (wrapped in value) or bare."""
    payload = body
    if isinstance(body, dict) and isinstance(body.get("value"), dict):
        payload = body["value"]
    if not isinstance(payload, dict):
        raise TypeError("Error response must be an object")
    error = payload["error"]
    message = payload["message"]
    if not isinstance(error, str) or not isinstance(message, str):
        raise TypeError("Error envelope fields must be strings")
    stacktrace = payload.get("stacktrace")
    return ErrorEnvelope(
        error=error,
        message=message,
        stacktrace=stacktrace if isinstance(stacktrace, str) else None,
    )
