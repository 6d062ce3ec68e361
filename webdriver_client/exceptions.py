"""Exception hierarchy for WebDriver client operations.

All client exceptions inherit from WebDriverClientError. Each concrete type
carries a ``kind`` from ErrorKind so callers can match on a single attribute
instead of walking the class hierarchy.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Every failure category the client can raise."""

    INVALID_URL = "invalid_url"
    CONNECTION = "connection"
    JSON_DECODE = "json_decode"
    WEBDRIVER = "webdriver"
    IO = "io"
    FAILED_TO_LAUNCH_DRIVER = "failed_to_launch_driver"
    BASE64_DECODE = "base64_decode"
    SESSION_NOT_ACTIVE = "session_not_active"


class WebDriverClientError(Exception):
    """Base exception for all WebDriver client errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
        kind: ErrorKind tag of the concrete error
    """

    kind: Optional[ErrorKind] = None

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class InvalidUrlError(WebDriverClientError):
    """Malformed driver base URL or request path.

    Caller error, never retried.
    """

    kind = ErrorKind.INVALID_URL


class DriverConnectionError(WebDriverClientError):
    """Transport-level failure talking to the driver.

    Raised on connection refused/reset, TLS failure or timeout.
    Common causes: driver not running, wrong port.
    """

    kind = ErrorKind.CONNECTION


class JsonDecodeError(WebDriverClientError):
    """Response body did not match the expected shape.

    Also raised when an HTTP error response does not carry a readable
    error envelope.
    """

    kind = ErrorKind.JSON_DECODE

    def __init__(
        self,
        message: str,
        body: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.body = body


class WebDriverError(WebDriverClientError):
    """Protocol-level failure reported by the remote driver.

    Keeps the remote ``error`` code and ``message`` verbatim, e.g.
    ``no such element``, ``stale element reference``, ``javascript error``.
    """

    kind = ErrorKind.WEBDRIVER

    def __init__(
        self,
        error: str,
        message: str,
        stacktrace: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.error = error
        self.stacktrace = stacktrace
        self.status = status

    def __str__(self):
        return f"{self.error}: {self.message}"

    def __repr__(self):
        return f"WebDriverError(error={self.error!r}, message={self.message!r})"


class DriverIOError(WebDriverClientError):
    """Local I/O failure (writing a screenshot, spawning a process)."""

    kind = ErrorKind.IO


class FailedToLaunchDriverError(WebDriverClientError):
    """Driver process did not start or did not become ready in time."""

    kind = ErrorKind.FAILED_TO_LAUNCH_DRIVER

    def __init__(
        self,
        message: str,
        executable: Optional[str] = None,
        port: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.executable = executable
        self.port = port


class Base64DecodeError(WebDriverClientError):
    """Screenshot payload was not valid base64."""

    kind = ErrorKind.BASE64_DECODE


class SessionNotActiveError(WebDriverClientError):
    """Operation attempted on a session that is not active.

    Raised for sessions that were closed, or for element handles that
    outlived their session.
    """

    kind = ErrorKind.SESSION_NOT_ACTIVE
