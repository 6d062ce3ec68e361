"""Python client library for the W3C WebDriver protocol.

This package provides:
- DriverSession: a WebDriver session and its session-scoped commands
- Element: handles to remote DOM elements
- FrameContext: scoped frame switching
- HttpDriver, GeckoDriver, ChromeDriver: driver servers to create sessions on
- CLI: interactive shell and one-shot commands
"""

__version__ = "0.1.0"

from .drivers import ChromeDriver, Driver, GeckoDriver, HttpDriver
from .element import Element
from .exceptions import (
    Base64DecodeError,
    DriverConnectionError,
    DriverIOError,
    ErrorKind,
    FailedToLaunchDriverError,
    InvalidUrlError,
    JsonDecodeError,
    SessionNotActiveError,
    WebDriverClientError,
    WebDriverError,
)
from .frame import FrameContext
from .messages import ExecuteCmd, LocationStrategy, NewSessionCmd, merge, merge_into
from .screenshot import Screenshot
from .session import DriverSession, SessionState

__all__ = [
    "Base64DecodeError",
    "ChromeDriver",
    "Driver",
    "DriverConnectionError",
    "DriverIOError",
    "DriverSession",
    "Element",
    "ErrorKind",
    "ExecuteCmd",
    "FailedToLaunchDriverError",
    "FrameContext",
    "GeckoDriver",
    "HttpDriver",
    "InvalidUrlError",
    "JsonDecodeError",
    "LocationStrategy",
    "NewSessionCmd",
    "Screenshot",
    "SessionNotActiveError",
    "SessionState",
    "WebDriverClientError",
    "WebDriverError",
    "merge",
    "merge_into",
]
