"""
WebDriver session management.

A DriverSession wraps one remote session id on a driver and exposes every
session-scoped command. Sessions are context managers; leaving the ``with``
block deletes the remote session (unless ``drop_session`` was disabled) and
closes the driver when the session owns it.
"""

import logging
import threading
import urllib.parse
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Union

from . import messages
from .element import Element
from .exceptions import SessionNotActiveError, WebDriverClientError
from .frame import FrameContext
from .messages import Cookie, ExecuteCmd, LocationStrategy, NewSessionCmd
from .screenshot import Screenshot
from .transport import HttpClient, TraceHook

logger = logging.getLogger(__name__)


class SessionState(Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    CLOSED = "closed"


class DriverSession:
    """
    A live WebDriver session.

    Create sessions with DriverSession.create() (new-session handshake) or
    DriverSession.attach() (existing session id). Always release them with
    close() or a ``with`` block.

    Usage:
        with DriverSession.create(HttpDriver("http://localhost:4444")) as sess:
            sess.go("https://example.com")
            heading = sess.find_element("h1")
            print(heading.text())

    Attributes:
        url: Driver base URL
        session_id: Remote session id
        capabilities: Capabilities negotiated at creation (read-only)
        drop_session: Whether close() deletes the remote session (default: True)
    """

    def __init__(self, driver, client: HttpClient, *, owns_driver: bool = False):
        """
        Initialize an unstarted session. Use create() or attach() instead.

        Args:
            driver: Object exposing ``url`` (and ``close()`` if owned)
            client: Transport bound to the driver URL
            owns_driver: Close the driver when the session is closed
        """
        self._driver = driver
        self._client = client
        self._owns_driver = owns_driver
        self._session_id: Optional[str] = None
        self._capabilities: Mapping[str, Any] = MappingProxyType({})
        self._state = SessionState.UNINITIALIZED
        self._close_lock = threading.Lock()
        self.drop_session = True

    # ------------------------------------------------------------------
    # Construction

    @classmethod
    def create(
        cls,
        driver,
        params: Optional[NewSessionCmd] = None,
        *,
        owns_driver: bool = False,
        timeout: Optional[float] = None,
        trace_hook: Optional[TraceHook] = None,
    ) -> "DriverSession":
        """
        Start a new session on ``driver``.

        Args:
            driver: Object exposing the driver base URL as ``url``
            params: Capabilities for the new session (default: none)
            owns_driver: Close ``driver`` when this session is closed
            timeout: Transport timeout in seconds
            trace_hook: Transport trace hook

        Returns:
            Active DriverSession

        Raises:
            InvalidUrlError: If the driver URL is malformed
            DriverConnectionError: If the driver is unreachable
            WebDriverError: If the driver refuses to create the session
        """
        try:
            client = HttpClient(driver.url, timeout=timeout, trace_hook=trace_hook)
            session = cls(driver, client, owns_driver=owns_driver)
            session._start(params or NewSessionCmd())
        except BaseException:
            if owns_driver:
                _close_owned_driver(driver)
            raise
        return session

    @classmethod
    def attach(
        cls,
        url: str,
        session_id: str,
        *,
        timeout: Optional[float] = None,
        trace_hook: Optional[TraceHook] = None,
    ) -> "DriverSession":
        """
        Use an existing session.

        The session is verified by reading its current URL. Teardown is only
        armed once that read succeeds.

        Raises:
            ValueError: If session_id is empty
            WebDriverError: If the driver does not know the session
        """
        from .drivers import HttpDriver

        if not session_id:
            raise ValueError("session_id must be non-empty")

        client = HttpClient(url, timeout=timeout, trace_hook=trace_hook)
        session = cls(HttpDriver(url), client)
        session._confirm(session_id)
        return session

    def _start(self, params: NewSessionCmd) -> None:
        logger.info(f"Creating session at {self._client.base_url}")
        created = self._client.post("/session", params.to_json(), messages.decode_session)
        self._activate(created.session_id, created.capabilities)
        logger.info(f"Session {created.session_id} created")

    def _confirm(self, session_id: str) -> None:
        logger.info(f"Connecting to session at {self._client.base_url} with id {session_id}")
        # Any session-scoped read proves the session exists
        self._client.get(f"/session/{_quote(session_id)}/url", messages.decode_string)
        self._activate(session_id, {})
        logger.info(f"Connected to existing session {session_id}")

    def _activate(self, session_id: str, capabilities: dict) -> None:
        self._session_id = session_id
        self._capabilities = MappingProxyType(dict(capabilities))
        self._state = SessionState.ACTIVE

    # ------------------------------------------------------------------
    # Accessors

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def url(self) -> str:
        return self._client.base_url

    @property
    def capabilities(self) -> Mapping[str, Any]:
        return self._capabilities

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def driver(self):
        return self._driver

    @property
    def browser_name(self) -> Optional[str]:
        name = self._capabilities.get("browserName")
        return name if isinstance(name, str) else None

    # ------------------------------------------------------------------
    # Request helpers shared with Element and FrameContext

    def _path(self, suffix: str = "") -> str:
        if self._state is not SessionState.ACTIVE:
            raise SessionNotActiveError(
                f"Session is {self._state.value}",
                details={"session_id": self._session_id},
            )
        base = f"/session/{_quote(self._session_id)}"
        return f"{base}/{suffix}" if suffix else base

    def _get(self, suffix: str, decoder=messages.decode_value) -> Any:
        return self._client.get(self._path(suffix), decoder)

    def _post(self, suffix: str, body: Any = None, decoder=messages.decode_empty) -> Any:
        return self._client.post(
            self._path(suffix),
            messages.empty_cmd() if body is None else body,
            decoder,
        )

    def _delete(self, suffix: str, decoder=messages.decode_empty) -> Any:
        return self._client.delete(self._path(suffix), decoder)

    # ------------------------------------------------------------------
    # Navigation

    def go(self, url: str) -> None:
        """Navigate to ``url``."""
        self._post("url", messages.go_cmd(url))

    def back(self) -> None:
        self._post("back")

    def forward(self) -> None:
        self._post("forward")

    def refresh(self) -> None:
        """Reload the page. Previously located elements become stale."""
        self._post("refresh")

    def get_current_url(self) -> str:
        return self._get("url", messages.decode_string)

    def get_page_source(self) -> str:
        return self._get("source", messages.decode_string)

    def get_title(self) -> str:
        return self._get("title", messages.decode_string)

    def get_cookies(self) -> List[Cookie]:
        return self._get("cookie", messages.decode_cookies)

    # ------------------------------------------------------------------
    # Windows

    def get_window_handle(self) -> str:
        return self._get("window", messages.decode_string)

    def get_window_handles(self) -> List[str]:
        return self._get("window/handles", messages.decode_strings)

    def switch_window(self, handle: str) -> None:
        self._post("window", messages.switch_window_cmd(handle))

    def close_window(self) -> None:
        """Close the current window. The session stays open."""
        self._delete("window")

    # ------------------------------------------------------------------
    # Frames

    def switch_to_frame(self, frame_ref: Any) -> None:
        """
        Switch the browsing context to a frame.

        Args:
            frame_ref: Element, element reference as returned by
                Element.reference(), frame index, or None for the top level
        """
        self._post("frame", messages.switch_frame_cmd(frame_ref))

    def switch_to_parent_frame(self) -> None:
        self._post("frame/parent")

    def frame(self, frame_ref: Any, restore: str = "parent") -> FrameContext:
        """Switch to a frame for the duration of a ``with`` block."""
        return FrameContext(self, frame_ref, restore=restore)

    # ------------------------------------------------------------------
    # Scripts

    def execute(
        self, script: Union[str, ExecuteCmd], args: Iterable[Any] = ()
    ) -> Any:
        """
        Run a synchronous script and return its JSON result.

        Args:
            script: Script body or ExecuteCmd
            args: JSON-serializable arguments; Elements are sent as references
        """
        return self._post("execute/sync", _execute_cmd(script, args).to_json(), messages.decode_value)

    def execute_async(
        self, script: Union[str, ExecuteCmd], args: Iterable[Any] = ()
    ) -> Any:
        """Run an asynchronous script; it completes by calling its last argument."""
        return self._post("execute/async", _execute_cmd(script, args).to_json(), messages.decode_value)

    # ------------------------------------------------------------------
    # Elements

    def find_element(
        self, selector: str, strategy: LocationStrategy = LocationStrategy.CSS
    ) -> Element:
        """
        Locate the first element matching ``selector``.

        Raises:
            WebDriverError: "no such element" when nothing matches
        """
        ref = self._post(
            "element",
            messages.find_element_cmd(selector, strategy),
            messages.decode_element_reference,
        )
        return Element(self, ref.reference)

    def find_elements(
        self, selector: str, strategy: LocationStrategy = LocationStrategy.CSS
    ) -> List[Element]:
        """Locate all elements matching ``selector``; empty list when none match."""
        refs = self._post(
            "elements",
            messages.find_element_cmd(selector, strategy),
            messages.decode_element_references,
        )
        return [Element(self, ref.reference) for ref in refs]

    # ------------------------------------------------------------------
    # Screenshots and alerts

    def screenshot(self) -> Screenshot:
        """Take a screenshot of the current browsing context."""
        return Screenshot(self._get("screenshot", messages.decode_string))

    def dismiss_alert(self) -> None:
        self._post("alert/dismiss")

    def accept_alert(self) -> None:
        self._post("alert/accept")

    def get_alert_text(self) -> Optional[str]:
        return self._get("alert/text")

    def send_alert_text(self, text: str) -> None:
        self._post("alert/text", messages.send_keys_cmd(text))

    # ------------------------------------------------------------------
    # Teardown

    def close(self) -> None:
        """
        Delete the remote session and release the driver.

        Safe to call more than once; only the first call has an effect.
        Errors are logged, never raised, so close() is usable in cleanup paths.
        """
        with self._close_lock:
            if self._state is SessionState.CLOSED:
                return
            was_active = self._state is SessionState.ACTIVE
            self._state = SessionState.CLOSED

        try:
            if was_active and self.drop_session:
                logger.info(f"Deleting session {self._session_id}")
                self._client.delete(
                    f"/session/{_quote(self._session_id)}", messages.decode_empty
                )
        except WebDriverClientError as e:
            logger.warning(f"Failed to delete session {self._session_id}: {e}")
        finally:
            if self._owns_driver:
                self._close_driver()

    def _close_driver(self) -> None:
        _close_owned_driver(self._driver)

    def __enter__(self) -> "DriverSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self):
        return (
            f"DriverSession(url={self.url!r}, session_id={self._session_id!r}, "
            f"state={self._state.value!r})"
        )


def _execute_cmd(script: Union[str, ExecuteCmd], args: Iterable[Any]) -> ExecuteCmd:
    if isinstance(script, ExecuteCmd):
        return script
    return ExecuteCmd(script=script, args=list(args))


def _quote(segment: str) -> str:
    return urllib.parse.quote(segment, safe="")


def _close_owned_driver(driver) -> None:
    try:
        driver.close()
    except Exception as e:
        logger.warning(f"Failed to close driver {driver!r}: {e}", exc_info=True)
