"""HTTP transport for the WebDriver wire protocol.

Provides HttpClient, which resolves paths against the driver base URL,
issues blocking JSON requests and maps responses to decoded values or
structured errors.
"""

import http.client
import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Callable, Optional

from . import messages
from .exceptions import (
    DriverConnectionError,
    InvalidUrlError,
    JsonDecodeError,
    WebDriverError,
)
from .logging_setup import log_with_context

logger = logging.getLogger(__name__)

# trace_hook(event, method, url, body) with event "request" or "response"
TraceHook = Callable[[str, str, str, Optional[str]], None]
Decoder = Callable[[Any], Any]


class HttpClient:
    """Blocking JSON client bound to one driver base URL.

    Handles:
    - URL construction (base URL + absolute protocol path)
    - JSON encoding of request bodies
    - Decoding of success envelopes and driver error envelopes
    - Request/response tracing

    Usage:
        client = HttpClient("http://localhost:4444")
        url = client.get("/session/abc/url", messages.decode_string)

    Attributes:
        base_url: Driver base URL
        timeout: Socket timeout in seconds (None for the global default)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        trace_hook: Optional[TraceHook] = None,
        opener: Optional[urllib.request.OpenerDirector] = None,
    ):
        """Initialize HTTP client.

        Args:
            base_url: Driver base URL (e.g., http://localhost:4444)
            timeout: Socket timeout in seconds
            trace_hook: Optional callable observing every request and response
            opener: urllib opener to use (default: a private build_opener())

        Raises:
            InvalidUrlError: If base_url is not an http(s) URL with a host
        """
        parsed = urllib.parse.urlsplit(base_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidUrlError(
                f"Invalid driver URL: {base_url!r}", details={"url": base_url}
            )

        self.base_url = base_url
        self.timeout = timeout
        self.trace_hook = trace_hook
        self._opener = opener or urllib.request.build_opener()

    def get(self, path: str, decoder: Decoder = messages.decode_body) -> Any:
        return self._request("GET", path, None, decoder)

    def delete(self, path: str, decoder: Decoder = messages.decode_body) -> Any:
        return self._request("DELETE", path, None, decoder)

    def post(
        self, path: str, body: Any, decoder: Decoder = messages.decode_body
    ) -> Any:
        return self._request("POST", path, body, decoder)

    def resolve(self, path: str) -> str:
        """Join ``path`` onto the base URL.

        Raises:
            InvalidUrlError: If the join fails or yields a non-http URL
        """
        try:
            url = urllib.parse.urljoin(self.base_url, path)
            parsed = urllib.parse.urlsplit(url)
        except ValueError as e:
            raise InvalidUrlError(
                f"Cannot join {path!r} onto {self.base_url}: {e}",
                details={"path": path},
            ) from e
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidUrlError(
                f"Cannot join {path!r} onto {self.base_url}",
                details={"path": path},
            )
        return url

    def _request(self, method: str, path: str, body: Any, decoder: Decoder) -> Any:
        url = self.resolve(path)

        data = None
        body_str = None
        if body is not None:
            try:
                body_str = json.dumps(body)
            except (TypeError, ValueError) as e:
                raise JsonDecodeError(
                    f"Cannot encode request body for {method} {url}: {e}"
                ) from e
            data = body_str.encode("utf-8")

        log_with_context(logger, logging.DEBUG, f"{method} {url}", method=method, url=url, body=body_str)
        self._trace("request", method, url, body_str)

        request = urllib.request.Request(url, data=data, method=method)
        request.add_header("Accept", "application/json")
        if data is not None:
            request.add_header("Content-Type", "application/json; charset=utf-8")

        try:
            with self._opener.open(request, timeout=self.timeout) as response:
                status = response.status
                raw = response.read()
        except urllib.error.HTTPError as e:
            # Non-2xx: body carries the driver error envelope
            status = e.code
            try:
                raw = e.read()
            except (OSError, http.client.HTTPException) as read_error:
                raise DriverConnectionError(
                    f"Failed to read error response from {url}: {read_error}",
                    details={"url": url, "status": status},
                ) from read_error
            finally:
                e.close()
        except urllib.error.URLError as e:
            raise DriverConnectionError(
                f"Failed to connect to driver at {url}: {e.reason}",
                details={"url": url, "method": method},
            ) from e
        except (OSError, http.client.HTTPException, socket.timeout) as e:
            raise DriverConnectionError(
                f"Request {method} {url} failed: {e}",
                details={"url": url, "method": method},
            ) from e
        except ValueError as e:
            raise InvalidUrlError(f"Invalid request URL {url}: {e}") from e

        text = raw.decode("utf-8", errors="replace")
        log_with_context(
            logger, logging.DEBUG, f"{method} {url} -> {status}",
            method=method, url=url, status=status, body=text,
        )
        self._trace("response", method, url, text)

        return self.decode(status, text, decoder)

    @staticmethod
    def decode(status: int, text: str, decoder: Decoder = messages.decode_body) -> Any:
        """Decode a response body according to its HTTP status.

        Raises:
            WebDriverError: If status is an error and the body is an error envelope
            JsonDecodeError: If the body does not have the expected shape
        """
        if not 200 <= status < 300:
            try:
                envelope = messages.decode_error(json.loads(text))
            except (ValueError, KeyError, TypeError) as e:
                raise JsonDecodeError(
                    f"Received invalid error response (HTTP {status}): {e}",
                    body=text,
                    details={"status": status},
                ) from e
            raise WebDriverError(
                envelope.error,
                envelope.message,
                stacktrace=envelope.stacktrace,
                status=status,
            )

        try:
            return decoder(json.loads(text) if text.strip() else None)
        except (ValueError, KeyError, TypeError) as e:
            raise JsonDecodeError(
                f"Received invalid response from driver: {e}", body=text
            ) from e

    def _trace(self, event: str, method: str, url: str, body: Optional[str]) -> None:
        if self.trace_hook is None:
            return
        try:
            self.trace_hook(event, method, url, body)
        except Exception as e:
            logger.warning(f"Trace hook failed: {e}", exc_info=True)

    def __repr__(self):
        return f"HttpClient(base_url={self.base_url!r})"
