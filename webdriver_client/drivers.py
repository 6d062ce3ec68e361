"""
WebDriver servers that sessions can be created on.

A driver is anything exposing the server base URL as ``url`` and a
``close()`` method:

- HttpDriver: a server that is already running somewhere
- GeckoDriver / ChromeDriver: a geckodriver / chromedriver process spawned
  and supervised by this library
"""

import logging
import subprocess
import threading
import time
from typing import List, Optional, Protocol

import psutil

from . import util
from .exceptions import DriverIOError, FailedToLaunchDriverError
from .messages import NewSessionCmd
from .session import DriverSession
from .transport import TraceHook

logger = logging.getLogger(__name__)

DEFAULT_STARTUP_TIMEOUT = 10.0
KILL_TIMEOUT = 5.0


class Driver(Protocol):
    """WebDriver server that can create a session."""

    @property
    def url(self) -> str: ...

    def close(self) -> None: ...


class HttpDriver:
    """A driver using a pre-existing WebDriver HTTP URL."""

    def __init__(self, url: str):
        self._url = url

    @property
    def url(self) -> str:
        return self._url

    def close(self) -> None:
        """Nothing to release: the server is not ours."""

    def session(
        self,
        params: Optional[NewSessionCmd] = None,
        *,
        owns_driver: bool = False,
        timeout: Optional[float] = None,
        trace_hook: Optional[TraceHook] = None,
    ) -> DriverSession:
        return DriverSession.create(
            self, params, owns_driver=owns_driver, timeout=timeout, trace_hook=trace_hook
        )

    def __enter__(self) -> "HttpDriver":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self):
        return f"HttpDriver(url={self._url!r})"


class DriverProcess:
    """
    A driver server running as a child process.

    The process is killed (with its children, e.g. the browser it started)
    on close() when ``kill_on_close`` is set. Killing happens at most once.

    Attributes:
        executable: Driver executable name or path
        port: TCP port the driver listens on
        kill_on_close: Kill the process on close() (default: True)
    """

    def __init__(self, process: subprocess.Popen, executable: str, port: int, kill_on_close: bool = True):
        self._process = process
        self._lock = threading.Lock()
        self._closed = False
        self.executable = executable
        self.port = port
        self.kill_on_close = kill_on_close

    @classmethod
    def launch(
        cls,
        args: List[str],
        port: int,
        *,
        kill_on_close: bool = True,
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
    ):
        """
        Start ``args`` and wait for the driver to listen on ``port``.

        Raises:
            DriverIOError: If the executable cannot be started
            FailedToLaunchDriverError: If the process exits or is not ready in time
        """
        executable = args[0]
        logger.info(f"Starting {executable} on port {port}")
        try:
            process = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise DriverIOError(
                f"Unable to start {executable}: {e}",
                details={"executable": executable},
            ) from e

        driver = cls(process, executable, port, kill_on_close=kill_on_close)
        try:
            driver._wait_ready(startup_timeout)
        except BaseException:
            driver._kill()
            raise
        logger.info(f"{executable} listening at {driver.url} (PID: {process.pid})")
        return driver

    def _wait_ready(self, startup_timeout: float) -> None:
        deadline = time.monotonic() + startup_timeout
        while time.monotonic() < deadline:
            if self._process.poll() is not None:
                raise FailedToLaunchDriverError(
                    f"{self.executable} exited with code {self._process.returncode} before becoming ready",
                    executable=self.executable,
                    port=self.port,
                )
            if util.wait_for_port(self.port, timeout=0.2):
                return
        raise FailedToLaunchDriverError(
            f"{self.executable} not listening on port {self.port} after {startup_timeout}s",
            executable=self.executable,
            port=self.port,
        )

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}"

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def is_running(self) -> bool:
        return self._process.poll() is None

    def session(
        self,
        params: Optional[NewSessionCmd] = None,
        *,
        owns_driver: bool = False,
        timeout: Optional[float] = None,
        trace_hook: Optional[TraceHook] = None,
    ) -> DriverSession:
        """Start a session for this driver."""
        return DriverSession.create(
            self, params, owns_driver=owns_driver, timeout=timeout, trace_hook=trace_hook
        )

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if self.kill_on_close:
            self._kill()
        else:
            logger.info(f"Leaving {self.executable} running (PID: {self.pid})")

    def _kill(self) -> None:
        try:
            parent = psutil.Process(self._process.pid)
            procs = parent.children(recursive=True) + [parent]
        except psutil.NoSuchProcess:
            self._process.poll()
            return

        for proc in procs:
            try:
                proc.terminate()
            except psutil.NoSuchProcess:
                pass
        _, alive = psutil.wait_procs(procs, timeout=KILL_TIMEOUT)
        for proc in alive:
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                pass
        try:
            self._process.wait(timeout=KILL_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning(f"{self.executable} (PID: {self.pid}) did not exit after kill")
        logger.info(f"Stopped {self.executable} (PID: {self.pid})")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self):
        return f"{type(self).__name__}(url={self.url!r}, pid={self.pid})"


class GeckoDriver(DriverProcess):
    """A geckodriver process."""

    @classmethod
    def spawn(
        cls,
        port: Optional[int] = None,
        *,
        firefox_binary: str = "firefox",
        executable: str = "geckodriver",
        kill_on_close: bool = True,
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
    ) -> "GeckoDriver":
        port = _pick_port(port)
        args = [executable, "-b", firefox_binary, "--port", str(port)]
        return cls.launch(args, port, kill_on_close=kill_on_close, startup_timeout=startup_timeout)


class ChromeDriver(DriverProcess):
    """A chromedriver process."""

    @classmethod
    def spawn(
        cls,
        port: Optional[int] = None,
        *,
        executable: str = "chromedriver",
        kill_on_close: bool = True,
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
    ) -> "ChromeDriver":
        port = _pick_port(port)
        args = [executable, f"--port={port}"]
        return cls.launch(args, port, kill_on_close=kill_on_close, startup_timeout=startup_timeout)


def _pick_port(port: Optional[int]) -> int:
    try:
        return util.check_tcp_port(port)
    except OSError as e:
        raise DriverIOError(f"Port {port} is not available: {e}", details={"port": port}) from e
