"""Networking helpers for driver processes."""

import socket
import time
from typing import Optional


def check_tcp_port(port: Optional[int] = None, host: str = "localhost") -> int:
    """Find a TCP port number to use.

    If ``port`` is given, check that it can be bound. Otherwise let the OS pick
    a free one. Racy: another process may take the port before the driver binds.

    Raises:
        OSError: If the requested port cannot be bound
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, port or 0))
        return sock.getsockname()[1]


def wait_for_port(port: int, host: str = "localhost", timeout: float = 10.0, interval: float = 0.1) -> bool:
    """Poll until something accepts TCP connections on ``host:port``.

    Returns:
        True once a connection succeeds, False if ``timeout`` elapses first
    """
    deadline = time.monotonic() + timeout
    while True:
        try:
            with socket.create_connection((host, port), timeout=interval):
                return True
        except OSError:
            if time.monotonic() >= deadline:
                return False
            time.sleep(interval)
