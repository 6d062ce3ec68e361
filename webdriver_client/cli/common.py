"""
Helpers shared by CLI subcommands.
"""

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from typing import Iterator

from ..config import Configuration
from ..drivers import ChromeDriver, GeckoDriver, HttpDriver
from ..exceptions import WebDriverClientError
from ..session import DriverSession

logger = logging.getLogger(__name__)


@contextmanager
def open_session(config: Configuration) -> Iterator[DriverSession]:
    """
    Open a session as described by ``config`` and tear it down on exit.

    Attaches to ``config.driver_url`` when set, otherwise spawns the driver
    for ``config.browser``. A spawned driver is killed after the session is
    deleted, including when session creation fails. Capabilities are built
    before any driver is spawned.
    """
    params = config.new_session_cmd()
    if config.driver_url:
        driver = HttpDriver(config.driver_url)
    elif config.browser == "chrome":
        driver = ChromeDriver.spawn(config.driver_port, startup_timeout=config.startup_timeout)
    else:
        driver = GeckoDriver.spawn(config.driver_port, startup_timeout=config.startup_timeout)

    with DriverSession.create(driver, params, owns_driver=True, timeout=config.timeout) as session:
        yield session


def report_error(args: argparse.Namespace, error: WebDriverClientError) -> int:
    """Print ``error`` and return exit code 1, re-raising in debug mode."""
    if hasattr(args, "config") and args.config.log_level.upper() == "DEBUG":
        raise error
    print(f"Error: {error}", file=sys.stderr)
    return 1


def print_result(args: argparse.Namespace, value) -> None:
    if args.format == "json":
        print(json.dumps(value, indent=2))
    elif isinstance(value, (dict, list)):
        print(json.dumps(value))
    else:
        print(value)
