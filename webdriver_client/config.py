"""Configuration management for the WebDriver CLI.

Supports multiple configuration sources with precedence:
CLI flags > Environment variables > Config file > Defaults

Usage:
    >>> config = Configuration()
    >>> config.load_from_file("~/.webdriverrc")
    >>> config.load_from_env()
    >>> config.merge(browser="chrome")  # CLI overrides
    >>> print(config.browser)
    chrome
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional

from .messages import NewSessionCmd

logger = logging.getLogger(__name__)

BROWSERS = ("firefox", "chrome")


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


class Configuration:
    """Configuration manager with layered precedence.

    Precedence order (highest to lowest):
    1. CLI arguments (via merge method)
    2. Environment variables (WEBDRIVER_* prefix)
    3. Config file (~/.webdriverrc JSON)
    4. Default values

    Attributes:
        browser: Browser to drive, "firefox" or "chrome" (default: "firefox")
        driver_url: URL of a running driver; None spawns one (default: None)
        driver_port: Port for a spawned driver; None picks a free one
        timeout: HTTP timeout in seconds (default: 30.0)
        startup_timeout: Seconds to wait for a spawned driver (default: 10.0)
        headless: Run the browser headless (default: True)
        log_level: Logging level (default: "INFO")
        log_format: Log output format "text" or "json" (default: "text")
    """

    DEFAULTS = {
        "browser": "firefox",
        "driver_url": None,
        "driver_port": None,
        "timeout": 30.0,
        "startup_timeout": 10.0,
        "headless": True,
        "log_level": "INFO",
        "log_format": "text",
    }

    def __init__(self):
        self.browser: str = self.DEFAULTS["browser"]
        self.driver_url: Optional[str] = self.DEFAULTS["driver_url"]
        self.driver_port: Optional[int] = self.DEFAULTS["driver_port"]
        self.timeout: float = self.DEFAULTS["timeout"]
        self.startup_timeout: float = self.DEFAULTS["startup_timeout"]
        self.headless: bool = self.DEFAULTS["headless"]
        self.log_level: str = self.DEFAULTS["log_level"]
        self.log_format: str = self.DEFAULTS["log_format"]

    def load_from_file(self, file_path: str) -> None:
        """Load configuration from JSON file.

        Args:
            file_path: Path to config file (typically ~/.webdriverrc)

        Note:
            Invalid JSON or missing file is ignored with a log message.
            Partial configs are merged with existing values.
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            logger.debug(f"Config file not found: {path}")
            return

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in config file {path}: {e}")
            return
        except OSError as e:
            logger.warning(f"Error loading config file {path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Config file {path} must contain a JSON object")
            return

        self._merge_dict(data)
        logger.info(f"Loaded configuration from {path}")

    def load_from_env(self) -> None:
        """Load configuration from environment variables.

        Environment variables use WEBDRIVER_ prefix:
        - WEBDRIVER_BROWSER
        - WEBDRIVER_DRIVER_URL
        - WEBDRIVER_DRIVER_PORT
        - WEBDRIVER_TIMEOUT
        - WEBDRIVER_STARTUP_TIMEOUT
        - WEBDRIVER_HEADLESS
        - WEBDRIVER_LOG_LEVEL
        - WEBDRIVER_LOG_FORMAT

        Invalid values are ignored with a warning log.
        """
        env_mappings = {
            "WEBDRIVER_BROWSER": ("browser", str),
            "WEBDRIVER_DRIVER_URL": ("driver_url", str),
            "WEBDRIVER_DRIVER_PORT": ("driver_port", int),
            "WEBDRIVER_TIMEOUT": ("timeout", float),
            "WEBDRIVER_STARTUP_TIMEOUT": ("startup_timeout", float),
            "WEBDRIVER_HEADLESS": ("headless", _parse_bool),
            "WEBDRIVER_LOG_LEVEL": ("log_level", str),
            "WEBDRIVER_LOG_FORMAT": ("log_format", str),
        }

        for env_var, (attr_name, type_converter) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    converted_value = type_converter(value)
                    setattr(self, attr_name, converted_value)
                    logger.debug(f"Loaded {attr_name}={converted_value} from {env_var}")
                except (ValueError, TypeError) as e:
                    logger.warning(f"Invalid value for {env_var}: {value} ({e})")

    def merge(self, **kwargs) -> None:
        """Merge CLI arguments into configuration (highest precedence).

        Example:
            >>> config.merge(browser="chrome", timeout=15.0)
        """
        self._merge_dict(kwargs)

    def _merge_dict(self, data: dict) -> None:
        for key, value in data.items():
            if key in self.DEFAULTS and value is not None:
                setattr(self, key, value)
                logger.debug(f"Set {key}={value}")

    def new_session_cmd(self) -> NewSessionCmd:
        """Build the new-session capabilities for the configured browser.

        Raises:
            ValueError: If browser is not one of BROWSERS
        """
        if self.browser not in BROWSERS:
            raise ValueError(f"Unsupported browser: {self.browser!r}")

        cmd = NewSessionCmd()
        if self.browser == "firefox":
            cmd.always_match("browserName", "firefox")
            if self.headless:
                cmd.extend_always_match("moz:firefoxOptions", {"args": ["-headless"]})
        else:
            cmd.always_match("browserName", "chrome")
            if self.headless:
                cmd.extend_always_match(
                    "goog:chromeOptions", {"args": ["--headless", "--no-sandbox"]}
                )
        return cmd

    def to_dict(self) -> dict:
        return {key: getattr(self, key) for key in self.DEFAULTS}

    def __repr__(self) -> str:
        return f"Configuration({self.to_dict()})"
