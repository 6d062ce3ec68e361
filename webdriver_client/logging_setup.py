"""Log output for the WebDriver client and the ``webdriver`` CLI.

The library itself only creates module loggers under ``webdriver_client``.
The transport logs every request and response at DEBUG through
log_with_context(), attaching method, URL, status and body as context
fields. setup_logging() is called once by the CLI and decides how those
records are rendered on stderr:

    text   2025-10-24 23:30:00 [DEBUG] webdriver_client.transport: POST http://localhost:4444/session  method=POST
    json   {"timestamp": ..., "level": "DEBUG", "logger": "webdriver_client.transport",
            "message": "POST http://localhost:4444/session", "extra": {"method": "POST", ...}}

Named logging_setup.py so it does not shadow the standard logging module.
"""

import sys
import json
import logging
from typing import Optional, Dict, Any, Union
from datetime import datetime

PACKAGE_LOGGER = "webdriver_client"


def _context(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    fields = getattr(record, "extra", None)
    return fields if isinstance(fields, dict) and fields else None


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for piping CLI traces into other tools.

    DEBUG records also carry the emitting file, line and function, which
    points at the client call that produced a request.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = _context(record)
        if fields:
            entry["extra"] = fields
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if record.levelno == logging.DEBUG:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }
        # Request bodies may hold values json cannot encode directly
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line text; context fields are appended as ``key=value``."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _context(record)
        if not fields:
            return line
        suffix = " ".join(f"{key}={value}" for key, value in fields.items() if key != "body")
        return f"{line}  {suffix}" if suffix else line


def resolve_level(level: Optional[str] = None, quiet: bool = False, verbose: bool = False) -> int:
    """--quiet beats --verbose, which beats an explicit level name; INFO otherwise."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    if level:
        return getattr(logging, level.upper(), logging.INFO)
    return logging.INFO


def setup_logging(
    format_type: str = "text",
    level: Optional[str] = None,
    quiet: bool = False,
    verbose: bool = False,
) -> None:
    """Route client logs to stderr for a CLI run.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output. stdout stays reserved for command results.

    Args:
        format_type: "json" or "text"
        level: Level name from config or --log-level
        quiet: Only errors
        verbose: Include per-request transport traces
    """
    log_level = resolve_level(level, quiet=quiet, verbose=verbose)

    formatter: Union[JSONFormatter, TextFormatter]
    formatter = JSONFormatter() if format_type == "json" else TextFormatter()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)
    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)


def log_with_context(
    logger: logging.Logger, level: int, message: str, **fields
) -> None:
    """Log ``message`` with structured context fields attached as ``record.extra``.

    The record's location is that of the caller, not of this helper.

    Example:
        log_with_context(
            logger, logging.DEBUG, "GET http://localhost:4444/session/1/url",
            method="GET", status=200
        )
    """
    if not logger.isEnabledFor(level):
        return
    if fields:
        logger.log(level, message, extra={"extra": fields}, stacklevel=2)
    else:
        logger.log(level, message, stacklevel=2)
