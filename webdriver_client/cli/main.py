"""
Main CLI entry point for the webdriver tool.

Provides unified command-line interface with subcommands for WebDriver operations.

Usage:
    python -m webdriver_client.cli.main <subcommand> [options]

Subcommands:
    shell       - Interactive shell driving one session
    exec        - Execute JavaScript on a page
    screenshot  - Save a page or element screenshot
"""

import argparse
import sys
from typing import List, Optional

from webdriver_client.config import BROWSERS, Configuration
from webdriver_client.logging_setup import setup_logging


def create_parent_parser() -> argparse.ArgumentParser:
    """
    Create parent parser with global options shared across all subcommands.

    Global options:
        --browser: Browser to drive (firefox|chrome)
        --driver-url: Use an already running driver instead of spawning one
        --driver-port: Port for a spawned driver
        --timeout: HTTP timeout in seconds
        --format: Output format (json|text, default: text)
        --log-level: Log level (debug|info|warning|error)
        --quiet/--verbose: Mutual exclusion group for output control

    Returns:
        ArgumentParser with global options
    """
    parent = argparse.ArgumentParser(add_help=False)

    # Driver options (defaults come from Configuration)
    parent.add_argument(
        "--browser",
        choices=list(BROWSERS),
        default=None,
        help="Browser to drive (default: firefox)",
    )
    parent.add_argument(
        "--driver-url",
        default=None,
        help="URL of a running WebDriver server (default: spawn a driver)",
    )
    parent.add_argument(
        "--driver-port",
        type=int,
        default=None,
        help="Port for a spawned driver (default: any free port)",
    )
    parent.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds (default: 30.0)",
    )
    parent.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless",
    )

    parent.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)",
    )

    parent.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (default: info)",
    )

    verbosity_group = parent.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress non-essential output (only show results)",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug output, including every WebDriver request",
    )

    return parent


def create_main_parser(parent: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """
    Create main parser with all subcommands.

    Args:
        parent: Parent parser with global options

    Returns:
        Main ArgumentParser with subcommands configured
    """
    parser = argparse.ArgumentParser(
        prog="webdriver",
        description="W3C WebDriver browser automation client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive shell on a headless Firefox
  webdriver shell https://example.com

  # Use an already running chromedriver
  webdriver shell --driver-url http://localhost:9515 --browser chrome

  # Execute JavaScript
  webdriver exec https://example.com "return document.title;"

  # Save a screenshot of one element
  webdriver screenshot https://example.com out.png --selector h1

For more information on subcommands, run: webdriver <subcommand> --help
        """,
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        title="subcommands",
        description="Available WebDriver operations",
        required=True,
    )

    from . import exec_cmd, screenshot_cmd, shell_cmd

    shell_cmd.register_subcommand(subparsers, parent)
    exec_cmd.register_subcommand(subparsers, parent)
    screenshot_cmd.register_subcommand(subparsers, parent)

    return parser


def build_config(args: argparse.Namespace) -> Configuration:
    """Load configuration with precedence: CLI > env > file > defaults."""
    config = Configuration()
    config.load_from_file("~/.webdriverrc")
    config.load_from_env()

    cli_overrides = {
        "browser": getattr(args, "browser", None),
        "driver_url": getattr(args, "driver_url", None),
        "driver_port": getattr(args, "driver_port", None),
        "timeout": getattr(args, "timeout", None),
        "log_level": getattr(args, "log_level", None),
        "headless": False if getattr(args, "headed", False) else None,
    }
    config.merge(**{k: v for k, v in cli_overrides.items() if v is not None})

    # Verbosity flags override log level
    if getattr(args, "quiet", False):
        config.log_level = "ERROR"
    elif getattr(args, "verbose", False):
        config.log_level = "DEBUG"

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parent = create_parent_parser()
    parser = create_main_parser(parent)

    args = parser.parse_args(argv)

    config = build_config(args)

    setup_logging(
        format_type=config.log_format,
        level=config.log_level.upper() if isinstance(config.log_level, str) else "INFO",
        quiet=getattr(args, "quiet", False),
        verbose=getattr(args, "verbose", False),
    )

    # Attach config to args for subcommands to access
    args.config = config

    if hasattr(args, "func"):
        try:
            return args.func(args)
        except KeyboardInterrupt:
            print("\nInterrupted by user", file=sys.stderr)
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            if config.log_level.upper() == "DEBUG":
                raise  # Re-raise for full traceback in debug mode
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
