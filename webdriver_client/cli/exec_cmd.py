"""
Exec subcommand for running JavaScript in a page.

Implements 'exec' command: navigate to a URL, run a script through the
WebDriver execute endpoints and print the JSON result.
"""

import argparse
import json

from ..exceptions import WebDriverClientError
from .common import open_session, print_result, report_error


def parse_script_args(raw_args) -> list:
    """Decode each --arg value as JSON, falling back to a plain string."""
    values = []
    for raw in raw_args or []:
        try:
            values.append(json.loads(raw))
        except json.JSONDecodeError:
            values.append(raw)
    return values


def exec_handler(args: argparse.Namespace) -> int:
    """
    Handle 'exec' command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    script_args = parse_script_args(args.arg)
    try:
        with open_session(args.config) as session:
            session.go(args.url)
            if args.use_async:
                result = session.execute_async(args.script, script_args)
            else:
                result = session.execute(args.script, script_args)
        print_result(args, result)
        return 0
    except WebDriverClientError as e:
        return report_error(args, e)


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'exec' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    exec_parser = subparsers.add_parser(
        "exec",
        parents=[parent],
        help="Execute JavaScript on a page",
        description="Navigate to URL and execute a script via the WebDriver execute endpoint",
        epilog="""
Examples:
  # Return the page title
  webdriver exec https://example.com "return document.title;"

  # Pass arguments (decoded as JSON)
  webdriver exec https://example.com "return arguments[0] + arguments[1];" --arg 1 --arg 2

  # Asynchronous script: call the last argument to finish
  webdriver exec https://example.com "arguments[0](navigator.userAgent);" --async
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    exec_parser.add_argument("url", help="Page to load before running the script")
    exec_parser.add_argument("script", help="JavaScript function body to execute")
    exec_parser.add_argument(
        "--arg",
        action="append",
        help="Script argument, decoded as JSON when possible (repeatable)",
    )
    exec_parser.add_argument(
        "--async",
        dest="use_async",
        action="store_true",
        help="Use the asynchronous execute endpoint",
    )

    exec_parser.set_defaults(func=exec_handler)
