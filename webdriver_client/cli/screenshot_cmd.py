"""
Screenshot subcommand.

Implements 'screenshot' command to save a PNG of a page or of one element.
"""

import argparse
import sys

from ..exceptions import WebDriverClientError
from .common import open_session, report_error


def screenshot_handler(args: argparse.Namespace) -> int:
    """
    Handle 'screenshot' command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        with open_session(args.config) as session:
            session.go(args.url)
            if args.selector:
                shot = session.find_element(args.selector).screenshot()
            else:
                shot = session.screenshot()
            path = shot.save_file(args.output)
        if not args.quiet:
            print(f"Screenshot saved to {path}", file=sys.stderr)
        return 0
    except WebDriverClientError as e:
        return report_error(args, e)


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'screenshot' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    screenshot_parser = subparsers.add_parser(
        "screenshot",
        parents=[parent],
        help="Save a page or element screenshot",
        description="Navigate to URL and save a PNG screenshot",
        epilog="""
Examples:
  # Whole viewport
  webdriver screenshot https://example.com page.png

  # A single element
  webdriver screenshot https://example.com heading.png --selector h1
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    screenshot_parser.add_argument("url", help="Page to load")
    screenshot_parser.add_argument("output", help="Output PNG file")
    screenshot_parser.add_argument(
        "--selector",
        help="CSS selector of the element to capture (default: whole viewport)",
    )

    screenshot_parser.set_defaults(func=screenshot_handler)
