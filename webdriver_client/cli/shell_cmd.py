"""
Shell subcommand: an interactive prompt driving one WebDriver session.

Each input line is ``<command> [argument]``; the argument is the rest of the
line. Errors are printed and the prompt continues.
"""

import argparse
import json
import sys
from typing import Callable, Dict, TextIO

from ..exceptions import WebDriverClientError
from ..session import DriverSession
from .common import open_session, report_error

PROMPT = ">> "


class Shell:
    """Dispatches shell lines to session operations."""

    def __init__(self, session: DriverSession, out: TextIO = sys.stdout):
        self.session = session
        self.out = out
        self.commands: Dict[str, Callable[[str], None]] = {
            "go": self._go,
            "back": lambda arg: self.session.back(),
            "forward": lambda arg: self.session.forward(),
            "refresh": lambda arg: self.session.refresh(),
            "url": lambda arg: self._print(self.session.get_current_url()),
            "title": lambda arg: self._print(self.session.get_title()),
            "source": lambda arg: self._print(self.session.get_page_source()),
            "cookies": self._cookies,
            "window": lambda arg: self._print(self.session.get_window_handle()),
            "windows": lambda arg: self._print("\n".join(self.session.get_window_handles())),
            "switch": self._switch,
            "find": self._find,
            "findall": self._findall,
            "text": lambda arg: self._print(self.session.find_element(_required(arg, "selector")).text()),
            "html": lambda arg: self._print(self.session.find_element(_required(arg, "selector")).outer_html()),
            "exec": self._exec,
            "screenshot": self._screenshot,
            "accept": lambda arg: self.session.accept_alert(),
            "dismiss": lambda arg: self.session.dismiss_alert(),
            "alert": lambda arg: self._print(self.session.get_alert_text()),
            "help": self._help,
        }

    def _print(self, value) -> None:
        if isinstance(value, (dict, list)):
            value = json.dumps(value)
        print(value, file=self.out)

    def _go(self, arg: str) -> None:
        self.session.go(_required(arg, "url"))

    def _cookies(self, arg: str) -> None:
        for cookie in self.session.get_cookies():
            self._print(f"{cookie.name}={cookie.value}")

    def _switch(self, arg: str) -> None:
        self.session.switch_window(_required(arg, "window handle"))

    def _find(self, arg: str) -> None:
        element = self.session.find_element(_required(arg, "selector"))
        self._print(f"{element.raw_reference}\t{element.name()}\t{element.text()}")

    def _findall(self, arg: str) -> None:
        elements = self.session.find_elements(_required(arg, "selector"))
        self._print(f"{len(elements)} element(s)")
        for element in elements:
            self._print(element.raw_reference)

    def _exec(self, arg: str) -> None:
        self._print(self.session.execute(_required(arg, "script")))

    def _screenshot(self, arg: str) -> None:
        path = self.session.screenshot().save_file(_required(arg, "output path"))
        self._print(f"Saved {path}")

    def _help(self, arg: str) -> None:
        self._print("Commands: " + " ".join(sorted(self.commands)) + " quit")

    def execute(self, line: str) -> bool:
        """
        Run one line.

        Returns:
            False when the shell should exit, True otherwise
        """
        line = line.strip()
        if not line:
            return True
        name, _, arg = line.partition(" ")
        if name in ("quit", "exit"):
            return False

        handler = self.commands.get(name)
        if handler is None:
            self._print(f"Unknown function: {name}")
            return True

        try:
            handler(arg.strip())
        except (WebDriverClientError, ValueError) as e:
            self._print(f"Error: {e}")
        return True

    def run(self, read_line: Callable[[str], str] = input) -> None:
        """Read and execute lines until EOF, Ctrl-C or ``quit``."""
        while True:
            try:
                line = read_line(PROMPT)
            except (EOFError, KeyboardInterrupt):
                self._print("")
                break
            if not self.execute(line):
                break


def _required(arg: str, what: str) -> str:
    if not arg:
        raise ValueError(f"missing {what}")
    return arg


def shell_handler(args: argparse.Namespace) -> int:
    """
    Handle 'shell' command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        # Line editing and history when available
        import readline  # noqa: F401
    except ImportError:
        pass

    try:
        with open_session(args.config) as session:
            if not args.quiet:
                print(f"Session {session.session_id} on {session.url}", file=sys.stderr)
            if args.url:
                session.go(args.url)
            Shell(session).run()
        return 0
    except WebDriverClientError as e:
        return report_error(args, e)


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    """
    Register 'shell' subcommand.

    Args:
        subparsers: Subparsers from main parser
        parent: Parent parser with global options
    """
    shell_parser = subparsers.add_parser(
        "shell",
        parents=[parent],
        help="Interactive shell driving one session",
        description="Open a session and run commands typed at the prompt",
        epilog="""
Shell commands:
  go URL, back, forward, refresh, url, title, source, cookies,
  window, windows, switch HANDLE, find CSS, findall CSS, text CSS,
  html CSS, exec SCRIPT, screenshot PATH, accept, dismiss, alert,
  help, quit

Examples:
  webdriver shell https://example.com
  webdriver shell --browser chrome --headed
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    shell_parser.add_argument(
        "url",
        nargs="?",
        help="Page to open before the prompt starts",
    )

    shell_parser.set_defaults(func=shell_handler)
