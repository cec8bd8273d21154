"""Terminal input/output capabilities used by the shell and connection manager."""

from __future__ import annotations

import io
import sys
from typing import Protocol, TextIO

import click
from rich.console import Console

from .models import RetryDecision

PROMPT_STYLE = "yellow"
MARKER_STYLE = "yellow"
RECORD_STYLE = "grey70"
SUCCESS_STYLE = "green"
ERROR_STYLE = "red"

CONFIRM_KEYS = ("\r", "\n")


class Terminal(Protocol):
    """Styled console writes, clearing, and blocking reads."""

    def write(self, text: str, *, style: str | None = None) -> None: ...

    def write_line(self, text: str = "", *, style: str | None = None) -> None: ...

    def error(self, message: str) -> None: ...

    def clear(self) -> None: ...

    def read_line(self) -> str | None:
        """Next input line without its newline, or None at end of input."""

    def read_key(self) -> str:
        """Single keypress, not echoed."""


class RichTerminal:
    """Terminal backed by a rich Console and standard input."""

    def __init__(self, console: Console | None = None, stdin: TextIO | None = None) -> None:
        self._console = console or Console(highlight=False)
        self._stdin = stdin

    def write(self, text: str, *, style: str | None = None) -> None:
        self._console.print(text, style=style, end="", markup=False, highlight=False, soft_wrap=True)

    def write_line(self, text: str = "", *, style: str | None = None) -> None:
        self._console.print(text, style=style, markup=False, highlight=False, soft_wrap=True)

    def error(self, message: str) -> None:
        self.write_line(message, style=ERROR_STYLE)

    def clear(self) -> None:
        self._console.clear()

    def set_title(self, title: str) -> None:
        self._console.set_window_title(title)

    def read_line(self) -> str | None:
        stream = self._stdin or sys.stdin
        if isinstance(stream, io.TextIOWrapper) and stream.errors != "replace":
            # Undecodable bytes become U+FFFD instead of ending the session.
            stream.reconfigure(errors="replace")
        line = stream.readline()
        if not line:
            return None
        return line.rstrip("\r\n")

    def read_key(self) -> str:
        return click.getchar(echo=False)


class Prompter(Protocol):
    """Interactive questions asked of the operator."""

    def ask(self, label: str) -> str | None: ...

    def ask_retry(self) -> RetryDecision: ...


class ConsolePrompter:
    """Prompter that asks through a Terminal."""

    RETRY_HINT = "Press Enter to retry, any other key exit."

    def __init__(self, terminal: Terminal) -> None:
        self._terminal = terminal

    def ask(self, label: str) -> str | None:
        self._terminal.write(label)
        return self._terminal.read_line()

    def ask_retry(self) -> RetryDecision:
        self._terminal.write_line(self.RETRY_HINT)
        key = self._terminal.read_key()
        if key in CONFIRM_KEYS:
            return RetryDecision.RETRY
        return RetryDecision.ABORT


__all__ = [
    "CONFIRM_KEYS",
    "ConsolePrompter",
    "ERROR_STYLE",
    "MARKER_STYLE",
    "PROMPT_STYLE",
    "Prompter",
    "RECORD_STYLE",
    "RichTerminal",
    "SUCCESS_STYLE",
    "Terminal",
]
