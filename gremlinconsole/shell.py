"""Line-oriented command shell that forwards queries to the active connection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

from .connections import ActiveConnection
from .models import QueryOptions, ResultPage
from .query import QueryExecutor
from .render import format_charge, format_record
from .session import ConnectionManager, banner
from .terminal import MARKER_STYLE, PROMPT_STYLE, RECORD_STYLE, SUCCESS_STYLE, Terminal

LOG = logging.getLogger(__name__)

PROMPT = "gremlin> "
RESULT_MARKER = "==> "
COMMENT_MARKER = "//"


class CommandUsageError(ValueError):
    """Raised when a local command is missing a required argument."""


@dataclass(slots=True)
class ShellState:
    """Active connection plus the session partition filter."""

    connection: ActiveConnection
    partition: str | None = None


class CommandShell:
    """Reads lines, runs local commands, and submits everything else as a query."""

    def __init__(
        self,
        manager: ConnectionManager,
        terminal: Terminal,
        executor: QueryExecutor,
        connection: ActiveConnection,
        *,
        options: QueryOptions | None = None,
    ) -> None:
        self._manager = manager
        self._terminal = terminal
        self._executor = executor
        self._options = options or QueryOptions()
        self._state = ShellState(connection)
        self._commands: dict[str, Callable[[str], None]] = {
            "cls": self._clear_screen,
            "run-script": self.run_script,
            "set-partition": self.set_partition,
            "connect": self._connect,
        }

    @property
    def state(self) -> ShellState:
        return self._state

    def run(self) -> int:
        """Process input until `exit` or end of input; returns the exit code."""

        self._terminal.write_line()
        self.write_prompt()
        while True:
            line = self._terminal.read_line()
            if line is None:
                return 0
            if not self.handle_line(line):
                return 0

    def handle_line(self, line: str) -> bool:
        """Dispatch one input line. Returns False when the session should end."""

        parts = line.split(None, 1)
        if not parts:
            self.write_prompt()
            return True
        command = parts[0]
        argument = parts[1] if len(parts) > 1 else ""
        if command == "exit":
            return False
        handler = self._commands.get(command)
        if handler is None:
            self.submit(line)
            self.write_prompt()
            return True
        try:
            handler(argument)
        except (CommandUsageError, OSError) as exc:
            LOG.warning("Local command failed", extra={"command": command}, exc_info=True)
            self._terminal.error(str(exc))
            self.write_prompt()
        return True

    def set_partition(self, value: str) -> None:
        """Scope all following queries to the given partition key value."""

        value = value.strip()
        if not value:
            raise CommandUsageError("Usage: set-partition <value>")
        self._state.partition = value
        self._terminal.write_line(f"{RESULT_MARKER}Partition is now {value}", style=SUCCESS_STYLE)
        self.write_prompt()

    def run_script(self, path: str) -> None:
        """Submit every non-blank, non-comment line of a script file."""

        script_path = path.strip().strip('"').strip()
        if not script_path:
            raise CommandUsageError("Usage: run-script <path>")
        with open(script_path, encoding="utf-8", errors="replace") as handle:
            self.write_prompt()
            for raw in handle:
                line = raw.rstrip("\r\n")
                if not line.strip() or line.startswith(COMMENT_MARKER):
                    continue
                self._terminal.write_line(line)
                self.submit(line)
                self.write_prompt()

    def submit(self, text: str) -> None:
        """Send text as a query and render its pages; failures are displayed, never raised."""

        options = replace(self._options, partition_key=self._state.partition)
        try:
            for page in self._executor.execute(self._state.connection, text, options):
                self._render_page(page)
        except Exception as exc:
            LOG.warning("Query failed", extra={"query": text}, exc_info=True)
            self._terminal.write_line()
            self._terminal.error(str(exc))

    def write_prompt(self) -> None:
        self._terminal.write(PROMPT, style=PROMPT_STYLE)

    def close(self) -> None:
        self._state.connection.close()

    def _render_page(self, page: ResultPage) -> None:
        for record in page.records:
            self._terminal.write(RESULT_MARKER, style=MARKER_STYLE)
            self._terminal.write_line(format_record(record), style=RECORD_STYLE)
        self._terminal.write_line(
            f"{RESULT_MARKER}Request Charge: {format_charge(page.request_charge)}",
            style=SUCCESS_STYLE,
        )

    def _clear_screen(self, _argument: str) -> None:
        self._terminal.clear()
        self._terminal.write_line(banner(self._state.connection))
        self._terminal.write_line()
        self.write_prompt()

    def _connect(self, _argument: str) -> None:
        self._terminal.clear()
        self._state.connection.close()
        self._state.connection = self._manager.reconnect()
        self._terminal.write_line()
        self.write_prompt()


__all__ = [
    "COMMENT_MARKER",
    "CommandShell",
    "CommandUsageError",
    "PROMPT",
    "RESULT_MARKER",
    "ShellState",
]
