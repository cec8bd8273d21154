"""Shared fakes for terminal-driven tests."""

from __future__ import annotations

from collections.abc import Iterable

import pytest

from gremlinconsole.models import RetryDecision


class FakeTerminal:
    """Records writes as (kind, text, style) and replays scripted input."""

    def __init__(self, lines: Iterable[str] = (), keys: Iterable[str] = ()) -> None:
        self.lines = list(lines)
        self.keys = list(keys)
        self.events: list[tuple[str, str, str | None]] = []

    def write(self, text: str, *, style: str | None = None) -> None:
        self.events.append(("write", text, style))

    def write_line(self, text: str = "", *, style: str | None = None) -> None:
        self.events.append(("line", text, style))

    def error(self, message: str) -> None:
        self.events.append(("error", message, "red"))

    def clear(self) -> None:
        self.events.append(("clear", "", None))

    def read_line(self) -> str | None:
        if not self.lines:
            return None
        return self.lines.pop(0)

    def read_key(self) -> str:
        return self.keys.pop(0)

    @property
    def output(self) -> str:
        """Visible text with cleared screens rendered as a marker."""

        chunks: list[str] = []
        for kind, text, _style in self.events:
            if kind == "clear":
                chunks.append("<clear>\n")
            elif kind == "write":
                chunks.append(text)
            else:
                chunks.append(text + "\n")
        return "".join(chunks)

    def errors(self) -> list[str]:
        return [text for kind, text, _ in self.events if kind == "error"]


class FakePrompter:
    """Answers prompts from a queue and records the questions asked."""

    def __init__(
        self,
        answers: Iterable[str | None] = (),
        decisions: Iterable[RetryDecision] = (),
    ) -> None:
        self.answers = list(answers)
        self.decisions = list(decisions)
        self.asked: list[str] = []
        self.retry_prompts = 0

    def ask(self, label: str) -> str | None:
        self.asked.append(label)
        if not self.answers:
            return None
        return self.answers.pop(0)

    def ask_retry(self) -> RetryDecision:
        self.retry_prompts += 1
        return self.decisions.pop(0)


@pytest.fixture
def terminal() -> FakeTerminal:
    return FakeTerminal()


@pytest.fixture
def make_terminal() -> type[FakeTerminal]:
    return FakeTerminal


@pytest.fixture
def make_prompter() -> type[FakePrompter]:
    return FakePrompter
