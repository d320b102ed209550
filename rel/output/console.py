"""Console output abstraction.

Engine components report progress through ``ConsoleProtocol`` rather than a
logger: every message a CI job shows for an action run goes through here.
``RichConsole`` renders to the terminal, ``MockConsole`` records messages so
tests can assert on what an operator would have seen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    ACTION = auto()  # progress line for a step being started
    DIM = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Interface for styled console output.

    Engine components receive one of these instead of a logger. Implementations
    render to a terminal or record messages for tests.
    """

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        """Print a message with optional styling.

        Args:
            message: The text to print, never interpreted as markup.
            style: The style to apply.
        """
        ...

    def success(self, message: str) -> None:
        """Print a success message (an action or phase that passed)."""
        ...

    def error(self, message: str) -> None:
        """Print an error message (a blocking failure)."""
        ...

    def warning(self, message: str) -> None:
        """Print a warning that does not fail the run."""
        ...

    def info(self, message: str) -> None:
        """Print an informational message."""
        ...

    def action(self, message: str) -> None:
        """Announce that a step is starting (``Running [id]: label``)."""
        ...

    def header(self, message: str) -> None:
        """Print a section header."""
        ...

    def newline(self) -> None:
        """Print an empty line."""
        ...


class RichConsole:
    """Production console backed by rich."""

    def __init__(self, *, stderr: bool = False) -> None:
        from rich.console import Console

        # Action output may contain brackets; never interpret it as markup.
        self._console = Console(stderr=stderr, highlight=False)
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.ACTION: "cyan",
            Style.DIM: "dim",
            Style.HEADER: "blue bold",
        }

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style, markup=False)
        else:
            self._console.print(message, markup=False)

    def _prefixed(self, prefix: str, prefix_style: str, message: str) -> None:
        from rich.text import Text

        text = Text()
        text.append(prefix, style=prefix_style)
        text.append(" ")
        text.append(message)
        self._console.print(text)

    def success(self, message: str) -> None:
        self._prefixed("OK", "green", message)

    def error(self, message: str) -> None:
        self._prefixed("error:", "red bold", message)

    def warning(self, message: str) -> None:
        self._prefixed("warning:", "yellow", message)

    def info(self, message: str) -> None:
        self._prefixed("info:", "cyan", message)

    def action(self, message: str) -> None:
        self._prefixed(">>", "cyan bold", message)

    def header(self, message: str) -> None:
        self._console.print()
        self._console.print(message, style="blue bold", markup=False)

    def newline(self) -> None:
        self._console.print()


@dataclass
class OutputRecord:
    """One captured MockConsole message."""

    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console that records output instead of printing it."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def action(self, message: str) -> None:
        self.outputs.append(OutputRecord(f">> {message}", Style.ACTION))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    # Test helpers

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return sum(1 for o in self.outputs if o.style == style)
