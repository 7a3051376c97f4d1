"""Rendered lines, their on-screen height, and drawing them to a terminal."""

from __future__ import annotations

import enum
import re
import sys
import time
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from wcwidth import wcwidth

MAX_BURST = 20

_ANSI_RE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"  # CSI sequences
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"  # OSC sequences
    r"|\x1b[@-Z\\-_]"  # two-byte escapes
)


def measure_text_width(text: str) -> int:
    """Return the number of terminal columns *text* occupies, ignoring ANSI codes."""
    stripped = _ANSI_RE.sub("", text)
    return sum(max(wcwidth(ch), 0) for ch in stripped)


class MultiProgressAlignment(enum.Enum):
    """Vertical alignment of a group of bars when some of them are removed."""

    TOP = "top"
    BOTTOM = "bottom"


class LineKind(enum.Enum):
    """What a rendered line holds."""

    TEXT = "text"
    BAR = "bar"
    EMPTY = "empty"


@dataclass(frozen=True)
class Line:
    """One line of output; may contain ANSI codes but no newline."""

    kind: LineKind
    text: str = ""

    @classmethod
    def text_line(cls, text: str) -> "Line":
        return cls(LineKind.TEXT, text)

    @classmethod
    def bar_line(cls, text: str) -> "Line":
        return cls(LineKind.BAR, text)

    @classmethod
    def empty(cls) -> "Line":
        return cls(LineKind.EMPTY, "")

    def __str__(self) -> str:
        return self.text

    def console_width(self) -> int:
        """Columns taken by the line's visible characters."""
        return measure_text_width(self.text)

    def wrapped_height(self, width: int) -> int:
        """Rows the line takes on a terminal *width* columns wide (at least 1)."""
        columns = self.console_width()
        if width <= 0:
            return 1 if columns == 0 else sys.maxsize
        return max(-(-columns // width), 1)


def visual_line_count(lines: Iterable[Line], width: int) -> int:
    """Total terminal rows taken by *lines*, accounting for wrapping."""
    return sum(line.wrapped_height(width) for line in lines)


class _AdjustKind(enum.Enum):
    CLEAR = "clear"
    KEEP = "keep"


@dataclass(frozen=True)
class LineAdjust:
    """A change to the remembered count of lines drawn on the previous tick."""

    kind: _AdjustKind
    count: int

    @classmethod
    def clear(cls, count: int) -> "LineAdjust":
        """Also clear *count* more lines on the next draw."""
        return cls(_AdjustKind.CLEAR, count)

    @classmethod
    def keep(cls, count: int) -> "LineAdjust":
        """Leave *count* lines in place on the next draw."""
        return cls(_AdjustKind.KEEP, count)

    def apply(self, count: int) -> int:
        """Return *count* adjusted by this change, never below zero."""
        if self.kind is _AdjustKind.CLEAR:
            return count + self.count
        return max(count - self.count, 0)


class RateLimiter:
    """Limit draws to a rate per second while allowing short bursts above it."""

    def __init__(self, rate: int, now: Optional[float] = None) -> None:
        if not 1 <= rate <= 255:
            raise ValueError("refresh rate must be between 1 and 255")
        self.interval_ms = 1000 // rate
        self.capacity = MAX_BURST
        self.prev = time.monotonic() if now is None else now

    def allow(self, now: float) -> bool:
        """Return whether a draw at monotonic time *now* (seconds) may go ahead."""
        if now < self.prev:
            return False
        elapsed_ns = round((now - self.prev) * 1e9)
        interval_ns = self.interval_ms * 1_000_000
        if self.capacity == 0 and elapsed_ns < interval_ns:
            return False
        new = (elapsed_ns // 1_000_000) // self.interval_ms
        remainder = elapsed_ns % interval_ns
        self.capacity = min(MAX_BURST, self.capacity + new - 1)
        self.prev = now - remainder / 1e9
        return True


class _TermLike(Protocol):
    def width(self) -> int: ...
    def height(self) -> int: ...
    def move_cursor_up(self, n: int) -> None: ...
    def move_cursor_down(self, n: int) -> None: ...
    def clear_line(self) -> None: ...
    def write_str(self, s: str) -> None: ...
    def write_line(self, s: str) -> None: ...
    def flush(self) -> None: ...


@dataclass
class DrawState:
    """The lines an element wants drawn, and how to draw them."""

    lines: list[Line] = field(default_factory=list)
    move_cursor: bool = False
    alignment: MultiProgressAlignment = MultiProgressAlignment.TOP

    def reset(self) -> None:
        self.lines.clear()

    def visual_line_count(self, width: int) -> int:
        return visual_line_count(self.lines, width)

    def draw_to_term(self, term: _TermLike, last_line_count: int) -> int:
        """Draw the lines over the *last_line_count* bar rows of the previous tick.

        Text lines come first, then bar lines. Returns the number of rows
        to treat as dynamic on the next draw.
        """
        if self.lines and self.move_cursor:
            term.move_cursor_up(max(last_line_count - 1, 0))
            term.write_str("\r")
        else:
            n = last_line_count
            term.move_cursor_up(max(n - 1, 0))
            for i in range(n):
                term.clear_line()
                if i + 1 != n:
                    term.move_cursor_down(1)
            term.move_cursor_up(max(n - 1, 0))

        term_width = term.width()
        full_height = self.visual_line_count(term_width)

        shift = 0
        if self.alignment is MultiProgressAlignment.BOTTOM and full_height < last_line_count:
            shift = last_line_count - full_height
            for _ in range(shift):
                term.write_line("")

        real_height = 0
        last_index = len(self.lines) - 1
        for idx, line in enumerate(self.lines):
            line_height = line.wrapped_height(term_width)
            if line.kind is LineKind.BAR:
                if real_height + line_height > term.height():
                    break
                real_height += line_height
            if idx != 0:
                term.write_line("")
            term.write_str(line.text)
            if idx == last_index:
                # Keep the cursor at the right edge so later prints start on a new line.
                filler = line_height * term_width - line.console_width()
                term.write_str(" " * filler)

        term.flush()
        return real_height + shift