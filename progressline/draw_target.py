"""Where progress output is painted, and how often."""

from __future__ import annotations

import os
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Optional, TextIO

from progressline.lines import (
    DrawState,
    Line,
    LineAdjust,
    LineKind,
    MultiProgressAlignment,
    RateLimiter,
)

_DEFAULT_WIDTH = 80
_DEFAULT_HEIGHT = 24
_DEFAULT_HZ = 20


class StreamTerm:
    """A buffered terminal over a text stream such as ``sys.stderr``.

    Output is collected until :meth:`flush` writes it in one go.
    """

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self._buffer: list[str] = []

    def _size(self) -> os.terminal_size:
        try:
            return os.get_terminal_size(self.stream.fileno())
        except (AttributeError, OSError, ValueError):
            return os.terminal_size((_DEFAULT_WIDTH, _DEFAULT_HEIGHT))

    def is_term(self) -> bool:
        """Whether the stream is attached to an interactive terminal."""
        try:
            return bool(self.stream.isatty())
        except (AttributeError, OSError, ValueError):
            return False

    def width(self) -> int:
        return self._size().columns or _DEFAULT_WIDTH

    def height(self) -> int:
        return self._size().lines or _DEFAULT_HEIGHT

    def move_cursor_up(self, n: int) -> None:
        if n > 0:
            self._buffer.append(f"\x1b[{n}A")

    def move_cursor_down(self, n: int) -> None:
        if n > 0:
            self._buffer.append(f"\x1b[{n}B")

    def clear_line(self) -> None:
        self._buffer.append("\r\x1b[2K")

    def write_str(self, s: str) -> None:
        self._buffer.append(s)

    def write_line(self, s: str) -> None:
        self._buffer.append(s + "\n")

    def flush(self) -> None:
        if self._buffer:
            self.stream.write("".join(self._buffer))
            self._buffer.clear()
        self.stream.flush()


class DrawStateWrapper:
    """Gives access to a draw state while its lines are being filled in.

    When used for a multi progress (``orphan_lines`` is a list), leaving the
    context moves text and empty lines out of the state into ``orphan_lines``
    so that only bar lines remain with the bar.
    """

    def __init__(self, state: DrawState, orphan_lines: Optional[list[Line]] = None) -> None:
        self.state = state
        self.orphan_lines = orphan_lines

    @property
    def lines(self) -> list[Line]:
        return self.state.lines

    @property
    def alignment(self) -> MultiProgressAlignment:
        return self.state.alignment

    @alignment.setter
    def alignment(self, value: MultiProgressAlignment) -> None:
        self.state.alignment = value

    def reset(self) -> None:
        self.state.reset()

    def __enter__(self) -> "DrawStateWrapper":
        return self

    def __exit__(self, *args: Any) -> None:
        if self.orphan_lines is None:
            return
        kept = []
        for line in self.state.lines:
            if line.kind in (LineKind.TEXT, LineKind.EMPTY):
                self.orphan_lines.append(line)
            else:
                kept.append(line)
        self.state.lines = kept


@dataclass
class _TermTarget:
    term: Any
    rate_limiter: Optional[RateLimiter]
    is_term_like: bool
    last_line_count: int = 0
    draw_state: DrawState = field(default_factory=DrawState)


@dataclass
class _RemoteTarget:
    state: Any
    idx: int


class _HiddenTarget:
    pass


class Drawable:
    """A draw target that is ready to paint now."""

    def __init__(self, kind: Any, force_draw: bool = False, now: Optional[float] = None) -> None:
        self._kind = kind
        self.force_draw = force_draw
        self.now = time.monotonic() if now is None else now

    def adjust_last_line_count(self, adjust: LineAdjust) -> None:
        """Keep or also clear some lines on the next draw (terminal targets only)."""
        if isinstance(self._kind, _TermTarget):
            self._kind.last_line_count = adjust.apply(self._kind.last_line_count)

    def state(self) -> DrawStateWrapper:
        """Return the draw state to fill in, emptied of its previous lines."""
        kind = self._kind
        if isinstance(kind, _TermTarget):
            wrapper = DrawStateWrapper(kind.draw_state, None)
        else:
            wrapper = kind.state.draw_state(kind.idx)
        wrapper.reset()
        return wrapper

    def clear(self) -> None:
        """Remove everything this target drew."""
        with self.state():
            pass
        self.draw()

    def draw(self) -> None:
        kind = self._kind
        if isinstance(kind, _TermTarget):
            kind.last_line_count = kind.draw_state.draw_to_term(kind.term, kind.last_line_count)
        else:
            kind.state.draw(self.force_draw, None, self.now)

    def width(self) -> Optional[int]:
        kind = self._kind
        if isinstance(kind, _TermTarget):
            return kind.term.width()
        return kind.state.width()


class ProgressDrawTarget:
    """Tells a progress bar or a multi progress where to paint, and how often."""

    def __init__(self, kind: Any) -> None:
        self._kind = kind

    def __repr__(self) -> str:
        return f"ProgressDrawTarget({type(self._kind).__name__.strip('_')})"

    @classmethod
    def stdout(cls) -> "ProgressDrawTarget":
        """Draw to stdout at most 20 times a second."""
        return cls.term(StreamTerm(sys.stdout), _DEFAULT_HZ)

    @classmethod
    def stderr(cls) -> "ProgressDrawTarget":
        """Draw to stderr at most 20 times a second; the default target."""
        return cls.term(StreamTerm(sys.stderr), _DEFAULT_HZ)

    @classmethod
    def stdout_with_hz(cls, refresh_rate: int) -> "ProgressDrawTarget":
        return cls.term(StreamTerm(sys.stdout), refresh_rate)

    @classmethod
    def stderr_with_hz(cls, refresh_rate: int) -> "ProgressDrawTarget":
        return cls.term(StreamTerm(sys.stderr), refresh_rate)

    @classmethod
    def term(cls, term: StreamTerm, refresh_rate: int) -> "ProgressDrawTarget":
        """Draw to a terminal; nothing is drawn if it is not interactive.

        Raises ValueError if *refresh_rate* is not between 1 and 255.
        """
        return cls(_TermTarget(term, RateLimiter(refresh_rate), is_term_like=False))

    @classmethod
    def term_like(cls, term_like: Any) -> "ProgressDrawTarget":
        """Draw to any object with the terminal methods, without rate limiting."""
        return cls(_TermTarget(term_like, None, is_term_like=True))

    @classmethod
    def term_like_with_hz(cls, term_like: Any, refresh_rate: int) -> "ProgressDrawTarget":
        return cls(_TermTarget(term_like, RateLimiter(refresh_rate), is_term_like=True))

    @classmethod
    def hidden(cls) -> "ProgressDrawTarget":
        """A target that never draws anything."""
        return cls(_HiddenTarget())

    @classmethod
    def new_remote(cls, state: Any, idx: int) -> "ProgressDrawTarget":
        """A target that hands drawing to member *idx* of a shared multi state."""
        return cls(_RemoteTarget(state, idx))

    def is_hidden(self) -> bool:
        kind = self._kind
        if isinstance(kind, _HiddenTarget):
            return True
        if isinstance(kind, _RemoteTarget):
            return kind.state.is_hidden()
        if kind.is_term_like:
            return False
        return not kind.term.is_term()

    def is_stderr(self) -> bool:
        """Whether this target writes to standard error."""
        kind = self._kind
        if isinstance(kind, _TermTarget) and not kind.is_term_like:
            stream = getattr(kind.term, "stream", None)
            return stream is not None and stream in (sys.stderr, sys.__stderr__)
        return False

    def width(self) -> Optional[int]:
        kind = self._kind
        if isinstance(kind, _HiddenTarget):
            return None
        if isinstance(kind, _RemoteTarget):
            return kind.state.width()
        return kind.term.width()

    def mark_zombie(self) -> None:
        """Tell the owning multi progress, if any, that the bar is gone."""
        if isinstance(self._kind, _RemoteTarget):
            self._kind.state.mark_zombie(self._kind.idx)

    def set_move_cursor(self, move_cursor: bool) -> None:
        if isinstance(self._kind, _TermTarget):
            self._kind.draw_state.move_cursor = move_cursor

    def drawable(self, force_draw: bool, now: Optional[float] = None) -> Optional[Drawable]:
        """Return a drawable if drawing may happen at *now*, else None."""
        now = time.monotonic() if now is None else now
        kind = self._kind
        if isinstance(kind, _HiddenTarget):
            return None
        if isinstance(kind, _RemoteTarget):
            return Drawable(kind, force_draw, now)
        if not kind.is_term_like and not kind.term.is_term():
            return None
        if force_draw or kind.rate_limiter is None or kind.rate_limiter.allow(now):
            return Drawable(kind, force_draw, now)
        return None

    def disconnect(self, now: Optional[float] = None) -> None:
        """Detach from the target, clearing this bar from a multi progress."""
        if isinstance(self._kind, _RemoteTarget):
            try:
                Drawable(self._kind, True, now).clear()
            except OSError:
                pass

    def remote(self) -> Optional[tuple[Any, int]]:
        if isinstance(self._kind, _RemoteTarget):
            return self._kind.state, self._kind.idx
        return None

    def adjust_last_line_count(self, adjust: LineAdjust) -> None:
        if isinstance(self._kind, _TermTarget):
            self._kind.last_line_count = adjust.apply(self._kind.last_line_count)