"""Shared state behind a group of progress bars drawn together."""

from __future__ import annotations

import enum
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from progressline.draw_target import DrawStateWrapper, ProgressDrawTarget
from progressline.lines import (
    DrawState,
    Line,
    LineAdjust,
    MultiProgressAlignment,
    visual_line_count,
)

R = TypeVar("R")


class _LocationKind(enum.Enum):
    END = "end"
    INDEX = "index"
    INDEX_FROM_BACK = "index_from_back"
    AFTER = "after"
    BEFORE = "before"


@dataclass(frozen=True)
class InsertLocation:
    """Where a new member goes in the visual order."""

    kind: _LocationKind
    value: int = 0

    @classmethod
    def end(cls) -> "InsertLocation":
        """Below all current members."""
        return cls(_LocationKind.END)

    @classmethod
    def index(cls, pos: int) -> "InsertLocation":
        """At visual position *pos*, or at the end if past it."""
        return cls(_LocationKind.INDEX, pos)

    @classmethod
    def index_from_back(cls, pos: int) -> "InsertLocation":
        """At *pos* places from the end, or at the start if past it."""
        return cls(_LocationKind.INDEX_FROM_BACK, pos)

    @classmethod
    def after(cls, idx: int) -> "InsertLocation":
        """Just below the member with slot *idx*."""
        return cls(_LocationKind.AFTER, idx)

    @classmethod
    def before(cls, idx: int) -> "InsertLocation":
        """Just above the member with slot *idx*."""
        return cls(_LocationKind.BEFORE, idx)


@dataclass
class MultiStateMember:
    """One slot: its last drawn lines, and whether its bar is gone."""

    draw_state: Optional[DrawState] = None
    is_zombie: bool = False


def _split_lines(msg: str) -> list[str]:
    parts = msg.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


class MultiState:
    """Members, their visual order, and the target they are drawn to.

    ``lock`` is available to callers that share the state between threads.
    """

    def __init__(self, draw_target: ProgressDrawTarget) -> None:
        self.members: list[MultiStateMember] = []
        self.free_set: list[int] = []
        self.ordering: list[int] = []
        self.draw_target = draw_target
        self.alignment = MultiProgressAlignment.TOP
        self.orphan_lines: list[Line] = []
        self.zombie_lines_count = 0
        self.lock = threading.RLock()

    def __len__(self) -> int:
        return len(self.members) - len(self.free_set)

    def _check_consistent(self) -> None:
        if len(self) != len(self.ordering):
            raise RuntimeError("Draw state is inconsistent")

    def mark_zombie(self, index: int) -> None:
        """Note that the bar in slot *index* is gone.

        The first visible member is removed right away, its lines left on
        screen; any other is removed on a later draw.
        """
        width = self.width()
        member = self.members[index]
        if index != self.ordering[0]:
            member.is_zombie = True
            return

        line_count = 0
        if member.draw_state is not None and width is not None:
            line_count = member.draw_state.visual_line_count(width)

        self.zombie_lines_count += line_count
        self.draw_target.adjust_last_line_count(LineAdjust.keep(line_count))
        self.remove_idx(index)

    def draw(
        self,
        force_draw: bool,
        extra_lines: Optional[list[Line]] = None,
        now: Optional[float] = None,
    ) -> None:
        """Draw extra lines, pending orphan lines and every member's lines."""
        now = time.monotonic() if now is None else now
        width = self.width()
        if width is None:
            return

        reap_indices: list[int] = []
        adjust = 0
        for index in self.ordering:
            member = self.members[index]
            if not member.is_zombie:
                break
            line_count = (
                member.draw_state.visual_line_count(width)
                if member.draw_state is not None
                else 0
            )
            self.zombie_lines_count += line_count
            adjust += line_count
            reap_indices.append(index)

        if extra_lines is not None:
            # Printed lines go above everything, so zombie lines must be wiped.
            self.draw_target.adjust_last_line_count(LineAdjust.clear(self.zombie_lines_count))
            self.zombie_lines_count = 0

        if visual_line_count(self.orphan_lines, width) > 0:
            force_draw = True
        drawable = self.draw_target.drawable(force_draw, now)
        if drawable is None:
            return

        with drawable.state() as draw_state:
            draw_state.alignment = self.alignment
            if extra_lines is not None:
                draw_state.lines.extend(extra_lines)
            draw_state.lines.extend(self.orphan_lines)
            self.orphan_lines.clear()
            for index in self.ordering:
                member = self.members[index]
                if member.draw_state is not None:
                    draw_state.lines.extend(member.draw_state.lines)

        try:
            drawable.draw()
        finally:
            for index in reap_indices:
                self.remove_idx(index)
            if extra_lines is None:
                self.draw_target.adjust_last_line_count(LineAdjust.keep(adjust))

    def println(self, msg: str, now: Optional[float] = None) -> None:
        """Print *msg* above all members; an empty message prints an empty line."""
        if msg:
            lines = [Line.text_line(part) for part in _split_lines(msg)]
        else:
            lines = [Line.empty()]
        self.draw(True, lines, now)

    def draw_state(self, idx: int) -> DrawStateWrapper:
        """Return the draw state of slot *idx*, creating it on first use."""
        member = self.members[idx]
        if member.draw_state is None:
            member.draw_state = DrawState()
        return DrawStateWrapper(member.draw_state, self.orphan_lines)

    def is_hidden(self) -> bool:
        return self.draw_target.is_hidden()

    def suspend(self, f: Callable[[], R], now: Optional[float] = None) -> R:
        """Clear the output, call *f*, then draw everything again."""
        self.clear(now)
        try:
            return f()
        finally:
            self.draw(True, None, time.monotonic())

    def width(self) -> Optional[int]:
        return self.draw_target.width()

    def insert(self, location: InsertLocation) -> int:
        """Add a member at *location* and return its slot index."""
        if self.free_set:
            idx = self.free_set.pop()
            self.members[idx] = MultiStateMember()
        else:
            self.members.append(MultiStateMember())
            idx = len(self.members) - 1

        kind = location.kind
        if kind is _LocationKind.END:
            self.ordering.append(idx)
        elif kind is _LocationKind.INDEX:
            self.ordering.insert(min(location.value, len(self.ordering)), idx)
        elif kind is _LocationKind.INDEX_FROM_BACK:
            self.ordering.insert(max(len(self.ordering) - location.value, 0), idx)
        elif kind is _LocationKind.AFTER:
            self.ordering.insert(self.ordering.index(location.value) + 1, idx)
        else:
            self.ordering.insert(self.ordering.index(location.value), idx)

        self._check_consistent()
        return idx

    def clear(self, now: Optional[float] = None) -> None:
        """Erase everything drawn, zombie lines included."""
        drawable = self.draw_target.drawable(True, now)
        if drawable is None:
            return
        drawable.adjust_last_line_count(LineAdjust.clear(self.zombie_lines_count))
        self.zombie_lines_count = 0
        drawable.clear()

    def remove_idx(self, idx: int) -> None:
        """Free slot *idx*; removing a free slot again does nothing."""
        if idx in self.free_set:
            return
        self.members[idx] = MultiStateMember()
        self.free_set.append(idx)
        self.ordering = [x for x in self.ordering if x != idx]
        self._check_consistent()