"""A group of progress bars drawn together on one target."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional, Protocol, TypeVar

from progressline.draw_target import ProgressDrawTarget
from progressline.lines import MultiProgressAlignment
from progressline.multi_state import InsertLocation, MultiState

R = TypeVar("R")


class _BarLike(Protocol):
    """What a progress bar must offer to join a :class:`MultiProgress`."""

    draw_target: ProgressDrawTarget

    def set_draw_target(self, target: ProgressDrawTarget) -> None: ...


def _remote_index(pb: Any) -> Optional[int]:
    remote = pb.draw_target.remote()
    if remote is None:
        return None
    return remote[1]


class MultiProgress:
    """Manages several progress bars, possibly updated from different threads.

    Bars joined to the group have their draw target replaced by one that
    hands drawing to the group's shared state.
    """

    def __init__(self, draw_target: Optional[ProgressDrawTarget] = None) -> None:
        if draw_target is None:
            draw_target = ProgressDrawTarget.stderr()
        self.state = MultiState(draw_target)

    def set_draw_target(self, target: ProgressDrawTarget) -> None:
        """Draw the group to *target* from now on."""
        with self.state.lock:
            self.state.draw_target.disconnect(time.monotonic())
            self.state.draw_target = target

    def set_move_cursor(self, move_cursor: bool) -> None:
        """Move the cursor instead of clearing lines where possible."""
        with self.state.lock:
            self.state.draw_target.set_move_cursor(move_cursor)

    def set_alignment(self, alignment: MultiProgressAlignment) -> None:
        with self.state.lock:
            self.state.alignment = alignment

    def add(self, pb: _BarLike) -> _BarLike:
        """Add *pb* below all bars in the group and return it."""
        return self._internalize(InsertLocation.end(), pb)

    def insert(self, index: int, pb: _BarLike) -> _BarLike:
        """Insert *pb* at visual position *index* (at the end if past it)."""
        return self._internalize(InsertLocation.index(index), pb)

    def insert_from_back(self, index: int, pb: _BarLike) -> _BarLike:
        """Insert *pb* *index* places from the end (at the start if past it)."""
        return self._internalize(InsertLocation.index_from_back(index), pb)

    def insert_before(self, before: _BarLike, pb: _BarLike) -> _BarLike:
        """Insert *pb* just above *before*, which must belong to a group."""
        return self._internalize(InsertLocation.before(self._member_index(before)), pb)

    def insert_after(self, after: _BarLike, pb: _BarLike) -> _BarLike:
        """Insert *pb* just below *after*, which must belong to a group."""
        return self._internalize(InsertLocation.after(self._member_index(after)), pb)

    def remove(self, pb: _BarLike) -> None:
        """Take *pb* out of the group; a bar not in any group is left alone.

        Raises ValueError if *pb* belongs to a different group.
        """
        remote = pb.draw_target.remote()
        if remote is None:
            return
        owner, idx = remote
        if owner is not self.state:
            raise ValueError("progress bar belongs to a different MultiProgress")
        pb.draw_target = ProgressDrawTarget.hidden()
        with self.state.lock:
            self.state.remove_idx(idx)

    def println(self, msg: str) -> None:
        """Print a line above all bars; does nothing when the target is hidden."""
        with self.state.lock:
            self.state.println(msg, time.monotonic())

    def suspend(self, f: Callable[[], R]) -> R:
        """Hide all bars, call *f*, draw the bars again and return *f*'s result."""
        with self.state.lock:
            return self.state.suspend(f, time.monotonic())

    def clear(self) -> None:
        """Erase all bars from the target."""
        with self.state.lock:
            self.state.clear(time.monotonic())

    def is_hidden(self) -> bool:
        with self.state.lock:
            return self.state.is_hidden()

    def _member_index(self, pb: _BarLike) -> int:
        idx = _remote_index(pb)
        if idx is None:
            raise ValueError("progress bar is not a member of a MultiProgress")
        return idx

    def _internalize(self, location: InsertLocation, pb: _BarLike) -> _BarLike:
        with self.state.lock:
            idx = self.state.insert(location)
        pb.set_draw_target(ProgressDrawTarget.new_remote(self.state, idx))
        return pb