"""Wrapping iterables and file-like objects so that their use advances a bar."""

from __future__ import annotations

import operator
from datetime import timedelta
from typing import Any, Iterator, Optional


class ProgressBarIter:
    """An iterable or file-like object whose consumption advances a progress bar.

    Iterating advances the bar by one per item and finishes it when the
    items run out. Reading and writing advance it by the size transferred;
    seeking moves it to the new position.
    """

    def __init__(self, it: Any, progress: Any) -> None:
        self.it = it
        self.progress = progress
        self._iterator: Optional[Iterator[Any]] = None

    def with_style(self, style: Any) -> "ProgressBarIter":
        self.progress = self.progress.with_style(style)
        return self

    def with_prefix(self, prefix: str) -> "ProgressBarIter":
        self.progress = self.progress.with_prefix(prefix)
        return self

    def with_message(self, message: str) -> "ProgressBarIter":
        self.progress = self.progress.with_message(message)
        return self

    def with_position(self, position: int) -> "ProgressBarIter":
        self.progress = self.progress.with_position(position)
        return self

    def with_elapsed(self, elapsed: timedelta) -> "ProgressBarIter":
        self.progress = self.progress.with_elapsed(elapsed)
        return self

    def with_finish(self, finish: Any) -> "ProgressBarIter":
        self.progress = self.progress.with_finish(finish)
        return self

    def __iter__(self) -> "ProgressBarIter":
        return self

    def __next__(self) -> Any:
        if self._iterator is None:
            self._iterator = iter(self.it)
        try:
            item = next(self._iterator)
        except StopIteration:
            if not self.progress.is_finished():
                self.progress.finish_using_style()
            raise
        self.progress.inc(1)
        return item

    def __len__(self) -> int:
        """Number of items still to come."""
        if self._iterator is None:
            return len(self.it)
        return operator.length_hint(self._iterator)

    def read(self, size: int = -1) -> Any:
        data = self.it.read(size)
        self.progress.inc(len(data))
        return data

    def readline(self, size: int = -1) -> Any:
        data = self.it.readline(size)
        self.progress.inc(len(data))
        return data

    def write(self, data: Any) -> int:
        written = self.it.write(data)
        if written is None:
            written = len(data)
        self.progress.inc(written)
        return written

    def flush(self) -> None:
        self.it.flush()

    def seek(self, offset: int, whence: int = 0) -> int:
        pos = self.it.seek(offset, whence)
        self.progress.set_position(pos)
        return pos

    def tell(self) -> int:
        return self.it.tell()


def progress_with(iterable: Any, progress: Any) -> ProgressBarIter:
    """Wrap *iterable* so that consuming it advances *progress*."""
    return ProgressBarIter(iterable, progress)