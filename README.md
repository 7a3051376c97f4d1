# progressline

Building blocks for reporting progress on the command line:

- `progressline.format`: human-readable formatting of durations, byte sizes
  and counts.
- `progressline.lines`: rendered lines, their height on a terminal of a given
  width (ANSI codes ignored, wide characters counted), a burst-tolerant
  `RateLimiter`, and `DrawState`, which redraws a block of lines in place.
- `progressline.draw_target`: `ProgressDrawTarget`, which decides where lines
  are painted and how often, and `StreamTerm`, a buffered terminal over a text
  stream.
- `progressline.multi` and `progressline.multi_state`: `MultiProgress`, which
  keeps several bars in a chosen order and draws them together.
- `progressline.iter`: `ProgressBarIter` / `progress_with`, which advance a bar
  as items or bytes pass through an iterable or file-like object.

## Installation

```
pip install progressline
```

For running the test suite:

```
pip install "progressline[test]"
pytest
```

## Formatting values for humans

```python
from datetime import timedelta
from progressline.format import (
    BinaryBytes, DecimalBytes, FormattedDuration, HumanBytes,
    HumanCount, HumanDuration, HumanFloatCount,
)

str(HumanBytes(3 * 1024 * 1024))                 # '3.00 MiB'
str(DecimalBytes(1_500))                         # '1.50 kB'
str(BinaryBytes(1_500))                          # '1.46 KiB'
str(HumanDuration(timedelta(seconds=8)))         # '8 seconds'
f"{HumanDuration(timedelta(hours=2)):#}"         # '2h'
str(FormattedDuration(timedelta(seconds=3725)))  # '01:02:05'
str(HumanCount(33857009))                        # '33,857,009'
str(HumanFloatCount(33857009.123456))            # '33,857,009.1235'
f"{HumanFloatCount(1234.1234321):.2}"            # '1,234.12'
```

Durations may be given as a `timedelta` or a number of seconds; negative
values raise `ValueError`. Byte and count wrappers take non-negative integers.

`HumanDuration` rounds rather than truncates, and avoids showing "1 unit" for
anything but seconds: an hour and a quarter reads as "75 minutes", while an
hour and a half reads as "2 hours".

## Drawing to a terminal

`ProgressDrawTarget.stderr()` and `ProgressDrawTarget.stdout()` redraw at
most 20 times a second; `stderr_with_hz` / `stdout_with_hz` take another rate
(1 to 255, anything else raises `ValueError`). When the stream is not an
interactive terminal nothing is drawn, so piping output to a file does not
fill it with escape codes. `ProgressDrawTarget.hidden()` never draws.

Any object with the drawing methods of `StreamTerm` (`width`, `height`,
`move_cursor_up`, `move_cursor_down`, `clear_line`, `write_str`,
`write_line`, `flush`) can be drawn to with `ProgressDrawTarget.term_like`
(no rate limit) or `ProgressDrawTarget.term_like_with_hz`, which is handy for
capturing output in tests.

## Several bars at once

`MultiProgress` accepts any object that has a `draw_target` attribute and a
`set_draw_target(target)` method; joining the group replaces its draw target
with one that hands drawing to the group.

```python
from progressline.draw_target import ProgressDrawTarget
from progressline.lines import MultiProgressAlignment
from progressline.multi import MultiProgress


class Member:
    def __init__(self):
        self.draw_target = ProgressDrawTarget.hidden()

    def set_draw_target(self, target):
        self.draw_target = target


mp = MultiProgress()                     # draws to stderr by default
first = mp.add(Member())
second = mp.insert_after(first, Member())
mp.set_alignment(MultiProgressAlignment.BOTTOM)
mp.println("starting!")
mp.suspend(lambda: print("output written while bars are hidden"))
mp.remove(second)
mp.clear()
```

Members are positioned with `add`, `insert`, `insert_from_back`,
`insert_before` and `insert_after`. `insert` past the end appends;
`insert_from_back` past the start prepends. `insert_before` / `insert_after`
raise `ValueError` when the reference bar is in no group. `remove` does
nothing for a bar in no group and raises `ValueError` for a bar in another
group.

## Wrapping iterables and streams

```python
from progressline.iter import progress_with

for item in progress_with(items, bar):
    ...

with open("data.bin", "rb") as fh:
    reader = progress_with(fh, bar)
    while chunk := reader.read(65536):
        ...
```

Each item advances the bar by one (`bar.inc(1)`); when iteration is exhausted
the bar's `finish_using_style()` is called unless `is_finished()` is already
true. `read`, `readline` and `write` advance the bar by the amount moved;
`seek` calls `set_position` with the new offset. `len()` gives the number of
items still to come. The `with_*` methods forward to the bar's own `with_*`
methods and return the wrapper.

## What this package does not do

There is no progress bar or spinner class here, and no template or style
language for rendering one: the objects passed to `MultiProgress` and
`progress_with` must be supplied by the caller, with the methods named above.
There is no command-line program.