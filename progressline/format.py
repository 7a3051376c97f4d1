"""Human-readable formatting of durations, byte sizes and counts."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import NamedTuple, Union

DurationLike = Union[timedelta, int, float]

SECOND = timedelta(seconds=1)
MINUTE = timedelta(minutes=1)
HOUR = timedelta(hours=1)
DAY = timedelta(days=1)
WEEK = timedelta(weeks=1)
YEAR = timedelta(days=365)


class _Unit(NamedTuple):
    length: timedelta
    name: str
    alt: str


UNITS: tuple[_Unit, ...] = (
    _Unit(YEAR, "year", "y"),
    _Unit(WEEK, "week", "w"),
    _Unit(DAY, "day", "d"),
    _Unit(HOUR, "hour", "h"),
    _Unit(MINUTE, "minute", "m"),
    _Unit(SECOND, "second", "s"),
)

_BINARY_PREFIXES = ("Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi", "Yi")
_DECIMAL_PREFIXES = ("k", "M", "G", "T", "P", "E", "Z", "Y")


def _to_timedelta(value: DurationLike) -> timedelta:
    if isinstance(value, timedelta):
        duration = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        duration = timedelta(seconds=value)
    else:
        raise TypeError(f"expected a timedelta or a number of seconds, got {value!r}")
    if duration < timedelta(0):
        raise ValueError("duration must not be negative")
    return duration


def _check_unsigned(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    if value < 0:
        raise ValueError("value must not be negative")
    return value


def _round_half_away(x: float) -> int:
    return int(math.floor(x + 0.5)) if x >= 0 else -int(math.floor(-x + 0.5))


def _group_thousands(digits: str) -> str:
    """Insert a comma before every group of three trailing characters."""
    out = []
    length = len(digits)
    for idx, ch in enumerate(digits):
        out.append(ch)
        pos = length - idx - 1
        if pos > 0 and pos % 3 == 0:
            out.append(",")
    return "".join(out)


def _format_prefixed(amount: int, kilo: float, prefixes: tuple[str, ...]) -> str:
    number = float(amount)
    if number < kilo:
        return f"{number:.0f} B"
    level = 0
    while number >= kilo and level < len(prefixes):
        number /= kilo
        level += 1
    return f"{number:.2f} {prefixes[level - 1]}B"


@dataclass(frozen=True)
class FormattedDuration:
    """A duration rendered as ``HH:MM:SS`` (with a leading day count if needed)."""

    duration: timedelta

    def __post_init__(self) -> None:
        object.__setattr__(self, "duration", _to_timedelta(self.duration))

    def __str__(self) -> str:
        total = self.duration // SECOND
        total, seconds = divmod(total, 60)
        total, minutes = divmod(total, 60)
        days, hours = divmod(total, 24)
        if days > 0:
            return f"{days}d {hours:02}:{minutes:02}:{seconds:02}"
        return f"{hours:02}:{minutes:02}:{seconds:02}"


@dataclass(frozen=True)
class HumanDuration:
    """A duration rendered in the largest sensible unit, e.g. ``3 minutes``.

    Formatting with the ``#`` spec gives the compact form, e.g. ``3m``.
    """

    duration: timedelta

    def __post_init__(self) -> None:
        object.__setattr__(self, "duration", _to_timedelta(self.duration))

    def _value_and_unit(self) -> tuple[int, _Unit]:
        chosen = len(UNITS) - 1
        for i, (current, nxt) in enumerate(zip(UNITS, UNITS[1:])):
            if self.duration + nxt.length / 2 >= current.length + current.length / 2:
                chosen = i
                break
        unit = UNITS[chosen]
        count = _round_half_away(self.duration / unit.length)
        if chosen < len(UNITS) - 1:
            count = max(count, 2)
        return count, unit

    def __str__(self) -> str:
        count, unit = self._value_and_unit()
        if count == 1:
            return f"{count} {unit.name}"
        return f"{count} {unit.name}s"

    def __format__(self, spec: str) -> str:
        if spec.startswith("#"):
            count, unit = self._value_and_unit()
            return format(f"{count}{unit.alt}", spec[1:])
        return format(str(self), spec)


@dataclass(frozen=True)
class HumanBytes:
    """A byte count rendered with binary prefixes, e.g. ``1.46 KiB``."""

    value: int

    def __post_init__(self) -> None:
        _check_unsigned(self.value)

    def __str__(self) -> str:
        return _format_prefixed(self.value, 1024.0, _BINARY_PREFIXES)


@dataclass(frozen=True)
class DecimalBytes:
    """A byte count rendered with SI prefixes, e.g. ``1.50 kB``."""

    value: int

    def __post_init__(self) -> None:
        _check_unsigned(self.value)

    def __str__(self) -> str:
        return _format_prefixed(self.value, 1000.0, _DECIMAL_PREFIXES)


@dataclass(frozen=True)
class BinaryBytes:
    """A byte count rendered with ISO/IEC prefixes, e.g. ``1.46 KiB``."""

    value: int

    def __post_init__(self) -> None:
        _check_unsigned(self.value)

    def __str__(self) -> str:
        return _format_prefixed(self.value, 1024.0, _BINARY_PREFIXES)


@dataclass(frozen=True)
class HumanCount:
    """An integer count rendered with thousands separators."""

    value: int

    def __post_init__(self) -> None:
        _check_unsigned(self.value)

    def __str__(self) -> str:
        return _group_thousands(str(self.value))


@dataclass(frozen=True)
class HumanFloatCount:
    """A float count rendered with thousands separators and trimmed decimals.

    The default precision is 4 digits; a ``.N`` format spec overrides it.
    """

    value: float

    def _render(self, precision: int) -> str:
        value = float(self.value)
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        text = f"{value:.{precision}f}"
        if "." in text:
            int_part, frac_part = text.split(".", 1)
        else:
            int_part, frac_part = str(math.trunc(value)), ""
        result = _group_thousands(int_part)
        frac_trimmed = frac_part.rstrip("0")
        if frac_trimmed:
            result += "." + frac_trimmed
        return result

    def __str__(self) -> str:
        return self._render(4)

    def __format__(self, spec: str) -> str:
        if not spec:
            return str(self)
        if spec.startswith(".") and spec[1:].isdigit():
            return self._render(int(spec[1:]))
        raise ValueError(f"unsupported format spec for HumanFloatCount: {spec!r}")