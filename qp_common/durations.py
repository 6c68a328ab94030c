"""Go-style duration parsing and formatting."""

from __future__ import annotations

import re

_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str | float | int) -> float:
    """Parse a duration such as ``"1h30m"``, ``"1.5s"`` or ``"250ms"`` into seconds.

    Plain numbers, either as numeric values or unit-less strings, are taken
    as seconds. Raises ValueError for anything else, including negatives.
    """
    if isinstance(text, (int, float)):
        if text < 0:
            raise ValueError(f"duration must not be negative: {text}")
        return float(text)

    raw = text.strip()
    if not raw:
        raise ValueError("duration must not be empty")
    if raw.startswith("-"):
        raise ValueError(f"duration must not be negative: {text}")
    raw = raw.lstrip("+")
    try:
        return float(raw)
    except ValueError:
        pass

    total_nanos = 0.0
    position = 0
    for match in _COMPONENT.finditer(raw):
        if match.start() != position:
            break
        value, unit = match.groups()
        total_nanos += float(value) * _UNIT_NANOS[unit]
        position = match.end()
    if position != len(raw) or position == 0:
        raise ValueError(f"invalid duration: {text!r}")
    return total_nanos / 1e9


def _fraction(nanos: int, scale: int) -> str:
    whole, frac = divmod(nanos, scale)
    if not frac:
        return str(whole)
    digits = len(str(scale)) - 1
    return f"{whole}.{str(frac).rjust(digits, '0').rstrip('0')}"


def format_duration(seconds: float) -> str:
    """Render seconds the way Go's ``time.Duration`` prints itself."""
    nanos = round(abs(seconds) * 1e9)
    sign = "-" if seconds < 0 and nanos else ""
    if nanos == 0:
        return "0s"
    if nanos < 1_000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        return f"{sign}{_fraction(nanos, 1_000)}µs"
    if nanos < 1_000_000_000:
        return f"{sign}{_fraction(nanos, 1_000_000)}ms"

    hours, rest = divmod(nanos, _UNIT_NANOS["h"])
    minutes, rest = divmod(rest, _UNIT_NANOS["m"])
    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return out + f"{_fraction(rest, 1_000_000_000)}s"
