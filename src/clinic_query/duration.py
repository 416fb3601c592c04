"""Duration parsing for TTLs and debounce periods."""

import re

from clinic_query.types import Duration

# One or more "<number><unit>" parts, largest unit first: "2m", "1m30s", "1s500ms".
_PART = re.compile(r"(\d+)(ms|h|m|s)")
_SHAPE = re.compile(r"(?:\d+(?:ms|h|m|s))+")
_UNIT_MS = {"h": 3_600_000, "m": 60_000, "s": 1000, "ms": 1}
_ORDER = ("h", "m", "s", "ms")


def parse_duration(duration: Duration) -> int:
    """Return ``duration`` in milliseconds.

    Integers are taken as milliseconds already. Strings combine units in
    descending order, each at most once.
    """
    if isinstance(duration, bool):
        raise ValueError(f"Invalid duration: {duration!r}")
    if isinstance(duration, int):
        if duration < 0:
            raise ValueError(f"Duration must not be negative: {duration!r}")
        return duration

    text = duration.strip()
    if not _SHAPE.fullmatch(text):
        raise ValueError(f"Invalid duration: {duration!r}")

    parts = _PART.findall(text)
    ranks = [_ORDER.index(unit) for _, unit in parts]
    if ranks != sorted(set(ranks)):
        raise ValueError(f"Invalid duration: {duration!r}")
    return sum(int(value) * _UNIT_MS[unit] for value, unit in parts)
