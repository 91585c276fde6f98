"""Duration parsing for configuration values.

Durations resolve to whole milliseconds because both the pacing interval and
the alert cooldown are specified at that resolution.
"""

import re
from typing import Union

_UNIT_MS = {
    "ms": 1,
    "s": 1_000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}

_HUMAN_TOKEN = re.compile(r"(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)")
_ISO_PATTERN = re.compile(
    r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$"
)


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


def parse_duration(value: Union[str, int], allow_zero: bool = False) -> int:
    """
    Parse a duration into milliseconds.

    Accepted forms:
    - Integer: already in milliseconds (e.g. 1000)
    - Human-readable: "250ms", "1s", "15m", "1h", "2d", or combinations "1h30m"
    - ISO-8601: "PT1S", "PT1H", "P1D", "PT0.5S"

    Args:
        value: Duration to parse
        allow_zero: Whether a zero duration is acceptable

    Returns:
        Duration in milliseconds

    Raises:
        DurationParseError: If the value is invalid, negative or (unless
            allowed) zero

    Examples:
        >>> parse_duration("1s")
        1000
        >>> parse_duration("PT1H")
        3600000
        >>> parse_duration("1h30m")
        5400000
    """
    if isinstance(value, bool):
        raise DurationParseError(f"Invalid duration: {value!r}")

    if isinstance(value, int):
        total_ms = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise DurationParseError("Duration string cannot be empty")
        if text.isdigit():
            total_ms = int(text)
        elif text.upper().startswith("P"):
            total_ms = _parse_iso8601(text)
        else:
            total_ms = _parse_human_readable(text)
    else:
        raise DurationParseError(f"Invalid duration type: {type(value).__name__}")

    if total_ms < 0:
        raise DurationParseError(f"Duration cannot be negative: '{value}'")
    if total_ms == 0 and not allow_zero:
        raise DurationParseError(f"Duration cannot be zero: '{value}'")

    return total_ms


def _parse_iso8601(text: str) -> int:
    match = _ISO_PATTERN.match(text.upper())
    if not match or text.upper() in ("P", "PT"):
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{text}'. "
            "Expected format like 'PT1S', 'PT1H30M' or 'P1D'"
        )

    days, hours, minutes, seconds = match.groups()
    total_ms = 0
    if days:
        total_ms += int(days) * _UNIT_MS["d"]
    if hours:
        total_ms += int(hours) * _UNIT_MS["h"]
    if minutes:
        total_ms += int(minutes) * _UNIT_MS["m"]
    if seconds:
        total_ms += round(float(seconds) * _UNIT_MS["s"])
    return total_ms


def _parse_human_readable(text: str) -> int:
    lowered = text.lower()
    matches = _HUMAN_TOKEN.findall(lowered)

    if not matches:
        raise DurationParseError(
            f"Invalid duration format: '{text}'. "
            "Expected format like '250ms', '1s', '15m', '1h' or '1h30m'"
        )

    # Every character must belong to a number+unit token
    consumed = "".join(f"{num}{unit}" for num, unit in matches)
    if consumed != re.sub(r"\s+", "", lowered):
        raise DurationParseError(
            f"Invalid characters in duration: '{text}'. "
            "Use digits with units: ms, s, m, h, d"
        )

    return round(sum(float(num) * _UNIT_MS[unit] for num, unit in matches))


def format_duration(total_ms: int) -> str:
    """Render milliseconds in the largest whole unit.

    Example:
        >>> format_duration(3600000), format_duration(1500)
        ('1 hour', '1500 milliseconds')
    """
    for unit, name in (("d", "day"), ("h", "hour"), ("m", "minute"), ("s", "second")):
        size = _UNIT_MS[unit]
        if total_ms >= size and total_ms % size == 0:
            count = total_ms // size
            return f"{count} {name}{'s' if count != 1 else ''}"
    return f"{total_ms} millisecond{'s' if total_ms != 1 else ''}"
