"""Duration string parsing for configuration values.

Windows and block times are configured with compact duration strings such as
``500ms``, ``1s``, ``5m`` or ``1h30m``. Bare numbers are read as seconds.
"""

from __future__ import annotations

import re

from app.core.errors import ValidationAppError

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_NUMBER_RE = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_duration(value: str | int | float) -> float:
    """Parse a duration into seconds.

    Args:
        value: Duration string (``"1s"``, ``"2m30s"``, ``"-1.5h"``), or a
            number of seconds.

    Returns:
        Duration in seconds as a float.

    Raises:
        ValidationAppError: If the value cannot be parsed.

    Examples:
        >>> parse_duration("1s")
        1.0
        >>> parse_duration("1h30m")
        5400.0
        >>> parse_duration("250ms")
        0.25
        >>> parse_duration(3)
        3.0
    """
    if isinstance(value, bool):
        raise _invalid(str(value))
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    if not text:
        raise _invalid(value)

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    if text == "0" or _NUMBER_RE.fullmatch(text):
        return sign * float(text)

    total = 0.0
    position = 0
    for match in _COMPONENT_RE.finditer(text):
        if match.start() != position:
            raise _invalid(value)
        number, unit = match.groups()
        total += float(number) * _UNIT_SECONDS[unit]
        position = match.end()

    if position == 0 or position != len(text):
        raise _invalid(value)

    return sign * total


def format_duration(seconds: float) -> str:
    """Render seconds as a short human-readable string for log lines."""
    if seconds and seconds < 1:
        return f"{seconds * 1000:g}ms"
    return f"{seconds:g}s"


def _invalid(value: str) -> ValidationAppError:
    return ValidationAppError(
        code="invalid_duration",
        message=f"Invalid duration: '{value}'",
        details={"value": value, "hint": "Use values like 500ms, 1s, 5m or 1h30m"},
    )
