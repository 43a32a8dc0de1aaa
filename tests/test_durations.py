"""Unit tests for duration string parsing."""

import pytest

from app.core.durations import format_duration, parse_duration
from app.core.errors import ValidationAppError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1s", 1.0),
        ("5m", 300.0),
        ("1h30m", 5400.0),
        ("250ms", 0.25),
        ("1.5s", 1.5),
        ("2m30s", 150.0),
        ("100us", 0.0001),
        ("0", 0.0),
        ("10", 10.0),
        ("-1s", -1.0),
        (" 2s ", 2.0),
        (3, 3.0),
        (0.5, 0.5),
    ],
)
def test_parse_duration(raw, expected) -> None:
    assert parse_duration(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", ["", "abc", "1x", "s", "1s2", "1 s", "--1s", "1s-", True])
def test_parse_duration_rejects_garbage(raw) -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        parse_duration(raw)

    assert exc_info.value.code == "invalid_duration"


def test_format_duration() -> None:
    assert format_duration(0.25) == "250ms"
    assert format_duration(60) == "60s"
    assert format_duration(0) == "0s"
