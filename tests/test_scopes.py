"""Unit tests for scope configuration and rate keys."""

import dataclasses

import pytest

from app.core.errors import ValidationAppError
from app.services.scopes import ScopeConfig, ip_key, token_key


def test_valid_scope_config() -> None:
    config = ScopeConfig(requests=3, window_seconds=1.0, block_seconds=60.0)

    assert config.requests == 3
    assert config.window_seconds == 1.0
    assert config.block_seconds == 60.0


def test_zero_block_duration_is_allowed() -> None:
    assert ScopeConfig(requests=1, window_seconds=1.0, block_seconds=0).block_seconds == 0


@pytest.mark.parametrize(
    ("kwargs", "field"),
    [
        ({"requests": 0, "window_seconds": 1.0, "block_seconds": 1.0}, "requests"),
        ({"requests": -1, "window_seconds": 1.0, "block_seconds": 1.0}, "requests"),
        ({"requests": True, "window_seconds": 1.0, "block_seconds": 1.0}, "requests"),
        ({"requests": 1.5, "window_seconds": 1.0, "block_seconds": 1.0}, "requests"),
        ({"requests": 1, "window_seconds": 0, "block_seconds": 1.0}, "window_seconds"),
        ({"requests": 1, "window_seconds": -1.0, "block_seconds": 1.0}, "window_seconds"),
        ({"requests": 1, "window_seconds": 1.0, "block_seconds": -0.5}, "block_seconds"),
    ],
)
def test_invalid_scope_config_is_rejected(kwargs: dict, field: str) -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        ScopeConfig(**kwargs)

    assert exc_info.value.code == "invalid_scope_config"
    assert exc_info.value.details["field"] == field


def test_scope_config_is_immutable() -> None:
    config = ScopeConfig(requests=1, window_seconds=1.0, block_seconds=1.0)

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.requests = 5  # type: ignore[misc]


def test_address_and_token_keys_never_collide() -> None:
    assert ip_key("abc") != token_key("abc")
    assert ip_key("10.0.0.1") == "ip:10.0.0.1"
    assert token_key("abc123") == "token:abc123"
