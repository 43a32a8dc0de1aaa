"""Unit tests for the Redis counter store against a mocked client."""

from unittest.mock import Mock, patch

import pytest
import redis

from app.adapters.rate_limit.redis_store import INCREMENT_SCRIPT, RedisCounterStore
from app.core.config import RedisSettings
from app.core.errors import StoreUnavailableAppError


@pytest.fixture
def script() -> Mock:
    return Mock(return_value=1)


@pytest.fixture
def client(script: Mock) -> Mock:
    client = Mock(spec=redis.Redis)
    client.register_script.return_value = script
    return client


@pytest.fixture
def store(client: Mock) -> RedisCounterStore:
    return RedisCounterStore(client)


def test_registers_atomic_increment_script(client: Mock, store: RedisCounterStore) -> None:
    client.register_script.assert_called_once_with(INCREMENT_SCRIPT)
    assert "INCR" in INCREMENT_SCRIPT
    assert "PEXPIRE" in INCREMENT_SCRIPT


def test_increment_runs_script_with_window_in_ms(script: Mock, store: RedisCounterStore) -> None:
    script.return_value = 4

    assert store.increment("ip:10.0.0.1", 1.5) == 4
    script.assert_called_once_with(keys=["ip:10.0.0.1"], args=[1500])


def test_sub_millisecond_window_rounds_up(script: Mock, store: RedisCounterStore) -> None:
    store.increment("ip:10.0.0.1", 0.0001)

    script.assert_called_once_with(keys=["ip:10.0.0.1"], args=[1])


def test_is_blocked_checks_block_key(client: Mock, store: RedisCounterStore) -> None:
    client.exists.return_value = 1
    assert store.is_blocked("token:abc") is True
    client.exists.assert_called_with("blocked:token:abc")

    client.exists.return_value = 0
    assert store.is_blocked("token:abc") is False


def test_block_sets_expiring_block_key(client: Mock, store: RedisCounterStore) -> None:
    store.block("ip:10.0.0.1", 300.0)

    client.set.assert_called_once_with("blocked:ip:10.0.0.1", "1", px=300000)


def test_zero_block_is_skipped(client: Mock, store: RedisCounterStore) -> None:
    store.block("ip:10.0.0.1", 0)

    client.set.assert_not_called()


@pytest.mark.parametrize(
    ("operation", "call"),
    [
        ("increment", lambda s: s.increment("ip:x", 1.0)),
        ("is_blocked", lambda s: s.is_blocked("ip:x")),
        ("block", lambda s: s.block("ip:x", 1.0)),
    ],
)
def test_backend_errors_become_store_unavailable(
    client: Mock, script: Mock, store: RedisCounterStore, operation: str, call
) -> None:
    failure = redis.ConnectionError("connection refused")
    script.side_effect = failure
    client.exists.side_effect = failure
    client.set.side_effect = failure

    with pytest.raises(StoreUnavailableAppError) as exc_info:
        call(store)

    assert exc_info.value.code == "store_unavailable"
    assert exc_info.value.details["operation"] == operation
    assert exc_info.value.__cause__ is failure


def test_timeouts_become_store_unavailable(script: Mock, store: RedisCounterStore) -> None:
    script.side_effect = redis.TimeoutError("timed out")

    with pytest.raises(StoreUnavailableAppError):
        store.increment("ip:x", 1.0)


def test_close_is_idempotent(client: Mock, store: RedisCounterStore) -> None:
    store.close()
    store.close()

    client.close.assert_called_once_with()


def test_from_settings_configures_client() -> None:
    cfg = RedisSettings(addr="cache:6390", password="", db=2, socket_timeout_seconds=0.5)

    with patch("app.adapters.rate_limit.redis_store.redis.Redis") as redis_cls:
        store = RedisCounterStore.from_settings(cfg)

    assert isinstance(store, RedisCounterStore)
    redis_cls.assert_called_once_with(
        host="cache",
        port=6390,
        password=None,
        db=2,
        socket_timeout=0.5,
        socket_connect_timeout=0.5,
        decode_responses=True,
    )
