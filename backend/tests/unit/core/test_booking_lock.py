from datetime import date
from unittest.mock import MagicMock

import pytest

from app.core import booking_lock
from app.core.booking_lock import _LOCAL_LOCKS, _lock_key, field_slot_lock
from app.core.exceptions import SlotLockTimeoutException

DAY = date(2025, 6, 1)


@pytest.fixture
def no_redis(monkeypatch):
    monkeypatch.setattr(booking_lock, "_get_sync_redis", lambda: None)


def test_lock_key_is_scoped_to_field_and_date() -> None:
    assert _lock_key("F1", DAY) == "slot:F1:2025-06-01:mutex"


def test_second_holder_times_out_while_first_holds(no_redis) -> None:
    with field_slot_lock("F1", DAY) as key:
        with pytest.raises(SlotLockTimeoutException) as exc_info:
            with field_slot_lock("F1", DAY, wait_s=0.01):
                pass
        assert exc_info.value.details["lock_key"] == key

    assert key not in _LOCAL_LOCKS


def test_different_dates_do_not_block(no_redis) -> None:
    with field_slot_lock("F1", DAY):
        with field_slot_lock("F1", date(2025, 6, 2), wait_s=0.01) as other:
            assert other == "slot:F1:2025-06-02:mutex"


def test_lock_is_released_when_block_raises(no_redis) -> None:
    with pytest.raises(RuntimeError):
        with field_slot_lock("F1", DAY):
            raise RuntimeError("boom")

    with field_slot_lock("F1", DAY, wait_s=0.01):
        pass


def test_redis_lock_is_taken_and_released(monkeypatch) -> None:
    client = MagicMock()
    client.set.return_value = True
    client.eval.return_value = 1
    monkeypatch.setattr(booking_lock, "_get_sync_redis", lambda: client)

    with field_slot_lock("F1", DAY, ttl_s=5):
        pass

    args, kwargs = client.set.call_args
    assert args[0].endswith(":lock:slot:F1:2025-06-01:mutex")
    assert kwargs == {"nx": True, "px": 5000}
    token = args[1]
    assert client.eval.call_args[0][-1] == token


def test_redis_contention_times_out_and_frees_local_lock(monkeypatch) -> None:
    client = MagicMock()
    client.set.return_value = False
    monkeypatch.setattr(booking_lock, "_get_sync_redis", lambda: client)

    with pytest.raises(SlotLockTimeoutException):
        with field_slot_lock("F1", DAY, wait_s=0.01):
            pass

    client.eval.assert_not_called()
    assert _lock_key("F1", DAY) not in _LOCAL_LOCKS


def test_redis_failure_fails_open(monkeypatch) -> None:
    client = MagicMock()
    client.set.side_effect = ConnectionError("redis down")
    monkeypatch.setattr(booking_lock, "_get_sync_redis", lambda: client)

    entered = False
    with field_slot_lock("F1", DAY, wait_s=0.01):
        entered = True

    assert entered
    client.eval.assert_not_called()
