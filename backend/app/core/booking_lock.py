"""
Mutual exclusion for booking writes on one (field, date).

The lock is taken before the conflict check and released after the booking
transaction has committed or rolled back, so two requests for overlapping
slots can never both pass the check. Layers:

- a process-local lock per key (always);
- a Redis ``SET NX PX`` lock shared across processes when ``redis_url`` is set.
  Redis errors fail open with a warning, the database advisory lock taken by
  the booking transaction still serializes PostgreSQL writers.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
import logging
import threading
import time
from typing import Dict, Iterator, List, Optional

from redis import Redis

from app.core.config import settings
from app.core.exceptions import SlotLockTimeoutException
from app.core.ulid_helper import generate_ulid
from app.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

# key -> [lock, number of holders and waiters]
_LOCAL_LOCKS: Dict[str, List] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()

_REDIS_POLL_SECONDS = 0.05

_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


def _lock_key(field_id: str, booking_date: date) -> str:
    return f"slot:{field_id}:{booking_date.isoformat()}:mutex"


def _namespaced_key(key: str) -> str:
    return f"{settings.slot_lock_namespace}:lock:{key}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if not settings.redis_url:
        return None
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
            client.ping()
        except Exception as exc:
            logger.warning("slot_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def _acquire_local(key: str, timeout: float) -> bool:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS.setdefault(key, [threading.Lock(), 0])
        entry[1] += 1
    acquired = entry[0].acquire(timeout=max(timeout, 0))
    if not acquired:
        _drop_local_ref(key)
    return acquired


def _release_local(key: str) -> None:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS[key]
        entry[0].release()
    _drop_local_ref(key)


def _drop_local_ref(key: str) -> None:
    with _LOCAL_LOCKS_GUARD:
        entry = _LOCAL_LOCKS.get(key)
        if entry is None:
            return
        entry[1] -= 1
        if entry[1] <= 0:
            del _LOCAL_LOCKS[key]


def _acquire_redis(client: Redis, key: str, token: str, ttl_s: int, deadline: float) -> Optional[bool]:
    """Poll ``SET NX`` until the deadline. None means Redis itself failed."""
    redis_key = _namespaced_key(key)
    try:
        while True:
            if client.set(redis_key, token, nx=True, px=ttl_s * 1000):
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(_REDIS_POLL_SECONDS)
    except Exception as exc:
        prometheus_metrics.record_slot_lock("acquire", "error")
        logger.warning(
            "slot_lock_redis_acquire_failed",
            extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
        )
        return None


def _release_redis(client: Redis, key: str, token: str) -> None:
    try:
        deleted = client.eval(_RELEASE_SCRIPT, 1, _namespaced_key(key), token)
        prometheus_metrics.record_slot_lock("release", "success" if deleted else "expired")
    except Exception as exc:
        prometheus_metrics.record_slot_lock("release", "error")
        logger.warning(
            "slot_lock_redis_release_failed",
            extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
        )


@contextmanager
def field_slot_lock(
    field_id: str,
    booking_date: date,
    *,
    wait_s: Optional[float] = None,
    ttl_s: Optional[int] = None,
) -> Iterator[str]:
    """
    Hold the (field, date) booking lock for the duration of the block.

    Raises:
        SlotLockTimeoutException: if the lock is not obtained within ``wait_s``
    """
    key = _lock_key(field_id, booking_date)
    wait = settings.slot_lock_wait_seconds if wait_s is None else wait_s
    ttl = settings.slot_lock_ttl_seconds if ttl_s is None else ttl_s
    deadline = time.monotonic() + wait

    if not _acquire_local(key, wait):
        prometheus_metrics.record_slot_lock("acquire", "timeout")
        raise SlotLockTimeoutException(key, wait)

    client: Optional[Redis] = None
    redis_token: Optional[str] = None
    try:
        client = _get_sync_redis()
        if client is not None:
            token = generate_ulid()
            acquired = _acquire_redis(client, key, token, ttl, deadline)
            if acquired is False:
                prometheus_metrics.record_slot_lock("acquire", "timeout")
                raise SlotLockTimeoutException(key, wait)
            if acquired:
                redis_token = token
        prometheus_metrics.record_slot_lock("acquire", "success")
        yield key
    finally:
        if client is not None and redis_token is not None:
            _release_redis(client, key, redis_token)
        _release_local(key)
