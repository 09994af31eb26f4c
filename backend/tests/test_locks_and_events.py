from __future__ import annotations

import json
import threading
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockNotOwnedError
from sqlalchemy.exc import OperationalError

from clinic_booking.services.booking_store import BookingFilter, BookingStore
from clinic_booking.services.errors import StoreUnavailable
from clinic_booking.services.events import EVENTS_QUEUE, emit_event
from clinic_booking.services.locks import LocalSlotLocks, RedisSlotLocks, get_slot_locks
from clinic_booking.services.slots.config import BookingConfig

from tests.helpers import MONDAY, THURSDAY, WEDNESDAY


# ── Local locks ──────────────────────────────────────────────────────────


def test_local_lock_is_per_day() -> None:
    locks = LocalSlotLocks(timeout=1)
    with locks.hold(WEDNESDAY):
        # a different day is not blocked
        with locks.hold(THURSDAY):
            pass


def test_local_lock_times_out_as_store_unavailable() -> None:
    locks = LocalSlotLocks(timeout=0.05)
    held = threading.Event()
    release = threading.Event()

    def holder():
        with locks.hold(WEDNESDAY):
            held.set()
            release.wait(2)

    thread = threading.Thread(target=holder)
    thread.start()
    held.wait(2)
    try:
        with pytest.raises(StoreUnavailable):
            with locks.hold(WEDNESDAY):
                pass
    finally:
        release.set()
        thread.join()


def test_local_lock_released_after_error() -> None:
    locks = LocalSlotLocks(timeout=0.05)
    with pytest.raises(ValueError):
        with locks.hold(WEDNESDAY):
            raise ValueError("boom")
    with locks.hold(WEDNESDAY):
        pass


def test_local_lock_registry_drops_idle_days() -> None:
    locks = LocalSlotLocks(timeout=1)
    for offset in range(1000):
        with locks.hold(MONDAY + timedelta(days=offset)):
            pass

    assert locks._locks == {}


def test_local_lock_registry_keeps_day_while_waited_on() -> None:
    locks = LocalSlotLocks(timeout=0.05)
    with locks.hold(WEDNESDAY):
        with pytest.raises(StoreUnavailable):
            with locks.hold(WEDNESDAY):
                pass
        assert list(locks._locks) == [WEDNESDAY]

    assert locks._locks == {}


def test_slot_locks_take_timeout_from_booking_config() -> None:
    with patch(
        "clinic_booking.services.locks.get_booking_config",
        return_value=BookingConfig(lock_timeout_seconds=3.5),
    ), patch("clinic_booking.services.locks.settings") as settings:
        settings.lock_backend = "local"
        local = get_slot_locks.__wrapped__()
        settings.lock_backend = "redis"
        shared = get_slot_locks.__wrapped__()

    assert isinstance(local, LocalSlotLocks)
    assert local.timeout == 3.5
    assert isinstance(shared, RedisSlotLocks)
    assert shared.timeout == 3.5


# ── Redis locks ──────────────────────────────────────────────────────────


def test_redis_lock_key_and_release() -> None:
    redis = MagicMock()
    lock = redis.lock.return_value
    lock.acquire.return_value = True

    with RedisSlotLocks(redis, timeout=3).hold(WEDNESDAY):
        pass

    redis.lock.assert_called_once_with(
        "lock:bookings:2026-10-21", timeout=6, blocking_timeout=3
    )
    lock.release.assert_called_once()


def test_redis_lock_not_acquired() -> None:
    redis = MagicMock()
    redis.lock.return_value.acquire.return_value = False

    with pytest.raises(StoreUnavailable):
        with RedisSlotLocks(redis).hold(WEDNESDAY):
            pytest.fail("body must not run without the lock")


def test_redis_down_is_store_unavailable() -> None:
    redis = MagicMock()
    redis.lock.return_value.acquire.side_effect = RedisConnectionError("refused")

    with pytest.raises(StoreUnavailable) as exc:
        with RedisSlotLocks(redis).hold(WEDNESDAY):
            pass
    assert "refused" in exc.value.diagnostic
    assert "refused" not in exc.value.kind


def test_redis_lock_expired_before_release_is_logged_only() -> None:
    redis = MagicMock()
    lock = redis.lock.return_value
    lock.acquire.return_value = True
    lock.release.side_effect = LockNotOwnedError("expired")

    with RedisSlotLocks(redis).hold(WEDNESDAY):
        pass


# ── Events ───────────────────────────────────────────────────────────────


def test_emit_event_pushes_json() -> None:
    with patch("clinic_booking.services.events.redis_client") as redis:
        emit_event("booking_created", {"booking_id": 7})

    key, raw = redis.rpush.call_args.args
    assert key == EVENTS_QUEUE
    event = json.loads(raw)
    assert event["type"] == "booking_created"
    assert event["booking_id"] == 7
    assert "ts" in event


def test_emit_event_swallows_redis_errors() -> None:
    with patch("clinic_booking.services.events.redis_client") as redis:
        redis.rpush.side_effect = RedisConnectionError("down")
        emit_event("booking_cancelled", {"booking_id": 7})  # should not raise


# ── Store error mapping ──────────────────────────────────────────────────


def test_store_wraps_driver_errors() -> None:
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))

    store = BookingStore(session)
    with pytest.raises(StoreUnavailable) as exc:
        store.count_bookings(BookingFilter.for_day(WEDNESDAY))

    assert exc.value.kind == "StoreUnavailable"
    assert "database is locked" in exc.value.diagnostic
    assert exc.value.to_dict()["kind"] == "StoreUnavailable"
    session.rollback.assert_called_once()
