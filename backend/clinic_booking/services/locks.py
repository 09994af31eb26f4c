"""
Per-date mutual exclusion for the admission read-validate-write cycle.

Capacity check, duplicate check, queue-number count and insert must not
interleave for the same day. Holding one lock per date covers both the
per-slot capacity rule and the per-day queue numbering.

Two backends:
- LocalSlotLocks: threading.Lock registry, single process
- RedisSlotLocks: redis-py Lock, shared across workers
"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from functools import lru_cache
from typing import Iterator

from redis import Redis
from redis.exceptions import LockError, RedisError

from ..config import settings
from ..redis_client import redis_client
from .errors import StoreUnavailable
from .slots.config import get_booking_config

logger = logging.getLogger(__name__)


class SlotLocks:
    """Interface: hold(day) is a context manager serializing admissions for day."""

    def hold(self, day: date):
        raise NotImplementedError


class LocalSlotLocks(SlotLocks):
    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        # day -> [lock, holders + waiters]; dropped when nobody uses it
        self._locks: dict[date, list] = {}

    def _checkout(self, day: date) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(day)
            if entry is None:
                entry = self._locks[day] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, day: date) -> None:
        with self._guard:
            entry = self._locks[day]
            entry[1] -= 1
            if not entry[1]:
                del self._locks[day]

    @contextmanager
    def hold(self, day: date) -> Iterator[None]:
        lock = self._checkout(day)
        try:
            if not lock.acquire(timeout=self.timeout):
                logger.error(f"Timed out waiting for booking lock day={day}")
                raise StoreUnavailable(diagnostic=f"lock timeout for {day.isoformat()}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(day)


class RedisSlotLocks(SlotLocks):
    KEY_PREFIX = "lock:bookings"

    def __init__(self, redis: Redis, timeout: float = 10.0):
        self.redis = redis
        self.timeout = timeout

    def _key(self, day: date) -> str:
        return f"{self.KEY_PREFIX}:{day.isoformat()}"

    @contextmanager
    def hold(self, day: date) -> Iterator[None]:
        # lock TTL bounds how long a crashed holder can block the day
        lock = self.redis.lock(
            self._key(day),
            timeout=self.timeout * 2,
            blocking_timeout=self.timeout,
        )
        try:
            acquired = lock.acquire()
        except RedisError as e:
            logger.error(f"Redis lock failed day={day}: {e}")
            raise StoreUnavailable(diagnostic=str(e)) from e

        if not acquired:
            logger.error(f"Timed out waiting for booking lock day={day}")
            raise StoreUnavailable(diagnostic=f"lock timeout for {day.isoformat()}")

        try:
            yield
        finally:
            try:
                lock.release()
            except (LockError, RedisError) as e:
                # the lock expired or redis went away; the write already finished
                logger.warning(f"Failed to release booking lock day={day}: {e}")


@lru_cache
def get_slot_locks() -> SlotLocks:
    """Process-wide lock backend (singleton) chosen by settings."""
    timeout = get_booking_config().lock_timeout_seconds
    if settings.lock_backend == "redis":
        return RedisSlotLocks(redis_client, timeout=timeout)
    return LocalSlotLocks(timeout=timeout)
