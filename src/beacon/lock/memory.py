"""In-process lock manager for single-instance deployments and tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable, Dict, Optional

from .base import DistributedLockManager


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class _LockRecord:
    token: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class InMemoryDistributedLockManager(DistributedLockManager):
    """Keyed lease map guarded by a mutex; expired leases are dropped lazily."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or _utcnow
        self._mutex = Lock()
        self._locks: Dict[str, _LockRecord] = {}

    def try_acquire(self, key: str, token: str, ttl: timedelta) -> bool:
        if not key or not token:
            raise ValueError("key and token are required")
        now = self._clock()
        with self._mutex:
            existing = self._locks.get(key)
            if existing is not None and not existing.is_expired(now):
                return False
            self._locks[key] = _LockRecord(token=token, expires_at=now + ttl)
            return True

    def release(self, key: str, token: str) -> None:
        if not key or not token:
            return
        with self._mutex:
            existing = self._locks.get(key)
            if existing is not None and existing.token == token:
                del self._locks[key]

    def holder(self, key: str) -> Optional[str]:
        """Token of the current unexpired holder of ``key``."""

        now = self._clock()
        with self._mutex:
            existing = self._locks.get(key)
            if existing is None or existing.is_expired(now):
                return None
            return existing.token


__all__ = ["InMemoryDistributedLockManager"]
