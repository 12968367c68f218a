"""Contract for time-bounded mutual exclusion across process replicas."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta


class DistributedLockManager(ABC):
    """Acquire and release leases keyed by string with automatic expiry."""

    @abstractmethod
    def try_acquire(self, key: str, token: str, ttl: timedelta) -> bool:
        """Take the lease for ``key`` unless an unexpired lease exists.

        Returns ``True`` only when the caller now holds the lease. Failures of
        the backing store count as "not acquired".
        """

    @abstractmethod
    def release(self, key: str, token: str) -> None:
        """Drop the lease for ``key`` if ``token`` still owns it."""


__all__ = ["DistributedLockManager"]
