"""Lock manager backed by Redis conditional sets with a TTL."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

from .base import DistributedLockManager

LOGGER = logging.getLogger(__name__)

_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class RedisDistributedLockManager(DistributedLockManager):
    """Use ``SET key token NX PX ttl`` for leases and a Lua compare-and-delete on release."""

    def __init__(self, client: Any) -> None:
        self._client = client
        self._release = client.register_script(_RELEASE_SCRIPT)

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: Optional[float] = None) -> "RedisDistributedLockManager":
        client = redis.Redis.from_url(url, socket_timeout=socket_timeout, decode_responses=True)
        return cls(client)

    def try_acquire(self, key: str, token: str, ttl: timedelta) -> bool:
        if not key or not token:
            raise ValueError("key and token are required")
        ttl_ms = max(int(ttl.total_seconds() * 1000), 1)
        try:
            acquired = self._client.set(key, token, nx=True, px=ttl_ms)
        except RedisError as exc:
            LOGGER.warning("Could not acquire lock %s: %s", key, exc)
            return False
        return bool(acquired)

    def release(self, key: str, token: str) -> None:
        if not key or not token:
            return
        try:
            self._release(keys=[key], args=[token])
        except RedisError as exc:
            LOGGER.warning("Could not release lock %s: %s", key, exc)

    def close(self) -> None:
        self._client.close()


__all__ = ["RedisDistributedLockManager"]
