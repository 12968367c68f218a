from __future__ import annotations

from datetime import timedelta

from redis.exceptions import ConnectionError as RedisConnectionError

from beacon.lock import RedisDistributedLockManager


class FakeRedis:
    """Just enough of redis.Redis for conditional sets and the release script."""

    def __init__(self, fail=False):
        self.values = {}
        self.set_calls = []
        self.fail = fail

    def set(self, key, value, nx=False, px=None):
        self.set_calls.append((key, value, nx, px))
        if self.fail:
            raise RedisConnectionError("connection refused")
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    def register_script(self, script):
        def run(keys, args):
            if self.fail:
                raise RedisConnectionError("connection refused")
            key, token = keys[0], args[0]
            if self.values.get(key) == token:
                del self.values[key]
                return 1
            return 0

        return run

    def close(self):
        pass


def test_acquire_uses_conditional_set_with_ttl():
    redis_client = FakeRedis()
    locks = RedisDistributedLockManager(redis_client)

    assert locks.try_acquire("roster-sync:US-HOUSE-119", "token-a", timedelta(hours=6, minutes=5)) is True
    assert locks.try_acquire("roster-sync:US-HOUSE-119", "token-b", timedelta(minutes=1)) is False

    key, value, nx, px = redis_client.set_calls[0]
    assert (key, value, nx) == ("roster-sync:US-HOUSE-119", "token-a", True)
    assert px == (6 * 60 + 5) * 60 * 1000


def test_release_only_deletes_own_lease():
    redis_client = FakeRedis()
    locks = RedisDistributedLockManager(redis_client)
    locks.try_acquire("key", "token-a", timedelta(minutes=1))

    locks.release("key", "token-b")
    assert redis_client.values == {"key": "token-a"}

    locks.release("key", "token-a")
    assert redis_client.values == {}


def test_store_errors_count_as_not_acquired():
    locks = RedisDistributedLockManager(FakeRedis(fail=True))

    assert locks.try_acquire("key", "token-a", timedelta(minutes=1)) is False
    locks.release("key", "token-a")
