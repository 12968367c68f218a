"""Distributed lease management."""
from __future__ import annotations

from .base import DistributedLockManager
from .memory import InMemoryDistributedLockManager
from .redis_lock import RedisDistributedLockManager

__all__ = [
    "DistributedLockManager",
    "InMemoryDistributedLockManager",
    "RedisDistributedLockManager",
]
