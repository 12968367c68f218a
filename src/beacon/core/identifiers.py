"""Stable identifiers and content digests."""

from __future__ import annotations

from typing import Optional
import hashlib
import uuid


def deterministic_uuid(seed: str) -> str:
    """Return a name-based (version 3) UUID for ``seed``.

    The digest is taken over the raw UTF-8 bytes without a namespace, so the
    same seed yields the same identifier on every run and on every platform
    that implements RFC 4122 name-based UUIDs the same way.
    """

    digest = hashlib.md5(seed.encode("utf8")).digest()
    return str(uuid.UUID(bytes=digest, version=3))


def compute_version_hash(payload: Optional[str]) -> str:
    """SHA-1 hex digest of a raw upstream payload; empty for missing payloads."""

    if payload is None:
        return ""
    return hashlib.sha1(payload.encode("utf8")).hexdigest()


def random_token() -> str:
    return str(uuid.uuid4())


__all__ = ["compute_version_hash", "deterministic_uuid", "random_token"]
