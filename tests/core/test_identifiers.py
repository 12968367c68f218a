from __future__ import annotations

import hashlib
import uuid

import pytest

from beacon.core import PublicOfficial, RosterEntry, compute_version_hash, deterministic_uuid, random_token


def test_deterministic_uuid_is_stable_name_based_v3():
    first = deterministic_uuid("public-official-A000001")

    assert first == deterministic_uuid("public-official-A000001")
    assert first != deterministic_uuid("public-official-B000001")
    parsed = uuid.UUID(first)
    assert parsed.version == 3
    assert parsed.variant == uuid.RFC_4122


def test_deterministic_uuid_matches_md5_of_seed():
    digest = bytearray(hashlib.md5(b"legislative-body-US-HOUSE-119").digest())
    digest[6] = (digest[6] & 0x0F) | 0x30
    digest[8] = (digest[8] & 0x3F) | 0x80

    assert deterministic_uuid("legislative-body-US-HOUSE-119") == str(uuid.UUID(bytes=bytes(digest)))


def test_version_hash():
    assert compute_version_hash(None) == ""
    assert compute_version_hash('{"a":1}') == hashlib.sha1(b'{"a":1}').hexdigest()
    assert compute_version_hash('{"a":1}') != compute_version_hash('{"a":2}')


def test_random_tokens_differ():
    assert random_token() != random_token()


def test_roster_entry_requires_official():
    with pytest.raises(ValueError):
        RosterEntry(official=None)

    official = PublicOfficial(uuid="u", source_id="A000001", legislative_body_uuid="b", full_name="Ada")
    assert RosterEntry(official=official).source_payload is None
