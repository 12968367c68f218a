"""Domain types and identifier helpers."""
from __future__ import annotations

from .identifiers import compute_version_hash, deterministic_uuid, random_token
from .types import (
    AccountabilityEvent,
    AttendanceSnapshot,
    AttendanceSummary,
    ChamberType,
    JurisdictionType,
    LegislativeBody,
    MemberVote,
    OfficeStatus,
    PublicOfficial,
    RosterEntry,
    VotePosition,
    VotingRecord,
)

__all__ = [
    "AccountabilityEvent",
    "AttendanceSnapshot",
    "AttendanceSummary",
    "ChamberType",
    "JurisdictionType",
    "LegislativeBody",
    "MemberVote",
    "OfficeStatus",
    "PublicOfficial",
    "RosterEntry",
    "VotePosition",
    "VotingRecord",
    "compute_version_hash",
    "deterministic_uuid",
    "random_token",
]
