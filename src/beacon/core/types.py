"""Typed domain objects shared by the ingestion components."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class ChamberType(str, Enum):
    """Chamber of a legislative body."""

    UNSPECIFIED = "UNSPECIFIED"
    UPPER = "UPPER"
    LOWER = "LOWER"


class JurisdictionType(str, Enum):
    UNSPECIFIED = "UNSPECIFIED"
    FEDERAL = "FEDERAL"
    STATE = "STATE"
    LOCAL = "LOCAL"


class OfficeStatus(str, Enum):
    UNSPECIFIED = "UNSPECIFIED"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class VotePosition(str, Enum):
    """Normalized position of a single member vote."""

    UNSPECIFIED = "UNSPECIFIED"
    YEA = "YEA"
    NAY = "NAY"
    ABSENT = "ABSENT"
    NOT_VOTING = "NOT_VOTING"


@dataclass(slots=True, frozen=True)
class LegislativeBody:
    """A chamber for a single session, e.g. the House of the 119th Congress."""

    uuid: str
    source_id: str
    name: str
    chamber: ChamberType
    session: str
    jurisdiction_code: str = "US"
    jurisdiction_type: JurisdictionType = JurisdictionType.FEDERAL
    roster_last_refreshed_at: Optional[datetime] = None
    last_vote_ingested_at: Optional[datetime] = None


@dataclass(slots=True, frozen=True)
class AttendanceSummary:
    """Cumulative attendance counters for an official."""

    sessions_attended: int = 0
    sessions_total: int = 0
    votes_participated: int = 0
    votes_total: int = 0
    presence_score: int = 0
    participation_score: int = 0


@dataclass(slots=True, frozen=True)
class AttendanceSnapshot:
    """Attendance counters for one calendar month."""

    period_label: str
    period_start: datetime
    period_end: datetime
    sessions_attended: int = 0
    sessions_total: int = 0
    votes_participated: int = 0
    votes_total: int = 0
    presence_score: int = 0
    participation_score: int = 0


@dataclass(slots=True, frozen=True)
class PublicOfficial:
    """An elected official as persisted by the roster synchronization."""

    uuid: str
    source_id: str
    legislative_body_uuid: str
    full_name: str
    party_affiliation: str = ""
    role_title: str = ""
    jurisdiction_region_code: str = ""
    district_identifier: str = ""
    office_status: OfficeStatus = OfficeStatus.UNSPECIFIED
    biography_url: str = ""
    photo_url: str = ""
    term_start_date: Optional[datetime] = None
    term_end_date: Optional[datetime] = None
    version_hash: str = ""
    last_refreshed_at: Optional[datetime] = None
    attendance_summary: Optional[AttendanceSummary] = None
    attendance_history: Tuple[AttendanceSnapshot, ...] = ()


@dataclass(slots=True, frozen=True)
class MemberVote:
    """How one official voted on one roll call."""

    uuid: str
    source_id: str
    official_source_id: str
    voting_record_uuid: str
    vote_position: VotePosition
    vote_cast: str = ""
    official_uuid: str = ""
    group_position: str = ""


@dataclass(slots=True, frozen=True)
class VotingRecord:
    """A single roll call including all member votes and ingestion metadata."""

    uuid: str
    source_id: str
    legislative_body_uuid: str
    congress_number: int
    session_number: int
    roll_call_number: int
    vote_date_utc: Optional[datetime] = None
    update_date_utc: Optional[datetime] = None
    question: str = ""
    result: str = ""
    vote_type: str = ""
    legislation_type: str = ""
    legislation_number: str = ""
    legislation_url: str = ""
    source_data_url: str = ""
    summary: Optional[str] = None
    member_votes: Tuple[MemberVote, ...] = ()

    @property
    def bill_reference(self) -> str:
        return f"{self.legislation_type} {self.legislation_number}".strip()


@dataclass(slots=True, frozen=True)
class RosterEntry:
    """A candidate official paired with the raw upstream payload it came from."""

    official: PublicOfficial
    source_payload: Optional[str] = None

    def __post_init__(self) -> None:
        if self.official is None:
            raise ValueError("official must not be None")


@dataclass(slots=True, frozen=True)
class AccountabilityEvent:
    """Change notification published for a single official."""

    uuid: str
    source_id: str
    captured_at: datetime
    ingestion_source: str
    partition_key: str
    legislative_body: LegislativeBody
    public_official: PublicOfficial


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
]
