"""Repositories for legislative bodies, officials and voting records.

Every repository upserts by natural key (``source_id``) so that retried or
concurrently racing writes converge instead of duplicating rows. Metadata
lookups select only the columns change detection needs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from ..core.types import (
    AttendanceSnapshot,
    AttendanceSummary,
    ChamberType,
    JurisdictionType,
    LegislativeBody,
    MemberVote,
    OfficeStatus,
    PublicOfficial,
    VotePosition,
    VotingRecord,
)
from .models import LegislativeBodyModel, PublicOfficialModel, VotingRecordModel
from .storage import Storage


@dataclass(slots=True, frozen=True)
class OfficialMetadata:
    """Projection used for roster change detection."""

    source_id: str
    uuid: str
    legislative_body_uuid: str
    version_hash: str
    last_refreshed_at: Optional[datetime]


@dataclass(slots=True, frozen=True)
class VoteMetadata:
    """Projection used to decide whether a roll call must be fetched again."""

    source_id: str
    update_date_utc: Optional[datetime]
    member_vote_count: int
    congress_number: int
    session_number: int
    roll_call_number: int


class LegislativeBodyRepository:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def upsert(self, body: LegislativeBody) -> None:
        """Insert or update ``body``; stored freshness markers are never cleared."""

        with self._storage.session() as session:
            model = session.get(LegislativeBodyModel, body.source_id)
            if model is None:
                model = LegislativeBodyModel(source_id=body.source_id)
                session.add(model)
            model.uuid = body.uuid
            model.name = body.name
            model.chamber = body.chamber.value
            model.session = body.session
            model.jurisdiction_code = body.jurisdiction_code
            model.jurisdiction_type = body.jurisdiction_type.value
            if body.roster_last_refreshed_at is not None:
                model.roster_last_refreshed_at = body.roster_last_refreshed_at
            if body.last_vote_ingested_at is not None:
                model.last_vote_ingested_at = body.last_vote_ingested_at

    def find_by_source_id(self, source_id: str) -> Optional[LegislativeBody]:
        with self._storage.session() as session:
            model = session.get(LegislativeBodyModel, source_id)
            return _body_from_model(model) if model is not None else None

    def find_roster_last_refreshed_at(self, source_id: str) -> Optional[datetime]:
        with self._storage.session() as session:
            stmt = select(LegislativeBodyModel.roster_last_refreshed_at).where(
                LegislativeBodyModel.source_id == source_id
            )
            return as_utc(session.scalar(stmt))

    def update_roster_last_refreshed_at(self, source_id: str, refreshed_at: datetime) -> bool:
        with self._storage.session() as session:
            model = session.get(LegislativeBodyModel, source_id)
            if model is None:
                return False
            model.roster_last_refreshed_at = refreshed_at
            return True

    def update_last_vote_ingested_at(self, source_id: str, ingested_at: datetime) -> bool:
        with self._storage.session() as session:
            model = session.get(LegislativeBodyModel, source_id)
            if model is None:
                return False
            model.last_vote_ingested_at = ingested_at
            return True


class PublicOfficialRepository:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def upsert(self, official: PublicOfficial) -> None:
        """Replace the stored official identified by ``official.source_id``."""

        with self._storage.session() as session:
            model = session.get(PublicOfficialModel, official.source_id)
            if model is None:
                model = PublicOfficialModel(source_id=official.source_id)
                session.add(model)
            model.uuid = official.uuid
            model.legislative_body_uuid = official.legislative_body_uuid
            model.full_name = official.full_name
            model.party_affiliation = official.party_affiliation
            model.role_title = official.role_title
            model.jurisdiction_region_code = official.jurisdiction_region_code
            model.district_identifier = official.district_identifier
            model.office_status = official.office_status.value
            model.biography_url = official.biography_url
            model.photo_url = official.photo_url
            model.term_start_date = official.term_start_date
            model.term_end_date = official.term_end_date
            model.version_hash = official.version_hash
            model.last_refreshed_at = official.last_refreshed_at
            model.attendance_summary = (
                _summary_to_dict(official.attendance_summary) if official.attendance_summary else None
            )
            model.attendance_history = [_snapshot_to_dict(item) for item in official.attendance_history]

    def find_by_source_id(self, source_id: str) -> Optional[PublicOfficial]:
        with self._storage.session() as session:
            model = session.get(PublicOfficialModel, source_id)
            return _official_from_model(model) if model is not None else None

    def find_metadata_by_source_id(self, source_id: str) -> Optional[OfficialMetadata]:
        with self._storage.session() as session:
            stmt = select(
                PublicOfficialModel.source_id,
                PublicOfficialModel.uuid,
                PublicOfficialModel.legislative_body_uuid,
                PublicOfficialModel.version_hash,
                PublicOfficialModel.last_refreshed_at,
            ).where(PublicOfficialModel.source_id == source_id)
            row = session.execute(stmt).first()
            if row is None:
                return None
            return OfficialMetadata(
                source_id=row.source_id,
                uuid=row.uuid,
                legislative_body_uuid=row.legislative_body_uuid,
                version_hash=row.version_hash or "",
                last_refreshed_at=as_utc(row.last_refreshed_at),
            )

    def find_latest_refresh_timestamp(self, legislative_body_uuid: str) -> Optional[datetime]:
        with self._storage.session() as session:
            stmt = select(func.max(PublicOfficialModel.last_refreshed_at)).where(
                PublicOfficialModel.legislative_body_uuid == legislative_body_uuid
            )
            return as_utc(session.scalar(stmt))

    def find_by_legislative_body(self, legislative_body_uuid: str) -> List[PublicOfficial]:
        with self._storage.session() as session:
            stmt = (
                select(PublicOfficialModel)
                .where(PublicOfficialModel.legislative_body_uuid == legislative_body_uuid)
                .order_by(PublicOfficialModel.source_id)
            )
            return [_official_from_model(model) for model in session.scalars(stmt)]


class VotingRecordRepository:
    """Persists ingested roll calls so unchanged votes are never fetched twice."""

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def upsert(self, record: VotingRecord) -> None:
        with self._storage.session() as session:
            model = session.get(VotingRecordModel, record.source_id)
            if model is None:
                model = VotingRecordModel(source_id=record.source_id)
                session.add(model)
            model.uuid = record.uuid
            model.legislative_body_uuid = record.legislative_body_uuid
            model.congress_number = record.congress_number
            model.session_number = record.session_number
            model.roll_call_number = record.roll_call_number
            model.vote_date_utc = record.vote_date_utc
            model.update_date_utc = record.update_date_utc
            model.question = record.question
            model.result = record.result
            model.vote_type = record.vote_type
            model.legislation_type = record.legislation_type
            model.legislation_number = record.legislation_number
            model.legislation_url = record.legislation_url
            model.source_data_url = record.source_data_url
            model.summary = record.summary
            model.member_vote_count = len(record.member_votes)
            model.member_votes = [_member_vote_to_dict(vote) for vote in record.member_votes]

    def find_metadata_by_source_id(self, source_id: str) -> Optional[VoteMetadata]:
        with self._storage.session() as session:
            stmt = select(
                VotingRecordModel.source_id,
                VotingRecordModel.update_date_utc,
                VotingRecordModel.member_vote_count,
                VotingRecordModel.congress_number,
                VotingRecordModel.session_number,
                VotingRecordModel.roll_call_number,
            ).where(VotingRecordModel.source_id == source_id)
            row = session.execute(stmt).first()
            if row is None:
                return None
            return VoteMetadata(
                source_id=row.source_id,
                update_date_utc=as_utc(row.update_date_utc),
                member_vote_count=row.member_vote_count or 0,
                congress_number=row.congress_number,
                session_number=row.session_number,
                roll_call_number=row.roll_call_number,
            )

    def find_by_source_id(self, source_id: str) -> Optional[VotingRecord]:
        with self._storage.session() as session:
            model = session.get(VotingRecordModel, source_id)
            return _vote_from_model(model) if model is not None else None

    def find_by_legislative_body(self, legislative_body_uuid: str, limit: int = 0) -> List[VotingRecord]:
        with self._storage.session() as session:
            stmt = (
                select(VotingRecordModel)
                .where(VotingRecordModel.legislative_body_uuid == legislative_body_uuid)
                .order_by(VotingRecordModel.vote_date_utc, VotingRecordModel.source_id)
            )
            if limit > 0:
                stmt = stmt.limit(limit)
            return [_vote_from_model(model) for model in session.scalars(stmt)]

    def find_pending_summaries(self, legislative_body_uuid: str, limit: int = 25) -> List[VotingRecord]:
        """Votes of a body that have a legislation URL but no summary yet."""

        with self._storage.session() as session:
            stmt = (
                select(VotingRecordModel)
                .where(
                    VotingRecordModel.legislative_body_uuid == legislative_body_uuid,
                    VotingRecordModel.summary.is_(None),
                    VotingRecordModel.legislation_url != "",
                )
                .order_by(VotingRecordModel.vote_date_utc.desc(), VotingRecordModel.source_id)
            )
            if limit > 0:
                stmt = stmt.limit(limit)
            return [_vote_from_model(model) for model in session.scalars(stmt)]

    def update_summary(self, source_id: str, summary: str) -> None:
        with self._storage.session() as session:
            model = session.get(VotingRecordModel, source_id)
            if model is None:
                raise ValueError(f"Voting record {source_id} not found")
            model.summary = summary


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime (SQLite drops the offset)."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    return as_utc(datetime.fromisoformat(value)) if value else None


def _body_from_model(model: LegislativeBodyModel) -> LegislativeBody:
    return LegislativeBody(
        uuid=model.uuid,
        source_id=model.source_id,
        name=model.name,
        chamber=ChamberType(model.chamber),
        session=model.session,
        jurisdiction_code=model.jurisdiction_code or "",
        jurisdiction_type=JurisdictionType(model.jurisdiction_type),
        roster_last_refreshed_at=as_utc(model.roster_last_refreshed_at),
        last_vote_ingested_at=as_utc(model.last_vote_ingested_at),
    )


def _summary_to_dict(summary: AttendanceSummary) -> Dict[str, Any]:
    return {
        "sessions_attended": summary.sessions_attended,
        "sessions_total": summary.sessions_total,
        "votes_participated": summary.votes_participated,
        "votes_total": summary.votes_total,
        "presence_score": summary.presence_score,
        "participation_score": summary.participation_score,
    }


def _summary_from_dict(data: Dict[str, Any]) -> AttendanceSummary:
    return AttendanceSummary(
        sessions_attended=int(data.get("sessions_attended", 0)),
        sessions_total=int(data.get("sessions_total", 0)),
        votes_participated=int(data.get("votes_participated", 0)),
        votes_total=int(data.get("votes_total", 0)),
        presence_score=int(data.get("presence_score", 0)),
        participation_score=int(data.get("participation_score", 0)),
    )


def _snapshot_to_dict(snapshot: AttendanceSnapshot) -> Dict[str, Any]:
    data = {
        "period_label": snapshot.period_label,
        "period_start": _isoformat(snapshot.period_start),
        "period_end": _isoformat(snapshot.period_end),
        "sessions_attended": snapshot.sessions_attended,
        "sessions_total": snapshot.sessions_total,
        "votes_participated": snapshot.votes_participated,
        "votes_total": snapshot.votes_total,
        "presence_score": snapshot.presence_score,
        "participation_score": snapshot.participation_score,
    }
    return data


def _snapshot_from_dict(data: Dict[str, Any]) -> AttendanceSnapshot:
    return AttendanceSnapshot(
        period_label=data["period_label"],
        period_start=_parse_iso(data.get("period_start")),
        period_end=_parse_iso(data.get("period_end")),
        sessions_attended=int(data.get("sessions_attended", 0)),
        sessions_total=int(data.get("sessions_total", 0)),
        votes_participated=int(data.get("votes_participated", 0)),
        votes_total=int(data.get("votes_total", 0)),
        presence_score=int(data.get("presence_score", 0)),
        participation_score=int(data.get("participation_score", 0)),
    )


def _official_from_model(model: PublicOfficialModel) -> PublicOfficial:
    return PublicOfficial(
        uuid=model.uuid,
        source_id=model.source_id,
        legislative_body_uuid=model.legislative_body_uuid,
        full_name=model.full_name,
        party_affiliation=model.party_affiliation or "",
        role_title=model.role_title or "",
        jurisdiction_region_code=model.jurisdiction_region_code or "",
        district_identifier=model.district_identifier or "",
        office_status=OfficeStatus(model.office_status),
        biography_url=model.biography_url or "",
        photo_url=model.photo_url or "",
        term_start_date=as_utc(model.term_start_date),
        term_end_date=as_utc(model.term_end_date),
        version_hash=model.version_hash or "",
        last_refreshed_at=as_utc(model.last_refreshed_at),
        attendance_summary=_summary_from_dict(model.attendance_summary) if model.attendance_summary else None,
        attendance_history=tuple(_snapshot_from_dict(item) for item in model.attendance_history or ()),
    )


def _member_vote_to_dict(vote: MemberVote) -> Dict[str, Any]:
    return {
        "uuid": vote.uuid,
        "source_id": vote.source_id,
        "official_source_id": vote.official_source_id,
        "official_uuid": vote.official_uuid,
        "voting_record_uuid": vote.voting_record_uuid,
        "vote_position": vote.vote_position.value,
        "vote_cast": vote.vote_cast,
        "group_position": vote.group_position,
    }


def _member_vote_from_dict(data: Dict[str, Any], voting_record_uuid: str) -> MemberVote:
    position = data.get("vote_position") or VotePosition.UNSPECIFIED.value
    return MemberVote(
        uuid=data["uuid"],
        source_id=data["source_id"],
        official_source_id=data.get("official_source_id") or "",
        official_uuid=data.get("official_uuid") or "",
        voting_record_uuid=data.get("voting_record_uuid") or voting_record_uuid,
        vote_position=VotePosition(position),
        vote_cast=data.get("vote_cast") or "",
        group_position=data.get("group_position") or "",
    )


def _vote_from_model(model: VotingRecordModel) -> VotingRecord:
    return VotingRecord(
        uuid=model.uuid,
        source_id=model.source_id,
        legislative_body_uuid=model.legislative_body_uuid,
        congress_number=model.congress_number,
        session_number=model.session_number,
        roll_call_number=model.roll_call_number,
        vote_date_utc=as_utc(model.vote_date_utc),
        update_date_utc=as_utc(model.update_date_utc),
        question=model.question or "",
        result=model.result or "",
        vote_type=model.vote_type or "",
        legislation_type=model.legislation_type or "",
        legislation_number=model.legislation_number or "",
        legislation_url=model.legislation_url or "",
        source_data_url=model.source_data_url or "",
        summary=model.summary,
        member_votes=tuple(_member_vote_from_dict(item, model.uuid) for item in model.member_votes or ()),
    )


__all__ = [
    "LegislativeBodyRepository",
    "OfficialMetadata",
    "PublicOfficialRepository",
    "VoteMetadata",
    "VotingRecordRepository",
    "as_utc",
]
