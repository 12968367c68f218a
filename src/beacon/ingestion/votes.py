"""Mapping of upstream roll calls onto persisted voting records."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Mapping, Optional

from ..clients.congress import HouseVoteDetail, HouseVoteSummary
from ..core.identifiers import deterministic_uuid
from ..core.types import LegislativeBody, MemberVote, VotePosition, VotingRecord
from ..database.repositories import VoteMetadata

_VOTE_CAST_POSITIONS: Dict[str, VotePosition] = {
    "YEA": VotePosition.YEA,
    "AYE": VotePosition.YEA,
    "YES": VotePosition.YEA,
    "YEA AND NAY": VotePosition.YEA,
    "AYE AND NAY": VotePosition.YEA,
    "NAY": VotePosition.NAY,
    "NO": VotePosition.NAY,
    "ABSENT": VotePosition.ABSENT,
    "PRESENT": VotePosition.NOT_VOTING,
    "NOT VOTING": VotePosition.NOT_VOTING,
    "PRESENT NOT VOTING": VotePosition.NOT_VOTING,
}


def normalize_vote_cast(vote_cast: Optional[str]) -> VotePosition:
    """Map a raw vote label such as ``"Aye"`` or ``"not  voting"`` to a position."""

    if not vote_cast:
        return VotePosition.UNSPECIFIED
    key = " ".join(vote_cast.split()).upper()
    return _VOTE_CAST_POSITIONS.get(key, VotePosition.UNSPECIFIED)


def vote_source_id(body: LegislativeBody, session_number: int, roll_call_number: int) -> str:
    return f"{body.source_id}-{session_number}-{roll_call_number}"


def build_voting_record(
    body: LegislativeBody,
    detail: HouseVoteDetail,
    official_uuids: Mapping[str, str],
    previous: Optional[VotingRecord] = None,
) -> VotingRecord:
    """Build a complete record for ``detail``.

    ``official_uuids`` maps bioguide ids to persisted official identifiers.
    When ``previous`` is given its identifier and summary carry over so a
    re-fetched roll call keeps its enrichment.
    """

    source_id = vote_source_id(body, detail.session_number, detail.roll_call_number)
    record_uuid = previous.uuid if previous is not None else deterministic_uuid(f"house-vote-{source_id}")

    member_votes = []
    for bioguide_id in sorted(detail.member_votes):
        result = detail.member_votes[bioguide_id]
        member_source_id = f"{source_id}-{bioguide_id}"
        member_votes.append(
            MemberVote(
                uuid=deterministic_uuid(f"house-vote-member-{member_source_id}"),
                source_id=member_source_id,
                official_source_id=bioguide_id,
                voting_record_uuid=record_uuid,
                vote_position=normalize_vote_cast(result.vote_cast),
                vote_cast=result.vote_cast,
                official_uuid=official_uuids.get(bioguide_id, ""),
                group_position=result.party,
            )
        )

    return VotingRecord(
        uuid=record_uuid,
        source_id=source_id,
        legislative_body_uuid=body.uuid,
        congress_number=detail.congress_number,
        session_number=detail.session_number,
        roll_call_number=detail.roll_call_number,
        vote_date_utc=detail.start_date,
        update_date_utc=detail.update_date,
        question=detail.question,
        result=detail.result,
        vote_type=detail.vote_type,
        legislation_type=detail.legislation_type,
        legislation_number=detail.legislation_number,
        legislation_url=detail.legislation_url,
        source_data_url=detail.source_data_url,
        summary=previous.summary if previous is not None else None,
        member_votes=tuple(member_votes),
    )


def requires_detail_fetch(cached: Optional[VoteMetadata], summary: HouseVoteSummary) -> bool:
    """Decide whether the roll call behind ``summary`` must be downloaded again.

    A cached record is reused only when it already holds member votes and its
    stored update time is not older than the one the summary reports.
    """

    if cached is None or cached.member_vote_count <= 0:
        return True
    if summary.update_date is None:
        return False
    if cached.update_date_utc is None:
        return True
    return summary.update_date > cached.update_date_utc


def merge_summary(detail: HouseVoteDetail, summary: HouseVoteSummary) -> HouseVoteDetail:
    """Fill fields the member-vote payload left blank from the list summary."""

    return replace(
        detail,
        start_date=detail.start_date or summary.start_date,
        update_date=detail.update_date or summary.update_date,
        result=detail.result or summary.result,
        vote_type=detail.vote_type or summary.vote_type,
        legislation_type=detail.legislation_type or summary.legislation_type,
        legislation_number=detail.legislation_number or summary.legislation_number,
        legislation_url=detail.legislation_url or summary.legislation_url,
        source_data_url=detail.source_data_url or summary.source_data_url,
    )


__all__ = [
    "build_voting_record",
    "merge_summary",
    "normalize_vote_cast",
    "requires_detail_fetch",
    "vote_source_id",
]
