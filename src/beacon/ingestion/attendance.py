"""Aggregate member vote participation into cumulative and per-month counters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..core.types import AttendanceSnapshot, AttendanceSummary, VotingRecord

PARTICIPATORY_CASTS = frozenset({"YEA", "NAY", "AYE", "NO", "YEA AND NAY", "AYE AND NAY"})

Period = Tuple[int, int]


@dataclass(slots=True, frozen=True)
class VoteObservation:
    """The attendance-relevant view of a roll call: dates and raw casts by member id."""

    start_date: Optional[datetime]
    update_date: Optional[datetime]
    member_votes: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: VotingRecord) -> "VoteObservation":
        casts = {vote.official_source_id: vote.vote_cast for vote in record.member_votes}
        return cls(start_date=record.vote_date_utc, update_date=record.update_date_utc, member_votes=casts)


@dataclass(slots=True, frozen=True)
class AttendanceStatistics:
    summary: AttendanceSummary
    history: Tuple[AttendanceSnapshot, ...]


@dataclass(slots=True, frozen=True)
class AttendanceComputation:
    statistics_by_member: Dict[str, AttendanceStatistics]
    latest_update: Optional[datetime]
    vote_records_processed: int


def percentage(numerator: int, denominator: int) -> int:
    """Integer percentage rounded half up; zero when the denominator is zero."""

    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


def is_present(vote_cast: Optional[str]) -> bool:
    if vote_cast is None:
        return False
    normalized = vote_cast.strip().upper()
    return bool(normalized) and "NOT VOTING" not in normalized


def is_participatory(vote_cast: Optional[str]) -> bool:
    if vote_cast is None:
        return False
    return vote_cast.strip().upper() in PARTICIPATORY_CASTS


class _PeriodCounter:
    __slots__ = ("period", "earliest", "latest", "votes_participated", "votes_total", "present")

    def __init__(self, period: Period) -> None:
        self.period = period
        self.earliest: Optional[datetime] = None
        self.latest: Optional[datetime] = None
        self.votes_participated = 0
        self.votes_total = 0
        self.present = False

    def record(self, vote_cast: Optional[str], occurrence: Optional[datetime]) -> None:
        self.votes_total += 1
        if is_participatory(vote_cast):
            self.votes_participated += 1
        if is_present(vote_cast):
            self.present = True
        if occurrence is not None:
            if self.earliest is None or occurrence < self.earliest:
                self.earliest = occurrence
            if self.latest is None or occurrence > self.latest:
                self.latest = occurrence

    def snapshot(self) -> AttendanceSnapshot:
        year, month = self.period
        month_start = datetime(year, month, 1, tzinfo=timezone.utc)
        next_month = datetime(year + month // 12, month % 12 + 1, 1, tzinfo=timezone.utc)
        return AttendanceSnapshot(
            period_label=f"{year:04d}-{month:02d}",
            period_start=self.earliest if self.earliest is not None else month_start,
            period_end=self.latest if self.latest is not None else next_month - timedelta(seconds=1),
            sessions_attended=1 if self.present else 0,
            sessions_total=1,
            votes_participated=self.votes_participated,
            votes_total=self.votes_total,
            presence_score=100 if self.present else 0,
            participation_score=percentage(self.votes_participated, self.votes_total),
        )


def _period_of(start_date: Optional[datetime], now: datetime) -> Period:
    moment = start_date if start_date is not None else now
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.year, moment.month


def compute(
    votes: Iterable[VoteObservation],
    period_history_limit: int,
    *,
    now: Optional[datetime] = None,
) -> AttendanceComputation:
    """Compute attendance for every member that appears in ``votes``.

    Records without member votes are ignored. Votes are bucketed by the UTC
    calendar month of their start date; undated votes fall into the current
    month. History is ordered chronologically and keeps only the most recent
    ``period_history_limit`` months when the limit is positive.
    """

    current = now or datetime.now(timezone.utc)
    per_member: Dict[str, Dict[Period, _PeriodCounter]] = {}
    latest_update: Optional[datetime] = None
    processed = 0

    for vote in votes:
        if vote is None or not vote.member_votes:
            continue
        processed += 1
        if vote.update_date is not None and (latest_update is None or vote.update_date > latest_update):
            latest_update = vote.update_date
        period = _period_of(vote.start_date, current)
        for member_id, vote_cast in vote.member_votes.items():
            if not member_id or not member_id.strip():
                continue
            periods = per_member.setdefault(member_id, {})
            counter = periods.get(period)
            if counter is None:
                counter = periods[period] = _PeriodCounter(period)
            counter.record(vote_cast, vote.start_date)

    results: Dict[str, AttendanceStatistics] = {}
    for member_id, periods in per_member.items():
        history: List[AttendanceSnapshot] = [periods[key].snapshot() for key in sorted(periods)]
        sessions_total = len(history)
        sessions_attended = sum(1 for snapshot in history if snapshot.sessions_attended > 0)
        votes_participated = sum(snapshot.votes_participated for snapshot in history)
        votes_total = sum(snapshot.votes_total for snapshot in history)

        if period_history_limit > 0 and len(history) > period_history_limit:
            history = history[-period_history_limit:]

        summary = AttendanceSummary(
            sessions_attended=sessions_attended,
            sessions_total=sessions_total,
            votes_participated=votes_participated,
            votes_total=votes_total,
            presence_score=percentage(sessions_attended, sessions_total),
            participation_score=percentage(votes_participated, votes_total),
        )
        results[member_id] = AttendanceStatistics(summary=summary, history=tuple(history))

    return AttendanceComputation(
        statistics_by_member=results,
        latest_update=latest_update,
        vote_records_processed=processed,
    )


__all__ = [
    "AttendanceComputation",
    "AttendanceStatistics",
    "PARTICIPATORY_CASTS",
    "VoteObservation",
    "compute",
    "is_participatory",
    "is_present",
    "percentage",
]
