"""Vote ingestion, attendance statistics and the ingestion cycle."""
from __future__ import annotations

from .attendance import AttendanceComputation, AttendanceStatistics, VoteObservation, compute
from .service import CycleReport, FederalIngestionService, UnitOutcome
from .votes import build_voting_record, normalize_vote_cast, requires_detail_fetch, vote_source_id

__all__ = [
    "AttendanceComputation",
    "AttendanceStatistics",
    "CycleReport",
    "FederalIngestionService",
    "UnitOutcome",
    "VoteObservation",
    "build_voting_record",
    "compute",
    "normalize_vote_cast",
    "requires_detail_fetch",
    "vote_source_id",
]
