"""Database integration components."""
from __future__ import annotations

from .models import Base, LegislativeBodyModel, PublicOfficialModel, VotingRecordModel
from .repositories import (
    LegislativeBodyRepository,
    OfficialMetadata,
    PublicOfficialRepository,
    VoteMetadata,
    VotingRecordRepository,
)
from .storage import Storage, create_storage

__all__ = [
    "Base",
    "LegislativeBodyModel",
    "LegislativeBodyRepository",
    "OfficialMetadata",
    "PublicOfficialModel",
    "PublicOfficialRepository",
    "Storage",
    "VoteMetadata",
    "VotingRecordModel",
    "VotingRecordRepository",
    "create_storage",
]
