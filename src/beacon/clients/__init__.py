"""Upstream API clients."""
from __future__ import annotations

from .congress import (
    CongressGovClient,
    CongressGovClientError,
    HouseVoteDetail,
    HouseVoteSummary,
    MemberListing,
    MemberVoteResult,
    build_legislative_body,
)

__all__ = [
    "CongressGovClient",
    "CongressGovClientError",
    "HouseVoteDetail",
    "HouseVoteSummary",
    "MemberListing",
    "MemberVoteResult",
    "build_legislative_body",
]
