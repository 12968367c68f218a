"""SQLAlchemy models for bodies, officials and roll-call votes."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative SQLAlchemy base class."""


class LegislativeBodyModel(Base):
    """Database representation of a chamber for one congress."""

    __tablename__ = "legislative_bodies"

    source_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    uuid: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(256))
    chamber: Mapped[str] = mapped_column(String(16))
    session: Mapped[str] = mapped_column(String(32))
    jurisdiction_code: Mapped[str] = mapped_column(String(16), default="")
    jurisdiction_type: Mapped[str] = mapped_column(String(16))
    roster_last_refreshed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_vote_ingested_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class PublicOfficialModel(Base):
    """Database representation of an official including derived attendance."""

    __tablename__ = "public_officials"

    source_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    uuid: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    legislative_body_uuid: Mapped[str] = mapped_column(String(36), index=True)
    full_name: Mapped[str] = mapped_column(String(256))
    party_affiliation: Mapped[str] = mapped_column(String(128), default="")
    role_title: Mapped[str] = mapped_column(String(64), default="")
    jurisdiction_region_code: Mapped[str] = mapped_column(String(8), default="")
    district_identifier: Mapped[str] = mapped_column(String(32), default="")
    office_status: Mapped[str] = mapped_column(String(16))
    biography_url: Mapped[str] = mapped_column(String(512), default="")
    photo_url: Mapped[str] = mapped_column(String(512), default="")
    term_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    term_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version_hash: Mapped[str] = mapped_column(String(64), default="")
    last_refreshed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    attendance_summary: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    attendance_history: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)


class VotingRecordModel(Base):
    """Database representation of a roll call and its member votes."""

    __tablename__ = "voting_records"

    source_id: Mapped[str] = mapped_column(String(96), primary_key=True)
    uuid: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    legislative_body_uuid: Mapped[str] = mapped_column(String(36), index=True)
    congress_number: Mapped[int] = mapped_column(Integer)
    session_number: Mapped[int] = mapped_column(Integer)
    roll_call_number: Mapped[int] = mapped_column(Integer)
    vote_date_utc: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    update_date_utc: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    question: Mapped[str] = mapped_column(Text, default="")
    result: Mapped[str] = mapped_column(String(128), default="")
    vote_type: Mapped[str] = mapped_column(String(128), default="")
    legislation_type: Mapped[str] = mapped_column(String(32), default="")
    legislation_number: Mapped[str] = mapped_column(String(32), default="")
    legislation_url: Mapped[str] = mapped_column(String(512), default="")
    source_data_url: Mapped[str] = mapped_column(String(512), default="")
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    member_vote_count: Mapped[int] = mapped_column(Integer, default=0)
    member_votes: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)


__all__ = ["Base", "LegislativeBodyModel", "PublicOfficialModel", "VotingRecordModel"]
