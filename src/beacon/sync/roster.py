"""Lock-guarded roster refresh with version-hash change detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from ..core.identifiers import compute_version_hash, random_token
from ..core.types import LegislativeBody, PublicOfficial, RosterEntry
from ..database.repositories import LegislativeBodyRepository, PublicOfficialRepository, as_utc
from ..lock.base import DistributedLockManager

LOGGER = logging.getLogger(__name__)

LOCK_TTL_BUFFER = timedelta(minutes=5)

RosterSupplier = Callable[[], Iterable[RosterEntry]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class SyncResult:
    """Outcome of one synchronization attempt for a single legislative body."""

    refreshed: bool = False
    skipped: bool = False
    lock_held_by_other: bool = False
    scanned: int = 0
    inserted: List[PublicOfficial] = field(default_factory=list)
    updated: List[PublicOfficial] = field(default_factory=list)
    refreshed_at: Optional[datetime] = None

    @classmethod
    def skipped_since(cls, last_refresh: Optional[datetime]) -> "SyncResult":
        return cls(skipped=True, refreshed_at=last_refresh)

    @classmethod
    def locked(cls) -> "SyncResult":
        return cls(lock_held_by_other=True)

    @classmethod
    def completed(
        cls,
        scanned: int,
        inserted: List[PublicOfficial],
        updated: List[PublicOfficial],
        refreshed_at: datetime,
    ) -> "SyncResult":
        return cls(
            refreshed=True,
            scanned=scanned,
            inserted=inserted,
            updated=updated,
            refreshed_at=refreshed_at,
        )

    @property
    def changed(self) -> List[PublicOfficial]:
        return [*self.inserted, *self.updated]


class RosterSynchronizationService:
    """Refresh the roster of a legislative body when it is due and nobody else is doing it."""

    def __init__(
        self,
        official_repository: PublicOfficialRepository,
        body_repository: LegislativeBodyRepository,
        lock_manager: DistributedLockManager,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._officials = official_repository
        self._bodies = body_repository
        self._locks = lock_manager
        self._clock = clock or _utcnow

    def synchronize_if_stale(
        self,
        namespace: str,
        body: LegislativeBody,
        refresh_interval: timedelta,
        roster_supplier: RosterSupplier,
    ) -> SyncResult:
        now = self._clock()
        last_refresh = self._last_refresh(body)
        if last_refresh is not None and now - last_refresh < refresh_interval:
            LOGGER.debug("Roster for %s refreshed at %s; skipping", body.source_id, last_refresh)
            return SyncResult.skipped_since(last_refresh)

        lock_key = f"{namespace}:{body.source_id}"
        token = random_token()
        if not self._locks.try_acquire(lock_key, token, refresh_interval + LOCK_TTL_BUFFER):
            LOGGER.info("Roster lock %s is held by another instance", lock_key)
            return SyncResult.locked()

        try:
            return self._synchronize(body, roster_supplier, now)
        finally:
            self._locks.release(lock_key, token)

    def _last_refresh(self, body: LegislativeBody) -> Optional[datetime]:
        marker = self._bodies.find_roster_last_refreshed_at(body.source_id)
        if marker is None:
            marker = self._officials.find_latest_refresh_timestamp(body.uuid)
        return as_utc(marker)

    def _synchronize(
        self,
        body: LegislativeBody,
        roster_supplier: RosterSupplier,
        now: datetime,
    ) -> SyncResult:
        self._bodies.upsert(body)

        scanned = 0
        inserted: List[PublicOfficial] = []
        updated: List[PublicOfficial] = []
        for entry in roster_supplier():
            scanned += 1
            official = entry.official
            version_hash = compute_version_hash(entry.source_payload)
            existing = self._officials.find_metadata_by_source_id(official.source_id)
            if (
                existing is not None
                and existing.version_hash == version_hash
                and existing.legislative_body_uuid == official.legislative_body_uuid
            ):
                continue

            record = replace(official, version_hash=version_hash, last_refreshed_at=now)
            if existing is not None:
                record = self._carry_over(record, existing.uuid)
            self._officials.upsert(record)
            if existing is None:
                inserted.append(record)
            else:
                updated.append(record)

        self._bodies.update_roster_last_refreshed_at(body.source_id, now)
        LOGGER.info(
            "Roster %s: scanned=%d inserted=%d updated=%d",
            body.source_id,
            scanned,
            len(inserted),
            len(updated),
        )
        return SyncResult.completed(scanned, inserted, updated, now)

    def _carry_over(self, candidate: PublicOfficial, persisted_uuid: str) -> PublicOfficial:
        """Keep the persisted identifier and derived attendance of a changed official."""

        stored = self._officials.find_by_source_id(candidate.source_id)
        if stored is None:
            return replace(candidate, uuid=persisted_uuid)
        return replace(
            candidate,
            uuid=persisted_uuid,
            attendance_summary=stored.attendance_summary,
            attendance_history=stored.attendance_history,
        )


__all__ = ["LOCK_TTL_BUFFER", "RosterSupplier", "RosterSynchronizationService", "SyncResult"]
