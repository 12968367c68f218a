"""One ingestion cycle over the federal legislative bodies.

For every congress and chamber the cycle synchronizes the roster (when stale
and not locked by another instance), ingests new or changed House roll calls,
recomputes attendance after each stored vote and publishes a change event for
every official whose data changed. Bill summaries are generated last and on a
best-effort basis.

Failures are contained per unit of work. Each unit reports a
:class:`UnitOutcome` and the caller receives them aggregated in a
:class:`CycleReport`.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from threading import Event
from typing import Callable, Dict, List, Literal, Optional, Sequence
import logging

from ..clients.congress import CongressGovClient, CongressGovClientError, HouseVoteSummary
from ..config.settings import IngestionConfig
from ..core.types import ChamberType, LegislativeBody, PublicOfficial, RosterEntry
from ..database.repositories import LegislativeBodyRepository, PublicOfficialRepository, VotingRecordRepository
from ..publishing.events import build_event
from ..publishing.publisher import AccountabilityEventPublisher
from ..summarization.legislation import LegislationSummaryService
from ..sync.roster import RosterSynchronizationService, SyncResult
from . import attendance
from .votes import build_voting_record, merge_summary, requires_detail_fetch, vote_source_id

LOGGER = logging.getLogger(__name__)

HOUSE_SESSIONS = (1, 2)

OutcomeStatus = Literal["ok", "skipped", "locked", "upstream_error", "unexpected_error"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class UnitOutcome:
    """Result of one unit of work (a congress listing, roster, session, roll call, ...)."""

    unit: str
    status: OutcomeStatus
    message: str = ""

    @property
    def failed(self) -> bool:
        return self.status in ("upstream_error", "unexpected_error")


@dataclass(slots=True)
class CycleReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    outcomes: List[UnitOutcome] = field(default_factory=list)
    events_published: int = 0
    votes_ingested: int = 0
    votes_skipped: int = 0
    summaries_generated: int = 0
    cancelled: bool = False

    def record(self, outcome: UnitOutcome) -> UnitOutcome:
        self.outcomes.append(outcome)
        return outcome

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def failures(self) -> List[UnitOutcome]:
        return [outcome for outcome in self.outcomes if outcome.failed]


class FederalIngestionService:
    """Coordinates roster sync, vote ingestion, attendance and event publication."""

    def __init__(
        self,
        *,
        client: CongressGovClient,
        body_repository: LegislativeBodyRepository,
        official_repository: PublicOfficialRepository,
        vote_repository: VotingRecordRepository,
        roster_sync: RosterSynchronizationService,
        settings: IngestionConfig,
        congresses: Callable[[], Sequence[int]],
        publisher: Optional[AccountabilityEventPublisher] = None,
        summary_service: Optional[LegislationSummaryService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._client = client
        self._bodies = body_repository
        self._officials = official_repository
        self._votes = vote_repository
        self._roster_sync = roster_sync
        self._settings = settings
        self._congresses = congresses
        self._publisher = publisher
        self._summary_service = summary_service
        self._clock = clock or _utcnow

    def run_cycle(self, *, cancel_event: Optional[Event] = None) -> CycleReport:
        report = CycleReport(started_at=self._clock())
        for congress in self._congresses():
            if cancel_event and cancel_event.is_set():
                report.cancelled = True
                break
            unit = f"congress-{congress}"
            try:
                bodies = self._client.fetch_legislative_bodies(congress)
            except CongressGovClientError as exc:
                LOGGER.warning("Could not list legislative bodies for congress %s: %s", congress, exc)
                report.record(UnitOutcome(unit, "upstream_error", str(exc)))
                continue
            except Exception as exc:
                LOGGER.exception("Unexpected failure while listing congress %s", congress)
                report.record(UnitOutcome(unit, "unexpected_error", str(exc)))
                continue
            report.record(UnitOutcome(unit, "ok", f"{len(bodies)} legislative bodies"))
            for body in bodies:
                if cancel_event and cancel_event.is_set():
                    report.cancelled = True
                    break
                self._process_body(congress, body, report, cancel_event)
        report.finished_at = self._clock()
        LOGGER.info(
            "Ingestion cycle finished: %s units, %s failed, %s votes ingested, %s skipped, %s events",
            len(report.outcomes),
            len(report.failures),
            report.votes_ingested,
            report.votes_skipped,
            report.events_published,
        )
        return report

    # --- per body -------------------------------------------------------
    def _process_body(
        self,
        congress: int,
        body: LegislativeBody,
        report: CycleReport,
        cancel_event: Optional[Event],
    ) -> None:
        unit = body.source_id
        try:
            roster = report.record(self._roster_phase(congress, body, report))
            if roster.failed:
                return
            if self._settings.enable_vote_ingestion and body.chamber is ChamberType.LOWER:
                self._vote_phase(congress, body, report, cancel_event)
            if self._summary_service is not None and self._settings.enable_summaries:
                self._enrichment_phase(body, report, cancel_event)
        except CongressGovClientError as exc:
            LOGGER.warning("Upstream failure while ingesting %s: %s", unit, exc)
            report.record(UnitOutcome(unit, "upstream_error", str(exc)))
        except Exception as exc:
            LOGGER.exception("Unexpected failure while ingesting %s", unit)
            report.record(UnitOutcome(unit, "unexpected_error", str(exc)))

    def _roster_phase(self, congress: int, body: LegislativeBody, report: CycleReport) -> UnitOutcome:
        unit = f"roster:{body.source_id}"

        def supplier() -> List[RosterEntry]:
            listings = self._client.fetch_member_listings(congress, body.chamber)
            return [RosterEntry(official=item.official, source_payload=item.source_json) for item in listings]

        refresh_interval = timedelta(seconds=self._settings.roster_refresh_interval_seconds)
        try:
            result = self._roster_sync.synchronize_if_stale(
                self._settings.lock_namespace, body, refresh_interval, supplier
            )
        except CongressGovClientError as exc:
            LOGGER.warning("Could not fetch roster for %s: %s", body.source_id, exc)
            return UnitOutcome(unit, "upstream_error", str(exc))
        except Exception as exc:
            LOGGER.exception("Unexpected failure while synchronizing roster for %s", body.source_id)
            return UnitOutcome(unit, "unexpected_error", str(exc))
        return self._roster_outcome(unit, body, result, report)

    def _roster_outcome(
        self, unit: str, body: LegislativeBody, result: SyncResult, report: CycleReport
    ) -> UnitOutcome:
        if result.lock_held_by_other:
            LOGGER.info("Roster refresh for %s is running elsewhere", body.source_id)
            return UnitOutcome(unit, "locked")
        if result.skipped:
            LOGGER.info("Roster for %s is fresh (last refresh %s)", body.source_id, result.refreshed_at)
            return UnitOutcome(unit, "skipped", f"last refresh {result.refreshed_at}")
        for official in result.changed:
            self._publish(body, official, report)
        return UnitOutcome(
            unit,
            "ok",
            f"scanned={result.scanned} inserted={len(result.inserted)} updated={len(result.updated)}",
        )

    # --- votes ----------------------------------------------------------
    def _vote_phase(
        self,
        congress: int,
        body: LegislativeBody,
        report: CycleReport,
        cancel_event: Optional[Event],
    ) -> None:
        self._bodies.upsert(body)
        official_uuids = {
            official.source_id: official.uuid for official in self._officials.find_by_legislative_body(body.uuid)
        }
        for session in HOUSE_SESSIONS:
            unit = f"votes:{body.source_id}:session-{session}"
            try:
                summaries = self._client.fetch_house_vote_summaries(congress, session)
            except CongressGovClientError as exc:
                LOGGER.warning("Could not list House votes for %s session %s: %s", congress, session, exc)
                report.record(UnitOutcome(unit, "upstream_error", str(exc)))
                continue
            except Exception as exc:
                LOGGER.exception("Unexpected failure while listing House votes for %s session %s", congress, session)
                report.record(UnitOutcome(unit, "unexpected_error", str(exc)))
                continue

            fetched = skipped = 0
            for summary in summaries:
                if cancel_event and cancel_event.is_set():
                    report.cancelled = True
                    return
                source_id = vote_source_id(body, summary.session_number, summary.roll_call_number)
                if not requires_detail_fetch(self._votes.find_metadata_by_source_id(source_id), summary):
                    skipped += 1
                    continue
                outcome = report.record(self._ingest_vote(congress, body, summary, source_id, official_uuids, report))
                if outcome.status == "ok":
                    fetched += 1
            report.votes_skipped += skipped
            LOGGER.info(
                "House votes %s session %s: %s fetched, %s unchanged",
                congress,
                session,
                fetched,
                skipped,
            )
            report.record(UnitOutcome(unit, "ok", f"fetched={fetched} unchanged={skipped}"))

    def _ingest_vote(
        self,
        congress: int,
        body: LegislativeBody,
        summary: HouseVoteSummary,
        source_id: str,
        official_uuids: Dict[str, str],
        report: CycleReport,
    ) -> UnitOutcome:
        unit = f"vote:{source_id}"
        try:
            detail = self._client.fetch_house_vote_detail(
                congress, summary.session_number, summary.roll_call_number
            )
            record = build_voting_record(
                body,
                merge_summary(detail, summary),
                official_uuids,
                previous=self._votes.find_by_source_id(source_id),
            )
            self._votes.upsert(record)
            report.votes_ingested += 1
            changed = self._refresh_attendance(body, report)
        except CongressGovClientError as exc:
            LOGGER.warning("Could not fetch roll call %s: %s", source_id, exc)
            return UnitOutcome(unit, "upstream_error", str(exc))
        except Exception as exc:
            LOGGER.exception("Unexpected failure while ingesting roll call %s", source_id)
            return UnitOutcome(unit, "unexpected_error", str(exc))
        return UnitOutcome(unit, "ok", f"{len(record.member_votes)} member votes, {changed} officials updated")

    def _refresh_attendance(self, body: LegislativeBody, report: CycleReport) -> int:
        """Recompute attendance for the whole body and persist what changed."""

        records = self._votes.find_by_legislative_body(body.uuid)
        computation = attendance.compute(
            [attendance.VoteObservation.from_record(record) for record in records],
            self._settings.attendance_history_limit,
            now=self._clock(),
        )
        changed = 0
        for official in self._officials.find_by_legislative_body(body.uuid):
            statistics = computation.statistics_by_member.get(official.source_id)
            if statistics is None:
                continue
            if (
                official.attendance_summary == statistics.summary
                and tuple(official.attendance_history) == statistics.history
            ):
                continue
            updated = replace(
                official,
                attendance_summary=statistics.summary,
                attendance_history=statistics.history,
            )
            self._officials.upsert(updated)
            self._publish(body, updated, report)
            changed += 1
        if computation.latest_update is not None:
            self._bodies.update_last_vote_ingested_at(body.source_id, computation.latest_update)
        LOGGER.debug(
            "Attendance for %s recomputed from %s votes; %s officials changed",
            body.source_id,
            computation.vote_records_processed,
            changed,
        )
        return changed

    # --- enrichment -----------------------------------------------------
    def _enrichment_phase(
        self,
        body: LegislativeBody,
        report: CycleReport,
        cancel_event: Optional[Event],
    ) -> None:
        assert self._summary_service is not None
        unit = f"summaries:{body.source_id}"
        try:
            pending = self._votes.find_pending_summaries(body.uuid, limit=self._settings.summary_batch_limit)
            generated = 0
            for record in pending:
                if cancel_event and cancel_event.is_set():
                    report.cancelled = True
                    break
                summary = self._summary_service.summarize_legislation(record.legislation_url)
                if not summary:
                    continue
                self._votes.update_summary(record.source_id, summary)
                generated += 1
        except Exception as exc:
            LOGGER.exception("Summary enrichment failed for %s", body.source_id)
            report.record(UnitOutcome(unit, "unexpected_error", str(exc)))
            return
        report.summaries_generated += generated
        report.record(UnitOutcome(unit, "ok", f"{generated} of {len(pending)} summarized"))

    # --- events ---------------------------------------------------------
    def _publish(self, body: LegislativeBody, official: PublicOfficial, report: CycleReport) -> None:
        if self._publisher is None:
            LOGGER.debug("Event publishing disabled; not announcing %s", official.source_id)
            return
        try:
            self._publisher.publish(build_event(body, official, self._clock()))
        except Exception:
            LOGGER.exception("Could not hand accountability event for %s to the producer", official.source_id)
            return
        report.events_published += 1


__all__ = ["CycleReport", "FederalIngestionService", "HOUSE_SESSIONS", "OutcomeStatus", "UnitOutcome"]
