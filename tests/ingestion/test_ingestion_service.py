from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from threading import Event
from typing import Dict, List

import pytest

from beacon.clients import (
    CongressGovClientError,
    HouseVoteDetail,
    HouseVoteSummary,
    MemberListing,
    MemberVoteResult,
    build_legislative_body,
)
from beacon.config import IngestionConfig
from beacon.core import ChamberType, PublicOfficial, deterministic_uuid
from beacon.database import (
    LegislativeBodyRepository,
    PublicOfficialRepository,
    VotingRecordRepository,
    create_storage,
)
from beacon.ingestion import FederalIngestionService
from beacon.lock import InMemoryDistributedLockManager
from beacon.sync import RosterSynchronizationService

NOW = datetime(2025, 3, 1, 12, tzinfo=timezone.utc)
HOUSE = build_legislative_body(119, ChamberType.LOWER)
SENATE = build_legislative_body(119, ChamberType.UPPER)
JAN = datetime(2025, 1, 15, 15, tzinfo=timezone.utc)
FEB = datetime(2025, 2, 12, 15, tzinfo=timezone.utc)


class DummyCongressClient:
    def __init__(self):
        self.bodies: Dict[int, object] = {119: [HOUSE, SENATE]}
        self.members = {
            ChamberType.LOWER: [_listing(HOUSE, "A000001"), _listing(HOUSE, "B000001")],
            ChamberType.UPPER: [_listing(SENATE, "S000001")],
        }
        self.members_by_congress: Dict[int, object] = {}
        self.summaries: Dict[tuple, object] = {
            (119, 1): [_summary(1, JAN), _summary(2, FEB)],
        }
        self.details: Dict[tuple, object] = {
            (119, 1, 1): _detail(1, JAN, {"A000001": "Yea", "B000001": "Nay"}),
            (119, 1, 2): _detail(2, FEB, {"A000001": "Yea", "B000001": "Not Voting"}),
        }
        self.member_calls: List[tuple] = []
        self.summary_calls: List[tuple] = []
        self.detail_calls: List[int] = []

    def fetch_legislative_bodies(self, congress):
        return _result(self.bodies[congress])

    def fetch_member_listings(self, congress, chamber=None):
        self.member_calls.append((congress, chamber))
        return self.members_by_congress.get(congress, self.members).get(chamber, [])

    def fetch_house_vote_summaries(self, congress, session):
        self.summary_calls.append((congress, session))
        return _result(self.summaries.get((congress, session), []))

    def fetch_house_vote_detail(self, congress, session, roll_call):
        self.detail_calls.append(roll_call)
        return _result(self.details[(congress, session, roll_call)])


class FakePublisher:
    def __init__(self):
        self.events = []

    def publish(self, event):
        self.events.append(event)


class FakeSummaryService:
    def __init__(self, summaries):
        self.summaries = summaries
        self.requested = []

    def summarize_legislation(self, url):
        self.requested.append(url)
        return self.summaries.get(url)


def _result(value):
    if isinstance(value, Exception):
        raise value
    return value


def _listing(body, bioguide):
    official = PublicOfficial(
        uuid=deterministic_uuid(f"public-official-{bioguide}"),
        source_id=bioguide,
        legislative_body_uuid=body.uuid,
        full_name=f"Member {bioguide}",
    )
    return MemberListing(official=official, legislative_body=body, source_json=f'{{"bioguideId":"{bioguide}"}}')


def _summary(roll_call, update_date):
    return HouseVoteSummary(
        congress_number=119,
        session_number=1,
        roll_call_number=roll_call,
        start_date=update_date,
        update_date=update_date,
        legislation_url=f"https://congress.gov/bill/119/hr/{roll_call}",
    )


def _detail(roll_call, start_date, casts):
    return HouseVoteDetail(
        congress_number=119,
        session_number=1,
        roll_call_number=roll_call,
        start_date=start_date,
        update_date=start_date,
        question="On Passage",
        member_votes={bioguide: MemberVoteResult(bioguide, cast) for bioguide, cast in casts.items()},
    )


@pytest.fixture()
def storage(tmp_path):
    storage = create_storage(f"sqlite:///{(tmp_path / 'ingest.db').as_posix()}")
    yield storage
    storage.dispose()


@pytest.fixture()
def client():
    return DummyCongressClient()


@pytest.fixture()
def publisher():
    return FakePublisher()


def _service(
    storage, client, publisher, *, now=NOW, locks=None, summary_service=None, congresses=(119,), **settings
):
    bodies = LegislativeBodyRepository(storage)
    officials = PublicOfficialRepository(storage)
    clock = lambda: now  # noqa: E731
    return FederalIngestionService(
        client=client,
        body_repository=bodies,
        official_repository=officials,
        vote_repository=VotingRecordRepository(storage),
        roster_sync=RosterSynchronizationService(
            officials, bodies, locks or InMemoryDistributedLockManager(), clock=clock
        ),
        settings=IngestionConfig(**settings),
        congresses=lambda: list(congresses),
        publisher=publisher,
        summary_service=summary_service,
        clock=clock,
    )


def test_full_cycle_persists_roster_votes_and_attendance(storage, client, publisher):
    report = _service(storage, client, publisher).run_cycle()

    assert report.failures == []
    assert report.votes_ingested == 2
    assert client.detail_calls == [1, 2]
    assert client.summary_calls == [(119, 1), (119, 2)]

    officials = PublicOfficialRepository(storage)
    member_a = officials.find_by_source_id("A000001")
    assert member_a.attendance_summary.sessions_attended == 2
    assert member_a.attendance_summary.participation_score == 100
    assert [snapshot.period_label for snapshot in member_a.attendance_history] == ["2025-01", "2025-02"]
    member_b = officials.find_by_source_id("B000001")
    assert member_b.attendance_summary.presence_score == 50
    assert member_b.attendance_summary.participation_score == 50
    assert officials.find_by_source_id("S000001").attendance_summary is None

    votes = VotingRecordRepository(storage).find_by_legislative_body(HOUSE.uuid)
    assert [vote.source_id for vote in votes] == ["US-HOUSE-119-1-1", "US-HOUSE-119-1-2"]
    assert votes[0].member_votes[0].official_uuid == member_a.uuid

    body = LegislativeBodyRepository(storage).find_by_source_id(HOUSE.source_id)
    assert body.roster_last_refreshed_at == NOW
    assert body.last_vote_ingested_at == FEB


def test_official_moves_to_the_later_congress_with_an_unchanged_payload(storage, client, publisher):
    previous_house = build_legislative_body(118, ChamberType.LOWER)
    client.bodies[118] = [previous_house]
    client.members_by_congress[118] = {ChamberType.LOWER: [_listing(previous_house, "A000001")]}

    report = _service(storage, client, publisher, congresses=(118, 119)).run_cycle()

    assert report.failures == []
    roster = next(outcome for outcome in report.outcomes if outcome.unit == f"roster:{HOUSE.source_id}")
    assert roster.message == "scanned=2 inserted=1 updated=1"

    officials = PublicOfficialRepository(storage)
    member_a = officials.find_by_source_id("A000001")
    assert member_a.legislative_body_uuid == HOUSE.uuid
    assert member_a.attendance_summary.sessions_attended == 2
    assert [official.source_id for official in officials.find_by_legislative_body(HOUSE.uuid)] == [
        "A000001",
        "B000001",
    ]
    assert officials.find_by_legislative_body(previous_house.uuid) == []


def test_events_are_published_for_roster_and_attendance_changes(storage, client, publisher):
    report = _service(storage, client, publisher).run_cycle()

    # House roster, then both House members after each of the 2 votes, then the Senate roster
    assert [event.source_id for event in publisher.events] == [
        "A000001",
        "B000001",
        "A000001",
        "B000001",
        "A000001",
        "B000001",
        "S000001",
    ]
    assert report.events_published == len(publisher.events)
    first = publisher.events[0]
    assert first.ingestion_source == "congress.gov"
    assert first.partition_key == f"{first.public_official.uuid}::lower"
    assert first.legislative_body == HOUSE
    senate_events = [event for event in publisher.events if event.legislative_body == SENATE]
    assert senate_events[0].partition_key.endswith("::upper")
    assert publisher.events[0].public_official.attendance_summary is None
    final_a = publisher.events[4].public_official
    assert final_a.attendance_summary.votes_participated == 2
    assert len({event.uuid for event in publisher.events}) == len(publisher.events)


def test_second_cycle_fetches_nothing_unchanged(storage, client, publisher):
    _service(storage, client, publisher).run_cycle()
    client.detail_calls.clear()
    client.member_calls.clear()
    publisher.events.clear()

    later = NOW + timedelta(minutes=5)
    report = _service(storage, client, publisher, now=later).run_cycle()

    assert client.detail_calls == []
    assert client.member_calls == []
    assert report.votes_skipped == 2
    assert report.count("skipped") == 2
    assert publisher.events == []


def test_updated_or_incomplete_votes_are_refetched(storage, client, publisher):
    _service(storage, client, publisher).run_cycle()
    client.detail_calls.clear()

    newer = FEB + timedelta(days=1)
    client.summaries[(119, 1)] = [_summary(1, JAN), _summary(2, newer)]
    client.details[(119, 1, 2)] = replace(client.details[(119, 1, 2)], update_date=newer)
    _service(storage, client, publisher, now=NOW + timedelta(minutes=5)).run_cycle()

    assert client.detail_calls == [2]
    stored = VotingRecordRepository(storage).find_metadata_by_source_id("US-HOUSE-119-1-2")
    assert stored.update_date_utc == newer


def test_empty_cached_vote_is_refetched(storage, client, publisher):
    client.details[(119, 1, 1)] = _detail(1, JAN, {})
    _service(storage, client, publisher).run_cycle()
    client.detail_calls.clear()
    client.details[(119, 1, 1)] = _detail(1, JAN, {"A000001": "Yea"})

    _service(storage, client, publisher, now=NOW + timedelta(minutes=5)).run_cycle()

    assert client.detail_calls == [1]


def test_failing_roll_call_does_not_stop_the_cycle(storage, client, publisher):
    client.details[(119, 1, 1)] = CongressGovClientError("roll call unavailable")
    client.summaries[(119, 2)] = RuntimeError("malformed payload")

    report = _service(storage, client, publisher).run_cycle()

    statuses = {outcome.unit: outcome.status for outcome in report.outcomes}
    assert statuses["vote:US-HOUSE-119-1-1"] == "upstream_error"
    assert statuses["vote:US-HOUSE-119-1-2"] == "ok"
    assert statuses["votes:US-HOUSE-119:session-2"] == "unexpected_error"
    assert report.votes_ingested == 1
    assert VotingRecordRepository(storage).find_metadata_by_source_id("US-HOUSE-119-1-1") is None


def test_roster_upstream_failure_skips_body_but_not_others(storage, client, publisher):
    def failing_listing(congress, chamber=None):
        if chamber is ChamberType.LOWER:
            raise CongressGovClientError("members unavailable")
        return client.members[chamber]

    client.fetch_member_listings = failing_listing

    report = _service(storage, client, publisher).run_cycle()

    statuses = {outcome.unit: outcome.status for outcome in report.outcomes}
    assert statuses["roster:US-HOUSE-119"] == "upstream_error"
    assert statuses["roster:US-SENATE-119"] == "ok"
    assert client.detail_calls == []
    assert PublicOfficialRepository(storage).find_by_source_id("S000001") is not None


def test_unlistable_congress_is_reported(storage, client, publisher):
    client.bodies[119] = CongressGovClientError("service down")

    report = _service(storage, client, publisher).run_cycle()

    assert [(outcome.unit, outcome.status) for outcome in report.outcomes] == [("congress-119", "upstream_error")]


def test_roster_lock_contention_still_ingests_votes(storage, client, publisher):
    locks = InMemoryDistributedLockManager()
    locks.try_acquire("roster-sync:US-HOUSE-119", "other-instance", timedelta(hours=1))

    report = _service(storage, client, publisher, locks=locks).run_cycle()

    statuses = {outcome.unit: outcome.status for outcome in report.outcomes}
    assert statuses["roster:US-HOUSE-119"] == "locked"
    assert client.detail_calls == [1, 2]
    assert report.votes_ingested == 2
    body = LegislativeBodyRepository(storage).find_by_source_id(HOUSE.source_id)
    assert body.roster_last_refreshed_at is None
    assert body.last_vote_ingested_at == FEB


def test_disabled_vote_ingestion_skips_vote_phase(storage, client, publisher):
    _service(storage, client, publisher, enable_vote_ingestion=False).run_cycle()

    assert client.summary_calls == []
    assert client.detail_calls == []


def test_enrichment_stores_summaries_best_effort(storage, client, publisher):
    summaries = FakeSummaryService({"https://congress.gov/bill/119/hr/1": "Funds the thing."})

    report = _service(storage, client, publisher, summary_service=summaries).run_cycle()

    votes = VotingRecordRepository(storage)
    assert votes.find_by_source_id("US-HOUSE-119-1-1").summary == "Funds the thing."
    assert votes.find_by_source_id("US-HOUSE-119-1-2").summary is None
    assert report.summaries_generated == 1
    assert sorted(summaries.requested) == [
        "https://congress.gov/bill/119/hr/1",
        "https://congress.gov/bill/119/hr/2",
    ]


def test_refetched_vote_keeps_existing_summary(storage, client, publisher):
    summaries = FakeSummaryService({"https://congress.gov/bill/119/hr/1": "Funds the thing."})
    _service(storage, client, publisher, summary_service=summaries).run_cycle()

    newer = JAN + timedelta(days=1)
    client.summaries[(119, 1)] = [_summary(1, newer), _summary(2, FEB)]
    client.details[(119, 1, 1)] = replace(client.details[(119, 1, 1)], update_date=newer)
    _service(storage, client, publisher, now=NOW + timedelta(minutes=5)).run_cycle()

    assert VotingRecordRepository(storage).find_by_source_id("US-HOUSE-119-1-1").summary == "Funds the thing."


def test_missing_publisher_only_skips_events(storage, client):
    report = _service(storage, client, None).run_cycle()

    assert report.failures == []
    assert report.events_published == 0


def test_cancelled_cycle_stops_before_work(storage, client, publisher):
    cancel = Event()
    cancel.set()

    report = _service(storage, client, publisher).run_cycle(cancel_event=cancel)

    assert report.cancelled is True
    assert report.outcomes == []
