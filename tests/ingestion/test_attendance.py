from __future__ import annotations

from datetime import datetime, timezone

import pytest

from beacon.core import MemberVote, VotePosition, VotingRecord
from beacon.ingestion.attendance import VoteObservation, compute, percentage

JAN_1 = datetime(2025, 1, 1, 15, tzinfo=timezone.utc)
JAN_5 = datetime(2025, 1, 5, 18, tzinfo=timezone.utc)
FEB_15 = datetime(2025, 2, 15, 17, tzinfo=timezone.utc)


@pytest.fixture()
def three_votes():
    return [
        VoteObservation(JAN_1, JAN_1, {"A000001": "Yea", "B000001": "Not Voting"}),
        VoteObservation(JAN_5, JAN_5, {"A000001": "Nay", "B000001": "Yea"}),
        VoteObservation(FEB_15, FEB_15, {"A000001": "Not Voting", "B000001": "Not Voting"}),
    ]


def test_aggregates_per_member_and_period(three_votes):
    computation = compute(three_votes, 12)

    assert computation.latest_update == FEB_15
    assert computation.vote_records_processed == 3
    assert set(computation.statistics_by_member) == {"A000001", "B000001"}

    member_a = computation.statistics_by_member["A000001"]
    assert member_a.summary.sessions_attended == 1
    assert member_a.summary.sessions_total == 2
    assert member_a.summary.votes_participated == 2
    assert member_a.summary.votes_total == 3
    assert member_a.summary.presence_score == 50
    assert member_a.summary.participation_score == 67
    assert len(member_a.history) == 2

    member_b = computation.statistics_by_member["B000001"]
    assert member_b.summary.sessions_attended == 1
    assert member_b.summary.sessions_total == 2
    assert member_b.summary.votes_participated == 1
    assert member_b.summary.votes_total == 3
    assert member_b.summary.presence_score == 50
    assert member_b.summary.participation_score == 33
    assert len(member_b.history) == 2


def test_history_snapshots_carry_period_bounds(three_votes):
    history = compute(three_votes, 12).statistics_by_member["A000001"].history

    january, february = history
    assert january.period_label == "2025-01"
    assert january.period_start == JAN_1
    assert january.period_end == JAN_5
    assert (january.sessions_attended, january.presence_score, january.participation_score) == (1, 100, 100)
    assert february.period_label == "2025-02"
    assert (february.sessions_attended, february.presence_score, february.participation_score) == (0, 0, 0)


def test_history_is_truncated_to_latest_periods(three_votes):
    history = compute(three_votes, 1).statistics_by_member["A000001"].history

    assert [snapshot.period_label for snapshot in history] == ["2025-02"]


def test_result_does_not_depend_on_input_order(three_votes):
    forward = compute(three_votes, 12)
    backward = compute(list(reversed(three_votes)), 12)

    assert forward.statistics_by_member == backward.statistics_by_member


def test_records_without_member_votes_are_ignored(three_votes):
    empty = VoteObservation(datetime(2025, 3, 1, tzinfo=timezone.utc), datetime(2025, 3, 2, tzinfo=timezone.utc), {})

    computation = compute([*three_votes, empty, None], 12)

    assert computation.vote_records_processed == 3
    assert computation.latest_update == FEB_15


def test_undated_votes_fall_into_current_month():
    now = datetime(2025, 4, 20, tzinfo=timezone.utc)

    computation = compute([VoteObservation(None, None, {"A000001": "Present"})], 0, now=now)

    (snapshot,) = computation.statistics_by_member["A000001"].history
    assert snapshot.period_label == "2025-04"
    assert snapshot.period_start == datetime(2025, 4, 1, tzinfo=timezone.utc)
    assert snapshot.period_end == datetime(2025, 4, 30, 23, 59, 59, tzinfo=timezone.utc)
    assert snapshot.sessions_attended == 1
    assert snapshot.votes_participated == 0
    assert computation.latest_update is None


def test_december_period_ends_before_new_year():
    now = datetime(2024, 12, 31, tzinfo=timezone.utc)

    computation = compute([VoteObservation(None, None, {"A000001": "Yea"})], 0, now=now)

    (snapshot,) = computation.statistics_by_member["A000001"].history
    assert snapshot.period_end == datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


def test_blank_member_ids_are_skipped():
    computation = compute([VoteObservation(JAN_1, JAN_1, {"": "Yea", " ": "Nay", "A000001": "Aye"})], 12)

    assert set(computation.statistics_by_member) == {"A000001"}


def test_observation_from_voting_record():
    record = VotingRecord(
        uuid="vote",
        source_id="US-HOUSE-119-1-1",
        legislative_body_uuid="body",
        congress_number=119,
        session_number=1,
        roll_call_number=1,
        vote_date_utc=JAN_1,
        update_date_utc=JAN_5,
        member_votes=(
            MemberVote("mv", "US-HOUSE-119-1-1-A000001", "A000001", "vote", VotePosition.YEA, "Yea"),
        ),
    )

    observation = VoteObservation.from_record(record)

    assert observation.start_date == JAN_1
    assert observation.update_date == JAN_5
    assert dict(observation.member_votes) == {"A000001": "Yea"}


@pytest.mark.parametrize(
    ("numerator", "denominator", "expected"),
    [(2, 3, 67), (1, 3, 33), (1, 2, 50), (1, 8, 13), (0, 0, 0), (5, 5, 100)],
)
def test_percentage_rounds_half_up(numerator, denominator, expected):
    assert percentage(numerator, denominator) == expected
