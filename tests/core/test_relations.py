"""Unit tests for user/event relation logic.

Pure function tests - fast, no mocks needed.
"""

import pytest
from datetime import datetime, timezone

from scene.core.event import Event
from scene.core.relations import (
    CheckinRecord,
    InterestRecord,
    count_interests,
    event_ids_for_user,
    join_checkins,
    relation_key,
)


@pytest.fixture
def events():
    return [
        Event(
            id="evt-1",
            title="Jazz Night",
            location_name="Tower Bridge",
            date_time="2024-03-15 19:00",
            description="",
            latitude=51.5055,
            longitude=-0.0754,
        ),
        Event(
            id="evt-2",
            title="Tech Meetup",
            location_name="London Eye",
            date_time="2024-03-22 18:00",
            description="",
            latitude=51.5033,
            longitude=-0.1195,
        ),
    ]


def test_relation_key():
    assert relation_key("user-1", "evt-1") == "user-1__evt-1"
    assert InterestRecord("user-1", "evt-1").key == "user-1__evt-1"


class TestEventIdsForUser:
    def test_collects_only_this_user(self):
        records = [
            InterestRecord("user-1", "evt-1"),
            InterestRecord("user-2", "evt-2"),
            InterestRecord("user-1", "evt-3"),
        ]
        assert event_ids_for_user(records, "user-1") == frozenset({"evt-1", "evt-3"})

    def test_anonymous_user_has_none(self):
        records = [InterestRecord("user-1", "evt-1")]
        assert event_ids_for_user(records, None) == frozenset()


class TestCountInterests:
    def test_counts_per_event(self):
        records = [
            InterestRecord("user-1", "evt-1"),
            InterestRecord("user-2", "evt-1"),
            InterestRecord("user-1", "evt-2"),
        ]
        assert count_interests(records) == {"evt-1": 2, "evt-2": 1}

    def test_duplicates_counted_once(self):
        records = [InterestRecord("user-1", "evt-1"), InterestRecord("user-1", "evt-1")]
        assert count_interests(records) == {"evt-1": 1}

    def test_empty(self):
        assert count_interests([]) == {}


class TestJoinCheckins:
    def test_newest_first_with_summaries(self, events):
        older = CheckinRecord("user-1", "evt-1", datetime(2024, 3, 15, 19, 30, tzinfo=timezone.utc))
        newer = CheckinRecord("user-1", "evt-2", datetime(2024, 3, 22, 18, 10, tzinfo=timezone.utc))

        summaries = join_checkins([older, newer], events)

        assert [s.record for s in summaries] == [newer, older]
        assert summaries[0].title == "Tech Meetup"
        assert summaries[0].location_name == "London Eye"
        assert summaries[1].date_time == "2024-03-15 19:00"

    def test_unknown_event_placeholder(self, events):
        record = CheckinRecord("user-1", "deleted", datetime(2024, 3, 1, tzinfo=timezone.utc))

        summary = join_checkins([record], events)[0]

        assert summary.title == "Unknown event"
        assert summary.location_name == ""

    def test_missing_timestamp_sorts_last(self, events):
        undated = CheckinRecord("user-1", "evt-1")
        dated = CheckinRecord("user-1", "evt-2", datetime(2024, 3, 22, tzinfo=timezone.utc))

        summaries = join_checkins([undated, dated], events)

        assert [s.record for s in summaries] == [dated, undated]
