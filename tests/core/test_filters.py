"""Unit tests for event filtering.

Pure function tests - "today" is always injected.
"""

import pytest
from datetime import date

from scene.core.event import Event
from scene.core.filters import (
    ALL_CATEGORIES,
    DateRange,
    default_date_range,
    filter_by_category,
    filter_by_date_range,
    filter_events,
    filter_upcoming,
)


TODAY = date(2024, 3, 20)


def make_event(event_id: str, date_time: str, category: str = "Music") -> Event:
    return Event(
        id=event_id,
        title=f"Event {event_id}",
        location_name="Somewhere",
        date_time=date_time,
        description="",
        latitude=51.5,
        longitude=-0.1,
        category=category,
    )


@pytest.fixture
def events():
    return [
        make_event("yesterday", "2024-03-19 20:00"),
        make_event("today-early", "2024-03-20 00:30", "Art"),
        make_event("next-week", "2024-03-25 12:00"),
        make_event("window-end", "2024-03-27 23:59", "Tech"),
        make_event("next-month", "2024-04-01 10:00"),
    ]


@pytest.fixture
def week():
    return DateRange(start=date(2024, 3, 20), end=date(2024, 3, 27))


class TestDateRange:
    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            DateRange(start=date(2024, 3, 28), end=date(2024, 3, 20))

    def test_single_day_range(self):
        day = DateRange(start=TODAY, end=TODAY)
        assert day.contains(TODAY) is True

    def test_bounds_inclusive(self, week):
        assert week.contains(date(2024, 3, 20)) is True
        assert week.contains(date(2024, 3, 27)) is True
        assert week.contains(date(2024, 3, 28)) is False

    def test_default_range_is_one_week(self):
        assert default_date_range(TODAY) == DateRange(TODAY, date(2024, 3, 27))

    def test_default_range_custom_width(self):
        assert default_date_range(TODAY, days=0).end == TODAY


class TestFilterUpcoming:
    def test_drops_past_keeps_today(self, events):
        ids = [e.id for e in filter_upcoming(events, TODAY)]
        assert "yesterday" not in ids
        assert "today-early" in ids


class TestFilterByDateRange:
    def test_window(self, events, week):
        ids = [e.id for e in filter_by_date_range(events, week)]
        assert ids == ["today-early", "next-week", "window-end"]


class TestFilterByCategory:
    def test_exact_match(self, events):
        ids = [e.id for e in filter_by_category(events, "Music")]
        assert ids == ["yesterday", "next-week", "next-month"]

    def test_case_sensitive(self, events):
        assert filter_by_category(events, "music") == []

    @pytest.mark.parametrize("category", [None, ALL_CATEGORIES])
    def test_all_disables_filter(self, events, category):
        assert filter_by_category(events, category) == events


class TestFilterEvents:
    def test_combined_filter(self, events, week):
        result = filter_events(events, week, "Music", TODAY)
        assert [e.id for e in result] == ["next-week"]

    def test_all_categories_preserves_order(self, events, week):
        result = filter_events(events, week, ALL_CATEGORIES, TODAY)
        assert [e.id for e in result] == ["today-early", "next-week", "window-end"]

    def test_past_range_yields_nothing(self, events):
        march = DateRange(start=date(2024, 3, 1), end=date(2024, 3, 19))
        assert filter_events(events, march, ALL_CATEGORIES, TODAY) == []

    def test_empty_input(self, week):
        assert filter_events([], week, ALL_CATEGORIES, TODAY) == []
