"""Event filtering - Pure functions.

This module decides which events are visible on the board for a given
date window and category selector. All functions are pure with no side
effects; "today" is always passed in by the caller.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from scene.core.event import Event


# Category selector meaning "no category filter"
ALL_CATEGORIES = "all"

# Default width of the date window, in days after today
DEFAULT_WINDOW_DAYS = 7


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day window used for filtering.

    Attributes:
        start: First visible day
        end: Last visible day (visible through 23:59:59)
    """
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"DateRange start ({self.start}) is after end ({self.end})"
            )

    def contains(self, day: date) -> bool:
        """Check if a calendar day falls within the window."""
        return self.start <= day <= self.end


def default_date_range(today: date, days: int = DEFAULT_WINDOW_DAYS) -> DateRange:
    """Build the default window: today through today + days.

    Pure function.
    """
    return DateRange(start=today, end=today + timedelta(days=days))


def filter_upcoming(events: list[Event], today: date) -> list[Event]:
    """Drop events dated strictly before today.

    Pure function. Events on today's date are kept regardless of time.
    """
    return [e for e in events if e.event_date >= today]


def filter_by_date_range(events: list[Event], date_range: DateRange) -> list[Event]:
    """Keep events whose calendar date lies in the window.

    Pure function.
    """
    return [e for e in events if date_range.contains(e.event_date)]


def filter_by_category(events: list[Event], category: str | None) -> list[Event]:
    """Keep events whose category matches exactly.

    Pure function. None or ALL_CATEGORIES disables the filter.
    """
    if category is None or category == ALL_CATEGORIES:
        return events
    return [e for e in events if e.category == category]


def filter_events(
    events: list[Event],
    date_range: DateRange,
    category: str | None,
    today: date,
) -> list[Event]:
    """Produce the visible subset of events, in input order.

    Pure function.

    Args:
        events: All known events
        date_range: Inclusive calendar-day window
        category: Category selector, or ALL_CATEGORIES
        today: Current calendar day

    Returns:
        Events that are not in the past, fall inside the window and
        match the category
    """
    result = filter_upcoming(events, today)
    result = filter_by_date_range(result, date_range)
    return filter_by_category(result, category)
