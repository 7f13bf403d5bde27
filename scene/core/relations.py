"""User/event relations - Pure functions.

Interest and check-in are both presence relations keyed by
(user_id, event_id) pairs. This module holds the record types and the
set-membership logic over them.

Note: The actual persistence of records is handled by the imperative
shell (Firestore client). This module only contains the pure logic.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone

from scene.core.event import Event


# Sort key for check-ins without a timestamp
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class InterestRecord:
    """A user's interest in an event. Presence means "interested".

    Attributes:
        user_id: Interested user
        event_id: Event of interest
    """
    user_id: str
    event_id: str

    @property
    def key(self) -> str:
        return relation_key(self.user_id, self.event_id)


@dataclass(frozen=True)
class CheckinRecord:
    """A verified arrival at an event. Append-only.

    Attributes:
        user_id: User who checked in
        event_id: Event checked in to
        checked_in_at: When the check-in was recorded (UTC)
        distance_m: Measured distance from the event at check-in
    """
    user_id: str
    event_id: str
    checked_in_at: datetime | None = None
    distance_m: float | None = None

    @property
    def key(self) -> str:
        return relation_key(self.user_id, self.event_id)


@dataclass(frozen=True)
class CheckinSummary:
    """A check-in joined with a summary of its event.

    Attributes:
        record: The check-in record
        title: Event title
        location_name: Event venue
        date_time: Event date-time string
    """
    record: CheckinRecord
    title: str
    location_name: str
    date_time: str


def relation_key(user_id: str, event_id: str) -> str:
    """Build the storage key for a (user, event) pair.

    Pure function. One key per pair keeps each relation unique.
    """
    return f"{user_id}__{event_id}"


def event_ids_for_user(
    records: list[InterestRecord] | list[CheckinRecord],
    user_id: str | None,
) -> frozenset[str]:
    """Collect the event IDs a user is related to.

    Pure function. Anonymous users are related to nothing.
    """
    if user_id is None:
        return frozenset()
    return frozenset(r.event_id for r in records if r.user_id == user_id)


def count_interests(records: list[InterestRecord]) -> dict[str, int]:
    """Count interested users per event.

    Pure function. Duplicate (user, event) records are counted once.
    """
    unique = {(r.user_id, r.event_id) for r in records}
    return dict(Counter(event_id for _, event_id in unique))


def join_checkins(
    records: list[CheckinRecord],
    events: list[Event],
) -> list[CheckinSummary]:
    """Join check-in records with their event summaries, newest first.

    Pure function. Records whose event is unknown keep placeholder
    summary fields.

    Args:
        records: Check-in records for one user
        events: Known events

    Returns:
        Check-in summaries sorted by check-in time, newest first
    """
    by_id = {e.id: e for e in events}
    summaries = []

    for record in records:
        event = by_id.get(record.event_id)
        summaries.append(CheckinSummary(
            record=record,
            title=event.title if event else "Unknown event",
            location_name=event.location_name if event else "",
            date_time=event.date_time if event else "",
        ))

    return sorted(
        summaries,
        key=lambda s: s.record.checked_in_at or _EPOCH,
        reverse=True,
    )
