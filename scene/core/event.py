"""Event data models and parsing - Pure functions.

This module handles building Events from form submissions and parsing
stored documents back into typed Event objects.
All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from scene.core.validation import ValidationError, validate_coordinates
from scene.core.geo import GeoPoint, is_valid_coordinate


# Combined date-time format stored on every event
DATE_TIME_FORMAT = "%Y-%m-%d %H:%M"

DEFAULT_CATEGORY = "Other"

CATEGORIES: tuple[str, ...] = (
    "Music",
    "Art",
    "Food",
    "Sports",
    "Tech",
    "Community",
    DEFAULT_CATEGORY,
)


@dataclass(frozen=True)
class Event:
    """Immutable event data model.

    Attributes:
        id: Opaque unique identifier assigned by the store
        title: Event title
        location_name: Human-readable venue name
        date_time: Combined "YYYY-MM-DD HH:MM" string
        description: Free-text description
        latitude: Event latitude
        longitude: Event longitude
        category: One of CATEGORIES
        created_by: User ID of the creator (optional)
    """
    id: str
    title: str
    location_name: str
    date_time: str
    description: str
    latitude: float
    longitude: float
    category: str = DEFAULT_CATEGORY
    created_by: str | None = None

    @property
    def position(self) -> GeoPoint:
        """Return the event position as a GeoPoint."""
        return GeoPoint(self.latitude, self.longitude)

    @property
    def event_date(self) -> date:
        """Calendar date of the event, no time-zone conversion."""
        return parse_event_date(self.date_time)


@dataclass(frozen=True)
class EventDraft:
    """A user submission for a new event, before validation.

    Attributes:
        title: Event title
        location_name: Venue name
        date: Date string "YYYY-MM-DD"
        time: Time string "HH:MM"
        description: Free-text description
        latitude: Clicked map latitude
        longitude: Clicked map longitude
        category: Requested category (may be missing or unknown)
    """
    title: str
    location_name: str
    date: str
    time: str
    description: str
    latitude: float
    longitude: float
    category: str | None = None

    @property
    def date_time(self) -> str:
        """Combine date and time into the stored date-time string."""
        return f"{self.date.strip()} {self.time.strip()}"


def parse_event_date(date_time: str) -> date:
    """Parse the calendar date portion of a "YYYY-MM-DD HH:MM" string.

    Pure function.

    Raises:
        ValueError: If the string is malformed
    """
    return datetime.strptime(date_time, DATE_TIME_FORMAT).date()


def normalize_category(
    category: str | None,
    categories: tuple[str, ...] = CATEGORIES,
) -> str:
    """Map a requested category onto the fixed set.

    Pure function. Missing or unknown categories become "Other".
    """
    if category and category in categories:
        return category
    return DEFAULT_CATEGORY


def validate_draft(draft: EventDraft) -> list[ValidationError]:
    """Validate a new event submission.

    Pure function.

    Args:
        draft: The form submission

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    for field_name in ("title", "location_name", "description"):
        if not getattr(draft, field_name, "").strip():
            errors.append(ValidationError(
                field=field_name,
                message=f"{field_name} is required",
            ))

    try:
        datetime.strptime(draft.date_time, DATE_TIME_FORMAT)
    except ValueError:
        errors.append(ValidationError(
            field="date_time",
            message=f"Date and time must match YYYY-MM-DD HH:MM, got '{draft.date_time}'",
        ))

    errors.extend(validate_coordinates(draft.latitude, draft.longitude, "position"))

    return errors


def build_event(
    draft: EventDraft,
    created_by: str | None = None,
    categories: tuple[str, ...] = CATEGORIES,
) -> Event:
    """Build an Event from a validated draft.

    Pure function. The identifier is left empty; the store assigns it.
    """
    return Event(
        id="",
        title=draft.title.strip(),
        location_name=draft.location_name.strip(),
        date_time=draft.date_time,
        description=draft.description.strip(),
        latitude=float(draft.latitude),
        longitude=float(draft.longitude),
        category=normalize_category(draft.category, categories),
        created_by=created_by,
    )


def event_to_document(event: Event) -> dict[str, Any]:
    """Convert an Event to a storable document (without its ID).

    Pure function.
    """
    return {
        "title": event.title,
        "location_name": event.location_name,
        "date_time": event.date_time,
        "description": event.description,
        "latitude": event.latitude,
        "longitude": event.longitude,
        "category": event.category,
        "created_by": event.created_by,
    }


def parse_event(event_id: str, data: dict[str, Any]) -> Event | None:
    """Parse a stored document into an Event.

    Pure function: returns None for documents missing required fields,
    with a malformed date-time, or with coordinates out of range.
    A missing category is read as "Other"; stored categories are kept
    verbatim even if no longer in CATEGORIES.

    Args:
        event_id: Document identifier
        data: Document fields

    Returns:
        Event object or None if parsing fails
    """
    try:
        event = Event(
            id=event_id,
            title=data["title"],
            location_name=data.get("location_name", ""),
            date_time=data["date_time"],
            description=data.get("description", ""),
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            category=data.get("category") or DEFAULT_CATEGORY,
            created_by=data.get("created_by"),
        )
        parse_event_date(event.date_time)
    except (KeyError, TypeError, ValueError):
        return None

    if not is_valid_coordinate(event.latitude, event.longitude):
        return None

    return event


def find_event(events: list[Event], event_id: str) -> Event | None:
    """Find an event by ID.

    Pure function.
    """
    for event in events:
        if event.id == event_id:
            return event
    return None
