"""Message formatting - Pure functions.

This module turns events and outcomes into user-facing notification text
and the payloads shown in map marker popups.
All functions are pure with no side effects.
"""

from typing import Any

from scene.core.checkin import CheckinDecision, CheckinOutcome, LocationError
from scene.core.event import Event
from scene.core.interest import InterestAction, InterestState, InterestToggle
from scene.core.relations import CheckinSummary


LOCATION_ERROR_MESSAGES: dict[LocationError, str] = {
    LocationError.UNSUPPORTED: "Geolocation is not supported by your browser.",
    LocationError.PERMISSION_DENIED: (
        "Location permission denied. Please allow location access to check in."
    ),
    LocationError.POSITION_UNAVAILABLE: "Your location is currently unavailable.",
    LocationError.TIMEOUT: "Location request timed out. Please try again.",
}


def format_distance(distance_m: float) -> str:
    """Format a distance for display.

    Pure function.
    """
    if distance_m < 1000:
        return f"{distance_m:.0f} m"
    return f"{distance_m / 1000:.1f} km"


def format_event_summary(event: Event) -> str:
    """Format a one-line summary of an event.

    Pure function.

    Example: "Jazz Night at the Bridge @ Tower Bridge (2024-03-15 19:00)"
    """
    return f"{event.title} @ {event.location_name} ({event.date_time})"


def format_location_error(error: LocationError) -> str:
    """Message for a location sensor failure.

    Pure function.
    """
    return LOCATION_ERROR_MESSAGES.get(error, LOCATION_ERROR_MESSAGES[LocationError.POSITION_UNAVAILABLE])


def format_checkin_message(decision: CheckinDecision, event: Event | None = None) -> str:
    """Message for the outcome of a check-in attempt.

    Pure function.

    Args:
        decision: Check-in decision
        event: Event checked in to (used for the success message)

    Returns:
        Notification text
    """
    outcome = decision.outcome

    if outcome == CheckinOutcome.CHECKED_IN:
        name = event.title if event else "the event"
        return f"Checked in to {name}!"

    if outcome == CheckinOutcome.ALREADY_CHECKED_IN:
        return "You have already checked in to this event."

    if outcome == CheckinOutcome.SIGN_IN_REQUIRED:
        return "Please sign in to check in."

    if outcome == CheckinOutcome.LOCATION_FAILED:
        return format_location_error(decision.location_error or LocationError.POSITION_UNAVAILABLE)

    if decision.distance_m is not None:
        return (
            f"You are too far from the event to check in "
            f"({format_distance(decision.distance_m)} away)."
        )
    return "You are too far from the event to check in."


def format_interest_message(toggle: InterestToggle) -> str:
    """Message after a successful interest toggle.

    Pure function.
    """
    if toggle.action == InterestAction.ADD:
        return "Marked as interested."
    return "Removed from your interested events."


def format_backend_error(action: str, detail: str | None = None) -> str:
    """Message for a failed call to the data service.

    Pure function.

    Example: "Could not save interest. Please try again."
    """
    message = f"Could not {action}. Please try again."
    if detail:
        return f"{message} ({detail})"
    return message


def format_event_popup(event: Event, interest: InterestState) -> dict[str, Any]:
    """Build the payload shown in an event's map marker popup.

    Pure function.
    """
    return {
        "id": event.id,
        "title": event.title,
        "location_name": event.location_name,
        "date_time": event.date_time,
        "description": event.description,
        "category": event.category,
        "position": [event.latitude, event.longitude],
        "interest_count": interest.count,
        "interested": interest.interested,
    }


def format_checkin_summary(summary: CheckinSummary) -> dict[str, Any]:
    """Build the payload for one entry of a user's check-in history.

    Pure function.
    """
    checked_in_at = summary.record.checked_in_at
    return {
        "event_id": summary.record.event_id,
        "title": summary.title,
        "location_name": summary.location_name,
        "date_time": summary.date_time,
        "checked_in_at": checked_in_at.isoformat() if checked_in_at else None,
        "distance_m": summary.record.distance_m,
    }
