"""Geofenced check-in - Pure functions.

This module decides whether a user may check in to an event, given the
event's position and a location fix for the user. All functions are pure
with no side effects.

Note: Obtaining the location fix and persisting the check-in are handled
by the imperative shell. This module only contains the decision logic.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from scene.core.event import Event
from scene.core.geo import CHECKIN_RADIUS_M, GeoPoint, distance_between, is_valid_coordinate
from scene.core.relations import CheckinRecord


class LocationError(str, Enum):
    """Distinct reasons a location fix could not be obtained."""
    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"


class CheckinOutcome(str, Enum):
    """Result of evaluating a check-in attempt."""
    CHECKED_IN = "checked_in"
    ALREADY_CHECKED_IN = "already_checked_in"
    TOO_FAR = "too_far"
    LOCATION_FAILED = "location_failed"
    SIGN_IN_REQUIRED = "sign_in_required"


@dataclass(frozen=True)
class LocationFix:
    """Outcome of asking the location sensor for a position.

    Exactly one of point or error is set.

    Attributes:
        point: Current position if the sensor succeeded
        error: Failure reason if it did not
        accuracy_m: Reported accuracy radius in meters (optional)
    """
    point: GeoPoint | None = None
    error: LocationError | None = None
    accuracy_m: float | None = None

    @property
    def success(self) -> bool:
        return self.point is not None and self.error is None

    @classmethod
    def at(cls, latitude: float, longitude: float, accuracy_m: float | None = None) -> "LocationFix":
        """Build a successful fix."""
        return cls(point=GeoPoint(latitude, longitude), accuracy_m=accuracy_m)

    @classmethod
    def failed(cls, error: LocationError) -> "LocationFix":
        """Build a failed fix."""
        return cls(error=error)


@dataclass(frozen=True)
class CheckinDecision:
    """Decision for a single check-in attempt.

    Attributes:
        outcome: What happened
        distance_m: Distance to the event, if it was computed
        record: Record to persist when outcome is CHECKED_IN
        location_error: Sensor failure reason for LOCATION_FAILED
    """
    outcome: CheckinOutcome
    distance_m: float | None = None
    record: CheckinRecord | None = None
    location_error: LocationError | None = None

    @property
    def permitted(self) -> bool:
        return self.outcome == CheckinOutcome.CHECKED_IN


def precheck_checkin(
    event_id: str,
    user_id: str | None,
    checked_in_event_ids: frozenset[str],
) -> CheckinDecision | None:
    """Short-circuit a check-in before any location is needed.

    Pure function.

    Args:
        event_id: Event being checked in to
        user_id: Signed-in user, or None
        checked_in_event_ids: Events the user has already checked in to

    Returns:
        A final decision if no location fix is needed, otherwise None
    """
    if user_id is None:
        return CheckinDecision(outcome=CheckinOutcome.SIGN_IN_REQUIRED)

    if event_id in checked_in_event_ids:
        return CheckinDecision(outcome=CheckinOutcome.ALREADY_CHECKED_IN)

    return None


def evaluate_checkin(
    event: Event,
    user_id: str | None,
    checked_in_event_ids: frozenset[str],
    fix: LocationFix,
    now: datetime | None = None,
    radius_m: float = CHECKIN_RADIUS_M,
) -> CheckinDecision:
    """Decide whether a check-in is permitted.

    Pure function. Permitted if and only if the fix lies within radius_m
    of the event (boundary inclusive). An existing check-in short-circuits
    before any distance is computed. A fix that is not a finite in-range
    coordinate is reported as POSITION_UNAVAILABLE.

    Args:
        event: Event being checked in to
        user_id: Signed-in user, or None
        checked_in_event_ids: Events the user has already checked in to
        fix: Location fix from the sensor
        now: Timestamp to stamp on the new record
        radius_m: Geofence radius in meters

    Returns:
        CheckinDecision describing the outcome
    """
    early = precheck_checkin(event.id, user_id, checked_in_event_ids)
    if early is not None:
        return early

    if not fix.success:
        return CheckinDecision(
            outcome=CheckinOutcome.LOCATION_FAILED,
            location_error=fix.error or LocationError.POSITION_UNAVAILABLE,
        )

    if not is_valid_coordinate(fix.point.latitude, fix.point.longitude):
        return CheckinDecision(
            outcome=CheckinOutcome.LOCATION_FAILED,
            location_error=LocationError.POSITION_UNAVAILABLE,
        )

    distance = distance_between(event.position, fix.point)

    # NaN must never satisfy the radius
    if not distance <= radius_m:
        return CheckinDecision(outcome=CheckinOutcome.TOO_FAR, distance_m=distance)

    return CheckinDecision(
        outcome=CheckinOutcome.CHECKED_IN,
        distance_m=distance,
        record=CheckinRecord(
            user_id=user_id,
            event_id=event.id,
            checked_in_at=now,
            distance_m=distance,
        ),
    )
