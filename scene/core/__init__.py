"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Distance and geofence calculations
- Event construction, validation and filtering
- Check-in decisions
- Interest toggling
- Message formatting

All functions here are deterministic and have no I/O.
"""

from scene.core.checkin import CheckinOutcome, LocationError, LocationFix, evaluate_checkin
from scene.core.event import Event, EventDraft, build_event, validate_draft
from scene.core.filters import ALL_CATEGORIES, DateRange, filter_events
from scene.core.geo import CHECKIN_RADIUS_M, GeoPoint, calculate_distance
from scene.core.interest import InterestState, toggle_interest
from scene.core.relations import CheckinRecord, InterestRecord
from scene.core.session import SessionChannel, UserIdentity

__all__ = [
    # Geo
    "CHECKIN_RADIUS_M",
    "GeoPoint",
    "calculate_distance",
    # Events
    "Event",
    "EventDraft",
    "build_event",
    "validate_draft",
    # Filters
    "ALL_CATEGORIES",
    "DateRange",
    "filter_events",
    # Check-in
    "CheckinOutcome",
    "LocationError",
    "LocationFix",
    "evaluate_checkin",
    # Interest
    "InterestState",
    "toggle_interest",
    # Relations
    "CheckinRecord",
    "InterestRecord",
    # Session
    "SessionChannel",
    "UserIdentity",
]
