"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates the flow of data between the pure functional
core and the I/O-performing shell components. It owns the board's view
model, which is replaced as a whole after every successful external call.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone

from scene.core.checkin import (
    CheckinDecision,
    LocationFix,
    evaluate_checkin,
    precheck_checkin,
)
from scene.core.config import Config
from scene.core.event import Event, EventDraft, build_event, find_event, validate_draft
from scene.core.filters import ALL_CATEGORIES, DateRange, default_date_range, filter_events
from scene.core.formatter import (
    format_backend_error,
    format_checkin_message,
    format_event_popup,
    format_interest_message,
)
from scene.core.geo import GeoPoint
from scene.core.interest import InterestAction, InterestState, interest_state_for, toggle_interest
from scene.core.relations import (
    CheckinRecord,
    CheckinSummary,
    InterestRecord,
    count_interests,
    event_ids_for_user,
    join_checkins,
)
from scene.core.session import SessionChannel, UserIdentity
from scene.core.static_map import create_board_map_config, create_event_map_config
from scene.core.validation import ValidationError
from scene.shell.firestore_client import FirestoreClient, FirestoreConfig, StoreError
from scene.shell.geolocation_client import GeolocationClient
from scene.shell.static_map_client import MapImageResult, StaticMapClient


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoardState:
    """In-memory view model of the board.

    Attributes:
        user: Signed-in user, or None
        events: All known events, in stored order
        interest_counts: Interested users per event ID
        interested_event_ids: Events the user is interested in
        checked_in_event_ids: Events the user has checked in to
        checkins: The user's check-in records
    """
    user: UserIdentity | None = None
    events: tuple[Event, ...] = ()
    interest_counts: dict[str, int] = field(default_factory=dict)
    interested_event_ids: frozenset[str] = frozenset()
    checked_in_event_ids: frozenset[str] = frozenset()
    checkins: tuple[CheckinRecord, ...] = ()

    @property
    def user_id(self) -> str | None:
        return self.user.user_id if self.user else None


@dataclass
class ActionResult:
    """Result of a user action.

    Attributes:
        success: Whether the action completed without a backend failure
        message: User-facing notification text
        error: Underlying error detail if failed
    """
    success: bool
    message: str
    error: str | None = None


@dataclass
class EventCreationResult(ActionResult):
    """Result of creating an event.

    Attributes:
        event: The stored event if successful
        validation_errors: Problems with the submission
    """
    event: Event | None = None
    validation_errors: list[ValidationError] = field(default_factory=list)


@dataclass
class InterestResult(ActionResult):
    """Result of toggling interest.

    Attributes:
        state: Interest state after the toggle, if applied
    """
    state: InterestState | None = None


@dataclass
class CheckinResult(ActionResult):
    """Result of a check-in attempt.

    Attributes:
        decision: The gate's decision, if one was reached
    """
    decision: CheckinDecision | None = None

    @property
    def checked_in(self) -> bool:
        return self.success and self.decision is not None and self.decision.permitted


class Orchestrator:
    """Coordinates the event board.

    This class wires together:
    - Firestore client (events, interests, check-ins)
    - Geolocation client (server-side location fixes)
    - Static map client (board snapshots)
    - Core functions (filtering, check-in gate, interest toggle, formatting)

    The current identity comes from the SessionChannel passed in; the
    orchestrator never looks it up anywhere else.
    """

    def __init__(
        self,
        config: Config,
        session: SessionChannel | None = None,
        firestore_client: FirestoreClient | None = None,
        geolocation_client: GeolocationClient | None = None,
        static_map_client: StaticMapClient | None = None,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            session: Identity channel (anonymous if not provided)
            firestore_client: Firestore client (created if not provided)
            geolocation_client: Geolocation client (created if not provided)
            static_map_client: Static map client (created if not provided)
        """
        self.config = config
        self.state = BoardState()
        self._loaded = False
        self.firestore_client = firestore_client or FirestoreClient(
            FirestoreConfig(
                database=config.firestore_database,
                events_collection=config.events_collection,
                interests_collection=config.interests_collection,
                checkins_collection=config.checkins_collection,
            )
        )
        self.geolocation_client = geolocation_client or GeolocationClient(
            api_key=config.geolocation_api_key,
            timeout=config.geolocation_timeout_seconds,
        )
        self.static_map_client = static_map_client or StaticMapClient(config.map.tile_url)
        self.session = session or SessionChannel()
        self._unsubscribe = self.session.subscribe(self._on_identity_change)

    def close(self) -> None:
        """Stop listening to the session channel."""
        self._unsubscribe()

    def _on_identity_change(self, identity: UserIdentity | None) -> None:
        """Swap in the new identity and reload the user's relations."""
        if identity == self.state.user:
            return

        logger.info("Identity changed to %s", identity.user_id if identity else "anonymous")
        self.state = replace(
            self.state,
            user=identity,
            interested_event_ids=frozenset(),
            checked_in_event_ids=frozenset(),
            checkins=(),
        )

        if self._loaded:
            self.refresh()

    @property
    def current_user(self) -> UserIdentity | None:
        return self.state.user

    def refresh(self) -> ActionResult:
        """Reload events and the user's relations from the store.

        Returns:
            ActionResult; on failure the previous state is kept
        """
        user_id = self.state.user_id

        try:
            events = self.firestore_client.list_events()
            interests = self.firestore_client.list_interests()
            checkins = self.firestore_client.list_checkins(user_id) if user_id else []
        except StoreError as e:
            logger.error("Failed to refresh board: %s", e)
            return ActionResult(
                success=False,
                message=format_backend_error("load events"),
                error=str(e),
            )

        self.state = replace(
            self.state,
            events=tuple(events),
            interest_counts=count_interests(interests),
            interested_event_ids=event_ids_for_user(interests, user_id),
            checked_in_event_ids=event_ids_for_user(checkins, user_id),
            checkins=tuple(checkins),
        )
        self._loaded = True

        logger.info(
            "Board refreshed: %d events, %d interests, %d check-ins",
            len(events),
            len(interests),
            len(checkins),
        )
        return ActionResult(success=True, message=f"Loaded {len(events)} events")

    def visible_events(
        self,
        date_range: DateRange | None = None,
        category: str | None = ALL_CATEGORIES,
        today: date | None = None,
    ) -> list[Event]:
        """Events to show on the board for the given filters.

        Args:
            date_range: Inclusive window (defaults to today + configured days)
            category: Category selector, or ALL_CATEGORIES
            today: Current calendar day (defaults to the local date)

        Returns:
            Visible events in stored order
        """
        today = today or date.today()
        date_range = date_range or default_date_range(today, self.config.default_window_days)
        return filter_events(list(self.state.events), date_range, category, today)

    def interest_state(self, event_id: str) -> InterestState:
        """Interest state of an event for the current user."""
        return interest_state_for(
            event_id,
            self.state.interested_event_ids,
            self.state.interest_counts,
        )

    def event_popups(self, events: list[Event]) -> list[dict]:
        """Marker popup payloads for a list of events."""
        return [format_event_popup(e, self.interest_state(e.id)) for e in events]

    def create_event(self, draft: EventDraft) -> EventCreationResult:
        """Validate and store a new event, then add it to the board.

        Args:
            draft: Form submission

        Returns:
            EventCreationResult with the stored event or the problems found
        """
        errors = validate_draft(draft)
        if errors:
            return EventCreationResult(
                success=False,
                message="Please fix the highlighted fields.",
                validation_errors=errors,
            )

        event = build_event(draft, created_by=self.state.user_id, categories=self.config.categories)
        result = self.firestore_client.create_event(event)

        if not result.success:
            return EventCreationResult(
                success=False,
                message=format_backend_error("add event"),
                error=result.error,
            )

        stored = replace(event, id=result.record_id)
        self.state = replace(self.state, events=self.state.events + (stored,))

        logger.info("Added event %s: %s", stored.id, stored.title)
        return EventCreationResult(success=True, message="Event added!", event=stored)

    def toggle_interest(self, event_id: str) -> InterestResult:
        """Flip the current user's interest in an event.

        The local state changes only after the store confirms the write.
        """
        user_id = self.state.user_id
        if user_id is None:
            return InterestResult(success=False, message="Please sign in to mark interest.")

        if find_event(list(self.state.events), event_id) is None:
            return InterestResult(success=False, message="Event not found.")

        toggle = toggle_interest(self.interest_state(event_id))
        record = InterestRecord(user_id=user_id, event_id=event_id)

        if toggle.action == InterestAction.ADD:
            result = self.firestore_client.add_interest(record)
        else:
            result = self.firestore_client.remove_interest(record)

        if not result.success:
            return InterestResult(
                success=False,
                message=format_backend_error("update interest"),
                error=result.error,
            )

        if toggle.state.interested:
            interested = self.state.interested_event_ids | {event_id}
        else:
            interested = self.state.interested_event_ids - {event_id}

        self.state = replace(
            self.state,
            interested_event_ids=interested,
            interest_counts={**self.state.interest_counts, event_id: toggle.state.count},
        )

        return InterestResult(
            success=True,
            message=format_interest_message(toggle),
            state=toggle.state,
        )

    def check_in(self, event_id: str, fix: LocationFix | None = None) -> CheckinResult:
        """Attempt a geofenced check-in.

        Args:
            event_id: Event to check in to
            fix: Location reported by the client; looked up server-side
                 through the geolocation client when None

        Returns:
            CheckinResult with the gate's decision
        """
        event = find_event(list(self.state.events), event_id)
        if event is None:
            return CheckinResult(success=False, message="Event not found.")

        early = precheck_checkin(event_id, self.state.user_id, self.state.checked_in_event_ids)
        if early is not None:
            return CheckinResult(
                success=True,
                message=format_checkin_message(early, event),
                decision=early,
            )

        if fix is None:
            fix = self.geolocation_client.locate()

        decision = evaluate_checkin(
            event,
            self.state.user_id,
            self.state.checked_in_event_ids,
            fix,
            now=datetime.now(timezone.utc),
            radius_m=self.config.checkin_radius_m,
        )

        if not decision.permitted:
            logger.info("Check-in to %s refused: %s", event_id, decision.outcome.value)
            return CheckinResult(
                success=True,
                message=format_checkin_message(decision, event),
                decision=decision,
            )

        result = self.firestore_client.create_checkin(decision.record)
        if not result.success:
            return CheckinResult(
                success=False,
                message=format_backend_error("check in"),
                error=result.error,
                decision=decision,
            )

        self.state = replace(
            self.state,
            checked_in_event_ids=self.state.checked_in_event_ids | {event_id},
            checkins=self.state.checkins + (decision.record,),
        )

        logger.info("User %s checked in to %s (%.1f m)", self.state.user_id, event_id, decision.distance_m)
        return CheckinResult(
            success=True,
            message=format_checkin_message(decision, event),
            decision=decision,
        )

    def checkin_history(self) -> list[CheckinSummary]:
        """The current user's check-ins joined with event summaries."""
        return join_checkins(list(self.state.checkins), list(self.state.events))

    def render_board_map(self, events: list[Event]) -> MapImageResult:
        """Render a snapshot of the given events around the configured center."""
        settings = self.config.map
        map_config = create_board_map_config(
            events,
            center=GeoPoint(settings.center_latitude, settings.center_longitude),
            zoom=settings.zoom,
            width=settings.width,
            height=settings.height,
        )
        return self.static_map_client.generate_map(map_config)

    def render_event_map(self, event_id: str) -> MapImageResult:
        """Render one event with its check-in geofence."""
        event = find_event(list(self.state.events), event_id)
        if event is None:
            return MapImageResult(success=False, error="Event not found")
        return self.static_map_client.generate_map(
            create_event_map_config(event, radius_m=self.config.checkin_radius_m)
        )
