"""Tests for the Orchestrator module.

Tests the coordination between functional core and imperative shell.
Uses mocks for shell components to test orchestration logic.
"""

import math

import pytest
from datetime import date, datetime, timezone
from unittest.mock import Mock, patch

from scene.core.checkin import CheckinOutcome, LocationError, LocationFix
from scene.core.config import Config
from scene.core.event import Event, EventDraft
from scene.core.filters import DateRange
from scene.core.geo import EARTH_RADIUS_M
from scene.core.interest import InterestState
from scene.core.relations import CheckinRecord, InterestRecord
from scene.core.session import SessionChannel, UserIdentity
from scene.orchestrator import Orchestrator
from scene.shell.firestore_client import StoreError, StoreResult
from scene.shell.static_map_client import MapImageResult


ALICE = UserIdentity(user_id="alice", display_name="Alice")
BOB = UserIdentity(user_id="bob", display_name="Bob")


@pytest.fixture
def equator_event():
    return Event(
        id="evt-1",
        title="Equator Party",
        location_name="Null Island",
        date_time="2024-03-22 19:00",
        description="Party at the origin.",
        latitude=0.0,
        longitude=0.0,
        category="Music",
    )


@pytest.fixture
def art_event():
    return Event(
        id="evt-2",
        title="Art Exhibition Opening",
        location_name="British Museum",
        date_time="2024-03-25 18:30",
        description="Contemporary art.",
        latitude=51.5194,
        longitude=-0.1270,
        category="Art",
    )


@pytest.fixture
def mock_store(equator_event, art_event):
    store = Mock()
    store.list_events.return_value = [equator_event, art_event]
    store.list_interests.return_value = [
        InterestRecord("bob", "evt-1"),
        InterestRecord("alice", "evt-2"),
        InterestRecord("bob", "evt-2"),
    ]
    store.list_checkins.return_value = []
    store.create_event.return_value = StoreResult(success=True, record_id="new-id")
    store.add_interest.return_value = StoreResult(success=True, record_id="k")
    store.remove_interest.return_value = StoreResult(success=True, record_id="k")
    store.create_checkin.return_value = StoreResult(success=True, record_id="k")
    return store


@pytest.fixture
def mock_geolocation():
    return Mock()


@pytest.fixture
def mock_map_client():
    client = Mock()
    client.generate_map.return_value = MapImageResult(success=True, image_bytes=b"png")
    return client


def make_orchestrator(store, user=None, geolocation=None, map_client=None, config=None):
    orchestrator = Orchestrator(
        config or Config(),
        session=SessionChannel(user),
        firestore_client=store,
        geolocation_client=geolocation or Mock(),
        static_map_client=map_client or Mock(),
    )
    orchestrator.refresh()
    return orchestrator


def fix_east(meters: float) -> LocationFix:
    return LocationFix.at(0.0, math.degrees(meters / EARTH_RADIUS_M))


class TestOrchestratorInit:
    def test_builds_shell_clients_from_config(self):
        config = Config(firestore_database="scene", geolocation_api_key="geo-key")

        with patch("scene.orchestrator.FirestoreClient") as MockStore, \
             patch("scene.orchestrator.GeolocationClient") as MockGeo, \
             patch("scene.orchestrator.StaticMapClient") as MockMap:
            Orchestrator(config)

        assert MockStore.call_args.args[0].database == "scene"
        MockGeo.assert_called_once_with(api_key="geo-key", timeout=10)
        MockMap.assert_called_once_with(config.map.tile_url)

    def test_anonymous_by_default(self, mock_store):
        assert make_orchestrator(mock_store).current_user is None


class TestRefresh:
    def test_loads_board_for_user(self, mock_store):
        mock_store.list_checkins.return_value = [CheckinRecord("alice", "evt-2")]

        orchestrator = make_orchestrator(mock_store, ALICE)

        state = orchestrator.state
        assert [e.id for e in state.events] == ["evt-1", "evt-2"]
        assert state.interest_counts == {"evt-1": 1, "evt-2": 2}
        assert state.interested_event_ids == frozenset({"evt-2"})
        assert state.checked_in_event_ids == frozenset({"evt-2"})
        mock_store.list_checkins.assert_called_once_with("alice")

    def test_anonymous_skips_checkins(self, mock_store):
        orchestrator = make_orchestrator(mock_store)

        assert orchestrator.state.interested_event_ids == frozenset()
        mock_store.list_checkins.assert_not_called()

    def test_failure_keeps_previous_state(self, mock_store):
        orchestrator = make_orchestrator(mock_store, ALICE)
        before = orchestrator.state
        mock_store.list_events.side_effect = StoreError("unavailable")

        result = orchestrator.refresh()

        assert result.success is False
        assert result.message == "Could not load events. Please try again."
        assert orchestrator.state is before


class TestIdentityChanges:
    def test_sign_in_reloads_relations(self, mock_store):
        session = SessionChannel()
        orchestrator = Orchestrator(
            Config(), session=session, firestore_client=mock_store,
            geolocation_client=Mock(), static_map_client=Mock(),
        )
        orchestrator.refresh()

        session.publish(ALICE)

        assert orchestrator.current_user == ALICE
        assert orchestrator.state.interested_event_ids == frozenset({"evt-2"})
        assert mock_store.list_events.call_count == 2

    def test_switching_user_resets_personal_sets(self, mock_store):
        session = SessionChannel(ALICE)
        orchestrator = Orchestrator(
            Config(), session=session, firestore_client=mock_store,
            geolocation_client=Mock(), static_map_client=Mock(),
        )
        orchestrator.refresh()

        session.publish(BOB)

        assert orchestrator.state.interested_event_ids == frozenset({"evt-1", "evt-2"})

    def test_sign_out_clears_user(self, mock_store):
        session = SessionChannel(ALICE)
        orchestrator = Orchestrator(
            Config(), session=session, firestore_client=mock_store,
            geolocation_client=Mock(), static_map_client=Mock(),
        )
        orchestrator.refresh()

        session.publish(None)

        assert orchestrator.current_user is None
        assert orchestrator.state.interested_event_ids == frozenset()
        assert orchestrator.state.checked_in_event_ids == frozenset()

    def test_close_stops_listening(self, mock_store):
        session = SessionChannel()
        orchestrator = Orchestrator(
            Config(), session=session, firestore_client=mock_store,
            geolocation_client=Mock(), static_map_client=Mock(),
        )

        orchestrator.close()
        session.publish(ALICE)

        assert orchestrator.current_user is None


class TestVisibleEvents:
    def test_filters_by_window_and_category(self, mock_store):
        orchestrator = make_orchestrator(mock_store)
        today = date(2024, 3, 20)

        week = DateRange(date(2024, 3, 20), date(2024, 3, 27))
        assert [e.id for e in orchestrator.visible_events(week, "all", today)] == ["evt-1", "evt-2"]
        assert [e.id for e in orchestrator.visible_events(week, "Art", today)] == ["evt-2"]

    def test_default_window_from_config(self, mock_store):
        orchestrator = make_orchestrator(mock_store, config=Config(default_window_days=3))

        visible = orchestrator.visible_events(today=date(2024, 3, 20))

        assert [e.id for e in visible] == ["evt-1"]

    def test_popups_include_interest(self, mock_store, art_event):
        orchestrator = make_orchestrator(mock_store, ALICE)

        popup = orchestrator.event_popups([art_event])[0]

        assert popup["interest_count"] == 2
        assert popup["interested"] is True


class TestCreateEvent:
    @pytest.fixture
    def draft(self):
        return EventDraft(
            title="Food Market",
            location_name="Borough Market",
            date="2024-03-23",
            time="10:00",
            description="Street food stalls.",
            latitude=51.5055,
            longitude=-0.0910,
            category="Food",
        )

    def test_stores_and_appends(self, mock_store, draft):
        orchestrator = make_orchestrator(mock_store, ALICE)

        result = orchestrator.create_event(draft)

        assert result.success is True
        assert result.message == "Event added!"
        assert result.event.id == "new-id"
        assert result.event.created_by == "alice"
        assert orchestrator.state.events[-1] == result.event
        stored = mock_store.create_event.call_args.args[0]
        assert stored.category == "Food"

    def test_anonymous_creation_allowed(self, mock_store, draft):
        orchestrator = make_orchestrator(mock_store)

        result = orchestrator.create_event(draft)

        assert result.success is True
        assert result.event.created_by is None

    def test_validation_errors_skip_store(self, mock_store):
        orchestrator = make_orchestrator(mock_store)
        draft = EventDraft("", "", "2024-03-23", "25:00", "", 0, 0)

        result = orchestrator.create_event(draft)

        assert result.success is False
        assert {e.field for e in result.validation_errors} >= {"title", "date_time"}
        mock_store.create_event.assert_not_called()

    def test_store_failure(self, mock_store, draft):
        mock_store.create_event.return_value = StoreResult(success=False, error="boom")
        orchestrator = make_orchestrator(mock_store)

        result = orchestrator.create_event(draft)

        assert result.success is False
        assert result.message == "Could not add event. Please try again."
        assert len(orchestrator.state.events) == 2


class TestToggleInterest:
    def test_add_then_remove(self, mock_store):
        orchestrator = make_orchestrator(mock_store, ALICE)

        added = orchestrator.toggle_interest("evt-1")
        assert added.success is True
        assert added.state == InterestState(interested=True, count=2)
        mock_store.add_interest.assert_called_once_with(InterestRecord("alice", "evt-1"))

        removed = orchestrator.toggle_interest("evt-1")
        assert removed.state == InterestState(interested=False, count=1)
        mock_store.remove_interest.assert_called_once_with(InterestRecord("alice", "evt-1"))
        assert orchestrator.interest_state("evt-1") == InterestState(False, 1)

    def test_requires_sign_in(self, mock_store):
        orchestrator = make_orchestrator(mock_store)

        result = orchestrator.toggle_interest("evt-1")

        assert result.success is False
        mock_store.add_interest.assert_not_called()

    def test_unknown_event(self, mock_store):
        orchestrator = make_orchestrator(mock_store, ALICE)
        assert orchestrator.toggle_interest("nope").message == "Event not found."

    def test_store_failure_leaves_state(self, mock_store):
        mock_store.add_interest.return_value = StoreResult(success=False, error="down")
        orchestrator = make_orchestrator(mock_store, ALICE)

        result = orchestrator.toggle_interest("evt-1")

        assert result.success is False
        assert orchestrator.interest_state("evt-1") == InterestState(False, 1)


class TestCheckIn:
    def test_within_radius(self, mock_store):
        orchestrator = make_orchestrator(mock_store, ALICE)

        result = orchestrator.check_in("evt-1", fix_east(50))

        assert result.checked_in is True
        assert result.message == "Checked in to Equator Party!"
        record = mock_store.create_checkin.call_args.args[0]
        assert record.user_id == "alice"
        assert record.event_id == "evt-1"
        assert record.checked_in_at.tzinfo == timezone.utc
        assert "evt-1" in orchestrator.state.checked_in_event_ids

    def test_too_far_not_stored(self, mock_store):
        orchestrator = make_orchestrator(mock_store, ALICE)

        result = orchestrator.check_in("evt-1", fix_east(250))

        assert result.success is True
        assert result.checked_in is False
        assert result.decision.outcome == CheckinOutcome.TOO_FAR
        mock_store.create_checkin.assert_not_called()

    def test_configured_radius(self, mock_store):
        orchestrator = make_orchestrator(mock_store, ALICE, config=Config(checkin_radius_m=300))
        assert orchestrator.check_in("evt-1", fix_east(250)).checked_in is True

    def test_second_check_in_is_noop(self, mock_store, mock_geolocation):
        orchestrator = make_orchestrator(mock_store, ALICE, geolocation=mock_geolocation)
        orchestrator.check_in("evt-1", fix_east(10))

        result = orchestrator.check_in("evt-1")

        assert result.decision.outcome == CheckinOutcome.ALREADY_CHECKED_IN
        assert mock_store.create_checkin.call_count == 1
        mock_geolocation.locate.assert_not_called()

    def test_already_checked_in_from_store(self, mock_store, mock_geolocation):
        mock_store.list_checkins.return_value = [CheckinRecord("alice", "evt-1")]
        orchestrator = make_orchestrator(mock_store, ALICE, geolocation=mock_geolocation)

        result = orchestrator.check_in("evt-1")

        assert result.decision.outcome == CheckinOutcome.ALREADY_CHECKED_IN
        mock_geolocation.locate.assert_not_called()

    def test_anonymous_needs_sign_in(self, mock_store, mock_geolocation):
        orchestrator = make_orchestrator(mock_store, geolocation=mock_geolocation)

        result = orchestrator.check_in("evt-1")

        assert result.decision.outcome == CheckinOutcome.SIGN_IN_REQUIRED
        mock_geolocation.locate.assert_not_called()

    def test_looks_up_location_when_not_given(self, mock_store, mock_geolocation):
        mock_geolocation.locate.return_value = fix_east(20)
        orchestrator = make_orchestrator(mock_store, ALICE, geolocation=mock_geolocation)

        assert orchestrator.check_in("evt-1").checked_in is True
        mock_geolocation.locate.assert_called_once()

    def test_sensor_error(self, mock_store, mock_geolocation):
        mock_geolocation.locate.return_value = LocationFix.failed(LocationError.PERMISSION_DENIED)
        orchestrator = make_orchestrator(mock_store, ALICE, geolocation=mock_geolocation)

        result = orchestrator.check_in("evt-1")

        assert result.decision.location_error == LocationError.PERMISSION_DENIED
        assert "permission denied" in result.message.lower()
        mock_store.create_checkin.assert_not_called()

    def test_store_failure(self, mock_store):
        mock_store.create_checkin.return_value = StoreResult(success=False, error="down")
        orchestrator = make_orchestrator(mock_store, ALICE)

        result = orchestrator.check_in("evt-1", fix_east(10))

        assert result.success is False
        assert result.checked_in is False
        assert "evt-1" not in orchestrator.state.checked_in_event_ids

    def test_unknown_event(self, mock_store):
        orchestrator = make_orchestrator(mock_store, ALICE)
        assert orchestrator.check_in("nope", fix_east(0)).success is False


class TestCheckinHistory:
    def test_joined_newest_first(self, mock_store):
        mock_store.list_checkins.return_value = [
            CheckinRecord("alice", "evt-1", datetime(2024, 3, 22, 19, 5, tzinfo=timezone.utc)),
            CheckinRecord("alice", "evt-2", datetime(2024, 3, 25, 18, 40, tzinfo=timezone.utc)),
        ]
        orchestrator = make_orchestrator(mock_store, ALICE)

        history = orchestrator.checkin_history()

        assert [s.title for s in history] == ["Art Exhibition Opening", "Equator Party"]


class TestRenderMaps:
    def test_board_map_uses_configured_center(self, mock_store, mock_map_client, art_event):
        orchestrator = make_orchestrator(mock_store, map_client=mock_map_client)

        result = orchestrator.render_board_map([art_event])

        assert result.success is True
        map_config = mock_map_client.generate_map.call_args.args[0]
        assert (map_config.latitude, map_config.longitude) == (51.505, -0.09)
        assert len(map_config.markers) == 1

    def test_event_map_has_geofence(self, mock_store, mock_map_client):
        orchestrator = make_orchestrator(mock_store, map_client=mock_map_client)

        orchestrator.render_event_map("evt-1")

        map_config = mock_map_client.generate_map.call_args.args[0]
        assert map_config.geofence
        assert (map_config.latitude, map_config.longitude) == (0.0, 0.0)

    def test_event_map_unknown_event(self, mock_store, mock_map_client):
        orchestrator = make_orchestrator(mock_store, map_client=mock_map_client)

        assert orchestrator.render_event_map("nope").success is False
        mock_map_client.generate_map.assert_not_called()
