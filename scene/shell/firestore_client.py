"""Firestore Client - Imperative Shell.

This module handles persistence of events, interest records and check-in
records. Uses Google Cloud Firestore.

All I/O is contained here; relation and check-in logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from scene.core.event import Event, event_to_document, parse_event
from scene.core.relations import CheckinRecord, InterestRecord


logger = logging.getLogger(__name__)


DEFAULT_EVENTS_COLLECTION = "events"
DEFAULT_INTERESTS_COLLECTION = "interests"
DEFAULT_CHECKINS_COLLECTION = "checkins"


class StoreError(Exception):
    """Raised when a read from the data service fails."""


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        events_collection: Collection holding events
        interests_collection: Collection holding interest records
        checkins_collection: Collection holding check-in records
    """
    project_id: str | None = None
    database: str | None = None
    events_collection: str = DEFAULT_EVENTS_COLLECTION
    interests_collection: str = DEFAULT_INTERESTS_COLLECTION
    checkins_collection: str = DEFAULT_CHECKINS_COLLECTION


@dataclass
class StoreResult:
    """Result of a write to the data service.

    Attributes:
        success: Whether the write was applied
        record_id: Identifier of the written document
        error: Error message if failed
    """
    success: bool
    record_id: str | None = None
    error: str | None = None


class FirestoreClient:
    """Client for persisting the event board to Firestore.

    This is part of the imperative shell - it handles database I/O.
    Reads raise StoreError; writes return a StoreResult.

    Document structure:
        events/{auto_id}: title, location_name, date_time, description,
                          latitude, longitude, category, created_by, created_at
        interests/{user_id}__{event_id}: user_id, event_id, created_at
        checkins/{user_id}__{event_id}: user_id, event_id, checked_in_at, distance_m
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore client.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project_id:
                kwargs['project'] = self.config.project_id
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _collection(self, name: str) -> Any:
        return self.client.collection(name)

    # ===== Events =====

    def list_events(self) -> list[Event]:
        """Fetch all events.

        This method performs database I/O. Documents that fail to parse
        are skipped with a warning.

        Returns:
            Events in stored date-time order

        Raises:
            StoreError: If the read fails
        """
        logger.info("Fetching events from Firestore")

        try:
            docs = self._collection(self.config.events_collection).stream()
            events = []
            for doc in docs:
                event = parse_event(doc.id, doc.to_dict() or {})
                if event is None:
                    logger.warning("Skipping malformed event document %s", doc.id)
                    continue
                events.append(event)
        except google_exceptions.GoogleAPIError as e:
            logger.error("Failed to fetch events: %s", str(e))
            raise StoreError(f"Failed to fetch events: {e}") from e

        events.sort(key=lambda e: e.date_time)
        logger.info("Fetched %d events from Firestore", len(events))
        return events

    def create_event(self, event: Event) -> StoreResult:
        """Store a new event and return its assigned ID.

        This method performs database I/O.

        Args:
            event: Event to store (its id is ignored)

        Returns:
            StoreResult with the new document ID
        """
        logger.info("Creating event '%s'", event.title)

        try:
            doc_ref = self._collection(self.config.events_collection).document()
            doc_ref.set({
                **event_to_document(event),
                "created_at": datetime.now(timezone.utc),
            })
            logger.info("Created event %s", doc_ref.id)
            return StoreResult(success=True, record_id=doc_ref.id)

        except google_exceptions.GoogleAPIError as e:
            logger.error("Failed to create event: %s", str(e))
            return StoreResult(success=False, error=str(e))

    # ===== Interests =====

    def list_interests(self) -> list[InterestRecord]:
        """Fetch all interest records (used for per-event counts).

        This method performs database I/O.

        Raises:
            StoreError: If the read fails
        """
        logger.info("Fetching interest records from Firestore")

        try:
            docs = self._collection(self.config.interests_collection).stream()
            records = [
                InterestRecord(user_id=data["user_id"], event_id=data["event_id"])
                for data in (doc.to_dict() or {} for doc in docs)
                if "user_id" in data and "event_id" in data
            ]
        except google_exceptions.GoogleAPIError as e:
            logger.error("Failed to fetch interest records: %s", str(e))
            raise StoreError(f"Failed to fetch interests: {e}") from e

        logger.info("Fetched %d interest records", len(records))
        return records

    def add_interest(self, record: InterestRecord) -> StoreResult:
        """Insert an interest record. Re-adding an existing pair is harmless.

        This method performs database I/O.
        """
        logger.info("Adding interest %s", record.key)

        try:
            self._collection(self.config.interests_collection).document(record.key).set({
                "user_id": record.user_id,
                "event_id": record.event_id,
                "created_at": datetime.now(timezone.utc),
            })
            return StoreResult(success=True, record_id=record.key)

        except google_exceptions.GoogleAPIError as e:
            logger.error("Failed to add interest %s: %s", record.key, str(e))
            return StoreResult(success=False, error=str(e))

    def remove_interest(self, record: InterestRecord) -> StoreResult:
        """Delete an interest record.

        This method performs database I/O.
        """
        logger.info("Removing interest %s", record.key)

        try:
            self._collection(self.config.interests_collection).document(record.key).delete()
            return StoreResult(success=True, record_id=record.key)

        except google_exceptions.GoogleAPIError as e:
            logger.error("Failed to remove interest %s: %s", record.key, str(e))
            return StoreResult(success=False, error=str(e))

    # ===== Check-ins =====

    def list_checkins(self, user_id: str) -> list[CheckinRecord]:
        """Fetch a user's check-in records.

        This method performs database I/O.

        Raises:
            StoreError: If the read fails
        """
        logger.info("Fetching check-ins for user %s", user_id)

        try:
            docs = (
                self._collection(self.config.checkins_collection)
                .where(filter=FieldFilter("user_id", "==", user_id))
                .stream()
            )
            records = []
            for doc in docs:
                data = doc.to_dict() or {}
                records.append(CheckinRecord(
                    user_id=data.get("user_id", user_id),
                    event_id=data["event_id"],
                    checked_in_at=data.get("checked_in_at"),
                    distance_m=data.get("distance_m"),
                ))
        except (google_exceptions.GoogleAPIError, KeyError) as e:
            logger.error("Failed to fetch check-ins: %s", str(e))
            raise StoreError(f"Failed to fetch check-ins: {e}") from e

        logger.info("Fetched %d check-ins", len(records))
        return records

    def create_checkin(self, record: CheckinRecord) -> StoreResult:
        """Append a check-in record.

        Uses create() so an existing record is never overwritten; a
        duplicate is reported as success since the pair is already recorded.

        This method performs database I/O.
        """
        logger.info("Recording check-in %s", record.key)

        try:
            self._collection(self.config.checkins_collection).document(record.key).create({
                "user_id": record.user_id,
                "event_id": record.event_id,
                "checked_in_at": record.checked_in_at or datetime.now(timezone.utc),
                "distance_m": record.distance_m,
            })
            return StoreResult(success=True, record_id=record.key)

        except google_exceptions.AlreadyExists:
            logger.info("Check-in %s already recorded", record.key)
            return StoreResult(success=True, record_id=record.key)

        except google_exceptions.GoogleAPIError as e:
            logger.error("Failed to record check-in %s: %s", record.key, str(e))
            return StoreResult(success=False, error=str(e))
