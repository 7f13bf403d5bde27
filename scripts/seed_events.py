#!/usr/bin/env python3
"""Seed the event board with the sample London events.

By default the sample dates are shifted so the first event falls on today,
which keeps them visible under the default date filter.

Usage:
    # Preview the events without writing
    python scripts/seed_events.py --dry-run

    # Write to Firestore using the configured database
    python scripts/seed_events.py

    # Keep the original sample dates
    python scripts/seed_events.py --keep-dates

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
    GCP_PROJECT: GCP project ID for Secret Manager access
"""

import argparse
import logging
import os
import sys
from datetime import date, datetime, timedelta

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scene.core.event import DATE_TIME_FORMAT, EventDraft, build_event, validate_draft
from scene.core.formatter import format_event_summary
from scene.shell.config_loader import load_config
from scene.shell.firestore_client import FirestoreClient, FirestoreConfig

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


SAMPLE_EVENTS = [
    {
        "title": "Jazz Night at the Bridge",
        "location_name": "Tower Bridge",
        "date_time": "2024-03-15 19:00",
        "description": "An evening of smooth jazz performances overlooking the Thames. "
                       "Featuring local artists and refreshments.",
        "position": (51.5055, -0.0754),
        "category": "Music",
    },
    {
        "title": "Art Exhibition Opening",
        "location_name": "British Museum",
        "date_time": "2024-03-18 18:30",
        "description": "Contemporary art exhibition showcasing works from emerging "
                       "London artists. Free entry with refreshments.",
        "position": (51.5194, -0.1270),
        "category": "Art",
    },
    {
        "title": "Summer Music Festival",
        "location_name": "Hyde Park",
        "date_time": "2024-03-20 14:00",
        "description": "Outdoor music festival featuring multiple stages, food vendors, "
                       "and activities for all ages.",
        "position": (51.5074, -0.1657),
        "category": "Music",
    },
    {
        "title": "Tech Meetup",
        "location_name": "London Eye",
        "date_time": "2024-03-22 18:00",
        "description": "Monthly tech meetup for developers and entrepreneurs. Networking, "
                       "talks, and discussions about the latest in tech.",
        "position": (51.5033, -0.1195),
        "category": "Tech",
    },
    {
        "title": "Street Performance Festival",
        "location_name": "Covent Garden",
        "date_time": "2024-03-25 12:00",
        "description": "Weekend street performance festival with musicians, magicians, "
                       "and entertainers throughout the market area.",
        "position": (51.5115, -0.1236),
        "category": "Community",
    },
]


def build_drafts(shift_to: date | None) -> list[EventDraft]:
    """Turn the samples into drafts, optionally shifting their dates.

    Args:
        shift_to: Day the earliest sample should fall on; None keeps dates

    Returns:
        Event drafts in sample order
    """
    parsed = [datetime.strptime(s["date_time"], DATE_TIME_FORMAT) for s in SAMPLE_EVENTS]
    offset = timedelta(0)
    if shift_to is not None:
        offset = timedelta(days=(shift_to - min(parsed).date()).days)

    drafts = []
    for sample, when in zip(SAMPLE_EVENTS, parsed):
        when = when + offset
        latitude, longitude = sample["position"]
        drafts.append(EventDraft(
            title=sample["title"],
            location_name=sample["location_name"],
            date=when.strftime("%Y-%m-%d"),
            time=when.strftime("%H:%M"),
            description=sample["description"],
            latitude=latitude,
            longitude=longitude,
            category=sample["category"],
        ))
    return drafts


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed sample events")
    parser.add_argument("--dry-run", action="store_true", help="Preview only, no writes")
    parser.add_argument("--keep-dates", action="store_true", help="Keep the sample dates")
    parser.add_argument("--config", help="Path to config file")
    args = parser.parse_args()

    config = load_config(args.config)
    drafts = build_drafts(None if args.keep_dates else date.today())

    client = None
    if not args.dry_run:
        client = FirestoreClient(FirestoreConfig(
            database=config.firestore_database,
            events_collection=config.events_collection,
            interests_collection=config.interests_collection,
            checkins_collection=config.checkins_collection,
        ))

    failures = 0
    for draft in drafts:
        errors = validate_draft(draft)
        if errors:
            logger.error("Invalid sample %s: %s", draft.title, errors)
            failures += 1
            continue

        event = build_event(draft, categories=config.categories)

        if client is None:
            print(f"[dry-run] {format_event_summary(event)} [{event.category}]")
            continue

        result = client.create_event(event)
        if result.success:
            logger.info("Created %s: %s", result.record_id, format_event_summary(event))
        else:
            logger.error("Failed to create %s: %s", event.title, result.error)
            failures += 1

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
