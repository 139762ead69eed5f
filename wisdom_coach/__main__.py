#!/usr/bin/env python3
"""
Wisdom Coach - Main Runner

Usage:
    python -m wisdom_coach demo             # Run both session paths on sample entries
    python -m wisdom_coach check USER_ID    # Periodic trigger check against MongoDB
"""

import argparse
import asyncio
import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from .config import CoachSettings, configure_logging, load_settings, parse_trigger_config
from .context import repeated_negative_moods
from .errors import CoachEngineError
from .generation import create_text_generator
from .models import CoachingSession, JournalEntry, utc_now
from .orchestrator import WisdomCoach
from .store import (
    InMemoryJournalSource,
    InMemorySessionStore,
    MongoCoachConfigSource,
    MongoJournalSource,
    MongoSessionStore,
    create_mongo_database,
)

logger = logging.getLogger(__name__)

DEMO_USER = "demo_user"


def print_header(text: str):
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def print_session(session: Optional[CoachingSession]):
    if session is None:
        print("No coaching session opened.")
        return
    print(json.dumps(session.to_dict(), indent=2))


def sample_entries(now: datetime) -> List[JournalEntry]:
    """A rough week with a strained work relationship."""
    days = [
        (9, "content", 6, "Good walk with the dog, grateful for the quiet"),
        (6, "anxious", 4, "Deadline moved up again. @Jordan dumped the report on me"),
        (4, "frustrated", 4, "@Jordan took credit in the meeting. Awful"),
        (3, "sad", 3, "Skipped the gym, tired and stressed about money"),
        (1, "angry", 4, "Worked late again, terrible day"),
    ]
    return [
        JournalEntry(
            id=f"demo_{i}",
            body=body,
            created_at=now - timedelta(days=days_ago),
            mood=mood,
            mood_score=score,
        )
        for i, (days_ago, mood, score, body) in enumerate(days)
    ]


async def run_demo(settings: CoachSettings):
    now = utc_now()
    coach = WisdomCoach(
        journal_source=InMemoryJournalSource({DEMO_USER: sample_entries(now)}),
        session_store=InMemorySessionStore(),
        generator=create_text_generator(settings),
        behavioral_patterns=repeated_negative_moods,
        settings=settings,
    )

    print_header("Periodic trigger check")
    print_session(await coach.check_triggers(DEMO_USER))

    print_header("Urgent journal entry")
    urgent = JournalEntry(
        id="demo_urgent",
        body="I feel hopeless, I can't handle work anymore",
        created_at=now,
        mood="overwhelmed",
        mood_score=2,
    )
    print_session(await coach.process_journal_entry(DEMO_USER, urgent))


async def run_check(settings: CoachSettings, user_id: str):
    db = create_mongo_database(settings.mongodb_uri, settings.database_name)
    config = await MongoCoachConfigSource(db).get_config(user_id)
    triggers = parse_trigger_config(config.triggers) if config else []

    coach = WisdomCoach(
        journal_source=MongoJournalSource(db),
        session_store=MongoSessionStore(db),
        generator=create_text_generator(settings),
        trigger_loader=lambda _: triggers,
        behavioral_patterns=repeated_negative_moods,
        settings=settings,
        preferences=config.prompt_preferences() if config else None,
    )
    print_session(await coach.check_triggers(user_id))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Wisdom Coach - journal-driven coaching sessions"
    )
    parser.add_argument(
        "mode",
        nargs="?",
        default="demo",
        choices=["demo", "check"],
        help="Run mode: demo (sample data, in memory) or check (MongoDB)"
    )
    parser.add_argument("user_id", nargs="?", help="User to check (check mode)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    settings = load_settings()

    try:
        if args.mode == "demo":
            asyncio.run(run_demo(settings))
        elif args.mode == "check":
            if not args.user_id:
                parser.error("check mode needs a USER_ID")
            asyncio.run(run_check(settings, args.user_id))
    except CoachEngineError as e:
        logger.error(f"Coaching run failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
