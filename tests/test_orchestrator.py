"""
Tests for the Session Orchestrator

End-to-end runs of both session paths against in-memory stores.
"""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from wisdom_coach.config import ActiveSessionPolicy, CoachSettings, parse_trigger_config
from wisdom_coach.errors import PersistenceFailure, SourceUnavailable
from wisdom_coach.generation import TemplateTextGenerator
from wisdom_coach.models import (
    InsightType,
    JournalEntry,
    LifeAreaTrend,
    Priority,
    RecommendationType,
    SessionSource,
    SessionStatus,
    TrendDirection,
)
from wisdom_coach.orchestrator import IMMEDIATE_SUPPORT_CONTEXT, WisdomCoach
from wisdom_coach.store import InMemoryJournalSource, InMemorySessionStore
from wisdom_coach.synthesizer import FALLBACK_TEXT


NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
USER = "user-1"


def _entry(entry_id, body, days_ago, mood=None, mood_score=None):
    return JournalEntry(
        id=entry_id,
        body=body,
        created_at=NOW - timedelta(days=days_ago),
        mood=mood,
        mood_score=mood_score,
    )


def _fortnight_with_angry_days():
    """14 entries over 10 days, three of them angry within the last week."""
    entries = []
    for i in range(14):
        days_ago = 10 * i / 13
        mood = "angry" if i in (0, 1, 2) else "content"
        entries.append(_entry(f"e{i}", "Another ordinary day", days_ago, mood=mood, mood_score=5))
    return entries


class FailingGenerator:
    async def generate(self, template_id, payload):
        raise RuntimeError("model offline")


class BrokenSessionStore(InMemorySessionStore):
    async def save_session(self, session):
        raise ConnectionError("write refused")


class BrokenJournalSource:
    async def list_recent_journal_entries(self, user_id, since):
        raise TimeoutError("journal service timed out")


def _coach(entries=(), store=None, generator=None, **kwargs):
    return WisdomCoach(
        journal_source=InMemoryJournalSource({USER: list(entries)}),
        session_store=store or InMemorySessionStore(),
        generator=generator or TemplateTextGenerator(),
        clock=lambda: NOW,
        **kwargs,
    )


def _run(coro):
    return asyncio.run(coro)


BOUNDARY_FIRST = [
    {"type": "boundary_violation", "threshold": {"occurrences": 1, "timeframe": 3},
     "description": "Clear boundary violation detected"},
    {"type": "negative_mood_pattern", "threshold": {"occurrences": 3, "timeframe": 7},
     "description": "Three or more negative moods in a week"},
]


class TestCheckTriggers:
    """Test cases for the periodic path."""

    def test_negative_mood_opens_mood_trend_session(self):
        store = InMemorySessionStore()
        coach = _coach(_fortnight_with_angry_days(), store=store)
        session = _run(coach.check_triggers(USER))

        assert session is not None
        assert session.triggered_by == SessionSource.MOOD_TREND
        assert session.status == SessionStatus.ACTIVE
        assert session.trigger_context == "Three or more negative moods in a week"
        assert session.created_at == NOW
        assert len(session.insights) >= 1
        assert _run(store.get_session(session.id)) is session

    def test_boundary_keyword_opens_manual_session(self):
        coach = _coach([_entry("b1", "My boss disrespected me in the meeting", 1, mood="neutral")])
        session = _run(coach.check_triggers(USER))

        assert session.triggered_by == SessionSource.MANUAL
        assert session.trigger_context == "Clear boundary violation detected"

    def test_empty_history_returns_none(self):
        store = InMemorySessionStore()
        coach = _coach([], store=store)

        assert _run(coach.check_triggers(USER)) is None
        assert _run(store.list_sessions(USER)) == []

    def test_first_matching_trigger_wins(self):
        entries = _fortnight_with_angry_days() + [
            _entry("b1", "I felt disrespected at dinner", 1, mood="angry"),
        ]

        default_order = _run(_coach(entries).check_triggers(USER))
        boundary_first = _run(_coach(
            entries,
            trigger_loader=lambda user_id: parse_trigger_config(BOUNDARY_FIRST),
        ).check_triggers(USER))

        assert default_order.triggered_by == SessionSource.MOOD_TREND
        assert boundary_first.triggered_by == SessionSource.MANUAL

    def test_empty_trigger_config_uses_defaults(self):
        coach = _coach(_fortnight_with_angry_days(), trigger_loader=lambda user_id: [])
        session = _run(coach.check_triggers(USER))

        assert session.triggered_by == SessionSource.MOOD_TREND

    def test_declining_life_areas_open_collapse_session(self):
        def trends(entries, now):
            return [
                LifeAreaTrend(area_id="finance", trend=TrendDirection.DECLINING, days_since_ritual=20),
                LifeAreaTrend(area_id="health-recovery", trend=TrendDirection.DECLINING, days_since_ritual=3),
            ]

        coach = _coach(
            [_entry("e1", "Quiet week", 2, mood="content")],
            life_area_trends=trends,
        )
        session = _run(coach.check_triggers(USER))

        assert session.triggered_by == SessionSource.LIFE_AREA_COLLAPSE
        assert [r.type for r in session.recommendations] == [RecommendationType.BOUNDARY_RESET]

    def test_generation_failure_still_creates_session(self):
        coach = _coach(_fortnight_with_angry_days(), generator=FailingGenerator())
        session = _run(coach.check_triggers(USER))

        assert session is not None
        assert session.insights[0].description == FALLBACK_TEXT

    def test_persistence_failure_carries_session(self):
        coach = _coach(_fortnight_with_angry_days(), store=BrokenSessionStore())

        with pytest.raises(PersistenceFailure) as exc_info:
            _run(coach.check_triggers(USER))

        session = exc_info.value.session
        assert session.triggered_by == SessionSource.MOOD_TREND
        assert session.insights

    def test_source_failure_raises(self):
        store = InMemorySessionStore()
        coach = WisdomCoach(
            journal_source=BrokenJournalSource(),
            session_store=store,
            generator=TemplateTextGenerator(),
            clock=lambda: NOW,
        )

        with pytest.raises(SourceUnavailable):
            _run(coach.check_triggers(USER))
        assert _run(store.list_sessions(USER)) == []


class TestActiveSessionPolicy:
    """Test cases for the single-active-session option."""

    def test_concurrent_sessions_by_default(self):
        store = InMemorySessionStore()
        coach = _coach(_fortnight_with_angry_days(), store=store)

        first = _run(coach.check_triggers(USER))
        second = _run(coach.check_triggers(USER))

        assert first.id != second.id
        assert len(_run(store.list_sessions(USER))) == 2

    def test_single_active_skips_periodic_run(self):
        store = InMemorySessionStore()
        settings = CoachSettings(active_session_policy=ActiveSessionPolicy.SINGLE_ACTIVE)
        coach = _coach(_fortnight_with_angry_days(), store=store, settings=settings)

        assert _run(coach.check_triggers(USER)) is not None
        assert _run(coach.check_triggers(USER)) is None
        assert len(_run(store.list_sessions(USER))) == 1

    def test_single_active_allows_new_session_after_completion(self):
        store = InMemorySessionStore()
        settings = CoachSettings(active_session_policy=ActiveSessionPolicy.SINGLE_ACTIVE)
        coach = _coach(_fortnight_with_angry_days(), store=store, settings=settings)

        first = _run(coach.check_triggers(USER))
        first.status = SessionStatus.COMPLETED

        assert _run(coach.check_triggers(USER)) is not None

    def test_urgent_path_ignores_policy(self):
        settings = CoachSettings(active_session_policy=ActiveSessionPolicy.SINGLE_ACTIVE)
        coach = _coach(_fortnight_with_angry_days(), settings=settings)
        _run(coach.check_triggers(USER))

        urgent = _entry("u1", "I can't handle this", 0, mood="overwhelmed", mood_score=1)
        assert _run(coach.process_journal_entry(USER, urgent)) is not None


class TestProcessJournalEntry:
    """Test cases for the immediate path."""

    def test_urgent_entry_opens_journal_session(self):
        store = InMemorySessionStore()
        entry = _entry("u1", "I feel hopeless about everything", 0, mood="hopeless", mood_score=2)
        coach = _coach([_entry("e1", "Okay day", 3, mood="content")], store=store)

        session = _run(coach.process_journal_entry(USER, entry))

        assert session.triggered_by == SessionSource.JOURNAL
        assert session.trigger_context == IMMEDIATE_SUPPORT_CONTEXT
        assert session.trigger_entry_id == "u1"
        assert session.to_dict()["triggerData"] == {
            "context": IMMEDIATE_SUPPORT_CONTEXT,
            "entryId": "u1",
        }

        pattern = session.insights[0]
        assert pattern.type == InsightType.PATTERN
        assert pattern.priority == Priority.MEDIUM
        assert pattern.confidence == 85
        assert pattern.evidence == ["u1"]
        assert all(i.evidence == ["u1"] for i in session.insights)

        assert [r.type for r in session.recommendations] == [RecommendationType.MINDSET_SHIFT]
        assert _run(store.get_session(session.id)) is session

    def test_urgent_entry_already_stored(self):
        entry = _entry("u1", "This is a crisis", 0, mood="anxious", mood_score=2)
        coach = _coach([entry])

        session = _run(coach.process_journal_entry(USER, entry))

        assert session.insights[0].evidence == ["u1"]

    def test_calm_entry_returns_none(self):
        store = InMemorySessionStore()
        entry = _entry("c1", "Went for a run, felt good", 0, mood="happy", mood_score=8)
        coach = _coach([], store=store)

        assert _run(coach.process_journal_entry(USER, entry)) is None
        assert _run(store.list_sessions(USER)) == []

    def test_urgent_persistence_failure(self):
        entry = _entry("u1", "I'm giving up", 0)
        coach = _coach([], store=BrokenSessionStore())

        with pytest.raises(PersistenceFailure) as exc_info:
            _run(coach.process_journal_entry(USER, entry))
        assert exc_info.value.session.trigger_entry_id == "u1"

    def test_hopeless_entry_gets_pattern_insight_and_mindset_shift(self):
        entry = JournalEntry(id="h1", body="I feel hopeless", created_at=NOW, mood="hopeless", mood_score=2)
        session = _run(_coach([]).process_journal_entry("u", entry))

        assert session.triggered_by == SessionSource.JOURNAL
        assert any(
            i.type == InsightType.PATTERN and i.priority == Priority.MEDIUM and i.confidence == 85
            for i in session.insights
        )
        assert session.recommendations[0].type == RecommendationType.MINDSET_SHIFT


class TestBoundaryWindow:
    """Test cases for boundary triggers that look past the lookback."""

    LONG_BOUNDARY = [
        {"type": "boundary_violation", "threshold": {"occurrences": 1, "timeframe": 30},
         "description": "Boundary violation this month"},
    ]

    def _coach(self, entries, config=None):
        return _coach(
            entries,
            trigger_loader=lambda user_id: parse_trigger_config(config or self.LONG_BOUNDARY),
        )

    def test_keyword_older_than_lookback_fires(self):
        coach = self._coach([_entry("b1", "My sister disrespected me at the wedding", 20, mood="content")])
        session = _run(coach.check_triggers(USER))

        assert session is not None
        assert session.triggered_by == SessionSource.MANUAL
        assert session.trigger_context == "Boundary violation this month"

    def test_keyword_outside_timeframe_ignored(self):
        coach = self._coach([_entry("b1", "My sister disrespected me at the wedding", 40, mood="content")])
        assert _run(coach.check_triggers(USER)) is None

    def test_summaries_stay_on_lookback(self):
        coach = self._coach([
            _entry("b1", "My sister disrespected me at the wedding", 20, mood="content"),
            _entry("e1", "Quiet day", 2, mood="content"),
        ])
        triggers = coach.load_triggers(USER)
        context = _run(coach.build_context(USER, triggers=triggers))

        assert context.entry_ids == ["e1"]
        assert [e.id for e in context.journal_entries] == ["b1", "e1"]

    def test_disabled_boundary_trigger_keeps_lookback(self):
        config = [dict(self.LONG_BOUNDARY[0], enabled=False)]
        coach = self._coach([_entry("b1", "My sister disrespected me at the wedding", 20)], config=config)

        assert coach.keyword_window(coach.load_triggers(USER)) is None
        context = _run(coach.build_context(USER, triggers=coach.load_triggers(USER)))
        assert context.journal_entries == []
