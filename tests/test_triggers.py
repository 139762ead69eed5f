"""
Tests for Trigger Evaluation Module

Tests each trigger predicate and the first-match evaluation order.
"""

import pytest
from datetime import datetime, timedelta, timezone
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from wisdom_coach.models import (
    CoachingContext,
    CoachingTrigger,
    JournalEntry,
    LifeAreaTrend,
    RecentEntry,
    RelationshipDynamic,
    SentimentTrend,
    SessionSource,
    TrendDirection,
    TriggerThreshold,
    TriggerType,
)
from wisdom_coach.triggers import (
    DEFAULT_COACHING_TRIGGERS,
    TriggerEvaluator,
    boundary_violation,
    life_area_decline,
    negative_mood_pattern,
    relationship_stress,
    session_source_for,
)


NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


def _trigger(trigger_type, occurrences=1, timeframe=7, severity=None, enabled=True):
    return CoachingTrigger(
        type=trigger_type,
        threshold=TriggerThreshold(occurrences=occurrences, timeframe=timeframe, severity=severity),
        description=f"{trigger_type.value} test trigger",
        enabled=enabled,
    )


def _recent(entry_id, mood, days_ago):
    return RecentEntry(
        id=entry_id,
        title=None,
        mood=mood,
        life_areas=[],
        sentiment=0,
        date=NOW - timedelta(days=days_ago),
        people=[],
    )


def _journal(entry_id, body, days_ago):
    return JournalEntry(id=entry_id, body=body, created_at=NOW - timedelta(days=days_ago))


def _strained(person, frequency):
    return RelationshipDynamic(
        person=person,
        mention_frequency=frequency,
        sentiment_trend=SentimentTrend.NEGATIVE,
        last_mentioned=NOW,
    )


class TestNegativeMoodPattern:
    """Test cases for the negative mood pattern predicate."""

    @pytest.fixture
    def trigger(self):
        return _trigger(TriggerType.NEGATIVE_MOOD_PATTERN, occurrences=3, timeframe=7)

    def test_three_negative_moods_fire(self, trigger):
        context = CoachingContext(recent_entries=[
            _recent("a", "angry", 1),
            _recent("b", "sad", 2),
            _recent("c", "anxious", 3),
            _recent("d", "happy", 4),
        ])
        assert negative_mood_pattern(trigger, context, NOW)

    def test_two_negative_moods_do_not_fire(self, trigger):
        context = CoachingContext(recent_entries=[
            _recent("a", "angry", 1),
            _recent("b", "sad", 2),
            _recent("c", "neutral", 3),
        ])
        assert not negative_mood_pattern(trigger, context, NOW)

    def test_moods_outside_timeframe_ignored(self, trigger):
        context = CoachingContext(recent_entries=[
            _recent("a", "angry", 1),
            _recent("b", "sad", 9),
            _recent("c", "hopeless", 12),
        ])
        assert not negative_mood_pattern(trigger, context, NOW)


class TestLifeAreaDecline:
    """Test cases for the life area decline predicate."""

    def test_needs_enough_declining_areas(self):
        trigger = _trigger(TriggerType.LIFE_AREA_DECLINE, occurrences=2, timeframe=14, severity=4)
        one = CoachingContext(life_area_trends=[
            LifeAreaTrend(area_id="finance", trend=TrendDirection.DECLINING, days_since_ritual=0),
            LifeAreaTrend(area_id="family", trend=TrendDirection.STABLE, days_since_ritual=0),
        ])
        two = CoachingContext(life_area_trends=[
            LifeAreaTrend(area_id="finance", trend=TrendDirection.DECLINING, days_since_ritual=0),
            LifeAreaTrend(area_id="family", trend=TrendDirection.DECLINING, days_since_ritual=0),
        ])

        assert not life_area_decline(trigger, one, NOW)
        assert life_area_decline(trigger, two, NOW)

    def test_no_trends_never_fires(self):
        trigger = _trigger(TriggerType.LIFE_AREA_DECLINE, occurrences=2)
        assert not life_area_decline(trigger, CoachingContext(), NOW)


class TestRelationshipStress:
    """Test cases for the relationship stress predicate."""

    def test_fires_on_frequent_negative_person(self):
        trigger = _trigger(TriggerType.RELATIONSHIP_STRESS, occurrences=2)
        context = CoachingContext(relationship_dynamics=[_strained("Sam", 2)])
        assert relationship_stress(trigger, context, NOW)

    def test_single_mention_does_not_fire(self):
        trigger = _trigger(TriggerType.RELATIONSHIP_STRESS, occurrences=2)
        context = CoachingContext(relationship_dynamics=[_strained("Sam", 1)])
        assert not relationship_stress(trigger, context, NOW)

    def test_neutral_person_does_not_fire(self):
        trigger = _trigger(TriggerType.RELATIONSHIP_STRESS, occurrences=2)
        context = CoachingContext(relationship_dynamics=[
            RelationshipDynamic(
                person="Ana",
                mention_frequency=5,
                sentiment_trend=SentimentTrend.NEUTRAL,
                last_mentioned=NOW,
            )
        ])
        assert not relationship_stress(trigger, context, NOW)


class TestBoundaryViolation:
    """Test cases for the boundary violation predicate."""

    @pytest.fixture
    def trigger(self):
        return _trigger(TriggerType.BOUNDARY_VIOLATION, occurrences=1, timeframe=3)

    def test_keyword_fires(self, trigger):
        context = CoachingContext(journal_entries=[
            _journal("a", "My boss disrespected me in the meeting", 1),
        ])
        assert boundary_violation(trigger, context, NOW)

    def test_keyword_case_insensitive(self, trigger):
        context = CoachingContext(journal_entries=[
            _journal("a", "I feel TAKEN ADVANTAGE of", 0),
        ])
        assert boundary_violation(trigger, context, NOW)

    def test_old_entry_ignored(self, trigger):
        context = CoachingContext(journal_entries=[
            _journal("a", "Someone violated my trust", 5),
        ])
        assert not boundary_violation(trigger, context, NOW)

    def test_no_keywords(self, trigger):
        context = CoachingContext(journal_entries=[
            _journal("a", "Lovely walk by the river", 1),
        ])
        assert not boundary_violation(trigger, context, NOW)


class TestTriggerEvaluator:
    """Test cases for TriggerEvaluator."""

    @pytest.fixture
    def evaluator(self):
        return TriggerEvaluator()

    @pytest.fixture
    def stressed_context(self):
        """Context in which both mood and boundary triggers would fire."""
        return CoachingContext(
            recent_entries=[
                _recent("a", "angry", 1),
                _recent("b", "sad", 1),
                _recent("c", "frustrated", 2),
            ],
            journal_entries=[_journal("a", "I was disrespected again", 1)],
        )

    def test_first_match_wins(self, evaluator, stressed_context):
        mood = _trigger(TriggerType.NEGATIVE_MOOD_PATTERN, occurrences=3, timeframe=7)
        boundary = _trigger(TriggerType.BOUNDARY_VIOLATION, occurrences=1, timeframe=3)

        assert evaluator.evaluate([mood, boundary], stressed_context, NOW) is mood
        assert evaluator.evaluate([boundary, mood], stressed_context, NOW) is boundary

    def test_disabled_trigger_skipped(self, evaluator, stressed_context):
        mood = _trigger(TriggerType.NEGATIVE_MOOD_PATTERN, occurrences=3, enabled=False)
        boundary = _trigger(TriggerType.BOUNDARY_VIOLATION, occurrences=1, timeframe=3)

        assert evaluator.evaluate([mood, boundary], stressed_context, NOW) is boundary

    def test_invalid_threshold_skipped(self, evaluator, stressed_context):
        broken = _trigger(TriggerType.NEGATIVE_MOOD_PATTERN, occurrences=-1)
        assert not evaluator.is_active(broken)
        assert evaluator.evaluate([broken], stressed_context, NOW) is None

    def test_nothing_fires(self, evaluator):
        assert evaluator.evaluate(DEFAULT_COACHING_TRIGGERS, CoachingContext(), NOW) is None

    def test_empty_trigger_list(self, evaluator, stressed_context):
        assert evaluator.evaluate([], stressed_context, NOW) is None

    def test_missing_predicate_skipped(self, stressed_context):
        evaluator = TriggerEvaluator(predicates={
            TriggerType.BOUNDARY_VIOLATION: boundary_violation,
        })
        mood = _trigger(TriggerType.NEGATIVE_MOOD_PATTERN, occurrences=3)
        boundary = _trigger(TriggerType.BOUNDARY_VIOLATION, occurrences=1, timeframe=3)

        assert evaluator.evaluate([mood, boundary], stressed_context, NOW) is boundary


class TestDefaults:
    """Test cases for the default trigger table and source mapping."""

    def test_default_order(self):
        assert [t.type for t in DEFAULT_COACHING_TRIGGERS] == [
            TriggerType.NEGATIVE_MOOD_PATTERN,
            TriggerType.LIFE_AREA_DECLINE,
            TriggerType.RELATIONSHIP_STRESS,
            TriggerType.BOUNDARY_VIOLATION,
        ]
        assert all(t.enabled for t in DEFAULT_COACHING_TRIGGERS)

    @pytest.mark.parametrize("trigger_type,source", [
        (TriggerType.NEGATIVE_MOOD_PATTERN, SessionSource.MOOD_TREND),
        (TriggerType.LIFE_AREA_DECLINE, SessionSource.LIFE_AREA_COLLAPSE),
        (TriggerType.RELATIONSHIP_STRESS, SessionSource.UPSET),
        (TriggerType.BOUNDARY_VIOLATION, SessionSource.MANUAL),
    ])
    def test_session_source_mapping(self, trigger_type, source):
        assert session_source_for(trigger_type) == source
