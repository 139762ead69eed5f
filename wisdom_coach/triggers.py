"""
Trigger Evaluation Module

Each trigger type maps to one predicate over the coaching context. The
evaluator walks the enabled triggers in declared order and stops at the
first one that fires.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional
import logging

from .config import validate_trigger
from .errors import InvalidTriggerConfig
from .life_areas import NEGATIVE_MOODS
from .models import (
    CoachingContext,
    CoachingTrigger,
    SentimentTrend,
    SessionSource,
    TrendDirection,
    TriggerThreshold,
    TriggerType,
    utc_now,
)

logger = logging.getLogger(__name__)


BOUNDARY_KEYWORDS = (
    "boundary", "violated", "overwhelmed", "used", "taken advantage", "disrespected",
)

DEFAULT_COACHING_TRIGGERS: List[CoachingTrigger] = [
    CoachingTrigger(
        type=TriggerType.NEGATIVE_MOOD_PATTERN,
        threshold=TriggerThreshold(occurrences=3, timeframe=7),
        description="Three or more negative moods in a week",
    ),
    CoachingTrigger(
        type=TriggerType.LIFE_AREA_DECLINE,
        threshold=TriggerThreshold(occurrences=2, timeframe=14, severity=4),
        description="Life area showing declining scores",
    ),
    CoachingTrigger(
        type=TriggerType.RELATIONSHIP_STRESS,
        threshold=TriggerThreshold(occurrences=2, timeframe=7),
        description="Multiple negative mentions of same person",
    ),
    CoachingTrigger(
        type=TriggerType.BOUNDARY_VIOLATION,
        threshold=TriggerThreshold(occurrences=1, timeframe=3),
        description="Clear boundary violation detected",
    ),
]

TRIGGER_SOURCES: Dict[TriggerType, SessionSource] = {
    TriggerType.NEGATIVE_MOOD_PATTERN: SessionSource.MOOD_TREND,
    TriggerType.LIFE_AREA_DECLINE: SessionSource.LIFE_AREA_COLLAPSE,
    TriggerType.RELATIONSHIP_STRESS: SessionSource.UPSET,
}


def session_source_for(trigger_type: TriggerType) -> SessionSource:
    return TRIGGER_SOURCES.get(trigger_type, SessionSource.MANUAL)


def _within(date: datetime, days: int, now: datetime) -> bool:
    return date >= now - timedelta(days=days)


def negative_mood_pattern(trigger: CoachingTrigger, context: CoachingContext, now: datetime) -> bool:
    negative_entries = [
        e for e in context.recent_entries
        if e.mood in NEGATIVE_MOODS and _within(e.date, trigger.threshold.timeframe, now)
    ]
    return len(negative_entries) >= trigger.threshold.occurrences


def life_area_decline(trigger: CoachingTrigger, context: CoachingContext, now: datetime) -> bool:
    declining = [t for t in context.life_area_trends if t.trend == TrendDirection.DECLINING]
    return len(declining) >= trigger.threshold.occurrences


def relationship_stress(trigger: CoachingTrigger, context: CoachingContext, now: datetime) -> bool:
    return any(
        r.sentiment_trend == SentimentTrend.NEGATIVE
        and r.mention_frequency >= trigger.threshold.occurrences
        for r in context.relationship_dynamics
    )


def boundary_violation(trigger: CoachingTrigger, context: CoachingContext, now: datetime) -> bool:
    for entry in context.journal_entries:
        if not _within(entry.created_at, trigger.threshold.timeframe, now):
            continue
        body = (entry.body or "").lower()
        if any(keyword in body for keyword in BOUNDARY_KEYWORDS):
            return True
    return False


TriggerPredicate = Callable[[CoachingTrigger, CoachingContext, datetime], bool]

TRIGGER_PREDICATES: Dict[TriggerType, TriggerPredicate] = {
    TriggerType.NEGATIVE_MOOD_PATTERN: negative_mood_pattern,
    TriggerType.LIFE_AREA_DECLINE: life_area_decline,
    TriggerType.RELATIONSHIP_STRESS: relationship_stress,
    TriggerType.BOUNDARY_VIOLATION: boundary_violation,
}


class TriggerEvaluator:
    """Finds the first enabled trigger whose condition holds."""

    def __init__(self, predicates: Optional[Dict[TriggerType, TriggerPredicate]] = None):
        self.predicates = dict(predicates or TRIGGER_PREDICATES)

    def is_active(self, trigger: CoachingTrigger) -> bool:
        """Enabled, well-formed and backed by a predicate."""
        if not trigger.enabled:
            return False
        try:
            validate_trigger(trigger)
        except InvalidTriggerConfig as e:
            logger.warning(f"{e}; treating as disabled")
            return False
        if trigger.type not in self.predicates:
            logger.warning(f"No predicate registered for trigger {trigger.type.value}")
            return False
        return True

    def evaluate(
        self,
        triggers: Iterable[CoachingTrigger],
        context: CoachingContext,
        now: Optional[datetime] = None,
    ) -> Optional[CoachingTrigger]:
        """
        Return the first firing trigger, or None.

        Args:
            triggers: Trigger definitions in declared order
            context: Coaching context for this cycle
            now: Reference time (defaults to current UTC time)
        """
        now = now or utc_now()
        for trigger in triggers:
            if not self.is_active(trigger):
                continue
            if self.predicates[trigger.type](trigger, context, now):
                logger.info(f"Trigger fired: {trigger.type.value} ({trigger.description})")
                return trigger
        return None
