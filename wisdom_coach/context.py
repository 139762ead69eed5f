"""
Coaching Context Builder

Aggregates per-entry signals over a lookback window into the
CoachingContext that triggers and prompts work from.

Life-area trends, behavioral patterns and goal progress come from
pluggable producers. The defaults produce nothing; callers with richer
data (ritual logs, goal trackers) pass their own. repeated_negative_moods
is a ready-made behavioral-pattern producer.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, TypeVar
import logging

from .errors import SourceUnavailable
from .life_areas import NEGATIVE_MOODS, should_suggest_ritual
from .models import (
    BehavioralPattern,
    CoachingContext,
    GoalProgress,
    JournalEntry,
    LifeAreaTrend,
    RecentEntry,
    RelationshipDynamic,
    SentimentTrend,
    utc_now,
)
from .signals import EntrySignals, PeopleExtractor, extract_entry_signals
from .store import JournalSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

Producer = Callable[[List[JournalEntry], datetime], List[T]]

RELATIONSHIP_POSITIVE_THRESHOLD = 1.0
RELATIONSHIP_NEGATIVE_THRESHOLD = -1.0
RITUAL_CHECK_DAYS = 7


def no_life_area_trends(entries: List[JournalEntry], now: datetime) -> List[LifeAreaTrend]:
    return []


def no_behavioral_patterns(entries: List[JournalEntry], now: datetime) -> List[BehavioralPattern]:
    return []


def no_goal_progress(entries: List[JournalEntry], now: datetime) -> List[GoalProgress]:
    return []


def repeated_negative_moods(entries: List[JournalEntry], now: datetime) -> List[BehavioralPattern]:
    """
    Behavioral-pattern producer built on should_suggest_ritual.

    Reports one pattern when the last RITUAL_CHECK_DAYS hold enough negative
    moods to suggest a reset ritual, nothing otherwise.
    """
    history = [{"mood": e.mood, "date": e.created_at} for e in entries if e.mood]
    if not should_suggest_ritual(history, days_to_check=RITUAL_CHECK_DAYS, now=now):
        return []

    cutoff = now - timedelta(days=RITUAL_CHECK_DAYS)
    negative = [e for e in entries if e.mood in NEGATIVE_MOODS and e.created_at >= cutoff]
    return [BehavioralPattern(
        pattern="Repeated negative moods",
        frequency=len(negative),
        triggers=sorted({e.mood for e in negative}),
        outcomes=["reset ritual suggested"],
    )]


@dataclass
class _PersonTally:
    mention_frequency: int = 0
    sentiment_sum: int = 0
    last_mentioned: Optional[datetime] = None


def analyze_relationship_dynamics(
    entries: List[JournalEntry],
    signals: Dict[str, EntrySignals],
) -> List[RelationshipDynamic]:
    """
    One dynamic per distinct person mentioned in the window.

    Frequency counts mentioning entries; the trend comes from the average
    sentiment of those entries (> 1 positive, < -1 negative).
    """
    people: Dict[str, _PersonTally] = {}

    for entry in entries:
        entry_signals = signals[entry.id]
        for person in entry_signals.people:
            tally = people.setdefault(person, _PersonTally())
            tally.mention_frequency += 1
            tally.sentiment_sum += entry_signals.sentiment
            if tally.last_mentioned is None or entry.created_at >= tally.last_mentioned:
                tally.last_mentioned = entry.created_at

    dynamics = []
    for person, tally in people.items():
        average = tally.sentiment_sum / tally.mention_frequency
        if average > RELATIONSHIP_POSITIVE_THRESHOLD:
            trend = SentimentTrend.POSITIVE
        elif average < RELATIONSHIP_NEGATIVE_THRESHOLD:
            trend = SentimentTrend.NEGATIVE
        else:
            trend = SentimentTrend.NEUTRAL
        dynamics.append(RelationshipDynamic(
            person=person,
            mention_frequency=tally.mention_frequency,
            sentiment_trend=trend,
            last_mentioned=tally.last_mentioned,
        ))
    return dynamics


class ContextBuilder:
    """Builds a CoachingContext for a user from their journal source."""

    def __init__(
        self,
        journal_source: JournalSource,
        people_extractor: Optional[PeopleExtractor] = None,
        life_area_trends: Producer = no_life_area_trends,
        behavioral_patterns: Producer = no_behavioral_patterns,
        goal_progress: Producer = no_goal_progress,
    ):
        self.journal_source = journal_source
        self.people_extractor = people_extractor
        self.life_area_trends = life_area_trends
        self.behavioral_patterns = behavioral_patterns
        self.goal_progress = goal_progress

    async def fetch_entries(self, user_id: str, lookback_days: int, now: datetime) -> List[JournalEntry]:
        since = now - timedelta(days=lookback_days)
        try:
            entries = await self.journal_source.list_recent_journal_entries(user_id, since)
        except Exception as e:
            logger.error(f"Journal source error for {user_id}: {e}")
            raise SourceUnavailable(user_id, str(e)) from e

        recent = [e for e in entries if e.created_at >= since]
        recent.sort(key=lambda e: e.created_at)
        return recent

    def _produce(self, name: str, producer: Producer, entries: List[JournalEntry], now: datetime) -> list:
        try:
            return list(producer(entries, now) or [])
        except Exception as e:
            logger.warning(f"{name} producer failed: {e}")
            return []

    async def build(
        self,
        user_id: str,
        lookback_days: int = 14,
        now: Optional[datetime] = None,
        include: Optional[List[JournalEntry]] = None,
        journal_lookback_days: Optional[int] = None,
    ) -> CoachingContext:
        """
        Args:
            user_id: Whose journal to read
            lookback_days: Window size in days
            now: Reference time (defaults to current UTC time)
            include: Entries that must be in the window even if the source
                     has not stored them yet (the entry being processed)
            journal_lookback_days: Window for the raw ``journal_entries``
                     when keyword triggers look further back than
                     ``lookback_days``; summaries stay on ``lookback_days``
        """
        now = now or utc_now()
        raw_window = max(lookback_days, journal_lookback_days or 0)
        journal_entries = await self.fetch_entries(user_id, raw_window, now)
        known_ids = {e.id for e in journal_entries}
        included_ids = set()
        for extra in include or []:
            included_ids.add(extra.id)
            if extra.id not in known_ids:
                journal_entries.append(extra)
                known_ids.add(extra.id)
        journal_entries.sort(key=lambda e: e.created_at)

        since = now - timedelta(days=lookback_days)
        entries = [
            e for e in journal_entries
            if e.created_at >= since or e.id in included_ids
        ]

        signals = {e.id: extract_entry_signals(e, self.people_extractor) for e in entries}

        recent_entries = [
            RecentEntry(
                id=e.id,
                title=e.title,
                mood=e.mood or "neutral",
                life_areas=signals[e.id].life_areas,
                sentiment=signals[e.id].sentiment,
                date=e.created_at,
                people=signals[e.id].people,
            )
            for e in entries
        ]

        context = CoachingContext(
            recent_entries=recent_entries,
            life_area_trends=self._produce("Life area trend", self.life_area_trends, entries, now),
            relationship_dynamics=analyze_relationship_dynamics(entries, signals),
            behavioral_patterns=self._produce("Behavioral pattern", self.behavioral_patterns, entries, now),
            goal_progress=self._produce("Goal progress", self.goal_progress, entries, now),
            journal_entries=journal_entries,
        )
        logger.debug(
            f"Built context for {user_id}: {len(recent_entries)} entries, "
            f"{len(context.relationship_dynamics)} people over {lookback_days} days "
            f"({len(journal_entries)} raw entries over {raw_window} days)"
        )
        return context
