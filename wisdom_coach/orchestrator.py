"""
Wisdom Coach - Session Orchestrator

Two ways into a coaching session:
1. check_triggers: periodic run over a 14-day context, first firing
   trigger opens the session
2. process_journal_entry: per-entry urgency check that skips the trigger
   table and opens a session on a 7-day context straight away

Sessions are always created active and persisted through the injected
SessionStore. Closing them is the caller's business.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging

from .config import ActiveSessionPolicy, CoachSettings
from .context import ContextBuilder, Producer, no_behavioral_patterns, no_goal_progress, no_life_area_trends
from .errors import PersistenceFailure
from .generation import TextGenerator
from .models import (
    CoachingContext,
    CoachingSession,
    CoachingTrigger,
    JournalEntry,
    SessionSource,
    TriggerType,
    utc_now,
)
from .signals import PeopleExtractor, is_urgent_entry
from .store import JournalSource, SessionStore
from .synthesizer import InsightSynthesizer
from .triggers import DEFAULT_COACHING_TRIGGERS, TriggerEvaluator, session_source_for

logger = logging.getLogger(__name__)


IMMEDIATE_SUPPORT_CONTEXT = "Immediate support needed based on journal entry"

TriggerLoader = Callable[[str], List[CoachingTrigger]]


def default_trigger_loader(user_id: str) -> List[CoachingTrigger]:
    return list(DEFAULT_COACHING_TRIGGERS)


class WisdomCoach:
    """
    Coaching session orchestrator for one deployment.

    Holds no per-user state of its own; everything per user lives in the
    journal source and the session store.
    """

    def __init__(
        self,
        journal_source: JournalSource,
        session_store: SessionStore,
        generator: TextGenerator,
        trigger_loader: TriggerLoader = default_trigger_loader,
        people_extractor: Optional[PeopleExtractor] = None,
        life_area_trends: Producer = no_life_area_trends,
        behavioral_patterns: Producer = no_behavioral_patterns,
        goal_progress: Producer = no_goal_progress,
        settings: Optional[CoachSettings] = None,
        preferences: Optional[Dict[str, Any]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or CoachSettings()
        self.session_store = session_store
        self.trigger_loader = trigger_loader
        self.clock = clock
        self.context_builder = ContextBuilder(
            journal_source,
            people_extractor=people_extractor,
            life_area_trends=life_area_trends,
            behavioral_patterns=behavioral_patterns,
            goal_progress=goal_progress,
        )
        self.evaluator = TriggerEvaluator()
        self.synthesizer = InsightSynthesizer(
            generator,
            timeout=self.settings.generation_timeout,
            preferences=preferences,
        )

    @property
    def policy(self) -> ActiveSessionPolicy:
        return self.settings.active_session_policy

    def load_triggers(self, user_id: str) -> List[CoachingTrigger]:
        triggers = self.trigger_loader(user_id)
        return list(triggers) if triggers else list(DEFAULT_COACHING_TRIGGERS)

    async def build_context(
        self,
        user_id: str,
        lookback_days: Optional[int] = None,
        include: Optional[List[JournalEntry]] = None,
        triggers: Optional[List[CoachingTrigger]] = None,
        now: Optional[datetime] = None,
    ) -> CoachingContext:
        """
        Build the coaching context both paths work from.

        Raw journal entries reach back as far as the longest enabled
        boundary_violation timeframe in ``triggers``, so keyword checks see
        their whole window even when it exceeds the lookback.
        """
        if lookback_days is None:
            lookback_days = self.settings.lookback_days
        return await self.context_builder.build(
            user_id,
            lookback_days,
            now=now or self.clock(),
            include=include,
            journal_lookback_days=self.keyword_window(triggers or []),
        )

    def keyword_window(self, triggers: List[CoachingTrigger]) -> Optional[int]:
        timeframes = [
            t.threshold.timeframe for t in triggers
            if t.type == TriggerType.BOUNDARY_VIOLATION and t.enabled
        ]
        return max(timeframes) if timeframes else None

    # ── Periodic path ───────────────────────────────────────────────────

    async def check_triggers(self, user_id: str) -> Optional[CoachingSession]:
        """
        Evaluate the user's triggers and open a session for the first match.

        Returns None when nothing fires, or when the single-active policy is
        on and the user already has an active session.

        Raises:
            SourceUnavailable: the journal could not be read
            PersistenceFailure: the session was built but could not be saved
        """
        if self.policy == ActiveSessionPolicy.SINGLE_ACTIVE:
            active = await self.session_store.get_active_session(user_id)
            if active is not None:
                logger.info(f"Skipping trigger check for {user_id}: session {active.id} still active")
                return None

        now = self.clock()
        triggers = self.load_triggers(user_id)
        context = await self.build_context(user_id, triggers=triggers, now=now)
        trigger = self.evaluator.evaluate(triggers, context, now)
        if trigger is None:
            return None

        return await self.create_session(user_id, trigger, context)

    async def create_session(
        self,
        user_id: str,
        trigger: CoachingTrigger,
        context: CoachingContext,
    ) -> CoachingSession:
        session = CoachingSession(
            user_id=user_id,
            triggered_by=session_source_for(trigger.type),
            trigger_context=trigger.description,
            created_at=self.clock(),
        )
        await self.synthesizer.populate(session, context)
        logger.info(
            f"Created coaching session {session.id} for {user_id} "
            f"({session.triggered_by.value}, {len(session.insights)} insights, "
            f"{len(session.recommendations)} recommendations)"
        )
        await self.persist_session(session)
        return session

    # ── Immediate path ──────────────────────────────────────────────────

    async def process_journal_entry(self, user_id: str, entry: JournalEntry) -> Optional[CoachingSession]:
        """
        Open an immediate session when the entry signals distress.

        Raises:
            SourceUnavailable: the journal could not be read
            PersistenceFailure: the session was built but could not be saved
        """
        if not is_urgent_entry(entry):
            return None

        logger.info(f"Urgent journal entry {entry.id} for {user_id}; opening immediate session")
        context = await self.build_context(
            user_id, self.settings.urgent_lookback_days, include=[entry]
        )
        return await self.create_immediate_session(user_id, entry, context)

    async def create_immediate_session(
        self,
        user_id: str,
        entry: JournalEntry,
        context: CoachingContext,
    ) -> CoachingSession:
        session = CoachingSession(
            user_id=user_id,
            triggered_by=SessionSource.JOURNAL,
            trigger_context=IMMEDIATE_SUPPORT_CONTEXT,
            trigger_entry_id=entry.id,
            created_at=self.clock(),
        )
        await self.synthesizer.populate(session, context, entry=entry)
        await self.persist_session(session)
        return session

    # ── Persistence ─────────────────────────────────────────────────────

    async def persist_session(self, session: CoachingSession) -> None:
        """Upsert the session; store errors surface as PersistenceFailure."""
        try:
            await self.session_store.save_session(session)
        except Exception as e:
            logger.error(f"Session store write error for {session.id}: {e}")
            raise PersistenceFailure(session, str(e)) from e
