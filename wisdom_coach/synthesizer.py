"""
Insight & Recommendation Synthesizer

Turns generated coaching text plus the coaching context into structured
insights and recommendations for a session.

Rules:
1. Every generation failure degrades to FALLBACK_TEXT, never aborts.
2. Exactly one recommendation per high/urgent insight.
3. Boundary reset is added once when a life area is declining and the last
   ritual is more than 14 days old, on top of rule 2.
4. Immediate-path sessions always open with a mindset-shift recommendation.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import asyncio
import logging

from .errors import GenerationFailure
from .generation import TextGenerator
from .models import (
    ActionStep,
    CoachingContext,
    CoachingInsight,
    CoachingRecommendation,
    CoachingSession,
    InsightType,
    JournalEntry,
    Priority,
    RecommendationType,
    SentimentTrend,
    TrendDirection,
)
from .prompts import PATTERN_ANALYSIS, RELATIONSHIP_DYNAMICS, UPSET_PROCESSING

logger = logging.getLogger(__name__)


FALLBACK_TEXT = (
    "I'm here to help you reflect on your experiences and find ways to grow. "
    "Let's explore what's happening in your life."
)

DESCRIPTION_LIMIT = 200
PATTERN_CONFIDENCE = 85
RELATIONSHIP_CONFIDENCE = 75
EMOTIONAL_CONFIDENCE = 80
RITUAL_OVERDUE_DAYS = 14

ACTIONABLE_PRIORITIES = (Priority.HIGH, Priority.URGENT)

RELATIONSHIP_LIFE_AREAS = ("family", "intimacy-love", "friendship-community")


@dataclass(frozen=True)
class RecommendationPlan:
    """Template for a recommendation derived from an insight type."""
    type: RecommendationType
    title: str
    description: str
    steps: List[Dict[str, str]]
    timeframe: str
    difficulty: str
    expected_impact: str


RECOMMENDATION_PLANS: Dict[InsightType, RecommendationPlan] = {
    InsightType.RELATIONSHIP: RecommendationPlan(
        type=RecommendationType.RELATIONSHIP_REPAIR,
        title="Repair a Strained Relationship",
        description="Name what you need from this relationship and say it clearly.",
        steps=[
            {"title": "Write down what happened", "description": "Describe the last difficult interaction without judging anyone", "estimated_time": "10 minutes"},
            {"title": "Name your need", "description": "Finish the sentence 'What I need from this relationship is...'", "estimated_time": "5 minutes"},
            {"title": "Plan one honest conversation", "description": "Choose a time and an opening line for the conversation", "estimated_time": "15 minutes"},
        ],
        timeframe="1_week",
        difficulty="challenging",
        expected_impact="high",
    ),
    InsightType.PATTERN: RecommendationPlan(
        type=RecommendationType.HABIT_CHANGE,
        title="Interrupt the Pattern",
        description="Pick one small habit that breaks the cycle you keep writing about.",
        steps=[
            {"title": "Spot the cue", "description": "Note what usually happens right before the pattern starts", "estimated_time": "10 minutes"},
            {"title": "Choose a replacement", "description": "Decide one different action to take next time the cue shows up", "estimated_time": "10 minutes"},
        ],
        timeframe="1_week",
        difficulty="moderate",
        expected_impact="medium",
    ),
    InsightType.BOUNDARY: RecommendationPlan(
        type=RecommendationType.BOUNDARY_RESET,
        title="Complete Boundary Reset Ritual",
        description=(
            "Your recent journal patterns suggest it's time for a boundary reset "
            "to restore emotional balance."
        ),
        steps=[
            {"title": "Start Reset Ritual", "description": "Open the journal and select the life area that needs attention", "estimated_time": "15 minutes"},
        ],
        timeframe="1_day",
        difficulty="moderate",
        expected_impact="high",
    ),
}

DEFAULT_PLAN = RecommendationPlan(
    type=RecommendationType.MINDSET_SHIFT,
    title="Reframe Current Challenge",
    description="Focus on what you can control in this situation",
    steps=[
        {"title": "List 3 things within your control", "description": "Write down specific actions you can take", "estimated_time": "10 minutes"},
    ],
    timeframe="1_day",
    difficulty="easy",
    expected_impact="medium",
)


def summarize(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def needs_reset_ritual(context: CoachingContext) -> bool:
    return any(
        t.trend == TrendDirection.DECLINING and t.days_since_ritual > RITUAL_OVERDUE_DAYS
        for t in context.life_area_trends
    )


def recommendation_from_plan(plan: RecommendationPlan, session_id: str) -> CoachingRecommendation:
    """Instantiate a plan; the first step is the required one."""
    return CoachingRecommendation(
        session_id=session_id,
        type=plan.type,
        title=plan.title,
        description=plan.description,
        action_steps=[
            ActionStep(
                title=step["title"],
                description=step["description"],
                order=index,
                estimated_time=step["estimated_time"],
                required=index == 1,
            )
            for index, step in enumerate(plan.steps, start=1)
        ],
        timeframe=plan.timeframe,
        difficulty=plan.difficulty,
        expected_impact=plan.expected_impact,
    )


def create_boundary_reset_recommendation(session_id: str) -> CoachingRecommendation:
    return recommendation_from_plan(RECOMMENDATION_PLANS[InsightType.BOUNDARY], session_id)


def create_mindset_shift_recommendation(session_id: str) -> CoachingRecommendation:
    return recommendation_from_plan(DEFAULT_PLAN, session_id)


def create_recommendation_from_insight(insight: CoachingInsight, session_id: str) -> CoachingRecommendation:
    return recommendation_from_plan(RECOMMENDATION_PLANS.get(insight.type, DEFAULT_PLAN), session_id)


class InsightSynthesizer:
    """Populates sessions with insights and recommendations."""

    def __init__(
        self,
        generator: TextGenerator,
        timeout: Optional[float] = 30.0,
        preferences: Optional[Dict[str, Any]] = None,
    ):
        self.generator = generator
        self.timeout = timeout
        self.preferences = preferences or {}

    async def generate_text(self, template_id: str, payload: Dict[str, Any]) -> str:
        """Call the generator; any failure or timeout yields FALLBACK_TEXT."""
        payload = {**payload, "preferences": self.preferences}
        try:
            text = await asyncio.wait_for(
                self.generator.generate(template_id, payload), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            failure = GenerationFailure(template_id, f"timed out after {self.timeout}s")
            logger.warning(f"{failure}; using fallback text")
            return FALLBACK_TEXT
        except Exception as e:
            failure = e if isinstance(e, GenerationFailure) else GenerationFailure(template_id, str(e))
            logger.warning(f"{failure}; using fallback text")
            return FALLBACK_TEXT

        if not isinstance(text, str) or not text.strip():
            logger.warning(f"Empty {template_id} text; using fallback text")
            return FALLBACK_TEXT
        return text.strip()

    # ── Insights ────────────────────────────────────────────────────────

    def parse_insights(
        self,
        text: str,
        entry: Optional[JournalEntry] = None,
        insight_type: InsightType = InsightType.PATTERN,
        title: str = "Emotional Processing Pattern",
        priority: Priority = Priority.MEDIUM,
        confidence: int = PATTERN_CONFIDENCE,
        evidence: Optional[List[str]] = None,
        life_areas: Optional[List[str]] = None,
    ) -> List[CoachingInsight]:
        """Structure generated text into insights (currently one per text)."""
        if evidence is None:
            evidence = [entry.id] if entry else []
        if life_areas is None:
            life_areas = list(entry.linked_life_areas) if entry else []
        return [CoachingInsight(
            type=insight_type,
            title=title,
            description=summarize(text),
            confidence=confidence,
            priority=priority,
            evidence=evidence,
            life_areas_affected=life_areas,
        )]

    async def generate_insights(
        self,
        session: CoachingSession,
        context: CoachingContext,
    ) -> List[CoachingInsight]:
        context_payload = context.to_dict()
        pattern_text = await self.generate_text(PATTERN_ANALYSIS, {
            "context": context_payload,
            "entries": context_payload["recent_entries"],
        })

        window_ids = set(context.entry_ids)
        evidence = [session.trigger_entry_id] if session.trigger_entry_id in window_ids else []
        insights = self.parse_insights(pattern_text, evidence=evidence, life_areas=[])

        strained = [
            r.person for r in context.relationship_dynamics
            if r.sentiment_trend == SentimentTrend.NEGATIVE
        ]
        if strained:
            insights.extend(await self._relationship_insights(context, strained))

        return insights

    async def _relationship_insights(
        self,
        context: CoachingContext,
        strained: List[str],
    ) -> List[CoachingInsight]:
        mentioning = [
            e for e in context.recent_entries
            if any(person in e.people for person in strained)
        ]
        mentions = [
            e.to_dict() for e in context.recent_entries
            if any(area in e.life_areas for area in RELATIONSHIP_LIFE_AREAS)
        ]
        text = await self.generate_text(RELATIONSHIP_DYNAMICS, {
            "relationships": [r.to_dict() for r in context.relationship_dynamics],
            "mentions": mentions,
            "patterns": [p.to_dict() for p in context.behavioral_patterns],
        })

        life_areas: List[str] = []
        for e in mentioning:
            for area in e.life_areas:
                if area not in life_areas:
                    life_areas.append(area)

        return self.parse_insights(
            text,
            insight_type=InsightType.RELATIONSHIP,
            title=f"Tension with {', '.join(strained)}",
            priority=Priority.HIGH,
            confidence=RELATIONSHIP_CONFIDENCE,
            evidence=[e.id for e in mentioning],
            life_areas=life_areas,
        )

    async def generate_immediate_insights(
        self,
        entry: JournalEntry,
        context: CoachingContext,
    ) -> List[CoachingInsight]:
        """
        Insights for the entry that asked for immediate support.

        The standard pattern insight comes first, then an emotional one
        focused on the entry. Both cite the entry and stay at medium
        priority; the immediate path's recommendation is added by
        populate rather than derived from these.
        """
        text = await self.generate_text(UPSET_PROCESSING, {
            "situation": entry.body,
            "mood": entry.mood or "distressed",
            "context": context.to_dict(),
        })
        life_areas = next(
            (e.life_areas for e in context.recent_entries if e.id == entry.id),
            list(entry.linked_life_areas),
        )
        insights = self.parse_insights(text, entry=entry, life_areas=list(life_areas))
        insights.extend(self.parse_insights(
            text,
            entry=entry,
            insight_type=InsightType.EMOTIONAL,
            title="Immediate Support",
            confidence=EMOTIONAL_CONFIDENCE,
            life_areas=list(life_areas),
        ))
        return insights

    # ── Recommendations ─────────────────────────────────────────────────

    def generate_recommendations(
        self,
        session: CoachingSession,
        context: CoachingContext,
    ) -> List[CoachingRecommendation]:
        recommendations = [
            create_recommendation_from_insight(insight, session.id)
            for insight in session.insights
            if insight.priority in ACTIONABLE_PRIORITIES
        ]

        # A high boundary insight already carries the reset
        has_reset = any(r.type == RecommendationType.BOUNDARY_RESET for r in recommendations)
        if needs_reset_ritual(context) and not has_reset:
            recommendations.append(create_boundary_reset_recommendation(session.id))

        return recommendations

    async def populate(
        self,
        session: CoachingSession,
        context: CoachingContext,
        entry: Optional[JournalEntry] = None,
    ) -> CoachingSession:
        """
        Fill a new session with insights, then recommendations.

        With an entry (immediate path) the session always opens with the
        mindset-shift recommendation, followed by whatever the insight and
        reset rules add.
        """
        if entry is not None:
            session.insights = await self.generate_immediate_insights(entry, context)
            session.recommendations = [create_mindset_shift_recommendation(session.id)]
        else:
            session.insights = await self.generate_insights(session, context)
            session.recommendations = []
        session.recommendations.extend(self.generate_recommendations(session, context))
        return session
