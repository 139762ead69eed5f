"""
Coaching Data Model

Journal entries (read-only input), the derived coaching context, and the
session / insight / recommendation records the engine produces.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Optional, Any
from enum import Enum
import uuid


def generate_id() -> str:
    return f"coach_{uuid.uuid4().hex}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO string or datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TrendDirection(Enum):
    """Direction of a life area over the lookback window."""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class SentimentTrend(Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class TriggerType(Enum):
    """Rules that can open a coaching session."""
    NEGATIVE_MOOD_PATTERN = "negative_mood_pattern"
    LIFE_AREA_DECLINE = "life_area_decline"
    RELATIONSHIP_STRESS = "relationship_stress"
    BOUNDARY_VIOLATION = "boundary_violation"


class SessionSource(Enum):
    """What opened a session (the ``triggeredBy`` field)."""
    JOURNAL = "journal"
    UPSET = "upset"
    MOOD_TREND = "mood_trend"
    LIFE_AREA_COLLAPSE = "life_area_collapse"
    MANUAL = "manual"


class SessionStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class InsightType(Enum):
    PATTERN = "pattern"
    RELATIONSHIP = "relationship"
    EMOTIONAL = "emotional"
    TRIGGER = "trigger"
    STRENGTH = "strength"
    OPPORTUNITY = "opportunity"
    BOUNDARY = "boundary"


class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RecommendationType(Enum):
    MINDSET_SHIFT = "mindset_shift"
    BOUNDARY_RESET = "boundary_reset"
    LIFE_AREA_FOCUS = "life_area_focus"
    RELATIONSHIP_REPAIR = "relationship_repair"
    HABIT_CHANGE = "habit_change"


class RecommendationStatus(Enum):
    SUGGESTED = "suggested"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# ── Input ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class JournalEntry:
    """A journal entry as read from the journal source."""
    id: str
    body: str
    created_at: datetime
    mood: Optional[str] = None
    mood_score: Optional[float] = None
    linked_life_areas: List[str] = field(default_factory=list)
    title: str = ""
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JournalEntry":
        """Build from a stored document (camelCase or snake_case keys)."""
        return cls(
            id=str(data["id"]),
            body=data.get("body") or "",
            created_at=parse_timestamp(data.get("createdAt", data.get("created_at"))),
            mood=data.get("mood"),
            mood_score=data.get("moodScore", data.get("mood_score")),
            linked_life_areas=list(
                data.get("linkedLifeAreas", data.get("linked_life_areas")) or []
            ),
            title=data.get("title") or "",
            tags=list(data.get("tags") or []),
        )

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "mood": self.mood,
            "moodScore": self.mood_score,
            "linkedLifeAreas": list(self.linked_life_areas),
            "tags": list(self.tags),
            "createdAt": self.created_at.isoformat(),
        }


# ── Coaching context ────────────────────────────────────────────────────

@dataclass
class RecentEntry:
    """Summary of one journal entry inside the lookback window."""
    id: str
    title: str
    mood: str
    life_areas: List[str]
    sentiment: int
    date: datetime
    people: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "mood": self.mood,
            "lifeAreas": self.life_areas,
            "sentiment": self.sentiment,
            "date": self.date.isoformat(),
        }


@dataclass
class LifeAreaTrend:
    area_id: str
    trend: TrendDirection
    days_since_ritual: int
    recent_moods: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "areaId": self.area_id,
            "trend": self.trend.value,
            "days_since_ritual": self.days_since_ritual,
            "recent_moods": self.recent_moods,
        }


@dataclass
class RelationshipDynamic:
    person: str
    mention_frequency: int
    sentiment_trend: SentimentTrend
    last_mentioned: datetime

    def to_dict(self) -> Dict:
        return {
            "person": self.person,
            "mention_frequency": self.mention_frequency,
            "sentiment_trend": self.sentiment_trend.value,
            "last_mentioned": self.last_mentioned.isoformat(),
        }


@dataclass
class BehavioralPattern:
    pattern: str
    frequency: int
    triggers: List[str] = field(default_factory=list)
    outcomes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "pattern": self.pattern,
            "frequency": self.frequency,
            "triggers": self.triggers,
            "outcomes": self.outcomes,
        }


@dataclass
class GoalProgress:
    area_id: str
    commitment: str
    progress_score: float
    blockers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "areaId": self.area_id,
            "commitment": self.commitment,
            "progress_score": self.progress_score,
            "blockers": self.blockers,
        }


@dataclass
class CoachingContext:
    """
    Aggregated view of a user's recent journaling.

    Rebuilt on every evaluation cycle and never persisted. The raw
    ``journal_entries`` travel with it for keyword rules (they may reach back
    further than the summaries when a keyword trigger asks for it) but are
    left out of ``to_dict`` (which is what prompts see).
    """
    recent_entries: List[RecentEntry] = field(default_factory=list)
    life_area_trends: List[LifeAreaTrend] = field(default_factory=list)
    relationship_dynamics: List[RelationshipDynamic] = field(default_factory=list)
    behavioral_patterns: List[BehavioralPattern] = field(default_factory=list)
    goal_progress: List[GoalProgress] = field(default_factory=list)
    journal_entries: List[JournalEntry] = field(default_factory=list)

    @property
    def entry_ids(self) -> List[str]:
        return [e.id for e in self.recent_entries]

    def to_dict(self) -> Dict:
        return {
            "recent_entries": [e.to_dict() for e in self.recent_entries],
            "life_area_trends": [t.to_dict() for t in self.life_area_trends],
            "relationship_dynamics": [r.to_dict() for r in self.relationship_dynamics],
            "behavioral_patterns": [p.to_dict() for p in self.behavioral_patterns],
            "goal_progress": [g.to_dict() for g in self.goal_progress],
        }


# ── Triggers ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TriggerThreshold:
    occurrences: int
    timeframe: int                  # days
    severity: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.occurrences >= 0 and self.timeframe >= 0

    def to_dict(self) -> Dict:
        data = {"occurrences": self.occurrences, "timeframe": self.timeframe}
        if self.severity is not None:
            data["severity"] = self.severity
        return data


@dataclass(frozen=True)
class CoachingTrigger:
    type: TriggerType
    threshold: TriggerThreshold
    description: str
    enabled: bool = True

    def to_dict(self) -> Dict:
        return {
            "type": self.type.value,
            "threshold": self.threshold.to_dict(),
            "description": self.description,
            "enabled": self.enabled,
        }


# ── Session output ──────────────────────────────────────────────────────

@dataclass
class ActionStep:
    title: str
    description: str
    order: int
    estimated_time: str
    required: bool = True
    completed: bool = False
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "order": self.order,
            "estimated_time": self.estimated_time,
            "required": self.required,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActionStep":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            order=int(data["order"]),
            estimated_time=data.get("estimated_time", ""),
            required=bool(data.get("required", True)),
            completed=bool(data.get("completed", False)),
        )


@dataclass(frozen=True)
class CoachingInsight:
    """An evidence-backed observation. Immutable once created."""
    type: InsightType
    title: str
    description: str
    confidence: int                 # 0 - 100
    priority: Priority
    evidence: List[str] = field(default_factory=list)
    life_areas_affected: List[str] = field(default_factory=list)
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence,
            "evidence": list(self.evidence),
            "lifeAreasAffected": list(self.life_areas_affected),
            "priority": self.priority.value,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoachingInsight":
        return cls(
            id=data["id"],
            type=InsightType(data["type"]),
            title=data["title"],
            description=data["description"],
            confidence=int(data["confidence"]),
            priority=Priority(data["priority"]),
            evidence=list(data.get("evidence") or []),
            life_areas_affected=list(data.get("lifeAreasAffected") or []),
            created_at=parse_timestamp(data["createdAt"]),
        )


@dataclass
class CoachingRecommendation:
    session_id: str
    type: RecommendationType
    title: str
    description: str
    action_steps: List[ActionStep]
    timeframe: str                  # 1_day, 1_week, 1_month, 3_months
    difficulty: str                 # easy, moderate, challenging, intensive
    expected_impact: str            # low, medium, high, transformative
    status: RecommendationStatus = RecommendationStatus.SUGGESTED
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "actionSteps": [s.to_dict() for s in self.action_steps],
            "timeframe": self.timeframe,
            "difficulty": self.difficulty,
            "expectedImpact": self.expected_impact,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoachingRecommendation":
        return cls(
            id=data["id"],
            session_id=data["sessionId"],
            type=RecommendationType(data["type"]),
            title=data["title"],
            description=data["description"],
            action_steps=[ActionStep.from_dict(s) for s in data.get("actionSteps") or []],
            timeframe=data["timeframe"],
            difficulty=data["difficulty"],
            expected_impact=data["expectedImpact"],
            status=RecommendationStatus(data.get("status", "suggested")),
            created_at=parse_timestamp(data["createdAt"]),
        )


@dataclass
class CoachingSession:
    user_id: str
    triggered_by: SessionSource
    trigger_context: str
    trigger_entry_id: Optional[str] = None
    status: SessionStatus = SessionStatus.ACTIVE
    insights: List[CoachingInsight] = field(default_factory=list)
    recommendations: List[CoachingRecommendation] = field(default_factory=list)
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def to_dict(self) -> Dict:
        trigger_data: Dict[str, Any] = {"context": self.trigger_context}
        if self.trigger_entry_id is not None:
            trigger_data["entryId"] = self.trigger_entry_id
        return {
            "id": self.id,
            "userId": self.user_id,
            "triggeredBy": self.triggered_by.value,
            "triggerData": trigger_data,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "insights": [i.to_dict() for i in self.insights],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoachingSession":
        trigger_data = data.get("triggerData") or {}
        return cls(
            id=data["id"],
            user_id=data["userId"],
            triggered_by=SessionSource(data["triggeredBy"]),
            trigger_context=trigger_data.get("context", ""),
            trigger_entry_id=trigger_data.get("entryId"),
            status=SessionStatus(data.get("status", "active")),
            insights=[CoachingInsight.from_dict(i) for i in data.get("insights") or []],
            recommendations=[
                CoachingRecommendation.from_dict(r) for r in data.get("recommendations") or []
            ],
            created_at=parse_timestamp(data["createdAt"]),
        )
