"""
Wisdom Coach - Journal-Driven Coaching Engine

Reads a user's recent journal entries, decides when a coaching session
should open, and fills it with insights and recommendations.

Layers:
1. Signal Extraction (sentiment, people, life areas) - signals.py, life_areas.py
2. Context Building (lookback aggregation) - context.py
3. Trigger Evaluation (rule table) - triggers.py
4. Session Orchestration (periodic + immediate paths) - orchestrator.py
5. Insight & Recommendation Synthesis - synthesizer.py

Collaborators:
6. Text Generation (Gemini / templates) - generation.py, prompts.py
7. Journal Sources & Session Stores (memory / MongoDB) - store.py, documents.py
"""

from .models import (
    JournalEntry,
    CoachingContext,
    RecentEntry,
    LifeAreaTrend,
    RelationshipDynamic,
    BehavioralPattern,
    GoalProgress,
    CoachingTrigger,
    TriggerThreshold,
    TriggerType,
    CoachingSession,
    CoachingInsight,
    CoachingRecommendation,
    ActionStep,
    SessionSource,
    SessionStatus,
    InsightType,
    Priority,
    RecommendationType,
    RecommendationStatus,
    TrendDirection,
    SentimentTrend,
)

from .errors import (
    CoachEngineError,
    SourceUnavailable,
    GenerationFailure,
    InvalidTriggerConfig,
    PersistenceFailure,
    TemplateError,
)

from .signals import (
    sentiment_score,
    extract_people_mentions,
    extract_entry_signals,
    is_urgent_entry,
    PeopleMentionExtractor,
    EntrySignals,
)

from .life_areas import (
    suggest_life_areas,
    should_suggest_ritual,
    LIFE_AREA_MAPPINGS,
)

from .context import ContextBuilder, repeated_negative_moods

from .triggers import (
    TriggerEvaluator,
    TRIGGER_PREDICATES,
    DEFAULT_COACHING_TRIGGERS,
)

from .synthesizer import (
    InsightSynthesizer,
    FALLBACK_TEXT,
)

from .generation import (
    TextGenerator,
    GeminiTextGenerator,
    TemplateTextGenerator,
    create_text_generator,
)

from .store import (
    JournalSource,
    SessionStore,
    InMemoryJournalSource,
    InMemorySessionStore,
    MongoJournalSource,
    MongoSessionStore,
    MongoCoachConfigSource,
)

from .documents import (
    WisdomCoachConfig,
    CoachPreferences,
    AIPersonality,
)

from .config import (
    CoachSettings,
    ActiveSessionPolicy,
    load_settings,
    parse_trigger_config,
    configure_logging,
)

from .orchestrator import WisdomCoach

__version__ = "0.1.0"
__all__ = [
    # Models
    "JournalEntry",
    "CoachingContext",
    "RecentEntry",
    "LifeAreaTrend",
    "RelationshipDynamic",
    "BehavioralPattern",
    "GoalProgress",
    "CoachingTrigger",
    "TriggerThreshold",
    "TriggerType",
    "CoachingSession",
    "CoachingInsight",
    "CoachingRecommendation",
    "ActionStep",
    "SessionSource",
    "SessionStatus",
    "InsightType",
    "Priority",
    "RecommendationType",
    "RecommendationStatus",
    "TrendDirection",
    "SentimentTrend",
    # Errors
    "CoachEngineError",
    "SourceUnavailable",
    "GenerationFailure",
    "InvalidTriggerConfig",
    "PersistenceFailure",
    "TemplateError",
    # Signals
    "sentiment_score",
    "extract_people_mentions",
    "extract_entry_signals",
    "is_urgent_entry",
    "PeopleMentionExtractor",
    "EntrySignals",
    # Life areas
    "suggest_life_areas",
    "should_suggest_ritual",
    "LIFE_AREA_MAPPINGS",
    # Context
    "ContextBuilder",
    "repeated_negative_moods",
    # Triggers
    "TriggerEvaluator",
    "TRIGGER_PREDICATES",
    "DEFAULT_COACHING_TRIGGERS",
    # Synthesis
    "InsightSynthesizer",
    "FALLBACK_TEXT",
    # Generation
    "TextGenerator",
    "GeminiTextGenerator",
    "TemplateTextGenerator",
    "create_text_generator",
    # Storage
    "JournalSource",
    "SessionStore",
    "InMemoryJournalSource",
    "InMemorySessionStore",
    "MongoJournalSource",
    "MongoSessionStore",
    "MongoCoachConfigSource",
    "WisdomCoachConfig",
    "CoachPreferences",
    "AIPersonality",
    # Config
    "CoachSettings",
    "ActiveSessionPolicy",
    "load_settings",
    "parse_trigger_config",
    "configure_logging",
    # Orchestrator
    "WisdomCoach",
]
