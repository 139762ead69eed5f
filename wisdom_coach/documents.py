"""
Persistence Models

Pydantic models for the documents the coach reads from and writes to
MongoDB: coaching sessions and per-user coach configuration (triggers,
preferences and AI personality).
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Any
from datetime import datetime, timezone


class TriggerThresholdModel(BaseModel):
    """Threshold block of a stored trigger definition."""
    occurrences: int
    timeframe: int  # days
    severity: Optional[int] = None


class TriggerConfigModel(BaseModel):
    """One trigger definition as configured for a user."""
    model_config = ConfigDict(extra="ignore")

    type: str  # negative_mood_pattern, life_area_decline, relationship_stress, boundary_violation
    threshold: TriggerThresholdModel
    description: str = ""
    enabled: bool = True


class CoachPreferences(BaseModel):
    model_config = ConfigDict(extra="ignore")

    coaching_style: str = "supportive"  # supportive, direct, exploratory, solution_focused
    session_frequency: str = "as_needed"  # as_needed, daily, weekly, monthly
    voice_notes_enabled: bool = False
    auto_scheduling: bool = False
    privacy_mode: bool = False


class AIPersonality(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tone: str = "warm"  # warm, professional, casual, spiritual
    approach: str = "reflective"  # socratic, directive, reflective, action_oriented
    depth: str = "moderate"  # surface, moderate, deep, transformational


class WisdomCoachConfig(BaseModel):
    """
    MongoDB document holding a user's coach configuration.

    Triggers stay raw here; parse_trigger_config validates them one by one
    so a single bad entry does not discard the rest.
    """
    model_config = ConfigDict(extra="ignore")  # Ignore MongoDB's _id field

    userId: str
    triggers: List[Dict[str, Any]] = []
    preferences: CoachPreferences = Field(default_factory=CoachPreferences)
    ai_personality: AIPersonality = Field(default_factory=AIPersonality)

    def prompt_preferences(self) -> Dict[str, Any]:
        """Flat preferences handed to the text generator for personalisation."""
        return {
            "coaching_style": self.preferences.coaching_style,
            "tone": self.ai_personality.tone,
            "approach": self.ai_personality.approach,
            "depth": self.ai_personality.depth,
        }


class SessionDocument(BaseModel):
    """MongoDB document schema for a coaching session."""
    model_config = ConfigDict(extra="ignore")

    id: str
    userId: str
    triggeredBy: str  # journal, upset, mood_trend, life_area_collapse, manual
    triggerData: Dict[str, Any] = {}
    status: str = "active"
    createdAt: str
    insights: List[Dict[str, Any]] = []
    recommendations: List[Dict[str, Any]] = []

    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
