"""
Life Area Mapping

Maps journal text, tags and moods onto the thirteen life areas so entries
without explicit links still carry the areas they talk about.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Dict, Optional, Iterable
import re

from .models import utc_now, parse_timestamp


NEGATIVE_MOODS = frozenset({
    "sad", "angry", "anxious", "frustrated", "overwhelmed", "hopeless",
})


@dataclass(frozen=True)
class LifeAreaMapping:
    id: str
    name: str
    keywords: List[str]
    moods: List[str]
    tags: List[str]
    patterns: List[str]

    def __post_init__(self):
        object.__setattr__(
            self, "_compiled", [re.compile(p, re.IGNORECASE) for p in self.patterns]
        )

    def matches(self, body: str, tags: Iterable[str], mood: Optional[str]) -> bool:
        lower_body = body.lower()
        if any(keyword in lower_body for keyword in self.keywords):
            return True
        own_tags = {t.lower() for t in self.tags}
        if any(tag.lower() in own_tags for tag in tags):
            return True
        if mood and mood in self.moods:
            return True
        return any(p.search(body) for p in self._compiled)


LIFE_AREA_MAPPINGS: List[LifeAreaMapping] = [
    LifeAreaMapping(
        id="work-purpose",
        name="Work & Purpose",
        keywords=["work", "job", "career", "purpose", "mission", "calling",
                  "business", "project", "client", "meeting", "deadline"],
        moods=["energized", "frustrated", "overwhelmed"],
        tags=["#work", "#career", "#goals", "#productivity", "#achievement"],
        patterns=[r"\bwork\b", r"\bjob\b", r"\bcareer\b", r"\bbusiness\b"],
    ),
    LifeAreaMapping(
        id="health-recovery",
        name="Health & Recovery",
        keywords=["health", "fitness", "exercise", "workout", "sleep", "energy",
                  "tired", "sick", "doctor", "meditation", "yoga"],
        moods=["tired", "energized", "peaceful"],
        tags=["#health", "#fitness", "#wellness", "#selfcare", "#meditation"],
        patterns=[r"\bhealth\b", r"\bfitness\b", r"\bexercise\b", r"\bsleep\b"],
    ),
    LifeAreaMapping(
        id="finance",
        name="Finance",
        keywords=["money", "budget", "savings", "investment", "debt", "income",
                  "expense", "financial", "payment", "bill"],
        moods=["anxious", "content", "overwhelmed"],
        tags=["#finance", "#money", "#budget", "#investing", "#savings"],
        patterns=[r"\bmoney\b", r"\bfinance\b", r"\bbudget\b", r"\binvest"],
    ),
    LifeAreaMapping(
        id="intimacy-love",
        name="Intimacy & Love",
        keywords=["love", "partner", "relationship", "intimacy", "romance",
                  "dating", "marriage", "spouse", "connection"],
        moods=["happy", "sad", "grateful", "anxious"],
        tags=["#love", "#relationship", "#intimacy", "#romance", "#partnership"],
        patterns=[r"\blove\b", r"\bpartner\b", r"\brelationship\b", r"\bintimacy\b"],
    ),
    LifeAreaMapping(
        id="family",
        name="Family",
        keywords=["family", "parents", "mother", "father", "siblings", "children",
                  "kids", "parenting", "relatives"],
        moods=["grateful", "frustrated", "happy"],
        tags=["#family", "#parenting", "#children", "#parents"],
        patterns=[r"\bfamily\b", r"\bparent", r"\bmother\b", r"\bfather\b", r"\bchild"],
    ),
    LifeAreaMapping(
        id="friendship-community",
        name="Friendship & Community",
        keywords=["friends", "friendship", "community", "social", "gathering",
                  "party", "hangout", "connection", "support"],
        moods=["happy", "grateful", "content"],
        tags=["#friends", "#community", "#social", "#connection", "#gratitude"],
        patterns=[r"\bfriend", r"\bcommunity\b", r"\bsocial\b"],
    ),
    LifeAreaMapping(
        id="creativity-expression",
        name="Creativity & Expression",
        keywords=["creative", "art", "writing", "music", "design", "expression",
                  "imagination", "project", "craft", "painting"],
        moods=["creative", "excited", "content"],
        tags=["#creativity", "#art", "#writing", "#music", "#expression"],
        patterns=[r"\bcreativ", r"\bart\b", r"\bwriting\b", r"\bmusic\b"],
    ),
    LifeAreaMapping(
        id="emotional-regulation",
        name="Emotional Regulation",
        keywords=["emotions", "feelings", "anxiety", "stress", "calm", "peace",
                  "anger", "sadness", "therapy", "healing"],
        moods=["anxious", "sad", "angry", "peaceful", "overwhelmed"],
        tags=["#emotions", "#mentalhealth", "#therapy", "#healing", "#mindfulness"],
        patterns=[r"\bemotion", r"\bfeeling", r"\banxiety\b", r"\bstress\b"],
    ),
    LifeAreaMapping(
        id="spirituality-practice",
        name="Spirituality & Practice",
        keywords=["spiritual", "god", "universe", "prayer", "meditation", "faith",
                  "belief", "soul", "divine", "sacred"],
        moods=["peaceful", "grateful", "content"],
        tags=["#spirituality", "#meditation", "#prayer", "#faith", "#mindfulness"],
        patterns=[r"\bspiritual", r"\bgod\b", r"\bprayer\b", r"\bfaith\b"],
    ),
    LifeAreaMapping(
        id="learning-growth",
        name="Learning & Growth",
        keywords=["learn", "study", "education", "growth", "development", "skill",
                  "knowledge", "course", "book", "reading"],
        moods=["excited", "curious", "overwhelmed"],
        tags=["#learning", "#growth", "#education", "#development", "#reading"],
        patterns=[r"\blearn", r"\bstudy\b", r"\bgrowth\b", r"\beducation\b"],
    ),
    LifeAreaMapping(
        id="home-environment",
        name="Home & Environment",
        keywords=["home", "house", "apartment", "room", "space", "clean",
                  "organize", "decor", "environment", "living"],
        moods=["content", "peaceful", "frustrated"],
        tags=["#home", "#space", "#environment", "#organization"],
        patterns=[r"\bhome\b", r"\bhouse\b", r"\bapartment\b", r"\bspace\b"],
    ),
    LifeAreaMapping(
        id="adventure-travel",
        name="Adventure & Travel",
        keywords=["travel", "adventure", "trip", "vacation", "explore", "journey",
                  "destination", "flight", "hotel"],
        moods=["excited", "happy", "energized"],
        tags=["#travel", "#adventure", "#exploration", "#vacation"],
        patterns=[r"\btravel", r"\badventure\b", r"\btrip\b", r"\bvacation\b"],
    ),
    LifeAreaMapping(
        id="time-energy",
        name="Time & Energy",
        keywords=["time", "energy", "schedule", "busy", "productivity", "focus",
                  "distraction", "procrastination", "efficiency"],
        moods=["overwhelmed", "tired", "energized"],
        tags=["#time", "#energy", "#productivity", "#focus"],
        patterns=[r"\btime\b", r"\benergy\b", r"\bproductiv", r"\bfocus\b"],
    ),
]

LIFE_AREAS_BY_ID: Dict[str, LifeAreaMapping] = {m.id: m for m in LIFE_AREA_MAPPINGS}


def suggest_life_areas(
    body: str,
    tags: Optional[Iterable[str]] = None,
    mood: Optional[str] = None,
) -> List[str]:
    """Return the ids of every life area the entry touches, in table order."""
    if not isinstance(body, str):
        body = ""
    tags = list(tags or [])
    return [m.id for m in LIFE_AREA_MAPPINGS if m.matches(body, tags, mood)]


def should_suggest_ritual(
    mood_history: Iterable[Dict],
    days_to_check: int = 7,
    now: Optional[datetime] = None,
) -> bool:
    """
    Suggest a reset ritual when 3+ negative moods fall in the window.

    Args:
        mood_history: Dicts with ``mood`` and ``date`` keys
        days_to_check: Window size in days
        now: Reference time (defaults to current UTC time)
    """
    cutoff = (now or utc_now()) - timedelta(days=days_to_check)
    negative_count = 0
    for item in mood_history:
        if item.get("mood") not in NEGATIVE_MOODS:
            continue
        if parse_timestamp(item["date"]) >= cutoff:
            negative_count += 1
    return negative_count >= 3
