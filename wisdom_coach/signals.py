"""
Signal Extraction Module

Pure, total extractors over raw journal text:
1. Sentiment score (word counting, clamped to [-10, 10])
2. People mentions (@Name, configured names, optional capitalized tokens)
3. Per-entry derived attributes (EntrySignals)

None of these raise. Missing or malformed input yields a neutral signal
(score 0, no people) rather than an error.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Callable, Iterable
import logging
import re

from .models import JournalEntry
from .life_areas import suggest_life_areas

logger = logging.getLogger(__name__)


POSITIVE_WORDS = frozenset({
    "good", "great", "happy", "love", "amazing", "wonderful", "excited", "grateful",
})

NEGATIVE_WORDS = frozenset({
    "bad", "terrible", "sad", "hate", "awful", "horrible", "angry", "frustrated",
})

SENTIMENT_MIN = -10
SENTIMENT_MAX = 10

URGENT_KEYWORDS = ("crisis", "breakdown", "can't handle", "giving up", "hopeless")

DISTRESS_MOODS = frozenset({"hopeless", "angry", "overwhelmed", "anxious"})
DISTRESS_MOOD_SCORE = 3

# Capitalized words that are never people
NAME_STOPWORDS = frozenset({
    "i", "i'm", "i've", "i'd", "i'll", "the", "a", "an", "my", "we", "our",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "january", "february", "march", "april", "may", "june", "july", "august",
    "september", "october", "november", "december", "today", "tomorrow",
    "yesterday", "god",
})

_MENTION_RE = re.compile(r"@([A-Za-z]+(?:\s+[A-Z][a-z]+)?)")
_CAPITALIZED_RE = re.compile(r"^[A-Z][a-z]+$")
_SENTENCE_END = (".", "!", "?")

PeopleExtractor = Callable[[str], List[str]]


def sentiment_score(text: str) -> int:
    """
    Count positive minus negative words.

    Tokens are split on whitespace and case-folded; punctuation stays attached,
    so only bare words count.
    """
    if not isinstance(text, str) or not text.strip():
        return 0

    score = 0
    for word in text.lower().split():
        if word in POSITIVE_WORDS:
            score += 1
        elif word in NEGATIVE_WORDS:
            score -= 1

    return max(SENTIMENT_MIN, min(SENTIMENT_MAX, score))


def extract_people_mentions(
    text: str,
    known_names: Iterable[str] = (),
    include_capitalized: bool = False,
) -> List[str]:
    """
    Find the distinct people an entry talks about.

    Args:
        text: Journal body
        known_names: Names to match case-insensitively as whole words
        include_capitalized: Also treat mid-sentence capitalized words as names

    Returns:
        Distinct names in first-seen order (empty list when none)
    """
    if not isinstance(text, str) or not text:
        return []

    found: Dict[str, str] = {}

    def _add(name: str):
        key = name.lower()
        if key not in found:
            found[key] = name

    for match in _MENTION_RE.finditer(text):
        _add(match.group(1).strip())

    for name in known_names:
        if name and re.search(rf"\b{re.escape(name)}\b", text, re.IGNORECASE):
            _add(name)

    if include_capitalized:
        previous = ""
        for token in text.split():
            word = token.strip(",;:()\"'")
            bare = word.rstrip(".!?")
            sentence_start = not previous or previous.endswith(_SENTENCE_END)
            if (not sentence_start and not token.startswith("@")
                    and _CAPITALIZED_RE.match(bare)
                    and bare.lower() not in NAME_STOPWORDS):
                _add(bare)
            previous = token

    return list(found.values())


class PeopleMentionExtractor:
    """Callable extractor bound to a user's known contacts."""

    def __init__(self, known_names: Optional[Iterable[str]] = None, include_capitalized: bool = False):
        self.known_names = list(known_names or [])
        self.include_capitalized = include_capitalized

    def __call__(self, text: str) -> List[str]:
        return extract_people_mentions(text, self.known_names, self.include_capitalized)


def is_urgent_entry(entry: JournalEntry) -> bool:
    """
    Check whether an entry needs an immediate coaching session.

    Urgent when the body contains a crisis keyword, or the mood is a
    distress mood with a score of 3 or less (a missing score counts as 0).
    """
    body = (entry.body or "").lower()
    if any(keyword in body for keyword in URGENT_KEYWORDS):
        return True
    mood_score = entry.mood_score if entry.mood_score is not None else 0
    return entry.mood in DISTRESS_MOODS and mood_score <= DISTRESS_MOOD_SCORE


@dataclass
class EntrySignals:
    """Derived attributes of one journal entry."""
    entry_id: str
    sentiment: int = 0
    people: List[str] = field(default_factory=list)
    life_areas: List[str] = field(default_factory=list)
    is_urgent: bool = False

    def to_dict(self) -> Dict:
        return {
            "entry_id": self.entry_id,
            "sentiment": self.sentiment,
            "people": self.people,
            "life_areas": self.life_areas,
            "is_urgent": self.is_urgent,
        }


def extract_entry_signals(
    entry: JournalEntry,
    people_extractor: Optional[PeopleExtractor] = None,
) -> EntrySignals:
    """
    Compute every signal for an entry.

    Each extractor is isolated: a failure in one leaves its neutral default
    and is logged, the others still run.
    """
    people_extractor = people_extractor or extract_people_mentions
    signals = EntrySignals(entry_id=entry.id)

    try:
        signals.sentiment = sentiment_score(entry.body)
    except Exception as e:
        logger.warning(f"Sentiment extraction failed for entry {entry.id}: {e}")

    try:
        signals.people = list(people_extractor(entry.body or ""))
    except Exception as e:
        logger.warning(f"People extraction failed for entry {entry.id}: {e}")

    try:
        signals.life_areas = list(entry.linked_life_areas) or suggest_life_areas(
            entry.body, entry.tags, entry.mood
        )
    except Exception as e:
        logger.warning(f"Life area extraction failed for entry {entry.id}: {e}")

    try:
        signals.is_urgent = is_urgent_entry(entry)
    except Exception as e:
        logger.warning(f"Urgency check failed for entry {entry.id}: {e}")

    return signals
