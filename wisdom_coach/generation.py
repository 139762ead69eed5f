"""
Text Generation for Coaching Insights

The synthesizer only sees the TextGenerator interface: a template id and a
payload in, free text out. GeminiTextGenerator calls Google's Gemini API
with a small response cache; TemplateTextGenerator returns fixed reflective
text per template and is used when no API key is configured.
"""

import google.generativeai as genai
from typing import Dict, Optional, Any, Protocol
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import hashlib
import logging

from .errors import GenerationFailure
from .prompts import (
    get_template,
    render_prompt,
    build_persona_block,
    PATTERN_ANALYSIS,
    UPSET_PROCESSING,
    GOAL_COACHING,
    RELATIONSHIP_DYNAMICS,
)

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate(self, template_id: str, payload: Dict[str, Any]) -> str:
        ...


@dataclass
class CacheEntry:
    """Cached response with metadata"""
    response: str
    timestamp: datetime = field(default_factory=datetime.now)
    hit_count: int = 0
    ttl_hours: int = 6


class ResponseCache:
    """In-process cache of generated text keyed by the rendered prompt"""

    def __init__(self, max_size: int = 500, ttl_hours: int = 6):
        self.max_size = max_size
        self.ttl_hours = ttl_hours
        self.cache: Dict[str, CacheEntry] = {}

    def _generate_key(self, template_id: str, prompt: str) -> str:
        return hashlib.sha256(f"{template_id}:{prompt}".encode()).hexdigest()[:32]

    def get(self, template_id: str, prompt: str) -> Optional[str]:
        """Get cached response if available and fresh"""
        key = self._generate_key(template_id, prompt)
        entry = self.cache.get(key)
        if entry is None:
            return None

        if datetime.now() - entry.timestamp > timedelta(hours=entry.ttl_hours):
            del self.cache[key]
            return None

        entry.hit_count += 1
        return entry.response

    def set(self, template_id: str, prompt: str, response: str):
        """Cache response with the default TTL"""
        if len(self.cache) >= self.max_size:
            self._cleanup_cache()
        self.cache[self._generate_key(template_id, prompt)] = CacheEntry(
            response=response, ttl_hours=self.ttl_hours
        )

    def _cleanup_cache(self):
        """Remove the least used, oldest fifth of the entries"""
        sorted_entries = sorted(
            self.cache.items(),
            key=lambda x: (x[1].hit_count, x[1].timestamp)
        )
        to_remove = max(1, int(len(sorted_entries) * 0.2))
        for key, _ in sorted_entries[:to_remove]:
            del self.cache[key]


class GeminiTextGenerator:
    """Coaching text from Gemini, with caching of identical prompts"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-1.5-flash",
        use_cache: bool = True,
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.cache = ResponseCache() if use_cache else None

        if self.api_key:
            try:
                genai.configure(api_key=self.api_key)
                self.model = genai.GenerativeModel(model_name)
                self.enabled = True
                logger.info(f"Gemini text generation enabled with {model_name}")
            except Exception as e:
                self.model = None
                self.enabled = False
                logger.error(f"Gemini API error: {e}")
        else:
            self.model = None
            self.enabled = False
            logger.warning("Gemini API key not found. Text generation disabled.")

    def build_prompt(self, template_id: str, payload: Dict[str, Any]) -> str:
        template = get_template(template_id)
        persona = build_persona_block(payload.get("preferences"))
        return f"{template.system_prompt}{persona}\n\n{render_prompt(template_id, payload)}"

    async def generate(self, template_id: str, payload: Dict[str, Any]) -> str:
        if not self.enabled:
            raise GenerationFailure(template_id, "Gemini is not configured")

        prompt = self.build_prompt(template_id, payload)

        if self.cache is not None:
            cached = self.cache.get(template_id, prompt)
            if cached:
                return cached

        try:
            response = await self.model.generate_content_async(prompt)
            result = response.text.strip()
        except Exception as e:
            raise GenerationFailure(template_id, str(e)) from e

        if not result:
            raise GenerationFailure(template_id, "empty response")

        logger.debug(f"Gemini generated {template_id} text ({len(result)} chars)")
        if self.cache is not None:
            self.cache.set(template_id, prompt, result)
        return result


_TEMPLATE_RESPONSES: Dict[str, str] = {
    PATTERN_ANALYSIS: (
        "Based on your recent journal entries, I notice a pattern of overwhelming "
        "feelings during busy work periods. Your emotional regulation appears "
        "strongest when you maintain consistent self-care routines. I recommend "
        "focusing on boundary setting in your work life and scheduling dedicated "
        "time for emotional processing."
    ),
    UPSET_PROCESSING: (
        "I hear that you're going through a challenging time. Let's process this "
        "together. First, acknowledge what you're feeling without judgment. What "
        "specific event or thought triggered this emotional response? Understanding "
        "the root cause will help us develop a constructive path forward."
    ),
    GOAL_COACHING: (
        "Looking at your recent progress in this life area, I see both challenges "
        "and opportunities. Your commitment shows in your consistent effort, but "
        "there seem to be some recurring obstacles. Let's identify specific "
        "strategies to overcome these blocks and create momentum toward your goals."
    ),
    RELATIONSHIP_DYNAMICS: (
        "Your journal entries reveal some important relationship dynamics. There's "
        "a pattern of giving more than receiving in certain relationships, which may "
        "be affecting your emotional well-being. Consider setting clearer boundaries "
        "and communicating your needs more directly."
    ),
}


class TemplateTextGenerator:
    """Deterministic reflective text per template, for offline use"""

    async def generate(self, template_id: str, payload: Dict[str, Any]) -> str:
        get_template(template_id)
        return _TEMPLATE_RESPONSES[template_id]


def create_text_generator(settings) -> TextGenerator:
    """Gemini when an API key is configured, otherwise the template generator."""
    if settings.google_api_key:
        return GeminiTextGenerator(
            api_key=settings.google_api_key,
            model_name=settings.gemini_model,
        )
    logger.warning("GOOGLE_API_KEY not set. Coaching text will use fallback templates.")
    return TemplateTextGenerator()
