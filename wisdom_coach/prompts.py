"""
Coaching prompt templates registry.

Callers pass a template id and a variables dict; the text generator renders
the concrete prompt here so wording changes stay in one place.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import json

from .errors import TemplateError


PATTERN_ANALYSIS = "pattern_analysis"
UPSET_PROCESSING = "upset_processing"
GOAL_COACHING = "goal_coaching"
RELATIONSHIP_DYNAMICS = "relationship_dynamics"


@dataclass(frozen=True)
class PromptTemplate:
    template_id: str
    name: str
    system_prompt: str
    user_prompt_template: str
    required_vars: List[str]
    expected_output: str  # insights, recommendations, questions, reflection


SYSTEM_PROMPT = (
    "You are Phoenix, a wise and compassionate personal-growth coach. "
    "You read a person's journal and help them notice patterns, protect their "
    "boundaries and take small, concrete steps. Be compassionate but direct."
)

_TEMPLATES: Dict[str, PromptTemplate] = {
    PATTERN_ANALYSIS: PromptTemplate(
        template_id=PATTERN_ANALYSIS,
        name="Pattern Analysis",
        system_prompt=SYSTEM_PROMPT,
        user_prompt_template=(
            "Analyze the user's recent journal entries and identify behavioral patterns, "
            "emotional triggers, and growth opportunities. Focus on actionable insights.\n\n"
            "Context: {context}\n"
            "Recent entries: {entries}\n\n"
            "Provide 2-3 key insights with specific evidence and recommendations."
        ),
        required_vars=["context", "entries"],
        expected_output="insights",
    ),
    UPSET_PROCESSING: PromptTemplate(
        template_id=UPSET_PROCESSING,
        name="Upset Processing",
        system_prompt=SYSTEM_PROMPT,
        user_prompt_template=(
            "Help the user process an upset or difficult emotion. Guide them through "
            "understanding what happened, what it reveals about their boundaries or "
            "values, and how to move forward constructively.\n\n"
            "Current situation: {situation}\n"
            "User's emotional state: {mood}\n"
            "Context: {context}\n\n"
            "Guide them through: 1) Acknowledgment, 2) Understanding, 3) Learning, 4) Action"
        ),
        required_vars=["situation", "mood", "context"],
        expected_output="reflection",
    ),
    GOAL_COACHING: PromptTemplate(
        template_id=GOAL_COACHING,
        name="Goal Coaching",
        system_prompt=SYSTEM_PROMPT,
        user_prompt_template=(
            "Help the user achieve their life area commitments. Review their progress "
            "and provide specific, actionable guidance.\n\n"
            "Life area: {life_area}\n"
            "Current commitment: {commitment}\n"
            "Recent progress: {progress}\n"
            "Blockers identified: {blockers}\n\n"
            "Provide specific next steps and address blockers."
        ),
        required_vars=["life_area", "commitment", "progress", "blockers"],
        expected_output="recommendations",
    ),
    RELATIONSHIP_DYNAMICS: PromptTemplate(
        template_id=RELATIONSHIP_DYNAMICS,
        name="Relationship Dynamics",
        system_prompt=SYSTEM_PROMPT,
        user_prompt_template=(
            "Help the user understand and improve their relationship dynamics based on "
            "their journal patterns.\n\n"
            "Relationship context: {relationships}\n"
            "Recent mentions: {mentions}\n"
            "Patterns observed: {patterns}\n\n"
            "Provide insights on relationship health and specific improvement suggestions."
        ),
        required_vars=["relationships", "mentions", "patterns"],
        expected_output="insights",
    ),
}


def get_template(template_id: str) -> PromptTemplate:
    template = _TEMPLATES.get(str(template_id or "").strip())
    if template is None:
        raise TemplateError(str(template_id), "unknown template_id")
    return template


def list_prompt_templates() -> List[Dict[str, Any]]:
    """Return template metadata for inspection."""
    return [
        {
            "template_id": t.template_id,
            "name": t.name,
            "required_vars": list(t.required_vars),
            "expected_output": t.expected_output,
        }
        for _, t in sorted(_TEMPLATES.items())
    ]


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def render_prompt(template_id: str, variables: Optional[Dict[str, Any]] = None) -> str:
    """
    Render a template into the user prompt.

    Non-string values are serialized as JSON. Missing required variables
    raise TemplateError.
    """
    template = get_template(template_id)
    vars_ = variables or {}
    missing = [name for name in template.required_vars if name not in vars_]
    if missing:
        raise TemplateError(template.template_id, f"missing variables {missing}", missing)
    return template.user_prompt_template.format(
        **{name: _stringify(vars_[name]) for name in template.required_vars}
    )


def build_persona_block(preferences: Optional[Dict[str, Any]]) -> str:
    """Describe the user's coaching preferences for the system prompt."""
    if not preferences:
        return ""
    lines = ["", "COACHING PREFERENCES:"]
    for key, value in preferences.items():
        lines.append(f"- {key.replace('_', ' ')}: {value}")
    return "\n".join(lines)
