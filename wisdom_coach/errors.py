"""
Coach engine exceptions.

Only source and persistence failures ever reach callers. Generation
failures and invalid triggers are handled inside the engine and are raised
here so they can be logged with a consistent type.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import CoachingSession


class CoachEngineError(Exception):
    """Base class for coach engine errors."""


class SourceUnavailable(CoachEngineError):
    """The journal source could not be read."""

    def __init__(self, user_id: str, detail: str = ""):
        message = f"Journal source unavailable for {user_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.user_id = user_id


class GenerationFailure(CoachEngineError):
    """The text generator raised or timed out."""

    def __init__(self, template_id: str, detail: str = ""):
        super().__init__(f"Text generation failed for {template_id}: {detail}")
        self.template_id = template_id


class InvalidTriggerConfig(CoachEngineError):
    """A trigger definition has malformed thresholds."""

    def __init__(self, trigger_type: str, detail: str):
        super().__init__(f"Invalid trigger {trigger_type}: {detail}")
        self.trigger_type = trigger_type


class PersistenceFailure(CoachEngineError):
    """
    Writing a session failed.

    The computed session is attached so the caller can retry the write or
    show it transiently.
    """

    def __init__(self, session: "CoachingSession", detail: str = ""):
        super().__init__(f"Failed to persist session {session.id}: {detail}")
        self.session = session


class TemplateError(CoachEngineError, ValueError):
    """Prompt rendering error (unknown template or missing variables)."""

    def __init__(self, template_id: str, detail: str, missing: Optional[list] = None):
        super().__init__(f"{template_id}: {detail}")
        self.template_id = template_id
        self.missing = missing or []
