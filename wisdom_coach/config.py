"""
Coach Engine Configuration

Loads environment variables and provides configuration settings, plus
parsing of per-user trigger configuration documents.
"""

import os
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from .documents import TriggerConfigModel
from .errors import InvalidTriggerConfig
from .models import CoachingTrigger, TriggerThreshold, TriggerType

logger = logging.getLogger(__name__)


class ActiveSessionPolicy(Enum):
    """Whether a user may hold more than one active session."""
    ALLOW_CONCURRENT = "allow_concurrent"
    SINGLE_ACTIVE = "single_active"


@dataclass
class CoachSettings:
    google_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    mongodb_uri: str = "mongodb://localhost:27017"
    database_name: str = "wisdomos"
    lookback_days: int = 14
    urgent_lookback_days: int = 7
    generation_timeout: float = 30.0
    active_session_policy: ActiveSessionPolicy = ActiveSessionPolicy.ALLOW_CONCURRENT


def load_environment(base_dir: Optional[Path] = None):
    """Load .env.local first (for local development), then .env as fallback."""
    base_dir = base_dir or Path.cwd()
    env_local = base_dir / ".env.local"
    env_file = base_dir / ".env"

    if env_local.exists():
        load_dotenv(env_local)
    elif env_file.exists():
        load_dotenv(env_file)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings(base_dir: Optional[Path] = None) -> CoachSettings:
    load_environment(base_dir)

    api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
    if not api_key:
        logger.warning("GOOGLE_API_KEY not found. Coaching text will use fallback mode.")

    single_active = _env_bool("COACH_SINGLE_ACTIVE_SESSION")

    return CoachSettings(
        google_api_key=api_key,
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
        mongodb_uri=os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
        database_name=os.getenv("DATABASE_NAME", "wisdomos"),
        lookback_days=int(os.getenv("COACH_LOOKBACK_DAYS", "14")),
        urgent_lookback_days=int(os.getenv("COACH_URGENT_LOOKBACK_DAYS", "7")),
        generation_timeout=float(os.getenv("COACH_GENERATION_TIMEOUT", "30")),
        active_session_policy=(
            ActiveSessionPolicy.SINGLE_ACTIVE if single_active
            else ActiveSessionPolicy.ALLOW_CONCURRENT
        ),
    )


def configure_logging(level: int = logging.INFO):
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def validate_trigger(trigger: CoachingTrigger) -> CoachingTrigger:
    """Raise InvalidTriggerConfig for negative thresholds."""
    if not trigger.threshold.is_valid:
        raise InvalidTriggerConfig(
            trigger.type.value,
            f"threshold must be non-negative, got {trigger.threshold.to_dict()}",
        )
    return trigger


def parse_trigger_config(raw: Iterable[Dict[str, Any]]) -> List[CoachingTrigger]:
    """
    Turn stored trigger documents into CoachingTriggers.

    Documents that fail validation are dropped; triggers with negative
    thresholds are kept in place but disabled, so declared order survives.
    """
    triggers: List[CoachingTrigger] = []
    for item in raw:
        try:
            model = TriggerConfigModel.model_validate(item)
            trigger_type = TriggerType(model.type)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Ignoring unreadable trigger config {item!r}: {e}")
            continue

        trigger = CoachingTrigger(
            type=trigger_type,
            threshold=TriggerThreshold(
                occurrences=model.threshold.occurrences,
                timeframe=model.threshold.timeframe,
                severity=model.threshold.severity,
            ),
            description=model.description,
            enabled=model.enabled,
        )
        try:
            validate_trigger(trigger)
        except InvalidTriggerConfig as e:
            logger.warning(f"{e}; trigger disabled")
            trigger = CoachingTrigger(
                type=trigger.type,
                threshold=trigger.threshold,
                description=trigger.description,
                enabled=False,
            )
        triggers.append(trigger)
    return triggers
