"""Intent classification for student messages.

Ordered pattern rules cover the common phrasings without an LLM call;
anything else is classified by the content generator.
"""

import logging
import re
from typing import List, Literal, Optional, Pattern, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..base.json_utils import parse_model_or_fallback
from .interfaces import ContentGenerator
from .prompts import INTENT_CLASSIFICATION_TEMPLATE

logger = logging.getLogger(__name__)

Intent = Literal[
    "explain",
    "quiz",
    "challenge",
    "break",
    "answer",
    "greeting",
    "topic_change",
    "other",
]


class IntentResult(BaseModel):
    """Detected intent of a student message."""

    model_config = ConfigDict(frozen=True)

    intent: Intent
    confidence: float = Field(ge=0.0, le=1.0)
    topic: Optional[str] = None

    @field_validator("topic")
    @classmethod
    def _blank_topic_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


FALLBACK_INTENT = IntentResult(intent="other", confidence=0.5)

# First match wins.
INTENT_RULES: List[Tuple[Pattern[str], str, float]] = [
    (re.compile(r"explain|help|understand|what is|how does|why", re.IGNORECASE), "explain", 0.9),
    (re.compile(r"quiz|test|question|practice", re.IGNORECASE), "quiz", 0.9),
    (re.compile(r"challenge|hard|difficult|more", re.IGNORECASE), "challenge", 0.8),
    (re.compile(r"tired|break|rest|overwhelmed|frustrated", re.IGNORECASE), "break", 0.9),
    (re.compile(r"answer is|my answer|i think", re.IGNORECASE), "answer", 0.9),
]


def match_intent_rules(message: str) -> Optional[IntentResult]:
    """Return the intent of the first matching rule, or None."""
    for pattern, intent, confidence in INTENT_RULES:
        if pattern.search(message):
            return IntentResult(intent=intent, confidence=confidence)
    return None


async def classify_intent(message: str, generator: ContentGenerator) -> IntentResult:
    """
    Classify a student message. Never raises.

    Args:
        message: Raw student message
        generator: Content generator used for messages no rule matches

    Returns:
        IntentResult; ``FALLBACK_INTENT`` when the generator fails or
        returns something unusable
    """
    matched = match_intent_rules(message)
    if matched is not None:
        return matched

    prompt = INTENT_CLASSIFICATION_TEMPLATE.format(message=message)
    try:
        response = await generator.generate(prompt, False)
    except Exception as e:
        logger.warning(f"Intent classification call failed, using fallback: {e}")
        return FALLBACK_INTENT

    return parse_model_or_fallback(response, IntentResult, FALLBACK_INTENT)
