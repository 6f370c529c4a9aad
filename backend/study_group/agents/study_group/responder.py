"""Calls to the content generator on behalf of the personas.

Persona replies are the one generator call whose failure is not recovered
locally: a failed reply fails the turn with ``GenerationError``. Answer
grading always yields an evaluation.
"""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..base.json_utils import (
    extract_json_object,
    find_json_object,
    parse_model_or_fallback,
    strip_code_fences,
)
from .errors import GenerationError
from .interfaces import ContentGenerator
from .personas import Persona
from .prompts import (
    ANSWER_EVALUATION_TEMPLATE,
    PERSONA_REPLY_TEMPLATE,
    format_expected_answer,
    format_history,
    format_performance,
)
from .state import PERSONA_TAGS, AnswerEvaluation, ContextSnapshot, SuggestedHandoff

logger = logging.getLogger(__name__)

EMPTY_REPLY_MESSAGE = "I had trouble responding. Please try again."

FALLBACK_EVALUATION = AnswerEvaluation(
    is_correct=False,
    score=0,
    feedback="Unable to evaluate answer. Please try again.",
    understanding="unclear",
)


class PersonaReply(BaseModel):
    """Structured reply of a persona."""

    model_config = ConfigDict(frozen=True)

    message: str = Field(min_length=1)
    intent: Optional[str] = None
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    handoff: Optional[SuggestedHandoff] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_missing_confidence(cls, value):
        return 0.8 if value is None else value

    @field_validator("handoff", mode="before")
    @classmethod
    def _ignore_malformed_handoff(cls, value):
        # A suggestion naming an unknown persona is dropped, not fatal.
        if isinstance(value, dict) and value.get("to") in PERSONA_TAGS:
            return {"to": value["to"], "reason": str(value.get("reason") or "")}
        return None


def build_persona_prompt(
    persona: Persona,
    message: str,
    context: ContextSnapshot,
    intent: str,
    topic: Optional[str] = None,
) -> str:
    history = format_history(context.history)
    history_block = f"CONVERSATION HISTORY:\n{history}\n\n" if history else ""

    return PERSONA_REPLY_TEMPLATE.format(
        system_prompt=persona.system_prompt,
        topic=topic or context.topic or "General study session",
        performance=format_performance(context.recent_score),
        session_duration=context.session_duration,
        weak_topics=", ".join(context.weak_topics) or "None identified",
        explanation_style=context.explanation_style,
        intent=intent,
        history_block=history_block,
        message=message,
        persona_name=persona.name,
    )


def parse_persona_reply(response_text: str) -> PersonaReply:
    """Parse a persona reply, degrading to the raw text when it is not JSON."""
    try:
        return PersonaReply.model_validate(extract_json_object(response_text))
    except (ValueError, ValidationError) as e:
        logger.warning(f"Persona reply was not valid JSON, using raw text: {e}")

    cleaned = strip_code_fences(response_text or "")
    span = find_json_object(cleaned)
    if span is not None:
        cleaned = cleaned.replace(span, "").strip()
    return PersonaReply(message=cleaned or EMPTY_REPLY_MESSAGE, confidence=0.5)


async def generate_persona_reply(
    persona: Persona,
    message: str,
    context: ContextSnapshot,
    intent: str,
    generator: ContentGenerator,
    topic: Optional[str] = None,
) -> PersonaReply:
    """
    Ask the generator for the persona's reply to a student message.

    Raises:
        GenerationError: If the generator call itself fails.
    """
    prompt = build_persona_prompt(persona, message, context, intent, topic)
    try:
        response_text = await generator.generate(prompt, True)
    except Exception as e:
        logger.error(f"Error in {persona.name}: {e}")
        raise GenerationError(f"{persona.name} could not respond: {e}") from e

    return parse_persona_reply(response_text)


async def evaluate_answer(
    question: str,
    student_answer: str,
    generator: ContentGenerator,
    correct_answer_hint: Optional[str] = None,
) -> AnswerEvaluation:
    """Grade a free-form answer. Never raises; failures yield ``FALLBACK_EVALUATION``."""
    prompt = ANSWER_EVALUATION_TEMPLATE.format(
        question=question,
        student_answer=student_answer,
        expected_answer_line=format_expected_answer(correct_answer_hint),
    )
    try:
        response = await generator.generate(prompt, False)
    except Exception as e:
        logger.warning(f"Answer evaluation call failed, using fallback: {e}")
        return FALLBACK_EVALUATION

    return parse_model_or_fallback(response, AnswerEvaluation, FALLBACK_EVALUATION)
