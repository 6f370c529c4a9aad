"""Persona selection scores.

``calculate_persona_scores`` encodes when each persona should take over.
The turn pipeline layers ``apply_intent_override`` on top of it and hands
the result to ``select_persona``.
"""

from typing import Dict, Optional

from .state import PERSONA_TAGS, ContextSnapshot

BASE_SCORES: Dict[str, int] = {
    "quizmaster": 50,
    "explainer": 0,
    "advocate": 0,
    "motivator": 0,
}

# Brand-new session: bias toward the introduction personas.
COLD_START_SCORES: Dict[str, int] = {
    "quizmaster": 40,
    "explainer": 30,
}

COOLDOWN_PENALTY = 20
INTENT_OVERRIDE_BONUS = 100
INTENT_OVERRIDE_MIN_CONFIDENCE = 0.7

INTENT_TO_PERSONA: Dict[str, str] = {
    "explain": "explainer",
    "quiz": "quizmaster",
    "challenge": "advocate",
    "break": "motivator",
}


def calculate_persona_scores(context: ContextSnapshot) -> Dict[str, int]:
    """
    Score every persona for the current turn. Pure.

    Scores are additive adjustments on ``BASE_SCORES`` and may go negative.
    """
    scores = dict(BASE_SCORES)

    # Recent performance. 70-85 inclusive is a neutral band.
    if context.recent_score is not None:
        if context.recent_score < 50:
            scores["explainer"] += 60
            scores["quizmaster"] -= 20
        elif context.recent_score < 70:
            scores["explainer"] += 30
            scores["quizmaster"] += 20
        elif context.recent_score > 85:
            scores["advocate"] += 50
            scores["quizmaster"] -= 10

    # Answer streaks in this session
    if context.consecutive_wrong >= 3:
        scores["explainer"] += 70
        scores["motivator"] += 20
    if context.consecutive_correct >= 5:
        scores["advocate"] += 60
        scores["motivator"] += 30

    # Long sessions call for a break
    if context.session_duration > 90:
        scores["motivator"] += 80
    elif context.session_duration > 60:
        scores["motivator"] += 30

    # Celebrate a long streak, only at session start
    if context.streak_days >= 7 and context.message_count < 3:
        scores["motivator"] += 50

    if context.last_persona:
        scores[context.last_persona] -= COOLDOWN_PENALTY

    if context.message_count == 0:
        scores.update(COLD_START_SCORES)

    return scores


def apply_intent_override(
    scores: Dict[str, int],
    intent: str,
    confidence: float,
) -> Dict[str, int]:
    """Return a copy of scores with the confident-intent bonus applied."""
    boosted = dict(scores)
    persona: Optional[str] = INTENT_TO_PERSONA.get(intent)
    if persona is not None and confidence > INTENT_OVERRIDE_MIN_CONFIDENCE:
        boosted[persona] += INTENT_OVERRIDE_BONUS
    return boosted


def select_persona(scores: Dict[str, int]) -> str:
    """Pick the highest-scoring persona; quizmaster wins ties."""
    best_persona = "quizmaster"
    best_score = scores["quizmaster"]

    for persona in PERSONA_TAGS:
        score = scores[persona]
        if score > best_score:
            best_persona = persona
            best_score = score

    return best_persona
