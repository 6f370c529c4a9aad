"""Auto-escalation of strong quiz performers to The Challenger."""

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .mastery import round_half_up
from .state import ROLLING_WINDOW, Session
from .transitions import answer_outcomes, count_consecutive

logger = logging.getLogger(__name__)

ESCALATION_MIN_AVERAGE = 85
ESCALATION_MIN_STREAK = 3
ESCALATION_TARGET = "advocate"
ESCALATION_SOURCE = "quizmaster"


class AutoHandoff(BaseModel):
    """A forced handoff plus the reasoning trace shown in the UI."""

    model_config = ConfigDict(frozen=True)

    from_persona: str = ESCALATION_SOURCE
    to: str = ESCALATION_TARGET
    reason: str
    thinking: List[str]
    average_score: float
    consecutive_correct: int


def check_auto_escalation(session: Session, latest_score: float) -> Optional[AutoHandoff]:
    """
    Decide whether the latest scored answer triggers escalation.

    Must be called on the session after the answer has been recorded.

    Args:
        session: Session including the newly scored answer
        latest_score: Score (0-100) of the newly scored answer

    Returns:
        AutoHandoff when the rolling average and correct streak both clear
        their thresholds, else None
    """
    recent = session.quiz_metrics.recent_scores(ROLLING_WINDOW)
    average = session.quiz_metrics.rolling_average(ROLLING_WINDOW)
    if average is None:
        return None

    streak = count_consecutive(answer_outcomes(session.messages), True)
    if average < ESCALATION_MIN_AVERAGE or streak < ESCALATION_MIN_STREAK:
        return None

    shown_average = round_half_up(average)
    logger.info(
        f"Auto-escalating session {session.session_id}: "
        f"average={average:.1f}, consecutive_correct={streak}"
    )

    return AutoHandoff(
        reason=(
            f"🔥 Impressive! {streak} correct answers in a row with {shown_average}% "
            "average. Time for a real challenge!"
        ),
        thinking=[
            f"Analyzing: Student scored {round_half_up(latest_score)}% on this question",
            f"Rolling average: {shown_average}% over last {len(recent)} questions",
            f"Consecutive correct: {streak}",
            f"Decision: Score > {ESCALATION_MIN_AVERAGE}% threshold → "
            "Engaging Devil's Advocate for mastery testing",
        ],
        average_score=average,
        consecutive_correct=streak,
    )
