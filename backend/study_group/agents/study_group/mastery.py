"""Mastery progress derived from a session's scored quiz answers.

Levels escalate through four gates, each requiring a minimum number of
answers AND a minimum accuracy. Gates are evaluated in ascending order, so
the most advanced satisfied gate sets the level and percentage.

Milestone flags use their own thresholds: a session can reach the
"mastered" level (percentage floor 75) well before the "mastered"
milestone (95) is set.
"""

import math
from typing import Callable, Iterable, List, NamedTuple

from pydantic import BaseModel, ConfigDict

from .state import Message


class MasteryGate(NamedTuple):
    level: str
    min_answers: int
    min_accuracy: float
    percentage: Callable[[int, float], float]


MASTERY_GATES: List[MasteryGate] = [
    MasteryGate("understanding", 1, 0.0, lambda total, accuracy: min(25, total * 5)),
    MasteryGate("practicing", 3, 50.0, lambda total, accuracy: 25 + min(25, (accuracy - 50) * 0.5)),
    MasteryGate("proficient", 5, 70.0, lambda total, accuracy: 50 + min(25, (accuracy - 70) * 0.8)),
    MasteryGate("mastered", 8, 85.0, lambda total, accuracy: 75 + min(25, (accuracy - 85) * 1.5)),
]

MILESTONE_THRESHOLDS = {
    "understanding": 25,
    "practicing": 50,
    "proficient": 75,
    "mastered": 95,
}


class MasteryMilestones(BaseModel):
    model_config = ConfigDict(frozen=True)

    understanding: bool = False
    practicing: bool = False
    proficient: bool = False
    mastered: bool = False


class MasteryProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "beginner"
    percentage: int = 0
    questions_answered: int = 0
    correct_answers: int = 0
    accuracy: int = 0
    milestones: MasteryMilestones = MasteryMilestones()


def round_half_up(value: float) -> int:
    """Round .5 upward, the way progress bars in the UI expect."""
    return int(math.floor(value + 0.5))


def calculate_mastery(messages: Iterable[Message]) -> MasteryProgress:
    """Compute mastery progress from a session's message log."""
    answers = [message for message in messages if message.is_scored_answer]
    if not answers:
        return MasteryProgress()

    total = len(answers)
    correct = sum(1 for message in answers if message.metadata.is_correct)
    accuracy = correct / total * 100

    level = "beginner"
    percentage = 0.0
    for gate in MASTERY_GATES:
        if total >= gate.min_answers and accuracy >= gate.min_accuracy:
            level = gate.level
            percentage = gate.percentage(total, accuracy)

    percentage = max(0.0, min(100.0, percentage))
    milestones = MasteryMilestones(
        **{name: percentage >= threshold for name, threshold in MILESTONE_THRESHOLDS.items()}
    )

    return MasteryProgress(
        level=level,
        percentage=round_half_up(percentage),
        questions_answered=total,
        correct_answers=correct,
        accuracy=round_half_up(accuracy),
        milestones=milestones,
    )
