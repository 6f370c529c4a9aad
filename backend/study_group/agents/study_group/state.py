"""State definitions for the Study Group workflow.

Every model here is immutable. Sessions change only through the reducer in
``transitions.py``, which returns new instances.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

PersonaTag = Literal["quizmaster", "explainer", "advocate", "motivator"]
Speaker = Literal["student", "quizmaster", "explainer", "advocate", "motivator"]
HandoffSource = Literal["quizmaster", "explainer", "advocate", "motivator", "orchestrator"]
SessionStatus = Literal["active", "completed", "paused"]
ExplanationStyle = Literal["analogies", "technical", "visual", "step-by-step"]

# Selection order matters: quizmaster is the default and wins ties.
PERSONA_TAGS: Tuple[str, ...] = ("quizmaster", "explainer", "advocate", "motivator")

# Handoff source for the first activation of a session.
NO_PRIOR_PERSONA = "orchestrator"

ROLLING_WINDOW = 5


def utcnow() -> datetime:
    return datetime.utcnow()


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class SuggestedHandoff(FrozenModel):
    """A persona's own recommendation to pass the student on."""

    to: PersonaTag
    reason: str = ""


class MessageMetadata(FrozenModel):
    """Recognized metadata fields of a logged message."""

    topic: Optional[str] = None
    intent: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    # Quiz scoring fields
    is_answer: bool = False
    question: Optional[str] = None
    is_correct: Optional[bool] = None
    score: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    feedback: Optional[str] = None
    understanding: Optional[str] = None

    # Handoff fields
    handoff_from: Optional[str] = None
    reason: Optional[str] = None
    suggested_handoff: Optional[SuggestedHandoff] = None


class Message(FrozenModel):
    """A single turn in the session log."""

    speaker: Speaker
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)

    @property
    def is_scored_answer(self) -> bool:
        return self.metadata.is_answer and self.metadata.is_correct is not None


class HandoffRecord(FrozenModel):
    """A recorded transition of the active persona."""

    from_persona: HandoffSource
    to_persona: PersonaTag
    reason: str
    context: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=utcnow)


class QuizMetrics(FrozenModel):
    """Running quiz totals embedded in a session."""

    total_questions: int = 0
    correct_answers: int = 0
    scores: Tuple[float, ...] = ()
    last_score: Optional[float] = None

    def recent_scores(self, window: int = ROLLING_WINDOW) -> Tuple[float, ...]:
        return self.scores[-window:]

    def rolling_average(self, window: int = ROLLING_WINDOW) -> Optional[float]:
        recent = self.recent_scores(window)
        if not recent:
            return None
        return sum(recent) / len(recent)


class AnswerEvaluation(FrozenModel):
    """Grading result for one free-form quiz answer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_correct: bool = Field(alias="isCorrect")
    score: float = Field(ge=0.0, le=100.0)
    feedback: str = ""
    understanding: str = "unclear"


class Session(FrozenModel):
    """A continuous tutoring interaction between one student and the study group."""

    session_id: str
    student_id: str
    topic: Optional[str] = None
    active_persona: Optional[PersonaTag] = None
    status: SessionStatus = "active"
    messages: Tuple[Message, ...] = ()
    handoffs: Tuple[HandoffRecord, ...] = ()
    quiz_metrics: QuizMetrics = Field(default_factory=QuizMetrics)
    started_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def message_count(self) -> int:
        return len(self.messages)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def handoff_count(self) -> int:
        return len(self.handoffs)


class StudentProfile(FrozenModel):
    """Per-student preferences and engagement data."""

    student_id: str
    weak_topics: Tuple[str, ...] = ()
    streak_days: int = 0
    preferred_explanation_style: ExplanationStyle = "analogies"
    last_active_at: Optional[datetime] = None


class ContextSnapshot(FrozenModel):
    """Per-turn input to the score engine. Rebuilt every turn, never stored."""

    topic: Optional[str] = None
    recent_score: Optional[float] = None
    weak_topics: Tuple[str, ...] = ()
    streak_days: int = 0
    session_duration: int = 0  # minutes
    consecutive_correct: int = 0
    consecutive_wrong: int = 0
    last_persona: Optional[PersonaTag] = None
    message_count: int = 0
    explanation_style: ExplanationStyle = "analogies"
    history: Tuple[Message, ...] = ()
