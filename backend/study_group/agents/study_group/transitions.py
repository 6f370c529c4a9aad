"""Session state machine.

``apply_event`` is a pure reducer ``(Session, Event) -> Session``.
Persisting the result is the caller's job.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from .state import (
    NO_PRIOR_PERSONA,
    AnswerEvaluation,
    HandoffRecord,
    Message,
    MessageMetadata,
    PersonaTag,
    QuizMetrics,
    Session,
    utcnow,
)


# =============================================================================
# Events
# =============================================================================

class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utcnow)


class StudentMessageReceived(_Event):
    content: str
    topic: Optional[str] = None


class PersonaSelected(_Event):
    """Chat-flow selection. Records a handoff only when replacing another persona."""

    persona: PersonaTag
    reason: str
    context: Optional[Dict[str, Any]] = None


class PersonaResponded(_Event):
    persona: PersonaTag
    content: str
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)


class TopicDetected(_Event):
    topic: Optional[str] = None


class AnswerScored(_Event):
    answer: str
    question: str
    evaluation: AnswerEvaluation


class HandoffExecuted(_Event):
    """Explicit handoff. Always recorded, even to the already-active persona."""

    to_persona: PersonaTag
    reason: str
    context: Optional[Dict[str, Any]] = None
    from_persona: Optional[str] = None


SessionEvent = Union[
    StudentMessageReceived,
    PersonaSelected,
    PersonaResponded,
    TopicDetected,
    AnswerScored,
    HandoffExecuted,
]


# =============================================================================
# Primitives
# =============================================================================

def new_session(session_id: str, student_id: str, topic: Optional[str] = None) -> Session:
    """Fresh session with empty logs and no active persona."""
    return Session(session_id=session_id, student_id=student_id, topic=topic or None)


def answer_outcomes(messages: Iterable[Message]) -> List[bool]:
    """Correctness of every scored answer, in log order."""
    return [bool(message.metadata.is_correct) for message in messages if message.is_scored_answer]


def count_consecutive(outcomes: Sequence[bool], value: bool) -> int:
    """Length of the run of ``value`` at the tail of outcomes."""
    count = 0
    for outcome in reversed(outcomes):
        if outcome != value:
            break
        count += 1
    return count


def _append_message(session: Session, message: Message, timestamp: datetime) -> Session:
    return session.model_copy(
        update={"messages": session.messages + (message,), "updated_at": timestamp}
    )


def _append_handoff(
    session: Session,
    from_persona: str,
    to_persona: str,
    reason: str,
    context: Optional[Dict[str, Any]],
    timestamp: datetime,
) -> Session:
    record = HandoffRecord(
        from_persona=from_persona,
        to_persona=to_persona,
        reason=reason,
        context=context,
        timestamp=timestamp,
    )
    return session.model_copy(
        update={
            "handoffs": session.handoffs + (record,),
            "active_persona": to_persona,
            "updated_at": timestamp,
        }
    )


def _record_quiz_score(metrics: QuizMetrics, evaluation: AnswerEvaluation) -> QuizMetrics:
    return metrics.model_copy(
        update={
            "total_questions": metrics.total_questions + 1,
            "correct_answers": metrics.correct_answers + (1 if evaluation.is_correct else 0),
            "scores": metrics.scores + (evaluation.score,),
            "last_score": evaluation.score,
        }
    )


# =============================================================================
# Reducer
# =============================================================================

def apply_event(session: Session, event: SessionEvent) -> Session:
    """Apply one event and return the resulting session."""
    if not isinstance(event, _Event):
        raise TypeError(f"Unsupported session event: {type(event).__name__}")
    timestamp = event.timestamp

    if isinstance(event, StudentMessageReceived):
        message = Message(
            speaker="student",
            content=event.content,
            timestamp=timestamp,
            metadata=MessageMetadata(topic=event.topic),
        )
        return _append_message(session, message, timestamp)

    if isinstance(event, PersonaSelected):
        previous = session.active_persona
        if previous is not None and previous != event.persona:
            return _append_handoff(
                session, previous, event.persona, event.reason, event.context, timestamp
            )
        return session.model_copy(update={"active_persona": event.persona, "updated_at": timestamp})

    if isinstance(event, PersonaResponded):
        message = Message(
            speaker=event.persona,
            content=event.content,
            timestamp=timestamp,
            metadata=event.metadata,
        )
        return _append_message(session, message, timestamp)

    if isinstance(event, TopicDetected):
        topic = (event.topic or "").strip()
        if session.topic is not None or not topic:
            return session
        return session.model_copy(update={"topic": topic, "updated_at": timestamp})

    if isinstance(event, AnswerScored):
        evaluation = event.evaluation
        message = Message(
            speaker="student",
            content=event.answer,
            timestamp=timestamp,
            metadata=MessageMetadata(
                is_answer=True,
                question=event.question,
                is_correct=evaluation.is_correct,
                score=evaluation.score,
                feedback=evaluation.feedback,
                understanding=evaluation.understanding,
            ),
        )
        session = _append_message(session, message, timestamp)
        return session.model_copy(
            update={"quiz_metrics": _record_quiz_score(session.quiz_metrics, evaluation)}
        )

    if isinstance(event, HandoffExecuted):
        source = event.from_persona or session.active_persona or NO_PRIOR_PERSONA
        return _append_handoff(
            session, source, event.to_persona, event.reason, event.context, timestamp
        )

    raise TypeError(f"Unsupported session event: {type(event).__name__}")


def apply_events(session: Session, events: Iterable[SessionEvent]) -> Session:
    for event in events:
        session = apply_event(session, event)
    return session
