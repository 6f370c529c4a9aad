"""Study Group orchestrator.

Coordinates the four personas for one student: picks who answers each chat
turn, grades quiz answers, escalates strong performers, and reports
mastery progress. Every session change goes through the reducer in
``transitions.py``; this class loads sessions, runs the pure steps, and
saves the result.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel

from ...observability.langsmith import build_trace_config
from .context import advance_streak, build_context_snapshot
from .errors import GenerationError, SessionNotFoundError
from .escalation import ESCALATION_SOURCE, ESCALATION_TARGET, AutoHandoff, check_auto_escalation
from .graph import build_turn_graph
from .interfaces import ContentGenerator, PerformanceHistory, SessionStore, StudentDirectory
from .mastery import MasteryProgress, calculate_mastery, round_half_up
from .personas import build_greeting, get_persona
from .responder import evaluate_answer
from .state import (
    ContextSnapshot,
    HandoffRecord,
    MessageMetadata,
    Session,
    SuggestedHandoff,
    utcnow,
)
from .transitions import (
    AnswerScored,
    HandoffExecuted,
    PersonaResponded,
    StudentMessageReceived,
    TopicDetected,
    answer_outcomes,
    apply_event,
    apply_events,
    count_consecutive,
    new_session,
)

logger = logging.getLogger(__name__)

HANDOFF_HISTORY_LIMIT = 3


# =============================================================================
# Results
# =============================================================================

class OrchestrationFailure(BaseModel):
    """A collaborator failed; the caller may retry when ``retryable`` is set."""

    session_id: str
    error_type: str  # "generation_error" | "storage_error"
    message: str
    retryable: bool = True


class TurnResult(BaseModel):
    session_id: str
    persona: str
    persona_display_name: str
    response_text: str
    metadata: Dict[str, Any]
    suggested_handoff: Optional[SuggestedHandoff] = None
    mastery_progress: MasteryProgress
    handoff_history: List[HandoffRecord]


class QuizMetricsSummary(BaseModel):
    total: int
    correct: int
    accuracy: int
    average_score: int
    consecutive_correct: int


class AnswerResult(BaseModel):
    session_id: str
    is_correct: bool
    score: float
    feedback: str
    understanding: str
    quiz_metrics: QuizMetricsSummary
    auto_handoff: Optional[AutoHandoff] = None
    mastery_progress: MasteryProgress


class PersonaActivation(BaseModel):
    session_id: str
    persona: str
    persona_display_name: str
    from_persona: Optional[str] = None
    message: str


# =============================================================================
# Orchestrator
# =============================================================================

class StudyGroupOrchestrator:
    """
    Entry point for chat turns, quiz scoring and persona control.

    All collaborators are injected; the orchestrator never defaults a
    student identity.
    """

    def __init__(
        self,
        generator: ContentGenerator,
        session_store: SessionStore,
        performance_history: PerformanceHistory,
        student_directory: StudentDirectory,
        history_window: int = 10,
        performance_lookback: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.generator = generator
        self.session_store = session_store
        self.performance_history = performance_history
        self.student_directory = student_directory
        self.history_window = history_window
        self.performance_lookback = performance_lookback
        self.clock = clock
        self.turn_graph = build_turn_graph(generator)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _load_or_create(
        self,
        session_id: str,
        student_id: str,
        topic: Optional[str] = None,
    ) -> Session:
        session = await self.session_store.find_by_key(session_id)
        if session is None:
            session = await self.session_store.create(new_session(session_id, student_id, topic))
            logger.info(f"Created study group session {session_id} for student {student_id}")
        return session

    async def _require_session(self, session_id: str) -> Session:
        session = await self.session_store.find_by_key(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def _build_context(self, session: Session) -> ContextSnapshot:
        profile = await self.student_directory.get_profile(session.student_id)
        scores = await self.performance_history.recent_scores(
            session.student_id, self.performance_lookback
        )
        return build_context_snapshot(
            session, profile, scores, self.clock(), self.history_window
        )

    async def _record_engagement(self, student_id: str) -> None:
        """Advance the student's day streak. Best effort."""
        try:
            profile = await self.student_directory.get_profile(student_id)
            if profile is None:
                return
            await self.student_directory.save_profile(advance_streak(profile, self.clock()))
        except Exception as e:
            logger.warning(f"Could not update engagement for student {student_id}: {e}")

    async def _record_score(
        self, student_id: str, session_id: str, score: float, topic: Optional[str]
    ) -> None:
        """Append a graded score to the student's history. Best effort."""
        try:
            await self.performance_history.record_score(student_id, session_id, score, topic)
        except Exception as e:
            logger.warning(f"Could not record score for session {session_id}: {e}")

    @staticmethod
    def _storage_failure(session_id: str, exc: Exception) -> OrchestrationFailure:
        logger.exception(f"Session store failure for {session_id}")
        return OrchestrationFailure(
            session_id=session_id,
            error_type="storage_error",
            message=str(exc),
            retryable=True,
        )

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    async def process_turn(
        self,
        session_id: str,
        student_id: str,
        message: str,
        topic_hint: Optional[str] = None,
    ) -> Union[TurnResult, OrchestrationFailure]:
        """
        Handle one student chat message.

        Args:
            session_id: Session identifier; created on first use
            student_id: Owner of the session
            message: The student's message
            topic_hint: Optional topic supplied by the client

        Returns:
            TurnResult, or OrchestrationFailure when the generator or the
            store fails. After a generation failure the session keeps the
            student message and nothing else.
        """
        try:
            loaded = await self._load_or_create(session_id, student_id, topic_hint)
            session = apply_event(loaded, TopicDetected(topic=topic_hint))
            context = await self._build_context(session)
        except Exception as e:
            return self._storage_failure(session_id, e)

        received = StudentMessageReceived(content=message, topic=topic_hint)
        logged = apply_event(session, received)

        config = build_trace_config(
            session_id,
            run_name="study_group_turn",
            tags=["chat_turn"],
            metadata={"student_id": student_id},
        )
        try:
            final = await self.turn_graph.invoke(
                {
                    "session": logged,
                    "message": message,
                    "topic_hint": topic_hint,
                    "context": context,
                },
                config=config,
            )
        except GenerationError as e:
            logger.error(f"Turn failed for session {session_id}: {e}")
            try:
                await self.session_store.save(apply_event(loaded, received))
            except Exception:
                logger.exception(f"Could not keep student message for session {session_id}")
            return OrchestrationFailure(
                session_id=session_id,
                error_type="generation_error",
                message=str(e),
                retryable=True,
            )

        session = final["session"]
        try:
            await self.session_store.save(session)
        except Exception as e:
            return self._storage_failure(session_id, e)

        await self._record_engagement(student_id)

        persona = get_persona(final["persona"])
        reply = final["reply"]
        intent = final["intent"]

        return TurnResult(
            session_id=session_id,
            persona=persona.tag,
            persona_display_name=persona.name,
            response_text=reply.message,
            metadata={
                "intent": intent.intent,
                "intent_confidence": intent.confidence,
                "reply_intent": reply.intent,
                "confidence": reply.confidence,
                "topic": session.topic,
                "scores": final["scores"],
                "session_duration": context.session_duration,
                "message_count": session.message_count,
            },
            suggested_handoff=reply.handoff,
            mastery_progress=calculate_mastery(session.messages),
            handoff_history=list(session.handoffs[-HANDOFF_HISTORY_LIMIT:]),
        )

    # -------------------------------------------------------------------------
    # Quiz scoring
    # -------------------------------------------------------------------------

    async def score_answer(
        self,
        session_id: str,
        student_id: str,
        question: str,
        student_answer: str,
        correct_answer_hint: Optional[str] = None,
        topic: Optional[str] = None,
    ) -> Union[AnswerResult, OrchestrationFailure]:
        """
        Grade a quiz answer, update quiz metrics and check auto-escalation.

        A topic fills in the session topic only if none is set yet.

        Raises:
            SessionNotFoundError: If the session was never initialised.
        """
        try:
            session = await self._require_session(session_id)
        except SessionNotFoundError:
            raise
        except Exception as e:
            return self._storage_failure(session_id, e)

        evaluation = await evaluate_answer(
            question, student_answer, self.generator, correct_answer_hint
        )
        session = apply_events(
            session,
            [
                TopicDetected(topic=topic),
                AnswerScored(answer=student_answer, question=question, evaluation=evaluation),
            ],
        )

        auto_handoff = check_auto_escalation(session, evaluation.score)
        if auto_handoff is not None:
            session = apply_events(
                session,
                [
                    HandoffExecuted(
                        to_persona=ESCALATION_TARGET,
                        from_persona=ESCALATION_SOURCE,
                        reason=auto_handoff.reason,
                        context={
                            "average_score": auto_handoff.average_score,
                            "consecutive_correct": auto_handoff.consecutive_correct,
                            "topic": session.topic,
                        },
                    ),
                    PersonaResponded(
                        persona=ESCALATION_TARGET,
                        content=build_greeting(ESCALATION_TARGET, session.topic),
                        metadata=MessageMetadata(
                            handoff_from=ESCALATION_SOURCE,
                            reason="High performance auto-handoff",
                        ),
                    ),
                ],
            )

        try:
            await self.session_store.save(session)
        except Exception as e:
            return self._storage_failure(session_id, e)

        await self._record_score(student_id, session_id, evaluation.score, session.topic)

        metrics = session.quiz_metrics
        average = metrics.rolling_average() or 0.0

        return AnswerResult(
            session_id=session_id,
            is_correct=evaluation.is_correct,
            score=evaluation.score,
            feedback=evaluation.feedback,
            understanding=evaluation.understanding,
            quiz_metrics=QuizMetricsSummary(
                total=metrics.total_questions,
                correct=metrics.correct_answers,
                accuracy=round_half_up(metrics.correct_answers / metrics.total_questions * 100),
                average_score=round_half_up(average),
                consecutive_correct=count_consecutive(answer_outcomes(session.messages), True),
            ),
            auto_handoff=auto_handoff,
            mastery_progress=calculate_mastery(session.messages),
        )

    # -------------------------------------------------------------------------
    # Persona control
    # -------------------------------------------------------------------------

    async def trigger_persona(
        self,
        session_id: str,
        student_id: str,
        persona: str,
        topic: Optional[str] = None,
    ) -> Union[PersonaActivation, OrchestrationFailure]:
        """
        Bring a persona in by hand and post its greeting.

        Raises:
            UnknownPersonaError: If persona is not one of the four tags.
        """
        selected = get_persona(persona)

        try:
            session = await self._load_or_create(session_id, student_id, topic)
            profile = await self.student_directory.get_profile(student_id)
        except Exception as e:
            return self._storage_failure(session_id, e)

        session = apply_event(session, TopicDetected(topic=topic))
        previous = session.active_persona
        greeting = build_greeting(
            selected.tag,
            topic or session.topic,
            profile.streak_days if profile else 0,
        )

        events = []
        if previous != selected.tag:
            events.append(HandoffExecuted(to_persona=selected.tag, reason="Manual trigger"))
        events.append(
            PersonaResponded(
                persona=selected.tag,
                content=greeting,
                metadata=MessageMetadata(topic=topic or session.topic),
            )
        )
        session = apply_events(session, events)

        try:
            await self.session_store.save(session)
        except Exception as e:
            return self._storage_failure(session_id, e)

        return PersonaActivation(
            session_id=session_id,
            persona=selected.tag,
            persona_display_name=selected.name,
            from_persona=previous if previous != selected.tag else None,
            message=greeting,
        )

    async def execute_handoff(
        self,
        session_id: str,
        student_id: str,
        to_persona: str,
        reason: Optional[str] = None,
    ) -> Union[PersonaActivation, OrchestrationFailure]:
        """
        Hand an existing session to another persona.

        Raises:
            UnknownPersonaError: If to_persona is not one of the four tags.
            SessionNotFoundError: If the session does not exist.
        """
        target = get_persona(to_persona)

        try:
            session = await self._require_session(session_id)
            profile = await self.student_directory.get_profile(student_id)
        except SessionNotFoundError:
            raise
        except Exception as e:
            return self._storage_failure(session_id, e)

        previous = session.active_persona
        greeting = build_greeting(
            target.tag, session.topic, profile.streak_days if profile else 0
        )
        session = apply_events(
            session,
            [
                HandoffExecuted(
                    to_persona=target.tag,
                    reason=reason or "Agent initiated handoff",
                    context={"requested_by": student_id},
                ),
                PersonaResponded(
                    persona=target.tag,
                    content=greeting,
                    metadata=MessageMetadata(handoff_from=previous, reason=reason),
                ),
            ],
        )

        try:
            await self.session_store.save(session)
        except Exception as e:
            return self._storage_failure(session_id, e)

        return PersonaActivation(
            session_id=session_id,
            persona=target.tag,
            persona_display_name=target.name,
            from_persona=previous,
            message=greeting,
        )

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    async def get_session(self, session_id: str) -> Optional[Session]:
        return await self.session_store.find_by_key(session_id)

    async def get_mastery(self, session_id: str) -> MasteryProgress:
        session = await self._require_session(session_id)
        return calculate_mastery(session.messages)

    async def list_sessions(self, student_id: str, limit: int = 20) -> List[Session]:
        return await self.session_store.list_by_student(student_id, limit)
