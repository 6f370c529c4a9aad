"""Study Group API endpoints."""

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from study_group.agents.study_group.errors import SessionNotFoundError, UnknownPersonaError
from study_group.agents.study_group.mastery import MasteryProgress
from study_group.agents.study_group.orchestrator import (
    AnswerResult,
    OrchestrationFailure,
    PersonaActivation,
    StudyGroupOrchestrator,
    TurnResult,
)
from study_group.agents.study_group.state import Session
from study_group.api.dependencies import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/study-group", tags=["Study Group"])


# ==============================================================================
# Pydantic Models
# ==============================================================================

class ChatRequest(BaseModel):
    """A student message to the study group."""
    session_id: str = Field(min_length=1)
    student_id: str = Field(min_length=1)
    message: str = Field(min_length=1)
    topic: str | None = None


class ScoreAnswerRequest(BaseModel):
    """Submit a free-form answer to a quiz question."""
    session_id: str = Field(min_length=1)
    student_id: str = Field(min_length=1)
    question: str
    student_answer: str
    correct_answer: str | None = None
    topic: str | None = None


class TriggerPersonaRequest(BaseModel):
    """Bring a persona into the session by hand."""
    session_id: str = Field(min_length=1)
    student_id: str = Field(min_length=1)
    topic: str | None = None


class HandoffRequest(BaseModel):
    """Hand the session to another persona."""
    session_id: str = Field(min_length=1)
    student_id: str = Field(min_length=1)
    to_persona: str
    reason: str | None = None


# ==============================================================================
# Helpers
# ==============================================================================

def _unwrap(result: Union[TurnResult, AnswerResult, PersonaActivation, OrchestrationFailure]):
    """Turn an orchestration failure into an HTTP error."""
    if isinstance(result, OrchestrationFailure):
        raise HTTPException(
            status_code=(
                status.HTTP_502_BAD_GATEWAY
                if result.retryable
                else status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
            detail={
                "error_type": result.error_type,
                "message": result.message,
                "retryable": result.retryable,
            },
        )
    return result


def _not_found(exc: SessionNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _bad_persona(exc: UnknownPersonaError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


# ==============================================================================
# Chat & Quiz
# ==============================================================================

@router.post("/chat", response_model=TurnResult)
async def chat(
    request: ChatRequest,
    orchestrator: StudyGroupOrchestrator = Depends(get_orchestrator),
):
    """Route a student message to the best-suited persona."""
    logger.info(f"Chat turn for session {request.session_id}")
    result = await orchestrator.process_turn(
        session_id=request.session_id,
        student_id=request.student_id,
        message=request.message,
        topic_hint=request.topic,
    )
    return _unwrap(result)


@router.post("/score-answer", response_model=AnswerResult)
async def score_answer(
    request: ScoreAnswerRequest,
    orchestrator: StudyGroupOrchestrator = Depends(get_orchestrator),
):
    """Grade a quiz answer and report any auto-escalation."""
    try:
        result = await orchestrator.score_answer(
            session_id=request.session_id,
            student_id=request.student_id,
            question=request.question,
            student_answer=request.student_answer,
            correct_answer_hint=request.correct_answer,
            topic=request.topic,
        )
    except SessionNotFoundError as e:
        raise _not_found(e)
    return _unwrap(result)


# ==============================================================================
# Persona Control
# ==============================================================================

@router.post("/trigger/{persona}", response_model=PersonaActivation)
async def trigger_persona(
    persona: str,
    request: TriggerPersonaRequest,
    orchestrator: StudyGroupOrchestrator = Depends(get_orchestrator),
):
    """Activate a persona and post its greeting."""
    try:
        result = await orchestrator.trigger_persona(
            session_id=request.session_id,
            student_id=request.student_id,
            persona=persona,
            topic=request.topic,
        )
    except UnknownPersonaError as e:
        raise _bad_persona(e)
    return _unwrap(result)


@router.post("/handoff", response_model=PersonaActivation)
async def handoff(
    request: HandoffRequest,
    orchestrator: StudyGroupOrchestrator = Depends(get_orchestrator),
):
    """Hand an existing session to another persona."""
    try:
        result = await orchestrator.execute_handoff(
            session_id=request.session_id,
            student_id=request.student_id,
            to_persona=request.to_persona,
            reason=request.reason,
        )
    except UnknownPersonaError as e:
        raise _bad_persona(e)
    except SessionNotFoundError as e:
        raise _not_found(e)
    return _unwrap(result)


# ==============================================================================
# Session Queries
# ==============================================================================

@router.get("/session/{session_id}", response_model=Session)
async def get_session(
    session_id: str,
    orchestrator: StudyGroupOrchestrator = Depends(get_orchestrator),
):
    """Get the full session: messages, handoffs and quiz metrics."""
    session = await orchestrator.get_session(session_id)
    if session is None:
        raise _not_found(SessionNotFoundError(session_id))
    return session


@router.get("/sessions", response_model=List[Session])
async def list_sessions(
    student_id: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    orchestrator: StudyGroupOrchestrator = Depends(get_orchestrator),
):
    """List a student's sessions, most recently updated first."""
    return await orchestrator.list_sessions(student_id, limit)


@router.get("/mastery/{session_id}", response_model=MasteryProgress)
async def get_mastery(
    session_id: str,
    orchestrator: StudyGroupOrchestrator = Depends(get_orchestrator),
):
    """Get the mastery estimate for a session."""
    try:
        return await orchestrator.get_mastery(session_id)
    except SessionNotFoundError as e:
        raise _not_found(e)
