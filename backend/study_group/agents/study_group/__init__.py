"""Study Group Agents - four tutoring personas behind one orchestrator.

This package provides:
- Personas: Quizmaster, Explainer, Advocate, Motivator
- Intent classification: keyword rules first, generator fallback
- Score engine: context-based persona selection with intent override
- Session state machine: immutable sessions driven by events
- Mastery estimation and auto-escalation for strong performers

A chat turn runs as a small LangGraph pipeline
(classify -> score -> select -> respond -> record); quiz grading and
manual persona control are handled by the orchestrator directly.
"""

from .errors import GenerationError, SessionNotFoundError, StudyGroupError, UnknownPersonaError
from .escalation import AutoHandoff, check_auto_escalation
from .graph import TurnGraph, build_turn_graph
from .intent import IntentResult, classify_intent
from .mastery import MasteryProgress, calculate_mastery
from .orchestrator import (
    AnswerResult,
    OrchestrationFailure,
    PersonaActivation,
    StudyGroupOrchestrator,
    TurnResult,
)
from .personas import PERSONAS, Persona, build_greeting, get_persona
from .scoring import apply_intent_override, calculate_persona_scores, select_persona
from .state import (
    PERSONA_TAGS,
    ContextSnapshot,
    HandoffRecord,
    Message,
    MessageMetadata,
    QuizMetrics,
    Session,
    StudentProfile,
)
from .transitions import apply_event, apply_events, new_session

__all__ = [
    # Orchestrator
    "StudyGroupOrchestrator",
    "TurnResult",
    "AnswerResult",
    "PersonaActivation",
    "OrchestrationFailure",
    # Graph
    "TurnGraph",
    "build_turn_graph",
    # Personas
    "PERSONAS",
    "Persona",
    "build_greeting",
    "get_persona",
    # Engines
    "IntentResult",
    "classify_intent",
    "calculate_persona_scores",
    "apply_intent_override",
    "select_persona",
    "MasteryProgress",
    "calculate_mastery",
    "AutoHandoff",
    "check_auto_escalation",
    # State
    "PERSONA_TAGS",
    "ContextSnapshot",
    "HandoffRecord",
    "Message",
    "MessageMetadata",
    "QuizMetrics",
    "Session",
    "StudentProfile",
    "apply_event",
    "apply_events",
    "new_session",
    # Errors
    "StudyGroupError",
    "UnknownPersonaError",
    "SessionNotFoundError",
    "GenerationError",
]
