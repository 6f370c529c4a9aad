"""
Pytest configuration and fixtures for the Study Group tests.
"""

import json
import sys
from pathlib import Path
from typing import AsyncGenerator, List, Optional, Tuple

import pytest
from httpx import AsyncClient, ASGITransport

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from study_group.main import app
from study_group.api.dependencies import get_orchestrator
from study_group.agents.study_group.orchestrator import StudyGroupOrchestrator
from study_group.agents.study_group.state import (
    AnswerEvaluation,
    ContextSnapshot,
    Session,
    StudentProfile,
)
from study_group.agents.study_group.transitions import AnswerScored, apply_events, new_session
from study_group.db.memory import (
    InMemoryPerformanceHistory,
    InMemorySessionStore,
    InMemoryStudentDirectory,
)


STUDENT_ID = "student-1"

DEFAULT_REPLY = json.dumps(
    {"message": "Let's work through it together.", "intent": "explain", "confidence": 0.9}
)
DEFAULT_EVALUATION = json.dumps(
    {"isCorrect": True, "score": 90, "feedback": "Nice work.", "understanding": "deep"}
)
DEFAULT_INTENT = json.dumps({"intent": "other", "confidence": 0.5, "topic": ""})


class FakeContentGenerator:
    """Scripted stand-in for the LLM.

    Responses are chosen by prompt kind and consumed in order; when a queue
    runs dry the default for that kind is returned.
    """

    def __init__(
        self,
        replies: Optional[List[str]] = None,
        evaluations: Optional[List[str]] = None,
        intents: Optional[List[str]] = None,
        fail_replies: bool = False,
        fail_all: bool = False,
    ):
        self.replies = list(replies or [])
        self.evaluations = list(evaluations or [])
        self.intents = list(intents or [])
        self.fail_replies = fail_replies
        self.fail_all = fail_all
        self.calls: List[Tuple[str, bool]] = []

    @staticmethod
    def kind_of(prompt: str) -> str:
        if prompt.startswith("Classify the student's intent"):
            return "intent"
        if prompt.startswith("You are evaluating a student's answer"):
            return "evaluation"
        return "reply"

    def calls_of(self, kind: str) -> List[Tuple[str, bool]]:
        return [call for call in self.calls if self.kind_of(call[0]) == kind]

    async def generate(self, prompt: str, use_extended_reasoning: bool = False) -> str:
        self.calls.append((prompt, use_extended_reasoning))
        if self.fail_all:
            raise RuntimeError("generator offline")

        kind = self.kind_of(prompt)
        if kind == "intent":
            return self.intents.pop(0) if self.intents else DEFAULT_INTENT
        if kind == "evaluation":
            return self.evaluations.pop(0) if self.evaluations else DEFAULT_EVALUATION
        if self.fail_replies:
            raise RuntimeError("model overloaded")
        return self.replies.pop(0) if self.replies else DEFAULT_REPLY


def evaluation_json(is_correct: bool, score: float, feedback: str = "ok") -> str:
    return json.dumps(
        {"isCorrect": is_correct, "score": score, "feedback": feedback, "understanding": "surface"}
    )


def scored_session(
    outcomes: List[Tuple[bool, float]],
    session_id: str = "session-1",
    student_id: str = STUDENT_ID,
    topic: Optional[str] = "recursion",
) -> Session:
    """A session holding one scored answer per (is_correct, score) pair."""
    events = [
        AnswerScored(
            answer=f"answer {index}",
            question=f"question {index}",
            evaluation=AnswerEvaluation(is_correct=is_correct, score=score),
        )
        for index, (is_correct, score) in enumerate(outcomes)
    ]
    return apply_events(new_session(session_id, student_id, topic), events)


def make_context(**overrides) -> ContextSnapshot:
    """Context snapshot for a mid-session turn with nothing notable going on."""
    values = {"message_count": 4}
    values.update(overrides)
    return ContextSnapshot(**values)


# ==============================================================================
# Collaborator fixtures
# ==============================================================================

@pytest.fixture
def generator() -> FakeContentGenerator:
    return FakeContentGenerator()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def performance_history() -> InMemoryPerformanceHistory:
    return InMemoryPerformanceHistory()


@pytest.fixture
def student_directory() -> InMemoryStudentDirectory:
    return InMemoryStudentDirectory([StudentProfile(student_id=STUDENT_ID)])


@pytest.fixture
def orchestrator(
    generator: FakeContentGenerator,
    session_store: InMemorySessionStore,
    performance_history: InMemoryPerformanceHistory,
    student_directory: InMemoryStudentDirectory,
) -> StudyGroupOrchestrator:
    return StudyGroupOrchestrator(
        generator=generator,
        session_store=session_store,
        performance_history=performance_history,
        student_directory=student_directory,
    )


@pytest.fixture
async def async_client(orchestrator: StudyGroupOrchestrator) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client wired to the in-memory orchestrator."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()
