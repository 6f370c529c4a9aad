"""Collaborators the orchestrator depends on.

The orchestrator never talks to a network service or a database directly;
it is handed objects satisfying these protocols.
"""

from typing import List, Optional, Protocol

from .state import Session, StudentProfile


class ContentGenerator(Protocol):
    """Text generation capability (an LLM behind the scenes)."""

    async def generate(self, prompt: str, use_extended_reasoning: bool = False) -> str:
        ...


class SessionStore(Protocol):
    """Session persistence. Enforces session_id uniqueness."""

    async def find_by_key(self, session_id: str) -> Optional[Session]:
        ...

    async def create(self, session: Session) -> Session:
        ...

    async def save(self, session: Session) -> None:
        ...

    async def list_by_student(self, student_id: str, limit: int = 20) -> List[Session]:
        ...


class PerformanceHistory(Protocol):
    """Quiz performance log. Scores are returned most recent first."""

    async def recent_scores(self, student_id: str, limit: int) -> List[float]:
        ...

    async def record_score(
        self,
        student_id: str,
        session_id: str,
        score: float,
        topic: Optional[str] = None,
    ) -> None:
        ...


class StudentDirectory(Protocol):
    """Student profiles (preferences and engagement)."""

    async def get_profile(self, student_id: str) -> Optional[StudentProfile]:
        ...

    async def save_profile(self, profile: StudentProfile) -> None:
        ...
