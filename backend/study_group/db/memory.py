"""In-process adapters for the Study Group collaborator protocols.

Used when ``STORAGE_BACKEND=memory`` and by the test suite. Nothing
survives a restart.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from ..agents.study_group.state import Session, StudentProfile


class InMemorySessionStore:
    def __init__(self):
        self.sessions: Dict[str, Session] = {}

    async def find_by_key(self, session_id: str) -> Optional[Session]:
        return self.sessions.get(session_id)

    async def create(self, session: Session) -> Session:
        if session.session_id in self.sessions:
            raise ValueError(f"Session already exists: {session.session_id}")
        self.sessions[session.session_id] = session
        return session

    async def save(self, session: Session) -> None:
        self.sessions[session.session_id] = session

    async def list_by_student(self, student_id: str, limit: int = 20) -> List[Session]:
        owned = [s for s in self.sessions.values() if s.student_id == student_id]
        owned.sort(key=lambda s: s.updated_at, reverse=True)
        return owned[:limit]


class InMemoryPerformanceHistory:
    def __init__(self, scores: Optional[Dict[str, Iterable[float]]] = None):
        # Oldest first per student
        self.scores: Dict[str, List[float]] = defaultdict(list)
        for student_id, values in (scores or {}).items():
            self.scores[student_id].extend(values)

    async def recent_scores(self, student_id: str, limit: int) -> List[float]:
        return list(reversed(self.scores.get(student_id, [])))[:limit]

    async def record_score(
        self,
        student_id: str,
        session_id: str,
        score: float,
        topic: Optional[str] = None,
    ) -> None:
        self.scores[student_id].append(score)


class InMemoryStudentDirectory:
    def __init__(self, profiles: Optional[Iterable[StudentProfile]] = None):
        self.profiles: Dict[str, StudentProfile] = {
            profile.student_id: profile for profile in (profiles or ())
        }

    async def get_profile(self, student_id: str) -> Optional[StudentProfile]:
        return self.profiles.get(student_id)

    async def save_profile(self, profile: StudentProfile) -> None:
        self.profiles[profile.student_id] = profile
