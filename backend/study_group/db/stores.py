"""SQLAlchemy adapters for the Study Group collaborator protocols.

Sessions are stored as JSON documents keyed by their unique ``session_id``;
the indexed columns next to the document only serve lookups and listings.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..agents.study_group.state import Session, StudentProfile
from .models import PerformanceRecord, StudentRecord, StudySessionRecord

logger = logging.getLogger(__name__)


def _session_columns(session: Session) -> dict:
    return {
        "student_id": session.student_id,
        "status": session.status,
        "topic": session.topic,
        "active_persona": session.active_persona,
        "message_count": session.message_count,
        "handoff_count": session.handoff_count,
        "document": session.model_dump(mode="json"),
        "started_at": session.started_at,
        "updated_at": session.updated_at,
    }


def _to_session(record: StudySessionRecord) -> Session:
    return Session.model_validate(record.document)


# =============================================================================
# Sessions
# =============================================================================

class SqlSessionStore:
    """Session persistence backed by the ``study_sessions`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def find_by_key(self, session_id: str) -> Optional[Session]:
        async with self.session_maker() as db:
            result = await db.execute(
                select(StudySessionRecord).where(StudySessionRecord.session_id == session_id)
            )
            record = result.scalar_one_or_none()
            return _to_session(record) if record else None

    async def create(self, session: Session) -> Session:
        """Insert a new session. The unique index rejects duplicate keys."""
        async with self.session_maker() as db:
            db.add(StudySessionRecord(session_id=session.session_id, **_session_columns(session)))
            await db.commit()
        logger.debug(f"Stored new session {session.session_id}")
        return session

    async def save(self, session: Session) -> None:
        async with self.session_maker() as db:
            result = await db.execute(
                select(StudySessionRecord).where(
                    StudySessionRecord.session_id == session.session_id
                )
            )
            record = result.scalar_one_or_none()
            if record is None:
                db.add(StudySessionRecord(session_id=session.session_id, **_session_columns(session)))
            else:
                for column, value in _session_columns(session).items():
                    setattr(record, column, value)
            await db.commit()

    async def list_by_student(self, student_id: str, limit: int = 20) -> List[Session]:
        async with self.session_maker() as db:
            result = await db.execute(
                select(StudySessionRecord)
                .where(StudySessionRecord.student_id == student_id)
                .order_by(StudySessionRecord.updated_at.desc())
                .limit(limit)
            )
            return [_to_session(record) for record in result.scalars().all()]


# =============================================================================
# Performance
# =============================================================================

class SqlPerformanceHistory:
    """Quiz score log backed by the ``study_group_performance`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def recent_scores(self, student_id: str, limit: int) -> List[float]:
        async with self.session_maker() as db:
            result = await db.execute(
                select(PerformanceRecord.score)
                .where(PerformanceRecord.student_id == student_id)
                .order_by(PerformanceRecord.recorded_at.desc(), PerformanceRecord.id.desc())
                .limit(limit)
            )
            return [float(score) for score in result.scalars().all()]

    async def record_score(
        self,
        student_id: str,
        session_id: str,
        score: float,
        topic: Optional[str] = None,
    ) -> None:
        async with self.session_maker() as db:
            db.add(
                PerformanceRecord(
                    student_id=student_id,
                    session_id=session_id,
                    topic=topic,
                    score=score,
                )
            )
            await db.commit()


# =============================================================================
# Students
# =============================================================================

class SqlStudentDirectory:
    """Student profiles backed by the ``study_group_students`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def get_profile(self, student_id: str) -> Optional[StudentProfile]:
        async with self.session_maker() as db:
            result = await db.execute(
                select(StudentRecord).where(StudentRecord.student_id == student_id)
            )
            record = result.scalar_one_or_none()
            if record is None:
                return None
            return StudentProfile(
                student_id=record.student_id,
                weak_topics=tuple(record.weak_topics or ()),
                streak_days=record.streak_days or 0,
                preferred_explanation_style=record.preferred_explanation_style or "analogies",
                last_active_at=record.last_active_at,
            )

    async def save_profile(self, profile: StudentProfile) -> None:
        async with self.session_maker() as db:
            result = await db.execute(
                select(StudentRecord).where(StudentRecord.student_id == profile.student_id)
            )
            record = result.scalar_one_or_none()
            if record is None:
                record = StudentRecord(student_id=profile.student_id)
                db.add(record)

            record.weak_topics = list(profile.weak_topics)
            record.streak_days = profile.streak_days
            record.preferred_explanation_style = profile.preferred_explanation_style
            record.last_active_at = profile.last_active_at
            await db.commit()
