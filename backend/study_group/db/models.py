"""Database models for the Study Group workflow.

This module defines SQLAlchemy ORM models for:
- Study sessions (full session document plus queryable columns)
- Students (engagement and preferences)
- Performance records (one per scored answer)
"""

from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    JSON,
    String,
)

from .base import Base


class StudySessionRecord(Base):
    """A study group session.

    The ``document`` column holds the whole session (messages, handoffs,
    quiz metrics); the remaining columns mirror it for lookups.
    """
    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(255), unique=True, nullable=False, index=True)
    student_id = Column(String(255), nullable=False, index=True)
    status = Column(String(20), default="active", nullable=False)
    topic = Column(String(255), nullable=True)
    active_persona = Column(String(20), nullable=True)
    message_count = Column(Integer, default=0, nullable=False)
    handoff_count = Column(Integer, default=0, nullable=False)
    document = Column(JSON, nullable=False)
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("idx_study_session_student_updated", "student_id", "updated_at"),
    )


class StudentRecord(Base):
    """Student engagement data and learning preferences."""
    __tablename__ = "study_group_students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String(255), unique=True, nullable=False, index=True)
    weak_topics = Column(JSON, nullable=True)  # List of topic names
    streak_days = Column(Integer, default=0, nullable=False)
    preferred_explanation_style = Column(String(20), default="analogies", nullable=False)
    last_active_at = Column(DateTime, nullable=True)


class PerformanceRecord(Base):
    """A scored quiz answer."""
    __tablename__ = "study_group_performance"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String(255), nullable=False, index=True)
    session_id = Column(String(255), nullable=False, index=True)
    topic = Column(String(255), nullable=True)
    score = Column(Float, nullable=False)  # 0 to 100
    recorded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_performance_student_recorded", "student_id", "recorded_at"),
    )
