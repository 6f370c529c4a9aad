"""
Test the SQLAlchemy collaborator adapters against SQLite.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from conftest import STUDENT_ID, scored_session
from study_group.agents.study_group.state import StudentProfile
from study_group.agents.study_group.transitions import (
    HandoffExecuted,
    PersonaResponded,
    apply_events,
    new_session,
)
from study_group.db.base import Base
from study_group.db import models  # noqa: F401
from study_group.db.stores import SqlPerformanceHistory, SqlSessionStore, SqlStudentDirectory


TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def session_maker():
    """In-memory SQLite database with all tables created."""
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.mark.asyncio
class TestSqlSessionStore:

    async def test_round_trip_keeps_full_document(self, session_maker):
        store = SqlSessionStore(session_maker)
        session = apply_events(
            scored_session([(True, 90), (False, 40)], session_id="sql-1"),
            [
                HandoffExecuted(to_persona="advocate", reason="escalation", context={"average_score": 91.0}),
                PersonaResponded(persona="advocate", content="Prove it."),
            ],
        )

        await store.create(new_session("sql-1", STUDENT_ID, "recursion"))
        await store.save(session)
        loaded = await store.find_by_key("sql-1")

        assert loaded == session
        assert loaded.message_count == 3
        assert loaded.handoff_count == 1
        assert loaded.quiz_metrics.scores == (90, 40)
        assert loaded.handoffs[0].context == {"average_score": 91.0}

    async def test_missing_session(self, session_maker):
        assert await SqlSessionStore(session_maker).find_by_key("nope") is None

    async def test_duplicate_key_rejected(self, session_maker):
        store = SqlSessionStore(session_maker)
        await store.create(new_session("dup", STUDENT_ID))
        with pytest.raises(IntegrityError):
            await store.create(new_session("dup", STUDENT_ID))

    async def test_list_by_student_newest_first(self, session_maker):
        store = SqlSessionStore(session_maker)
        base = datetime(2030, 1, 1)
        for index in range(3):
            session = new_session(f"s{index}", STUDENT_ID).model_copy(
                update={"updated_at": base + timedelta(hours=index)}
            )
            await store.save(session)
        await store.save(new_session("other", "someone-else"))

        sessions = await store.list_by_student(STUDENT_ID, limit=2)

        assert [s.session_id for s in sessions] == ["s2", "s1"]


@pytest.mark.asyncio
class TestSqlPerformanceHistory:

    async def test_recent_scores_most_recent_first(self, session_maker):
        history = SqlPerformanceHistory(session_maker)
        for score in [50, 60, 70]:
            await history.record_score(STUDENT_ID, "s1", score, topic="recursion")
        await history.record_score("someone-else", "s9", 10)

        assert await history.recent_scores(STUDENT_ID, 2) == [70.0, 60.0]


@pytest.mark.asyncio
class TestSqlStudentDirectory:

    async def test_profile_round_trip(self, session_maker):
        directory = SqlStudentDirectory(session_maker)
        assert await directory.get_profile(STUDENT_ID) is None

        profile = StudentProfile(
            student_id=STUDENT_ID,
            weak_topics=("graphs",),
            streak_days=3,
            preferred_explanation_style="visual",
            last_active_at=datetime(2030, 1, 1, 9, 30),
        )
        await directory.save_profile(profile)
        await directory.save_profile(profile.model_copy(update={"streak_days": 4}))

        loaded = await directory.get_profile(STUDENT_ID)
        assert loaded.streak_days == 4
        assert loaded.weak_topics == ("graphs",)
        assert loaded.preferred_explanation_style == "visual"
        assert loaded.last_active_at == datetime(2030, 1, 1, 9, 30)
