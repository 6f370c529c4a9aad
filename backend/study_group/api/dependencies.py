"""FastAPI dependencies for the Study Group API."""

import logging
from functools import lru_cache

from ..agents.base.llm import LLMContentGenerator
from ..agents.study_group.orchestrator import StudyGroupOrchestrator
from ..core.config import get_settings
from ..db.base import get_session_maker
from ..db.memory import InMemoryPerformanceHistory, InMemorySessionStore, InMemoryStudentDirectory
from ..db.stores import SqlPerformanceHistory, SqlSessionStore, SqlStudentDirectory

logger = logging.getLogger(__name__)


@lru_cache()
def get_orchestrator() -> StudyGroupOrchestrator:
    """Build the process-wide orchestrator for the configured storage backend."""
    settings = get_settings()

    if settings.STORAGE_BACKEND == "memory":
        session_store = InMemorySessionStore()
        performance_history = InMemoryPerformanceHistory()
        student_directory = InMemoryStudentDirectory()
    else:
        session_maker = get_session_maker()
        session_store = SqlSessionStore(session_maker)
        performance_history = SqlPerformanceHistory(session_maker)
        student_directory = SqlStudentDirectory(session_maker)

    logger.info(f"Study group orchestrator using {settings.STORAGE_BACKEND} storage")

    return StudyGroupOrchestrator(
        generator=LLMContentGenerator(),
        session_store=session_store,
        performance_history=performance_history,
        student_directory=student_directory,
        history_window=settings.HISTORY_WINDOW,
        performance_lookback=settings.PERFORMANCE_LOOKBACK,
    )
