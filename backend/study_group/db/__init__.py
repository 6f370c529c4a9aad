"""Database package for Study Group."""

from .base import (
    Base,
    close_all,
    get_engine,
    get_session_maker,
    init_databases,
)
from .memory import InMemoryPerformanceHistory, InMemorySessionStore, InMemoryStudentDirectory
from .stores import SqlPerformanceHistory, SqlSessionStore, SqlStudentDirectory

__all__ = [
    "Base",
    "close_all",
    "get_engine",
    "get_session_maker",
    "init_databases",
    "SqlSessionStore",
    "SqlPerformanceHistory",
    "SqlStudentDirectory",
    "InMemorySessionStore",
    "InMemoryPerformanceHistory",
    "InMemoryStudentDirectory",
]
