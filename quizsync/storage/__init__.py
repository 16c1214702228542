"""
Quiz store backends and the request-scoped store dependency
"""
from quizsync.config import settings
from quizsync.storage.base import QuizStore
from quizsync.storage.memory import MemoryQuizStore
from quizsync.storage.sql import SqlQuizStore

__all__ = ["QuizStore", "MemoryQuizStore", "SqlQuizStore", "get_quiz_store", "memory_store"]

# Process-wide store used when DATABASE_URL is unset
memory_store = MemoryQuizStore()


def get_quiz_store():
    """
    Yield the configured quiz store

    Relational store when DATABASE_URL is set (one session per request),
    in-memory store otherwise.
    """
    if not settings.DATABASE_URL:
        yield memory_store
        return

    from quizsync.database import SessionLocal

    db = SessionLocal()
    try:
        yield SqlQuizStore(db)
    finally:
        db.close()
