"""
Database engine and session management
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
import logging

from quizsync.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(url: str):
    """Create an engine; SQLite needs cross-thread access under the test client"""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL) if settings.DATABASE_URL else None
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Yield a session and always close it"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create tables when a relational store is configured"""
    if engine is None:
        logger.info("DATABASE_URL not set, using in-memory quiz store")
        return

    # Import models so they register on Base.metadata
    import quizsync.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
