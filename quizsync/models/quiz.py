"""
Quiz model - stores authored quizzes with sync metadata
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, JSON, func
from sqlalchemy.dialects.postgresql import JSONB
from quizsync.database import Base
import uuid

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Quiz(Base):
    """
    Quizzes table - one row per quiz, keyed by its stable cross-device id
    """
    __tablename__ = "quizzes"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    questions = Column(JSONType, nullable=False)  # [{question, options, correct_answer, ...}]
    timer = Column(Integer, nullable=False)
    category = Column(String(50), nullable=False)
    history = Column(JSONType)  # [{date, score, total_questions, time_spent, ...}]
    is_public = Column(Boolean, nullable=False, default=True, index=True)
    password = Column(String(255))
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_taken = Column(DateTime(timezone=True))

    def __repr__(self):
        return f"<Quiz(id={self.id}, title={self.title}, version={self.version})>"
