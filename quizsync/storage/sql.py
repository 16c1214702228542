"""
Relational quiz store backed by SQLAlchemy
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from quizsync.models import Quiz
from quizsync.storage.base import QuizStore, parse_datetime

logger = logging.getLogger(__name__)

CONTENT_FIELDS = (
    "title",
    "description",
    "questions",
    "timer",
    "category",
    "history",
    "is_public",
    "password",
)


class SqlQuizStore(QuizStore):
    """Quiz store over one SQLAlchemy session (one per request)"""

    def __init__(self, db: Session):
        self.db = db

    def list_quizzes(self, public_only: bool = False) -> List[Dict[str, Any]]:
        query = self.db.query(Quiz)
        if public_only:
            query = query.filter(Quiz.is_public.is_(True))
        return [self._to_record(quiz) for quiz in query.order_by(Quiz.created_at, Quiz.id).all()]

    def get_quiz(self, quiz_id: str) -> Optional[Dict[str, Any]]:
        quiz = self.db.get(Quiz, quiz_id)
        return self._to_record(quiz) if quiz else None

    def create_quiz(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = self._new_record(data)
        quiz = Quiz(
            id=record["id"],
            version=record["version"],
            created_at=parse_datetime(record["created_at"]),
        )
        self._apply(quiz, record)

        try:
            self.db.add(quiz)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(quiz)
        logger.info(f"Quiz created: {quiz.id}")
        return self._to_record(quiz)

    def update_quiz(self, quiz_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        quiz = self.db.get(Quiz, quiz_id)
        if not quiz:
            return None

        self._apply(quiz, changes)
        quiz.version = (quiz.version or 0) + 1

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(quiz)
        logger.info(f"Quiz updated: {quiz_id} -> v{quiz.version}")
        return self._to_record(quiz)

    def put_quiz(self, record: Dict[str, Any]) -> Dict[str, Any]:
        quiz = self._stage(record)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(quiz)
        return self._to_record(quiz)

    def delete_quiz(self, quiz_id: str) -> bool:
        quiz = self.db.get(Quiz, quiz_id)
        if not quiz:
            return False

        try:
            self.db.delete(quiz)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Quiz deleted: {quiz_id}")
        return True

    def _persist(self, records: Iterable[Dict[str, Any]]) -> None:
        """Write all reconciled records in one transaction"""
        try:
            for record in records:
                self._stage(record)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _stage(self, record: Dict[str, Any]) -> Quiz:
        quiz = self.db.get(Quiz, record["id"])
        if quiz is None:
            quiz = Quiz(id=record["id"])
            self.db.add(quiz)

        self._apply(quiz, record)
        quiz.version = record.get("version") or 1
        if record.get("created_at"):
            quiz.created_at = parse_datetime(record["created_at"])
        return quiz

    @staticmethod
    def _apply(quiz: Quiz, data: Dict[str, Any]) -> None:
        for name in CONTENT_FIELDS:
            if name in data:
                setattr(quiz, name, data[name])
        if "last_taken" in data:
            quiz.last_taken = parse_datetime(data["last_taken"])

    @staticmethod
    def _to_record(quiz: Quiz) -> Dict[str, Any]:
        return {
            "id": quiz.id,
            "version": quiz.version,
            "title": quiz.title,
            "description": quiz.description or "",
            "questions": quiz.questions or [],
            "timer": quiz.timer,
            "category": quiz.category,
            "is_public": bool(quiz.is_public),
            "password": quiz.password,
            "history": quiz.history or [],
            "created_at": quiz.created_at.isoformat() if quiz.created_at else None,
            "last_taken": quiz.last_taken.isoformat() if quiz.last_taken else None,
        }
