"""
In-memory quiz store, used when no DATABASE_URL is configured
"""
import copy
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from quizsync.storage.base import QuizStore

logger = logging.getLogger(__name__)


class MemoryQuizStore(QuizStore):
    """Ordered dict of records; returns copies so callers cannot alias stored state"""

    def __init__(self):
        self._quizzes: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()

    def list_quizzes(self, public_only: bool = False) -> List[Dict[str, Any]]:
        return [
            copy.deepcopy(quiz)
            for quiz in self._quizzes.values()
            if not public_only or quiz.get("is_public")
        ]

    def get_quiz(self, quiz_id: str) -> Optional[Dict[str, Any]]:
        quiz = self._quizzes.get(quiz_id)
        return copy.deepcopy(quiz) if quiz is not None else None

    def create_quiz(self, data: Dict[str, Any]) -> Dict[str, Any]:
        record = self._new_record(copy.deepcopy(data))
        if record["id"] in self._quizzes:
            raise ValueError(f"Quiz {record['id']} already exists")
        self._quizzes[record["id"]] = record
        logger.info(f"Quiz created: {record['id']}")
        return copy.deepcopy(record)

    def update_quiz(self, quiz_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        current = self._quizzes.get(quiz_id)
        if current is None:
            return None

        updated = {**current, **copy.deepcopy(changes)}
        updated["id"] = quiz_id
        updated["version"] = (current.get("version") or 0) + 1
        self._quizzes[quiz_id] = updated

        logger.info(f"Quiz updated: {quiz_id} -> v{updated['version']}")
        return copy.deepcopy(updated)

    def put_quiz(self, record: Dict[str, Any]) -> Dict[str, Any]:
        self._quizzes[record["id"]] = copy.deepcopy(record)
        return copy.deepcopy(record)

    def delete_quiz(self, quiz_id: str) -> bool:
        if self._quizzes.pop(quiz_id, None) is None:
            return False
        logger.info(f"Quiz deleted: {quiz_id}")
        return True
