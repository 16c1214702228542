"""
Merging several quizzes into a new one
"""
import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Sequence

from quizsync.config import settings
from quizsync.errors import MergeError
from quizsync.schemas.quiz import DEFAULT_CATEGORY

logger = logging.getLogger(__name__)


class MergeService:
    """
    Builds a new private quiz from the questions of two or more quizzes

    Timer is the rounded average of the source timers, never below
    MIN_MERGED_TIMER seconds.
    """

    def __init__(self, min_timer: int = settings.MIN_MERGED_TIMER):
        self.min_timer = min_timer

    def merge(
        self,
        quizzes: Sequence[Mapping[str, Any]],
        title: str,
        category: str = DEFAULT_CATEGORY,
    ) -> Dict[str, Any]:
        if len(quizzes) < 2:
            raise MergeError("Select at least two quizzes to merge")
        if not title or not title.strip():
            raise MergeError("A title is required for the merged quiz")

        questions = [dict(q) for quiz in quizzes for q in (quiz.get("questions") or [])]
        average = sum(quiz.get("timer") or 0 for quiz in quizzes) / len(quizzes)
        timer = max(self.min_timer, math.floor(average + 0.5))
        sources = ", ".join(quiz.get("title", "") for quiz in quizzes)

        logger.info(f"Merging {len(quizzes)} quizzes into '{title}' ({len(questions)} questions)")

        return {
            "id": str(uuid.uuid4()),
            "title": title.strip(),
            "description": f"Merged quiz containing questions from: {sources}",
            "questions": questions,
            "timer": timer,
            "category": category,
            "is_public": False,
            "password": None,
            "history": [],
            "last_taken": None,
            "version": 1,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }


# Global instance
merge_service = MergeService()
