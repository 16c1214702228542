"""
Quiz catalog filtering: category match plus typo-tolerant search
"""
from typing import Any, Dict, List, Mapping, Optional, Sequence

from quizsync.config import settings


class CatalogService:
    """Filters quiz lists by category and fuzzy title/description match"""

    def __init__(self, threshold: float = settings.SEARCH_SIMILARITY_THRESHOLD):
        self.threshold = threshold

    @staticmethod
    def similarity(first: str, second: str) -> float:
        """
        Cheap similarity score in [0, 1]

        1.0 for equal strings, 0.8 when one contains the other,
        otherwise the share of positions holding the same character.
        An empty string matches nothing but another empty string.
        """
        first = first.lower()
        second = second.lower()

        if first == second:
            return 1.0
        if not first or not second:
            return 0.0
        if first in second or second in first:
            return 0.8

        longest = max(len(first), len(second))
        matches = sum(1 for a, b in zip(first, second) if a == b)
        return matches / longest

    def filter_quizzes(
        self,
        quizzes: Sequence[Mapping[str, Any]],
        category: Optional[str] = None,
        query: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        matched = []
        for quiz in quizzes:
            if category and quiz.get("category") != category:
                continue
            if query and not self._matches(quiz, query):
                continue
            matched.append(dict(quiz))
        return matched

    def categories(self, quizzes: Sequence[Mapping[str, Any]]) -> List[str]:
        """Distinct categories in first-seen order"""
        seen: List[str] = []
        for quiz in quizzes:
            category = quiz.get("category")
            if category and category not in seen:
                seen.append(category)
        return seen

    def _matches(self, quiz: Mapping[str, Any], query: str) -> bool:
        return (
            self.similarity(quiz.get("title") or "", query) > self.threshold
            or self.similarity(quiz.get("description") or "", query) > self.threshold
        )


# Global instance
catalog_service = CatalogService()
