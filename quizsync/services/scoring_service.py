"""
Quiz attempt scoring
One point per question whose chosen option matches the correct answer
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


class ScoringService:
    """Scores a finished (or timed-out) quiz run and builds its history entry"""

    def score_attempt(
        self,
        quiz: Mapping[str, Any],
        answers: Sequence[Optional[str]],
        time_spent: int,
        taken_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Grade answers against a quiz

        Args:
            quiz: Quiz record with questions and timer
            answers: Selected option per question, in question order;
                None or missing entries count as unanswered
            time_spent: Seconds used, clamped to the quiz timer
            taken_at: Attempt timestamp (default now, UTC)

        Returns:
            Attempt dict ready to append to the quiz history
        """
        questions: List[Mapping[str, Any]] = quiz.get("questions") or []
        timer = quiz.get("timer") or 0

        results = []
        for index, question in enumerate(questions):
            user_answer = answers[index] if index < len(answers) else None
            user_answer = user_answer or ""
            results.append({
                "question": question["question"],
                "user_answer": user_answer,
                "correct_answer": question["correct_answer"],
                "is_correct": user_answer == question["correct_answer"],
            })

        score = sum(1 for result in results if result["is_correct"])
        time_spent = max(0, min(time_spent, timer)) if timer else max(0, time_spent)
        taken_at = taken_at or datetime.now(timezone.utc)

        logger.info(
            f"Scored attempt on {quiz.get('id')}: {score}/{len(questions)} in {time_spent}s"
        )

        return {
            "date": taken_at.isoformat(),
            "score": score,
            "total_questions": len(questions),
            "time_spent": time_spent,
            "question_results": results,
        }

    @staticmethod
    def format_time(seconds: int) -> str:
        """Countdown display, e.g. 125 -> '2:05'"""
        minutes, secs = divmod(max(0, seconds), 60)
        return f"{minutes}:{secs:02d}"


# Global instance
scoring_service = ScoringService()
