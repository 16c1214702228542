"""
Authorization policy for editing and deleting quizzes
"""
import hmac
import logging
from typing import Any, Mapping, Optional

from quizsync.config import settings

logger = logging.getLogger(__name__)


def _matches(secret: Optional[str], candidate: Optional[str]) -> bool:
    if not secret or candidate is None:
        return False
    return hmac.compare_digest(secret.encode("utf-8"), candidate.encode("utf-8"))


class AuthorizationPolicy:
    """
    Shared-secret policy hook

    - Delete: master secret only
    - Edit: the quiz's own password, or the master secret;
      quizzes without a password are open for editing
    A policy without a master secret never grants the master override.
    """

    def __init__(self, master_secret: Optional[str] = None):
        self.master_secret = master_secret

    def can_delete(self, password: Optional[str]) -> bool:
        allowed = _matches(self.master_secret, password)
        if not allowed:
            logger.warning("Quiz deletion denied")
        return allowed

    def can_edit(self, quiz: Mapping[str, Any], password: Optional[str]) -> bool:
        quiz_password = quiz.get("password")
        if not quiz_password:
            return True
        allowed = _matches(quiz_password, password) or _matches(self.master_secret, password)
        if not allowed:
            logger.warning(f"Edit denied for quiz {quiz.get('id')}")
        return allowed


# Global instance
authorization_policy = AuthorizationPolicy(settings.MASTER_PASSWORD)


def get_authorization_policy() -> AuthorizationPolicy:
    """FastAPI dependency; override in tests"""
    return authorization_policy
