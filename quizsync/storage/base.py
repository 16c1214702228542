"""
Quiz store port shared by the in-memory and relational backends
"""
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from quizsync.services.reconciliation_service import ReconcileResult, reconciliation_service

logger = logging.getLogger(__name__)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_datetime(value: Any) -> Optional[datetime]:
    """Accept a datetime or an ISO 8601 string (with optional trailing Z)"""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class QuizStore(ABC):
    """
    Persistence for quiz records (plain dicts keyed by "id")

    update_quiz() is the mutation path and bumps the version;
    put_quiz() writes a record verbatim and is used by sync.
    """

    @abstractmethod
    def list_quizzes(self, public_only: bool = False) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_quiz(self, quiz_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def create_quiz(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def update_quiz(self, quiz_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def put_quiz(self, record: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    def delete_quiz(self, quiz_id: str) -> bool:
        ...

    def sync_quizzes(self, incoming: Sequence[Any]) -> ReconcileResult:
        """
        Reconcile incoming records against everything stored

        Only created and updated records are written back.
        """
        result = reconciliation_service.reconcile(self.list_quizzes(), incoming)
        merged = result.by_id()
        self._persist([merged[quiz_id] for quiz_id in result.changed_ids])

        logger.info(
            f"Synced quizzes: created={len(result.created)}, updated={len(result.updated)}, "
            f"skipped={len(result.skipped)}, rejected={len(result.errors)}"
        )
        return result

    def _persist(self, records: Iterable[Dict[str, Any]]) -> None:
        for record in records:
            self.put_quiz(record)

    @staticmethod
    def _new_record(data: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(data)
        if not record.get("id"):
            record["id"] = str(uuid.uuid4())
        record["version"] = record.get("version") or 1
        record["created_at"] = record.get("created_at") or utcnow_iso()
        record.setdefault("history", [])
        record.setdefault("last_taken", None)
        return record
