"""
Local quiz library

Keeps a device's quiz list in a ChunkedStore and wires together
reconciliation, import/export, merging and sync with a remote store.
Listeners register through subscribe() instead of global hooks.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from quizsync.config import settings
from quizsync.errors import (
    AuthorizationError,
    QuizNotFoundError,
    RecordValidationError,
    SerializationError,
)
from quizsync.persistence.chunked import ChunkedStore, LoadResult, SaveResult
from quizsync.schemas.quiz import QuizCreate, QuizUpdate
from quizsync.services.authorization_service import AuthorizationPolicy, authorization_policy
from quizsync.services.merge_service import merge_service
from quizsync.services.reconciliation_service import ReconcileResult, reconciliation_service
from quizsync.services.scoring_service import scoring_service
from quizsync.services.transfer_service import transfer_service

logger = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], None]


@dataclass
class LibrarySyncResult:
    """Outcome of a two-way sync: what was pulled in and what was pushed out"""
    pulled: ReconcileResult
    pushed: List[str] = field(default_factory=list)
    saved: Optional[SaveResult] = None


class QuizLibrary:
    """
    Device-local quiz collection

    Every change is saved immediately. A failed save leaves the
    in-memory list intact and emits "save_failed" so the UI can warn
    about full storage.

    Events: loaded, saved, save_failed, imported, synced, restored.
    """

    def __init__(
        self,
        store: ChunkedStore,
        key: str = settings.LIBRARY_STORAGE_KEY,
        policy: Optional[AuthorizationPolicy] = None,
    ):
        self.store = store
        self.key = key
        self.policy = policy or authorization_policy
        self.quizzes: List[Dict[str, Any]] = []
        self._listeners: List[Listener] = []

    # Events

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, **details: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, details)
            except Exception:
                logger.exception(f"Listener failed on {event!r}")

    # Persistence

    def load(self) -> LoadResult:
        """Load the stored list; on any failure keep an empty list"""
        result = self.store.load(self.key, default=[])
        if result.ok and not isinstance(result.value, list):
            result = LoadResult(
                value=[],
                found=True,
                error=SerializationError(f"Stored {self.key!r} is not a list"),
            )

        self.quizzes = [dict(quiz) for quiz in result.value if isinstance(quiz, dict)]
        logger.info(f"Loaded {len(self.quizzes)} quizzes from local storage")
        self._emit("loaded", count=len(self.quizzes), error=result.error)
        return result

    def save(self) -> SaveResult:
        result = self.store.save(self.key, self.quizzes)
        if result.ok:
            self._emit("saved", count=len(self.quizzes), chunks=result.chunks)
        else:
            self._emit("save_failed", error=result.error)
        return result

    # Queries

    def get(self, quiz_id: str) -> Dict[str, Any]:
        for quiz in self.quizzes:
            if quiz.get("id") == quiz_id:
                return quiz
        raise QuizNotFoundError(f"Quiz {quiz_id} not found")

    # Mutations

    def add_quiz(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and append a new quiz (version 1, private by default)

        Raises:
            RecordValidationError: data lacks required content
        """
        data = {"is_public": False, **data}
        try:
            record = QuizCreate.model_validate(data).model_dump(mode="json")
        except ValidationError as e:
            raise RecordValidationError(str(e), record_id=data.get("id")) from e

        record["id"] = record.get("id") or str(uuid.uuid4())
        record["version"] = 1
        record["created_at"] = datetime.now(timezone.utc).isoformat()
        self.quizzes.append(record)
        self.save()
        return record

    def update_quiz(self, quiz_id: str, changes: Dict[str, Any], password: Optional[str] = None) -> Dict[str, Any]:
        quiz = self.get(quiz_id)
        if not self.policy.can_edit(quiz, password):
            raise AuthorizationError("Incorrect password")

        try:
            update = QuizUpdate.model_validate(changes).model_dump(mode="json", exclude_unset=True)
        except ValidationError as e:
            raise RecordValidationError(str(e), record_id=quiz_id) from e

        quiz.update(update)
        quiz["version"] = (quiz.get("version") or 0) + 1
        self.save()
        return quiz

    def delete_quiz(self, quiz_id: str, password: Optional[str] = None) -> None:
        quiz = self.get(quiz_id)
        if not self.policy.can_delete(password):
            raise AuthorizationError("Incorrect password. Quiz deletion prevented.")
        self.quizzes.remove(quiz)
        self.save()

    def record_attempt(self, quiz_id: str, answers: Sequence[Optional[str]], time_spent: int) -> Dict[str, Any]:
        """Score a run, append it to the quiz history and stamp last_taken"""
        quiz = self.get(quiz_id)
        attempt = scoring_service.score_attempt(quiz, answers, time_spent)
        quiz["history"] = list(quiz.get("history") or []) + [attempt]
        quiz["last_taken"] = attempt["date"]
        quiz["version"] = (quiz.get("version") or 0) + 1
        self.save()
        return attempt

    def merge(self, quiz_ids: Sequence[str], title: str, category: Optional[str] = None) -> Dict[str, Any]:
        sources = [self.get(quiz_id) for quiz_id in quiz_ids]
        kwargs = {"category": category} if category else {}
        merged = merge_service.merge(sources, title, **kwargs)
        self.quizzes.append(merged)
        self.save()
        return merged

    # Import / export / sync

    def import_text(self, text: str) -> ReconcileResult:
        """
        Reconcile quizzes from pasted or uploaded text into the library

        Raises:
            ImportFormatError: text is not quiz JSON at all
        """
        result = reconciliation_service.reconcile(self.quizzes, transfer_service.parse_import(text))
        self.quizzes = result.records
        self.save()
        self._emit("imported", created=result.created, updated=result.updated, errors=result.errors)
        return result

    def export_text(self, quiz_ids: Optional[Sequence[str]] = None, encode: bool = True) -> str:
        return transfer_service.build_export(self.quizzes, ids=quiz_ids, encode=encode)

    def restore_backup(self, text: str) -> ReconcileResult:
        """Replace the whole library with the contents of a backup"""
        result = reconciliation_service.reconcile([], transfer_service.parse_import(text))
        self.quizzes = result.records
        self.save()
        self._emit("restored", count=len(self.quizzes), errors=result.errors)
        return result

    def sync(self, remote: Any) -> LibrarySyncResult:
        """
        Two-way sync with a remote quiz store

        The remote must offer list_quizzes() and put_quiz(record).
        Remote records are reconciled into the local list, then every
        local record the remote lacks, or holds at an older version,
        is pushed with put_quiz().
        """
        incoming = remote.list_quizzes()
        pulled = reconciliation_service.reconcile(self.quizzes, incoming)
        self.quizzes = pulled.records

        remote_versions = {quiz.get("id"): quiz.get("version") or 0 for quiz in incoming}
        pushed = []
        for quiz in self.quizzes:
            quiz_id = quiz["id"]
            if quiz_id not in remote_versions or remote_versions[quiz_id] < (quiz.get("version") or 0):
                remote.put_quiz(quiz)
                pushed.append(quiz_id)

        saved = self.save()
        logger.info(f"Library sync: pulled {len(pulled.changed_ids)}, pushed {len(pushed)}")
        self._emit("synced", pulled=pulled.changed_ids, pushed=pushed)
        return LibrarySyncResult(pulled=pulled, pushed=pushed, saved=saved)
