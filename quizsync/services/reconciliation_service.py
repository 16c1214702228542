"""
Last-write-wins reconciliation of quiz collections
Keyed by stable quiz id, decided by version number
"""
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from quizsync.errors import RecordValidationError
from quizsync.schemas.quiz import QuizRecord

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Merged collection plus what happened to each incoming record"""
    records: List[Dict[str, Any]]
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[RecordValidationError] = field(default_factory=list)

    @property
    def changed_ids(self) -> List[str]:
        return self.created + self.updated

    def by_id(self) -> Dict[str, Dict[str, Any]]:
        return {record["id"]: record for record in self.records}


class ReconciliationService:
    """
    Merges an incoming quiz list into an existing one

    Rules:
    - Unknown id (or no id): insert, generating an id when needed
    - Known id: incoming wins when either version is unset or
      incoming.version >= existing.version; otherwise discarded
    - Records absent from incoming are left untouched

    Version on replacement: an incoming version is adopted as-is;
    an unversioned incoming record counts as a local edit and gets
    existing.version + 1.
    """

    def reconcile(
        self,
        existing: Iterable[Mapping[str, Any]],
        incoming: Sequence[Any],
    ) -> ReconcileResult:
        merged: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        for record in existing:
            record = dict(record)
            if not record.get("id"):
                record["id"] = self._new_id()
            merged[record["id"]] = record

        result = ReconcileResult(records=[])

        for position, raw in enumerate(incoming):
            try:
                record = self._validate(raw, position)
            except RecordValidationError as e:
                logger.warning(f"Skipping incoming record at {position}: {e.message}")
                result.errors.append(e)
                continue

            record_id = record.get("id")
            current = merged.get(record_id) if record_id else None

            if current is None:
                if not record_id:
                    record["id"] = record_id = self._new_id()
                if record.get("version") is None:
                    record["version"] = 1
                merged[record_id] = record
                result.created.append(record_id)

            elif self._incoming_wins(current, record):
                record["version"] = self._next_version(current, record)
                if record.get("created_at") is None:
                    record["created_at"] = current.get("created_at")
                merged[record_id] = record
                if record_id not in result.created and record_id not in result.updated:
                    result.updated.append(record_id)

            else:
                logger.debug(
                    f"Keeping {record_id} v{current.get('version')} over incoming v{record.get('version')}"
                )
                result.skipped.append(record_id)

        result.records = list(merged.values())

        logger.info(
            f"Reconciled {len(incoming)} incoming records: "
            f"created={len(result.created)}, updated={len(result.updated)}, "
            f"skipped={len(result.skipped)}, errors={len(result.errors)}"
        )

        return result

    def _validate(self, raw: Any, position: int) -> Dict[str, Any]:
        """Validate one incoming record into a plain JSON-ready dict"""
        if not isinstance(raw, Mapping):
            raise RecordValidationError(
                f"expected an object, got {type(raw).__name__}", position=position
            )

        record_id = raw.get("id")
        record_id = str(record_id) if record_id not in (None, "") else None

        try:
            record = QuizRecord.model_validate(dict(raw))
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise RecordValidationError(details, position=position, record_id=record_id)

        data = record.model_dump(mode="json")
        data["id"] = record_id
        return data

    @staticmethod
    def _incoming_wins(current: Mapping[str, Any], incoming: Mapping[str, Any]) -> bool:
        current_version = current.get("version")
        incoming_version = incoming.get("version")
        if not current_version or not incoming_version:
            return True
        return incoming_version >= current_version

    @staticmethod
    def _next_version(current: Mapping[str, Any], incoming: Mapping[str, Any]) -> int:
        incoming_version: Optional[int] = incoming.get("version")
        if incoming_version:
            return incoming_version
        return (current.get("version") or 0) + 1

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())


# Global instance
reconciliation_service = ReconciliationService()
