"""
Import and export of quiz sets as (optionally obfuscated) JSON text
"""
import json
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from quizsync.errors import ImportFormatError
from quizsync.utils.codec import decode_quiz_data, encode_quiz_data

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")


def to_snake(name: str) -> str:
    return _CAMEL_RE.sub(r"_\1", name).lower()


def snake_keys(value: Any) -> Any:
    """Recursively convert camelCase dict keys (older exports) to snake_case"""
    if isinstance(value, dict):
        return {to_snake(str(k)): snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_keys(item) for item in value]
    return value


class TransferService:
    """Parses import text into raw quiz records and renders export text"""

    def parse_import(self, text: str) -> List[Any]:
        """
        Turn pasted or uploaded text into a list of raw records

        Accepts plain or obfuscated JSON holding one quiz, a list of
        quizzes, or {"quizzes": [...]}. Entries are normalized but not
        validated; validation happens per record during reconciliation.

        Raises:
            ImportFormatError: text is empty, not JSON, or not quiz-shaped
        """
        if not text or not text.strip():
            raise ImportFormatError("Nothing to import")

        decoded = decode_quiz_data(text)

        try:
            data = json.loads(decoded)
        except ValueError as e:
            raise ImportFormatError(f"Import data is not valid JSON: {str(e)}") from e

        if isinstance(data, dict) and isinstance(data.get("quizzes"), list):
            data = data["quizzes"]
        elif isinstance(data, dict):
            data = [data]

        if not isinstance(data, list):
            raise ImportFormatError("Imported data is not a quiz or array of quizzes")

        records = [self._normalize(entry) for entry in data]
        logger.info(f"Parsed {len(records)} quizzes from import text")
        return records

    def build_export(
        self,
        quizzes: Iterable[Mapping[str, Any]],
        ids: Optional[Sequence[str]] = None,
        encode: bool = True,
    ) -> str:
        """
        Render quizzes as export text

        Args:
            quizzes: Quiz records in display order
            ids: Restrict to these quiz ids (order of quizzes kept)
            encode: Obfuscate the JSON (not encryption)
        """
        selected = [dict(q) for q in quizzes if ids is None or q.get("id") in ids]
        text = json.dumps(selected, ensure_ascii=False, indent=2)
        return encode_quiz_data(text) if encode else text

    @staticmethod
    def _normalize(entry: Any) -> Any:
        if not isinstance(entry, dict):
            return entry

        record: Dict[str, Any] = snake_keys(entry)
        if not record.get("id") and record.get("unique_id"):
            record["id"] = record["unique_id"]
        record.pop("unique_id", None)
        record.setdefault("is_public", False)
        if not record.get("version"):
            record["version"] = 1
        return record


# Global instance
transfer_service = TransferService()
