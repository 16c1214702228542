"""
Chunked key-value persistence

Payloads whose serialized form exceeds the per-entry ceiling are split
across numbered entries and reassembled on load:

    <key>            -> "__CHUNKED__<n>" sentinel
    <key>:chunks     -> "<n>"
    <key>:chunk:<i>  -> slice i, for i in [0, n)

Small payloads are written directly under <key>.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from quizsync.config import settings
from quizsync.errors import ChunkIntegrityError, PersistenceError, SerializationError
from quizsync.persistence.ports import StoragePort

logger = logging.getLogger(__name__)

SENTINEL_PREFIX = "__CHUNKED__"


@dataclass
class SaveResult:
    ok: bool
    chunks: int = 0
    size: int = 0
    error: Optional[PersistenceError] = None


@dataclass
class LoadResult:
    value: Any
    found: bool = False
    error: Optional[PersistenceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def chunk_key(key: str, index: int) -> str:
    return f"{key}:chunk:{index}"


def count_key(key: str) -> str:
    return f"{key}:chunks"


class ChunkedStore:
    """
    Persistence adapter over a StoragePort

    save() and load() never raise; failures come back on the result
    object so the caller can alert the user or fall back to a default.
    """

    def __init__(
        self,
        port: StoragePort,
        threshold: int = settings.CHUNK_THRESHOLD,
        chunk_size: int = settings.CHUNK_SIZE,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if threshold < chunk_size:
            raise ValueError("threshold must be at least chunk_size")
        self.port = port
        self.threshold = threshold
        self.chunk_size = chunk_size

    def save(self, key: str, payload: Any) -> SaveResult:
        """
        Serialize and write payload under key

        Returns:
            SaveResult with ok=False and the typed error on failure
        """
        try:
            serialized = self._serialize(payload)

            if len(serialized) < self.threshold:
                previous = self._read_count(key) or 0
                self.port.set(key, serialized)
                self._clear_chunks(key, start=0, previous=previous)
                self.port.delete(count_key(key))
                return SaveResult(ok=True, chunks=0, size=len(serialized))

            chunks = self._write_chunks(key, serialized)
            return SaveResult(ok=True, chunks=chunks, size=len(serialized))

        except PersistenceError as e:
            logger.error(f"Failed to save {key!r}: {str(e)}")
            return SaveResult(ok=False, error=e)

    def load(self, key: str, default: Any = None) -> LoadResult:
        """
        Read and deserialize the payload under key

        Returns:
            LoadResult whose value is default when the key is missing
            or the stored data cannot be read back
        """
        try:
            raw = self.port.get(key)
            if raw is None:
                return LoadResult(value=default, found=False)

            if raw.startswith(SENTINEL_PREFIX):
                serialized = self._read_chunks(key, raw)
            else:
                serialized = raw

            return LoadResult(value=self._deserialize(serialized), found=True)

        except PersistenceError as e:
            logger.error(f"Failed to load {key!r}: {str(e)}")
            return LoadResult(value=default, found=True, error=e)

    def remove(self, key: str) -> bool:
        """Delete every physical entry of a logical key"""
        try:
            previous = self._read_count(key) or 0
            self.port.delete(key)
            self._clear_chunks(key, start=0, previous=previous)
            self.port.delete(count_key(key))
            return True
        except PersistenceError as e:
            logger.error(f"Failed to remove {key!r}: {str(e)}")
            return False

    def _write_chunks(self, key: str, serialized: str) -> int:
        previous = self._read_count(key) or 0
        slices = [
            serialized[start:start + self.chunk_size]
            for start in range(0, len(serialized), self.chunk_size)
        ]

        # Drop the old sentinel first so an interrupted write reads back as missing
        self.port.delete(key)
        self.port.delete(count_key(key))

        for index, part in enumerate(slices):
            self.port.set(chunk_key(key, index), part)
        self.port.set(count_key(key), str(len(slices)))
        self.port.set(key, f"{SENTINEL_PREFIX}{len(slices)}")

        self._clear_chunks(key, start=len(slices), previous=previous)

        logger.info(f"Saved {key!r} in {len(slices)} chunks ({len(serialized)} characters)")
        return len(slices)

    def _read_chunks(self, key: str, sentinel: str) -> str:
        sentinel_count = self._parse_count(sentinel[len(SENTINEL_PREFIX):])
        recorded_count = self._read_count(key)

        if recorded_count is None and sentinel_count is None:
            raise ChunkIntegrityError(f"No chunk count recorded for {key!r}")
        if recorded_count is not None and sentinel_count is not None and recorded_count != sentinel_count:
            raise ChunkIntegrityError(
                f"Chunk count mismatch for {key!r}: sentinel says {sentinel_count}, metadata says {recorded_count}"
            )

        count = recorded_count if recorded_count is not None else sentinel_count
        if count <= 0:
            raise ChunkIntegrityError(f"Invalid chunk count for {key!r}: {count}")

        parts: List[str] = []
        for index in range(count):
            part = self.port.get(chunk_key(key, index))
            if part is None:
                raise ChunkIntegrityError(f"Missing chunk {index} of {count} for {key!r}")
            parts.append(part)

        return "".join(parts)

    def _clear_chunks(self, key: str, start: int, previous: int) -> None:
        """Delete chunk entries from start on, including unrecorded leftovers"""
        index = start
        while index < previous or self.port.get(chunk_key(key, index)) is not None:
            self.port.delete(chunk_key(key, index))
            index += 1

        if index > start:
            logger.debug(f"Cleared {index - start} stale chunks for {key!r}")

    def _read_count(self, key: str) -> Optional[int]:
        return self._parse_count(self.port.get(count_key(key)))

    @staticmethod
    def _parse_count(value: Optional[str]) -> Optional[int]:
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @staticmethod
    def _serialize(payload: Any) -> str:
        try:
            return json.dumps(payload, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Payload is not serializable: {str(e)}") from e

    @staticmethod
    def _deserialize(serialized: str) -> Any:
        try:
            return json.loads(serialized)
        except ValueError as e:
            raise SerializationError(f"Stored data is malformed: {str(e)}") from e
