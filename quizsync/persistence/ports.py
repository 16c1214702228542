"""
Key-value storage ports used by the chunked persistence adapter
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional

import redis

from quizsync.errors import PersistenceError, StorageCapacityError, StorageUnavailableError

logger = logging.getLogger(__name__)

UNAVAILABLE_ERRORS = (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError)


class StoragePort(ABC):
    """
    Minimal string key-value backend

    get() returns None for a missing key, which callers must keep
    distinct from an empty string.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryStoragePort(StoragePort):
    """
    Dict-backed storage with browser-style limits

    Args:
        max_entry_size: Largest value accepted for one key (characters)
        quota: Total characters across all keys and values
    """

    def __init__(self, max_entry_size: Optional[int] = None, quota: Optional[int] = None):
        self.max_entry_size = max_entry_size
        self.quota = quota
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.max_entry_size is not None and len(value) > self.max_entry_size:
            raise StorageCapacityError(
                f"Entry {key!r} is {len(value)} characters, limit is {self.max_entry_size}"
            )

        if self.quota is not None:
            used = self.used() - self._size(key, self._data.get(key))
            if used + self._size(key, value) > self.quota:
                raise StorageCapacityError(f"Storage quota of {self.quota} characters exceeded")

        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def used(self) -> int:
        return sum(self._size(k, v) for k, v in self._data.items())

    @staticmethod
    def _size(key: str, value: Optional[str]) -> int:
        if value is None:
            return 0
        return len(key) + len(value)


class RedisStoragePort(StoragePort):
    """Redis-backed storage; keys are namespaced to share a database safely"""

    def __init__(self, client: "redis.Redis", namespace: str = "quizsync:"):
        self.client = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "quizsync:") -> "RedisStoragePort":
        client = redis.from_url(url, decode_responses=True, socket_connect_timeout=5)
        return cls(client, namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(self._key(key))
        except UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Redis unavailable: {str(e)}") from e
        except redis.exceptions.RedisError as e:
            raise PersistenceError(f"Redis failed reading {key!r}: {str(e)}") from e

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(self._key(key), value)
        except UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Redis unavailable: {str(e)}") from e
        except redis.exceptions.ResponseError as e:
            if "OOM" in str(e):
                raise StorageCapacityError(f"Redis out of memory writing {key!r}") from e
            raise PersistenceError(f"Redis rejected write of {key!r}: {str(e)}") from e
        except redis.exceptions.RedisError as e:
            raise PersistenceError(f"Redis failed writing {key!r}: {str(e)}") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Redis unavailable: {str(e)}") from e
        except redis.exceptions.RedisError as e:
            raise PersistenceError(f"Redis failed deleting {key!r}: {str(e)}") from e
