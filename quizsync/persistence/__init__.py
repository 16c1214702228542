"""
Chunked key-value persistence package
"""
from quizsync.persistence.chunked import ChunkedStore, LoadResult, SaveResult
from quizsync.persistence.ports import MemoryStoragePort, RedisStoragePort, StoragePort

__all__ = [
    "ChunkedStore",
    "LoadResult",
    "SaveResult",
    "StoragePort",
    "MemoryStoragePort",
    "RedisStoragePort",
]
