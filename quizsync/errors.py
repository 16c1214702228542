"""
Error taxonomy shared by the persistence, reconciliation and service layers
"""
from typing import Optional


class QuizSyncError(Exception):
    """Base class for every recoverable failure in this package"""


class PersistenceError(QuizSyncError):
    """Base class for failures of the chunked key-value persistence layer"""


class SerializationError(PersistenceError):
    """Payload cannot be turned into, or back from, its persisted string form"""


class StorageCapacityError(PersistenceError):
    """Storage backend rejected a write because it is full"""


class StorageUnavailableError(PersistenceError):
    """Storage backend could not be reached"""


class ChunkIntegrityError(PersistenceError):
    """Chunk missing, or chunk count inconsistent, at load time"""


class RecordValidationError(QuizSyncError):
    """An incoming quiz record lacks required content"""

    def __init__(self, message: str, position: Optional[int] = None, record_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.position = position
        self.record_id = record_id

    def to_dict(self):
        return {
            "position": self.position,
            "record_id": self.record_id,
            "message": self.message,
        }


class QuizNotFoundError(QuizSyncError):
    """No quiz with the requested id"""


class AuthorizationError(QuizSyncError):
    """Caller is not allowed to perform the operation"""


class ImportFormatError(QuizSyncError):
    """Import text is neither a quiz nor a list of quizzes"""


class MergeError(QuizSyncError):
    """Quizzes cannot be merged with the given selection"""
