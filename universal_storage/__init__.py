"""Universal storage: path-addressed file storage on remote providers."""

__version__ = "0.1.0"

from .errors import (
    AttemptsExhausted,
    BackoffRequested,
    OffsetMismatch,
    RemoteApplicationError,
    RemoteError,
    StorageError,
    StructuralError,
    TransferCancelled,
    TransientNetworkError,
)
from .events import ObservedStorage, StorageEvent
from .factory import build_storage, get_storage
from .storage import StorageOutcome, UniversalStorage

__all__ = [
    "AttemptsExhausted",
    "BackoffRequested",
    "ObservedStorage",
    "OffsetMismatch",
    "RemoteApplicationError",
    "RemoteError",
    "StorageError",
    "StorageEvent",
    "StorageOutcome",
    "StructuralError",
    "TransferCancelled",
    "TransientNetworkError",
    "UniversalStorage",
    "build_storage",
    "get_storage",
]
