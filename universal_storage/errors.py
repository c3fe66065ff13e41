"""Error taxonomy shared by the facade, the transfer engine and the adapters."""

from __future__ import annotations

from typing import Optional


class StorageError(RuntimeError):
    """Raised when storage operations fail."""


class StructuralError(StorageError):
    """Raised when caller input violates a precondition (bad path, directory, ...)."""


class RemoteError(StorageError):
    """Base class for failures reported by a remote capability."""


class TransientNetworkError(RemoteError):
    """Connectivity or timeout failure; the request may be retried as-is."""


class BackoffRequested(RemoteError):
    """The backend asked the client to wait before retrying."""

    def __init__(self, retry_after: float, message: Optional[str] = None) -> None:
        self.retry_after = max(float(retry_after), 0.0)
        super().__init__(message or f"Backoff requested for {self.retry_after:.3f}s")


class OffsetMismatch(RemoteError):
    """The upload session's cursor differs from the offset the client sent."""

    def __init__(self, correct_offset: int, message: Optional[str] = None) -> None:
        self.correct_offset = int(correct_offset)
        super().__init__(message or f"Incorrect offset, backend expects {self.correct_offset}")


class RemoteApplicationError(RemoteError):
    """Any other backend-reported error (permissions, conflicts, quota...)."""


class AttemptsExhausted(StorageError):
    """Raised when a chunked transfer used its whole attempt budget."""


class TransferCancelled(StorageError):
    """Raised when the caller cancelled a transfer while it was waiting to retry."""
