"""Remote storage capability definitions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class WriteMode(str, Enum):
    """How a committed upload treats an object already present at its path."""

    ADD = "add"
    OVERWRITE = "overwrite"


@dataclass(frozen=True)
class CommitInfo:
    """Metadata sent with the last phase of an upload session."""

    path: str
    mode: WriteMode = WriteMode.ADD
    client_modified: Optional[datetime] = None


class RemoteStorage:
    """Abstract interface for remote object-storage capabilities.

    Implementations signal failures with the ``RemoteError`` family from
    :mod:`universal_storage.errors`: ``TransientNetworkError`` for connectivity
    problems, ``BackoffRequested`` for rate limiting, ``OffsetMismatch`` when an
    upload session cursor is out of sync and ``RemoteApplicationError`` for
    anything else. A single instance may be shared by concurrent transfers.
    """

    def session_start(self, data: bytes) -> str:
        raise NotImplementedError

    def session_append(self, session_id: str, offset: int, data: bytes) -> None:
        raise NotImplementedError

    def session_finish(self, session_id: str, offset: int, data: bytes, commit: CommitInfo) -> None:
        raise NotImplementedError

    def session_abort(self, session_id: str) -> None:
        """Release a session that will never be finished. Backends that expire
        sessions on their own keep this no-op."""

        return None

    def upload(
        self,
        path: str,
        data: bytes,
        mode: WriteMode = WriteMode.OVERWRITE,
        client_modified: Optional[datetime] = None,
    ) -> None:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        raise NotImplementedError

    def create_folder(self, path: str) -> None:
        raise NotImplementedError

    def download_to_path(self, path: str, destination: Path) -> None:
        raise NotImplementedError

    def close(self) -> None:  # pragma: no cover - default is a no-op
        return None
