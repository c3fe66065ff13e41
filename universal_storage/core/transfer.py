"""Resumable chunked uploads.

Chunked uploads have three phases, each of which carries file bytes:

1. start: open an upload session and get its id;
2. append: upload chunks at the session's cursor;
3. finish: upload the remaining bytes and commit the session to a path.

``UploadSession.uploaded_bytes`` decides which phase a (re)try resumes in.
Every attempt reopens the source file at that offset. When the backend reports
a different cursor, its value wins, even when it moves backwards.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional

from ..adapters.base import CommitInfo, RemoteStorage, WriteMode
from ..errors import (
    AttemptsExhausted,
    BackoffRequested,
    OffsetMismatch,
    RemoteApplicationError,
    StorageError,
    TransferCancelled,
    TransientNetworkError,
)
from .config import CHUNK_SIZE, MAX_ATTEMPTS


LOGGER = logging.getLogger(__name__)


class TransferState(str, Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    APPENDING = "appending"
    FINISHING = "finishing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class UploadSession:
    """State of one chunked transfer. Never shared between calls."""

    total_size: int
    session_id: Optional[str] = None
    uploaded_bytes: int = 0
    attempt: int = 0
    state: TransferState = TransferState.NOT_STARTED

    @property
    def remaining(self) -> int:
        return self.total_size - self.uploaded_bytes


def last_modified(source: Path) -> datetime:
    return datetime.fromtimestamp(source.stat().st_mtime, tz=timezone.utc).replace(microsecond=0)


class ChunkedUploader:
    """Drive an upload session over a remote capability with bounded retries."""

    def __init__(
        self,
        remote: RemoteStorage,
        chunk_size: int = CHUNK_SIZE,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self._remote = remote
        self.chunk_size = chunk_size
        self.max_attempts = max_attempts

    def upload(
        self,
        source: Path,
        remote_path: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> UploadSession:
        """Upload ``source`` to ``remote_path`` and return the completed session.

        Raises ``AttemptsExhausted`` once the shared attempt budget is used,
        ``RemoteApplicationError`` on any non-retryable backend error and
        ``TransferCancelled`` when ``cancel_event`` is set during a backoff.
        """

        cancel_event = cancel_event or threading.Event()
        session = UploadSession(total_size=source.stat().st_size)
        commit = CommitInfo(path=remote_path, mode=WriteMode.ADD, client_modified=last_modified(source))

        while session.attempt < self.max_attempts:
            session.attempt += 1
            try:
                with source.open("rb") as stream:
                    stream.seek(session.uploaded_bytes)
                    self._run(session, stream, commit)
                return session
            except TransientNetworkError as exc:
                LOGGER.warning(
                    "Transient failure uploading %s at offset %d (attempt %d/%d): %s",
                    remote_path,
                    session.uploaded_bytes,
                    session.attempt,
                    self.max_attempts,
                    exc,
                )
            except BackoffRequested as exc:
                LOGGER.warning("Backend asked to wait %.3fs before resuming %s", exc.retry_after, remote_path)
                if cancel_event.wait(exc.retry_after):
                    self._fail(session)
                    raise TransferCancelled(f"Upload of {remote_path} cancelled") from exc
            except OffsetMismatch as exc:
                LOGGER.warning(
                    "Offset correction for %s: local %d, remote %d",
                    remote_path,
                    session.uploaded_bytes,
                    exc.correct_offset,
                )
                session.uploaded_bytes = exc.correct_offset
            except RemoteApplicationError:
                self._fail(session)
                raise
            except OSError as exc:
                self._fail(session)
                raise StorageError(f"Could not read {source}: {exc}") from exc

        self._fail(session)
        raise AttemptsExhausted(
            f"Upload of {remote_path} failed after {self.max_attempts} attempts "
            f"({session.uploaded_bytes}/{session.total_size} bytes acknowledged)"
        )

    def _fail(self, session: UploadSession) -> None:
        session.state = TransferState.FAILED
        if session.session_id is None:
            return
        try:
            self._remote.session_abort(session.session_id)
        except (StorageError, OSError) as exc:
            LOGGER.warning("Could not discard upload session %s: %s", session.session_id, exc)

    def _run(self, session: UploadSession, stream: BinaryIO, commit: CommitInfo) -> None:
        if session.session_id is None:
            data = stream.read(self.chunk_size)
            session.session_id = self._remote.session_start(data)
            session.uploaded_bytes += len(data)
            session.state = TransferState.STARTED
            LOGGER.debug("Started session %s with %d bytes", session.session_id, len(data))

        while session.remaining > self.chunk_size:
            session.state = TransferState.APPENDING
            data = stream.read(self.chunk_size)
            self._remote.session_append(session.session_id, session.uploaded_bytes, data)
            session.uploaded_bytes += len(data)
            LOGGER.debug("Appended %d/%d bytes", session.uploaded_bytes, session.total_size)

        session.state = TransferState.FINISHING
        data = stream.read(max(session.remaining, 0))
        self._remote.session_finish(session.session_id, session.uploaded_bytes, data, commit)
        session.uploaded_bytes += len(data)
        session.state = TransferState.COMPLETED
