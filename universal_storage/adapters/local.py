"""Filesystem-backed remote capability."""

from __future__ import annotations

import filecmp
import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Dict, Optional
from uuid import uuid4

from ..errors import OffsetMismatch, RemoteApplicationError
from .base import CommitInfo, RemoteStorage, WriteMode


LOGGER = logging.getLogger(__name__)

SESSIONS_DIR_NAME = ".upload_sessions"


class LocalRemoteStorage(RemoteStorage):
    """Store files on the local filesystem under a base directory.

    Remote paths such as ``/storage/folder/file.txt`` map to
    ``<base_dir>/storage/folder/file.txt``. Upload sessions are staged in
    ``<base_dir>/.upload_sessions`` and the staged size is the authoritative
    session offset, the same way a hosted backend reports it.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir.resolve()
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._sessions_dir = self._base_dir / SESSIONS_DIR_NAME
        self._sessions_dir.mkdir(exist_ok=True)
        self._sessions: Dict[str, Path] = {}
        self._lock = Lock()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _resolve(self, path: str) -> Path:
        relative = path.strip("/")
        target = (self._base_dir / relative).resolve()
        if target != self._base_dir and self._base_dir not in target.parents:
            raise RemoteApplicationError(f"path/malformed_path: {path}")
        if target == self._sessions_dir or self._sessions_dir in target.parents:
            raise RemoteApplicationError(f"path/disallowed_name: {path}")
        return target

    def _staged(self, session_id: str) -> Path:
        with self._lock:
            staged = self._sessions.get(session_id)
        if staged is None:
            raise RemoteApplicationError(f"lookup_failed/not_found: {session_id}")
        return staged

    @staticmethod
    def _check_offset(staged: Path, offset: int) -> None:
        actual = staged.stat().st_size
        if actual != offset:
            raise OffsetMismatch(actual)

    def _commit(self, source: Path, target: Path, mode: WriteMode, client_modified: Optional[datetime]) -> None:
        if target.is_dir():
            raise RemoteApplicationError(f"path/conflict/folder: {target.name}")
        if mode == WriteMode.ADD and target.exists() and not filecmp.cmp(source, target, shallow=False):
            raise RemoteApplicationError(f"path/conflict/file: {target.name}")
        target.parent.mkdir(parents=True, exist_ok=True)
        os.replace(source, target)
        if client_modified is not None:
            timestamp = client_modified.timestamp()
            os.utime(target, (timestamp, timestamp))

    # ------------------------------------------------------------------
    # RemoteStorage interface
    # ------------------------------------------------------------------
    def session_start(self, data: bytes) -> str:
        session_id = uuid4().hex
        staged = self._sessions_dir / session_id
        staged.write_bytes(data)
        with self._lock:
            self._sessions[session_id] = staged
        return session_id

    def session_append(self, session_id: str, offset: int, data: bytes) -> None:
        staged = self._staged(session_id)
        self._check_offset(staged, offset)
        with staged.open("ab") as handle:
            handle.write(data)

    def session_finish(self, session_id: str, offset: int, data: bytes, commit: CommitInfo) -> None:
        staged = self._staged(session_id)
        self._check_offset(staged, offset)
        try:
            with staged.open("ab") as handle:
                handle.write(data)
            self._commit(staged, self._resolve(commit.path), commit.mode, commit.client_modified)
        finally:
            # A finish that got past the cursor check closes the session either way.
            self.session_abort(session_id)
        LOGGER.debug("Committed session %s to %s", session_id, commit.path)

    def session_abort(self, session_id: str) -> None:
        with self._lock:
            staged = self._sessions.pop(session_id, None)
        if staged is not None and staged.exists():
            staged.unlink()
            LOGGER.debug("Discarded upload session %s", session_id)

    def upload(
        self,
        path: str,
        data: bytes,
        mode: WriteMode = WriteMode.OVERWRITE,
        client_modified: Optional[datetime] = None,
    ) -> None:
        target = self._resolve(path)
        staged = self._sessions_dir / uuid4().hex
        staged.write_bytes(data)
        try:
            self._commit(staged, target, mode, client_modified)
        finally:
            if staged.exists():
                staged.unlink()

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        if target == self._base_dir:
            raise RemoteApplicationError("path/disallowed_name: cannot delete the storage base")
        if target.is_dir():
            shutil.rmtree(target)
        elif target.exists():
            target.unlink()
        else:
            raise RemoteApplicationError(f"path_lookup/not_found: {path}")

    def create_folder(self, path: str) -> None:
        target = self._resolve(path)
        if target.exists():
            raise RemoteApplicationError(f"path/conflict/folder: {path}")
        target.mkdir(parents=True)

    def download_to_path(self, path: str, destination: Path) -> None:
        source = self._resolve(path)
        if not source.is_file():
            raise RemoteApplicationError(f"path/not_found: {path}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)
