"""Path-level storage operations on top of a remote capability.

Examples, with ``root == "storage"``::

    store_file("/var/www/index.html")             -> /storage/index.html
    store_file("/var/www/index.html", "myfolder") -> /storage/myfolder/index.html
    remove_file("myfolder/index.html")            -> /storage/myfolder/index.html
    create_folder("folders/myFolder")             -> /storage/folders/myFolder
    retrieve_file("myfolder/index.html")          -> <tmp>/index.html

Files up to twice the chunk size are sent in a single call that overwrites any
existing object; larger files go through a resumable upload session.
"""

from __future__ import annotations

import logging
import shutil
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .adapters.base import RemoteStorage, WriteMode
from .core.config import CHUNK_SIZE, MAX_ATTEMPTS, StorageSettings
from .core.paths import is_folder_shaped, join_remote, split_path, to_remote_path
from .core.transfer import ChunkedUploader, last_modified
from .errors import StorageError, StructuralError


LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class StorageOutcome:
    """Result of a successful storage operation."""

    operation: str
    remote_path: Optional[str]
    size: Optional[int] = None
    local_path: Optional[Path] = None
    chunked: bool = False


def _validate_path(path: Optional[str], name: str = "path") -> str:
    if path is None:
        raise StructuralError(f"Invalid {name}. The {name} shouldn't be null.")
    if not isinstance(path, str):
        raise StructuralError(f"Invalid {name}. Expected a string, got {type(path).__name__}.")
    if "\x00" in path:
        raise StructuralError(f"Invalid {name}. The {name} contains a NUL character.")
    return path


class UniversalStorage:
    """Store, retrieve and remove files and folders under a configured root."""

    def __init__(
        self,
        settings: StorageSettings,
        remote: RemoteStorage,
        chunk_size: int = CHUNK_SIZE,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        self.settings = settings
        self._remote = remote
        self._uploader = ChunkedUploader(remote, chunk_size=chunk_size, max_attempts=max_attempts)

    @property
    def chunk_size(self) -> int:
        return self._uploader.chunk_size

    @property
    def single_shot_limit(self) -> int:
        return 2 * self._uploader.chunk_size

    def _remote_path(self, logical_path: str) -> str:
        return to_remote_path(logical_path, self.settings.root)

    def _remote_file_path(self, logical_path: str) -> str:
        cleaned = logical_path.replace("\\", "/").strip()
        parent, leaf = split_path(cleaned)
        if not leaf.strip():
            raise StructuralError(f"Invalid path '{logical_path}'. A file name is required.")
        return join_remote(self._remote_path(parent), leaf)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    def store_file(
        self,
        source: PathLike,
        target_path: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> StorageOutcome:
        """Store ``source`` inside ``target_path`` (the root when omitted).

        An object already present at the destination is replaced.
        """

        if isinstance(source, str):
            source = Path(_validate_path(source, "source path"))
        elif source is None:
            raise StructuralError("Invalid source. The source file shouldn't be null.")
        if target_path is not None:
            _validate_path(target_path, "target path")

        if source.is_dir():
            raise StructuralError(f"{source.name} is a folder. You should call the create_folder method.")
        if not source.is_file():
            raise StructuralError(f"{source} does not exist or is not a regular file.")

        remote_path = join_remote(self._remote_path(target_path or ""), source.name)
        size = source.stat().st_size

        if size <= self.single_shot_limit:
            try:
                data = source.read_bytes()
            except OSError as exc:
                raise StorageError(f"Could not read {source}: {exc}") from exc
            self._remote.upload(remote_path, data, WriteMode.OVERWRITE, last_modified(source))
            chunked = False
        else:
            self._uploader.upload(source, remote_path, cancel_event=cancel_event)
            chunked = True

        LOGGER.info("Stored %s (%d bytes%s) at %s", source, size, ", chunked" if chunked else "", remote_path)
        return StorageOutcome("store_file", remote_path, size=size, chunked=chunked)

    def remove_file(self, path: str) -> StorageOutcome:
        """Remove the file at ``path`` (relative to the root)."""

        _validate_path(path)
        if is_folder_shaped(path):
            raise StructuralError("Invalid path. Looks like you're trying to remove a folder.")
        remote_path = self._remote_file_path(path)
        self._remote.delete(remote_path)
        LOGGER.info("Removed %s", remote_path)
        return StorageOutcome("remove_file", remote_path)

    def retrieve_file_as_stream(self, path: str) -> BinaryIO:
        """Download ``path`` into the tmp folder and return an open binary stream."""

        return self._download(path).open("rb")

    def retrieve_file(self, path: str) -> Path:
        """Download ``path`` into the tmp folder and return the local file."""

        return self._download(path)

    def _download(self, path: str) -> Path:
        _validate_path(path)
        if not path.strip():
            raise StructuralError("Invalid path. The path shouldn't be empty.")
        if is_folder_shaped(path):
            raise StructuralError("Invalid path. Looks like you're trying to retrieve a folder.")

        remote_path = self._remote_file_path(path)
        destination = Path(self.settings.tmp) / split_path(remote_path)[1]
        self._remote.download_to_path(remote_path, destination)
        LOGGER.info("Retrieved %s into %s", remote_path, destination)
        return destination

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------
    def create_folder(self, path: str) -> StorageOutcome:
        _validate_path(path)
        if not path.strip():
            raise StructuralError("Invalid path. The path shouldn't be empty.")
        remote_path = self._remote_path(path)
        self._remote.create_folder(remote_path)
        LOGGER.info("Created folder %s", remote_path)
        return StorageOutcome("create_folder", remote_path)

    def remove_folder(self, path: str) -> Optional[StorageOutcome]:
        """Remove the folder at ``path``. An empty path is ignored, the root is never removed."""

        _validate_path(path)
        if not path.strip():
            LOGGER.info("Ignoring remove_folder on an empty path")
            return None
        remote_path = self._remote_path(path)
        self._remote.delete(remote_path)
        LOGGER.info("Removed folder %s", remote_path)
        return StorageOutcome("remove_folder", remote_path)

    # ------------------------------------------------------------------
    # Local context
    # ------------------------------------------------------------------
    def clean(self) -> None:
        """Empty the tmp folder. Nothing is removed from the remote storage."""

        tmp = Path(self.settings.tmp)
        try:
            for child in tmp.iterdir():
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        except OSError as exc:
            raise StorageError(f"Could not clean {tmp}: {exc}") from exc
        LOGGER.info("Cleaned %s", tmp)

    def close(self) -> None:
        self._remote.close()
