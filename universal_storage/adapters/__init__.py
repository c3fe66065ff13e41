"""Remote storage capability implementations."""

from .base import CommitInfo, RemoteStorage, WriteMode
from .dropbox import DropboxRemoteStorage
from .local import LocalRemoteStorage

__all__ = [
    "CommitInfo",
    "RemoteStorage",
    "WriteMode",
    "DropboxRemoteStorage",
    "LocalRemoteStorage",
]
