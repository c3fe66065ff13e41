"""Build storage facades from settings."""

from __future__ import annotations

from functools import lru_cache

from .adapters import DropboxRemoteStorage, LocalRemoteStorage, RemoteStorage
from .core.config import CHUNK_SIZE, DROPBOX_TIMEOUT, MAX_ATTEMPTS, SettingsError, StorageSettings, load_settings
from .storage import UniversalStorage


def build_remote(settings: StorageSettings) -> RemoteStorage:
    if settings.provider == "dropbox":
        if not settings.access_token:
            raise SettingsError("Dropbox storage enabled but DROPBOX_ACCESS_TOKEN is missing")
        return DropboxRemoteStorage(access_token=settings.access_token, timeout=DROPBOX_TIMEOUT)
    if settings.provider == "local":
        return LocalRemoteStorage(settings.local_dir)
    raise SettingsError(f"Unknown storage provider '{settings.provider}'")


def build_storage(settings: StorageSettings) -> UniversalStorage:
    return UniversalStorage(
        settings,
        build_remote(settings),
        chunk_size=CHUNK_SIZE,
        max_attempts=MAX_ATTEMPTS,
    )


@lru_cache(maxsize=1)
def _storage() -> UniversalStorage:
    return build_storage(load_settings())


def get_storage() -> UniversalStorage:
    return _storage()
