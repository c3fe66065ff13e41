"""Shared fixtures for the storage tests."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Optional

import pytest

from universal_storage.adapters.base import RemoteStorage
from universal_storage.core.config import StorageSettings
from universal_storage.storage import UniversalStorage

from .fakes import FakeRemote


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def settings(tmp_path: Path) -> StorageSettings:
    tmp = tmp_path / "tmp"
    tmp.mkdir()
    return StorageSettings(root="storage", tmp=tmp, provider="local", local_dir=tmp_path / "remote")


@pytest.fixture
def storage_factory(settings: StorageSettings) -> Callable[..., UniversalStorage]:
    def _factory(remote: RemoteStorage, chunk_size: int = 8, max_attempts: int = 5) -> UniversalStorage:
        return UniversalStorage(settings, remote, chunk_size=chunk_size, max_attempts=max_attempts)

    return _factory


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    source_dir = tmp_path / "source"
    source_dir.mkdir()

    def _make(name: str, size: int, mtime: Optional[float] = None) -> Path:
        path = source_dir / name
        path.write_bytes((bytes(range(251)) * (size // 251 + 1))[:size])
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _make
