"""Smoke test against a real Dropbox app folder.

Runs only when ``DROPBOX_SMOKE_TOKEN`` is set, so CI without credentials does
not report false failures.
"""

import os
import time

import pytest

from universal_storage.adapters.dropbox import DropboxRemoteStorage
from universal_storage.core.config import StorageSettings
from universal_storage.storage import UniversalStorage


TOKEN = os.getenv("DROPBOX_SMOKE_TOKEN")


@pytest.mark.skipif(not TOKEN, reason="DROPBOX_SMOKE_TOKEN not set")
def test_dropbox_smoke(tmp_path, make_file) -> None:
    """Store a small and a chunked file, retrieve them and clean up."""

    tmp = tmp_path / "tmp"
    tmp.mkdir()
    folder = f"smoke-{time.time_ns()}"
    settings = StorageSettings(root="universal-storage-smoke", tmp=tmp, access_token=TOKEN)
    storage = UniversalStorage(settings, DropboxRemoteStorage(access_token=TOKEN), chunk_size=4 << 20)
    small = make_file("small.txt", 1024)
    large = make_file("large.bin", (8 << 20) + 1)

    try:
        storage.create_folder(folder)
        storage.store_file(small, folder)
        storage.store_file(large, f"{folder}/inner")

        assert storage.retrieve_file(f"{folder}/small.txt").read_bytes() == small.read_bytes()
        assert storage.retrieve_file(f"{folder}/inner/large.bin").read_bytes() == large.read_bytes()

        storage.remove_file(f"{folder}/small.txt")
    finally:
        storage.remove_folder(folder)
        storage.clean()
        storage.close()
