"""Path addressing, transfer engine and configuration."""

from .config import SettingsError, StorageSettings, load_settings
from .paths import is_folder_shaped, join_remote, normalize_path, split_path, to_remote_path
from .transfer import ChunkedUploader, TransferState, UploadSession

__all__ = [
    "ChunkedUploader",
    "SettingsError",
    "StorageSettings",
    "TransferState",
    "UploadSession",
    "is_folder_shaped",
    "join_remote",
    "load_settings",
    "normalize_path",
    "split_path",
    "to_remote_path",
]
