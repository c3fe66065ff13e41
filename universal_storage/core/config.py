"""Configuration management for universal storage."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class SettingsError(RuntimeError):
    """Raised when storage settings are missing or invalid."""


def _resolve_path(env_name: str, default: Path) -> Path:
    value = os.getenv(env_name)
    if value:
        return Path(value).expanduser().resolve()
    return default.resolve()


# Provider selection helpers
def _env_choice(name: str, default: str, allowed: Tuple[str, ...]) -> str:
    value = os.getenv(name, default)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized not in allowed:
        return default
    return normalized


PROVIDERS = ("dropbox", "local")

STORAGE_PROVIDER = _env_choice("STORAGE_PROVIDER", "dropbox", PROVIDERS)
STORAGE_ROOT = os.getenv("STORAGE_ROOT")
STORAGE_TMP = os.getenv("STORAGE_TMP")

# Local provider keeps the "remote" tree here
LOCAL_STORAGE_DIR = _resolve_path("LOCAL_STORAGE_DIR", Path.cwd() / "data" / "remote")

DROPBOX_ACCESS_TOKEN = os.getenv("DROPBOX_ACCESS_TOKEN")
DROPBOX_TIMEOUT = float(os.getenv("DROPBOX_TIMEOUT", "60"))

# Chunked transfer tuning
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", str(8 << 20)))  # 8 MiB
MAX_ATTEMPTS = int(os.getenv("MAX_ATTEMPTS", "5"))


@dataclass(frozen=True)
class StorageSettings:
    """Immutable settings consumed by the storage facade."""

    root: str
    tmp: Path
    provider: str = "dropbox"
    access_token: Optional[str] = None
    local_dir: Path = LOCAL_STORAGE_DIR


def _read_settings_file(settings_file: Path) -> Dict[str, Any]:
    try:
        data = json.loads(settings_file.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise SettingsError(f"Settings file not found: {settings_file}") from exc
    except json.JSONDecodeError as exc:
        raise SettingsError(f"Settings file is not valid JSON: {settings_file}: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file must contain a JSON object: {settings_file}")
    return data


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def load_settings(
    settings_file: Optional[Path] = None,
    properties: Optional[Mapping[str, str]] = None,
) -> StorageSettings:
    """Build ``StorageSettings``.

    Each value is looked up in the settings file first, then in ``properties``
    (``-D key=value`` pairs), then in the environment.
    """

    data = _read_settings_file(settings_file) if settings_file else {}
    properties = properties or {}
    dropbox = data.get("dropbox") or {}
    local = data.get("local") or {}

    provider = (_first(data.get("provider"), properties.get("provider")) or STORAGE_PROVIDER).lower()
    if provider not in PROVIDERS:
        raise SettingsError(f"Unknown storage provider '{provider}', expected one of {', '.join(PROVIDERS)}")

    root = _first(data.get("root"), properties.get("root"), STORAGE_ROOT)
    tmp = _first(data.get("tmp"), properties.get("tmp"), STORAGE_TMP)
    token = _first(
        dropbox.get("access_token"),
        properties.get("dropbox.access_token"),
        DROPBOX_ACCESS_TOKEN,
    )
    local_dir = _first(local.get("base_dir"), properties.get("local.base_dir"))

    missing = []
    if root is None:
        missing.append("root (STORAGE_ROOT)")
    if tmp is None:
        missing.append("tmp (STORAGE_TMP)")
    if provider == "dropbox" and token is None:
        missing.append("dropbox.access_token (DROPBOX_ACCESS_TOKEN)")
    if missing:
        joined = ", ".join(missing)
        raise SettingsError(f"Storage settings are missing required values: {joined}")

    tmp_path = Path(tmp).expanduser().resolve()
    try:
        tmp_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SettingsError(f"tmp folder {tmp_path} cannot be created: {exc}") from exc
    if not os.access(tmp_path, os.W_OK):
        raise SettingsError(f"tmp folder {tmp_path} is not writable")

    return StorageSettings(
        root=root,
        tmp=tmp_path,
        provider=provider,
        access_token=token,
        local_dir=Path(local_dir).expanduser().resolve() if local_dir else LOCAL_STORAGE_DIR,
    )
