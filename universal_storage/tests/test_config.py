"""Tests for settings loading."""

import json
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from universal_storage.core import config
from universal_storage.core.config import SettingsError, load_settings


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch) -> None:
    monkeypatch.setattr(config, "STORAGE_PROVIDER", "dropbox")
    monkeypatch.setattr(config, "STORAGE_ROOT", None)
    monkeypatch.setattr(config, "STORAGE_TMP", None)
    monkeypatch.setattr(config, "DROPBOX_ACCESS_TOKEN", None)


def _write_settings(tmp_path, payload) -> Path:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_settings_file_values_win(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(config, "DROPBOX_ACCESS_TOKEN", "from-env")
    settings_file = _write_settings(
        tmp_path,
        {"root": "storage", "tmp": str(tmp_path / "tmp"), "dropbox": {"access_token": "from-file"}},
    )

    settings = load_settings(settings_file, {"dropbox.access_token": "from-property", "root": "other"})

    assert settings.root == "storage"
    assert settings.access_token == "from-file"
    assert settings.provider == "dropbox"
    assert settings.tmp == (tmp_path / "tmp").resolve()
    assert settings.tmp.is_dir()


def test_properties_then_environment(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(config, "DROPBOX_ACCESS_TOKEN", "from-env")
    monkeypatch.setattr(config, "STORAGE_TMP", str(tmp_path / "env-tmp"))

    settings = load_settings(properties={"root": "storage"})

    assert settings.root == "storage"
    assert settings.access_token == "from-env"
    assert settings.tmp == (tmp_path / "env-tmp").resolve()

    settings = load_settings(properties={"root": "storage", "dropbox.access_token": "from-property"})
    assert settings.access_token == "from-property"


def test_missing_values_are_listed(tmp_path) -> None:
    with pytest.raises(SettingsError) as excinfo:
        load_settings(properties={"tmp": str(tmp_path)})

    message = str(excinfo.value)
    assert "root" in message
    assert "access_token" in message
    assert "tmp (" not in message


def test_local_provider_needs_no_token(tmp_path) -> None:
    settings = load_settings(
        properties={
            "provider": "local",
            "root": "storage",
            "tmp": str(tmp_path / "tmp"),
            "local.base_dir": str(tmp_path / "remote"),
        }
    )

    assert settings.provider == "local"
    assert settings.access_token is None
    assert settings.local_dir == (tmp_path / "remote").resolve()


def test_unknown_provider(tmp_path) -> None:
    with pytest.raises(SettingsError, match="Unknown storage provider"):
        load_settings(properties={"provider": "ftp", "root": "r", "tmp": str(tmp_path)})


def test_invalid_settings_file(tmp_path) -> None:
    broken = tmp_path / "settings.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(SettingsError, match="not valid JSON"):
        load_settings(broken)
    with pytest.raises(SettingsError, match="not found"):
        load_settings(tmp_path / "missing.json")


def test_settings_are_immutable(tmp_path) -> None:
    settings = load_settings(properties={"provider": "local", "root": "storage", "tmp": str(tmp_path)})

    with pytest.raises(FrozenInstanceError):
        settings.root = "other"
