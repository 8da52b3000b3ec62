"""Tests for retoken.config: XDG paths, atomic writes, settings and env overrides."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from retoken.config import (
    atomic_write,
    get_config_dir,
    get_data_dir,
    load_settings,
    save_settings,
    settings_path,
)
from retoken.exceptions import ConfigError
from retoken.models import InterceptorConfig, Settings, StorageBackend


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("retoken.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "retoken"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("retoken.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "retoken"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("retoken.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "retoken"
        assert result.is_dir()

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_data"
        monkeypatch.setattr("retoken.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(custom))

        assert get_data_dir() == custom / "retoken"


class TestXDGPathsFallback:
    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("retoken.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".retoken"
        assert result.is_dir()

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("retoken.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".retoken" / "data"
        assert result.is_dir()


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_mode_applied(self, tmp_path: Path) -> None:
        target = tmp_path / "secret.json"
        atomic_write(target, "{}", mode=0o600)
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("retoken.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, isolated_config: Path) -> None:
        settings = load_settings()
        assert settings.base_url is None
        assert settings.interceptor.storage_backend is StorageBackend.PERSISTENT
        assert settings.interceptor.credential_key == "access_token"
        assert settings.interceptor.refresh_url == "/auth/token"
        assert settings.request.timeout == 30.0

    def test_settings_path(self, isolated_config: Path) -> None:
        assert settings_path() == isolated_config / "config" / "retoken" / "config.json"

    def test_reads_file(self, isolated_config: Path) -> None:
        _write_json(
            settings_path(),
            {
                "base_url": "https://api.example.com",
                "interceptor": {"storage_backend": "session", "credential_key": "access"},
                "request": {"timeout": 5},
            },
        )
        settings = load_settings()
        assert settings.base_url == "https://api.example.com"
        assert settings.interceptor.storage_backend is StorageBackend.SESSION
        assert settings.interceptor.credential_key == "access"
        assert settings.request.timeout == 5.0

    def test_partial_interceptor_section_keeps_defaults(self, isolated_config: Path) -> None:
        _write_json(settings_path(), {"interceptor": {"refresh_url": "/v2/refresh"}})
        interceptor = load_settings().interceptor
        assert interceptor.refresh_url == "/v2/refresh"
        assert interceptor.storage_backend is StorageBackend.PERSISTENT
        assert interceptor.credential_key == "access_token"

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "elsewhere.json"
        _write_json(path, {"base_url": "https://other"})
        assert load_settings(path).base_url == "https://other"

    def test_invalid_json(self, isolated_config: Path) -> None:
        settings_path().write_text("{bad", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid settings file"):
            load_settings()

    def test_non_object(self, isolated_config: Path) -> None:
        _write_json(settings_path(), ["a"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_settings()

    def test_unknown_backend(self, isolated_config: Path) -> None:
        _write_json(settings_path(), {"interceptor": {"storage_backend": "localStorage"}})
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings()


class TestEnvOverrides:
    def test_env_beats_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(
            settings_path(),
            {
                "base_url": "https://file",
                "interceptor": {"storage_backend": "session", "credential_key": "file-key"},
            },
        )
        monkeypatch.setenv("RETOKEN_BASE_URL", "https://env")
        monkeypatch.setenv("RETOKEN_CREDENTIAL_KEY", "env-key")

        settings = load_settings()
        assert settings.base_url == "https://env"
        assert settings.interceptor.credential_key == "env-key"
        assert settings.interceptor.storage_backend is StorageBackend.SESSION

    def test_env_without_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETOKEN_STORAGE_BACKEND", "cookie")
        monkeypatch.setenv("RETOKEN_REFRESH_CREDENTIAL_KEY", "rt")
        monkeypatch.setenv("RETOKEN_REFRESH_URL", "/oauth/refresh")

        interceptor = load_settings().interceptor
        assert interceptor.storage_backend is StorageBackend.COOKIE
        assert interceptor.credential_key == "access_token"
        assert interceptor.refresh_credential_key == "rt"
        assert interceptor.refresh_url == "/oauth/refresh"

    def test_empty_env_ignored(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETOKEN_BASE_URL", "")
        assert load_settings().base_url is None

    def test_invalid_env_backend(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETOKEN_STORAGE_BACKEND", "nope")
        with pytest.raises(ConfigError):
            load_settings()

    def test_apply_env_false_reads_file_only(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(settings_path(), {"base_url": "https://file"})
        monkeypatch.setenv("RETOKEN_BASE_URL", "https://env")
        monkeypatch.setenv("RETOKEN_STORAGE_BACKEND", "cookie")

        settings = load_settings(apply_env=False)
        assert settings.base_url == "https://file"
        assert settings.interceptor.storage_backend is StorageBackend.PERSISTENT


class TestSaveSettings:
    def test_round_trip(self, isolated_config: Path) -> None:
        settings = Settings(
            base_url="https://api.example.com",
            interceptor=InterceptorConfig(storage_backend="cookie", credential_key="access"),
        )
        save_settings(settings)
        assert load_settings() == settings

    def test_file_is_json(self, isolated_config: Path) -> None:
        save_settings(Settings())
        data = json.loads(settings_path().read_text(encoding="utf-8"))
        assert data["interceptor"]["storage_backend"] == "persistent"
