"""Tests for SyncConfig and configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.config import SyncConfig, load_config, normalize_base_url, validate_base_url


class TestValidateBaseUrl:
    """Tests for validate_base_url()."""

    @pytest.mark.parametrize(
        "url",
        [
            "http://192.168.0.94:8080",
            "https://romm.example.com",
            "https://romm.example.com/",
            "  http://localhost:3000  ",
        ],
    )
    def test_valid_urls(self, url: str) -> None:
        assert validate_base_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "",
            None,
            "   ",
            "ftp://romm.example.com",
            "romm.example.com",
            "/relative/path",
            "http://",
        ],
    )
    def test_invalid_urls(self, url) -> None:
        assert validate_base_url(url) is False

    def test_normalize_strips_trailing_slashes(self) -> None:
        assert normalize_base_url(" http://romm:8080// ") == "http://romm:8080"


class TestSyncConfig:
    """Tests for the SyncConfig dataclass."""

    def test_values_are_normalized(self) -> None:
        cfg = SyncConfig(base_url="http://romm:8080/", api_token="  tok  ", output_file="out.json")
        assert cfg.base_url == "http://romm:8080"
        assert cfg.api_token == "tok"
        assert cfg.output_file == Path("out.json")

    def test_is_complete(self) -> None:
        assert SyncConfig(base_url="http://romm", api_token="tok").is_complete is True
        assert SyncConfig(base_url="http://romm", api_token="  ").is_complete is False
        assert SyncConfig(base_url="", api_token="tok").is_complete is False

    def test_token_hidden_from_repr(self) -> None:
        cfg = SyncConfig(base_url="http://romm", api_token="super-secret")
        assert "super-secret" not in repr(cfg)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"request_timeout": 0},
            {"max_retries": -1},
            {"artwork_workers": 0},
        ],
    )
    def test_invalid_values_raise(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            SyncConfig(**kwargs)

    def test_with_overrides_ignores_none(self) -> None:
        cfg = SyncConfig(base_url="http://romm", api_token="tok", artwork_workers=4)
        updated = cfg.with_overrides(base_url=None, artwork_workers=2)

        assert updated.base_url == "http://romm"
        assert updated.artwork_workers == 2
        assert cfg.artwork_workers == 4

    def test_frozen_immutability(self) -> None:
        cfg = SyncConfig()
        with pytest.raises(AttributeError):
            cfg.base_url = "http://other"  # type: ignore[misc]


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults_without_settings(self, tmp_path) -> None:
        cfg = load_config(data_dir=tmp_path)

        assert cfg.is_complete is False
        assert cfg.output_file == tmp_path / "romm_sync_output.json"
        assert cfg.images_root == tmp_path / "Images"

    def test_reads_settings_file(self, tmp_path) -> None:
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"RommBaseUrl": "http://romm:8080", "ApiToken": "tok"}))

        cfg = load_config(settings_file=settings, data_dir=tmp_path)

        assert cfg.base_url == "http://romm:8080"
        assert cfg.api_token == "tok"
        assert cfg.is_complete is True

    def test_environment_overrides_settings(self, tmp_path, monkeypatch) -> None:
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"RommBaseUrl": "http://from-file", "ApiToken": "file-token"}))
        monkeypatch.setenv("ROMM_BASE_URL", "http://from-env")
        monkeypatch.setenv("ROMM_OUTPUT_FILE", str(tmp_path / "custom.json"))
        monkeypatch.setenv("ROMM_ARTWORK_WORKERS", "8")
        monkeypatch.setenv("ROMM_MAX_RETRIES", "0")

        cfg = load_config(settings_file=settings, data_dir=tmp_path)

        assert cfg.base_url == "http://from-env"
        assert cfg.api_token == "file-token"
        assert cfg.output_file == tmp_path / "custom.json"
        assert cfg.artwork_workers == 8
        assert cfg.max_retries == 0

    def test_invalid_numeric_environment_ignored(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("ROMM_REQUEST_TIMEOUT", "soon")
        monkeypatch.setenv("ROMM_ARTWORK_WORKERS", "0")

        cfg = load_config(data_dir=tmp_path)

        assert cfg.request_timeout == 30.0
        assert cfg.artwork_workers == 4
