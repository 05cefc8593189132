"""Tests for the romm-sync command-line entry point."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from src.core.errors import AuthenticationError
from src.core.models import SyncResult
from src.main import build_parser, main
from src.services.sync_service import SyncOutcome, SyncState


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("src.main.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def settings_file(tmp_path) -> Path:
    return tmp_path / "settings.json"


def _success(tmp_path: Path) -> SyncOutcome:
    result = SyncResult(entries=(), artwork_failures=0, output_path=tmp_path / "out.json")
    return SyncOutcome(SyncState.SUCCEEDED, result=result)


class TestBuildParser:
    """Tests for build_parser()."""

    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.base_url is None
        assert args.no_artwork is False
        assert args.save_settings is False
        assert args.settings_file.name == "settings.json"

    def test_overrides(self, tmp_path) -> None:
        args = build_parser().parse_args(
            ["--base-url", "http://romm", "--token", "t", "--workers", "2", "--no-artwork", "-v"]
        )
        assert args.base_url == "http://romm"
        assert args.workers == 2
        assert args.no_artwork is True
        assert args.verbose is True


class TestMain:
    """Tests for main()."""

    def test_missing_configuration_exit_code(self, settings_file, capsys) -> None:
        assert main(["--settings-file", str(settings_file)]) == 2
        assert "URL and API token are required" in capsys.readouterr().out

    @patch("src.main.SyncOrchestrator")
    def test_success(self, mock_orchestrator_cls: MagicMock, settings_file, tmp_path, capsys) -> None:
        mock_orchestrator_cls.return_value.sync.return_value = _success(tmp_path)

        code = main(
            [
                "--settings-file",
                str(settings_file),
                "--base-url",
                "http://romm:8080/",
                "--token",
                "tok",
                "--output",
                str(tmp_path / "out.json"),
                "--workers",
                "2",
                "--no-artwork",
            ]
        )

        assert code == 0
        config = mock_orchestrator_cls.call_args.args[0]
        assert config.base_url == "http://romm:8080"
        assert config.api_token == "tok"
        assert config.output_file == tmp_path / "out.json"
        assert config.artwork_workers == 2
        assert config.download_artwork is False
        assert "synced successfully" in capsys.readouterr().out

    @patch("src.main.SyncOrchestrator")
    def test_failure_exit_code(self, mock_orchestrator_cls: MagicMock, settings_file, capsys) -> None:
        mock_orchestrator_cls.return_value.sync.return_value = SyncOutcome(
            SyncState.FAILED, error=AuthenticationError("rejected", status_code=401)
        )

        code = main(["--settings-file", str(settings_file), "--base-url", "http://romm", "--token", "bad"])

        assert code == 1
        assert "Failed to connect to RomM server" in capsys.readouterr().out

    def test_invalid_override_exit_code(self, settings_file) -> None:
        assert main(["--settings-file", str(settings_file), "--workers", "0"]) == 1

    @pytest.mark.parametrize("url", ["romm.local:8080", "ftp://romm.local"])
    @patch("src.main.SyncOrchestrator")
    def test_invalid_base_url_rejected(self, mock_orchestrator_cls: MagicMock, settings_file, capsys, url: str) -> None:
        code = main(["--settings-file", str(settings_file), "--base-url", url, "--token", "tok"])

        assert code == 1
        assert "Please enter a valid URL" in capsys.readouterr().out
        mock_orchestrator_cls.assert_not_called()

    @patch("src.main.SyncOrchestrator")
    def test_save_settings(self, mock_orchestrator_cls: MagicMock, settings_file, tmp_path) -> None:
        mock_orchestrator_cls.return_value.sync.return_value = _success(tmp_path)

        code = main(
            ["--settings-file", str(settings_file), "--base-url", "http://romm:8080", "--token", "tok", "--save-settings"]
        )

        assert code == 0
        assert json.loads(settings_file.read_text(encoding="utf-8")) == {
            "RommBaseUrl": "http://romm:8080",
            "ApiToken": "tok",
        }

    def test_save_settings_requires_both_values(self, settings_file) -> None:
        code = main(["--settings-file", str(settings_file), "--base-url", "http://romm:8080", "--save-settings"])

        assert code == 1
        assert not settings_file.exists()
