# tests/conftest.py
from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from PIL import Image

from src.config import SyncConfig
from src.core.models import RemoteGame, RemotePlatform
from src.integrations.romm_api import RommClient

# Minimal JPEG: SOI + APP0 header + EOI
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"

_ROMM_ENV_VARS = (
    "ROMM_BASE_URL",
    "ROMM_API_TOKEN",
    "ROMM_OUTPUT_FILE",
    "ROMM_IMAGES_DIR",
    "ROMM_REQUEST_TIMEOUT",
    "ROMM_MAX_RETRIES",
    "ROMM_ARTWORK_WORKERS",
)


@pytest.fixture(autouse=True)
def clean_romm_env(monkeypatch):
    """Keep a developer's RomM environment out of the tests."""
    for name in _ROMM_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("src.config.load_dotenv", lambda *args, **kwargs: False)


@pytest.fixture
def jpeg_bytes() -> bytes:
    return JPEG_BYTES


@pytest.fixture
def png_bytes() -> bytes:
    """A real 4x4 opaque PNG image."""
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), (200, 30, 30)).save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture
def sync_config(tmp_path) -> SyncConfig:
    """Complete config writing into a temporary directory."""
    return SyncConfig(
        base_url="http://romm.local:8080",
        api_token="secret-token",
        output_file=tmp_path / "out" / "romm_sync_output.json",
        images_root=tmp_path / "Images",
        max_retries=0,
        artwork_workers=1,
    )


@pytest.fixture
def sample_games() -> list[RemoteGame]:
    return [
        RemoteGame(id=1, name="Game A", platform_id=10, cover_image="a.jpg", summary="First game"),
        RemoteGame(id=2, name="Game B", platform_id=20, cover_image=None, summary=None),
        RemoteGame(id=3, name="Orphan", platform_id=99, cover_image="orphan.jpg"),
        RemoteGame(id=4, name="Game C", platform_id=10, cover_image="c.png"),
    ]


@pytest.fixture
def sample_platforms() -> list[RemotePlatform]:
    return [
        RemotePlatform(id=10, name="SNES"),
        RemotePlatform(id=20, name="Sega Genesis"),
    ]


@pytest.fixture
def mock_client(sample_games, sample_platforms, jpeg_bytes) -> MagicMock:
    """RommClient stand-in returning the sample catalog."""
    client = MagicMock(spec=RommClient)
    client.fetch_games.return_value = list(sample_games)
    client.fetch_platforms.return_value = list(sample_platforms)
    client.fetch_artwork.return_value = jpeg_bytes
    return client


@pytest.fixture
def previous_document(sync_config) -> bytes:
    """Write a prior output document and return its exact bytes."""
    content = b'[\n  {\n    "Title": "Old Game"\n  }\n]'
    path: Path = sync_config.output_file
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return content
