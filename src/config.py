"""
Configuration - RomM server connection and local output locations.
Builds an immutable SyncConfig from defaults, the settings file and
environment variables (including a local .env file).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

logger = logging.getLogger("rommsync.config")


__all__ = [
    "APP_DIR",
    "DATA_DIR",
    "SyncConfig",
    "load_config",
    "normalize_base_url",
    "validate_base_url",
]

APP_DIR: Path = Path(__file__).parent.parent
DATA_DIR: Path = APP_DIR / "data"

OUTPUT_FILENAME = "romm_sync_output.json"
SETTINGS_FILENAME = "settings.json"
IMAGES_DIRNAME = "Images"


def normalize_base_url(url: str | None) -> str:
    """Strip whitespace and trailing slashes from a server URL."""
    if not url:
        return ""
    return url.strip().rstrip("/")


def validate_base_url(url: str | None) -> bool:
    """Check that a URL is absolute and uses the http or https scheme.

    Args:
        url: Candidate server URL, e.g. ``http://192.168.0.94:8080``.

    Returns:
        True if the URL is usable as a RomM base URL.
    """
    text = normalize_base_url(url)
    if not text:
        return False
    parsed = urlparse(text)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@dataclass(frozen=True)
class SyncConfig:
    """
    Everything one sync run needs, passed explicitly into the orchestrator.

    Attributes:
        base_url: RomM server root, without trailing slash.
        api_token: Bearer token for the RomM API. Never logged.
        output_file: Location of the LaunchBox import document.
        images_root: Root directory for downloaded box art.
        request_timeout: Per-request timeout in seconds.
        max_retries: Extra attempts for transient transport failures.
        retry_backoff: Base delay in seconds for exponential backoff.
        artwork_workers: Parallel artwork downloads (1 = sequential).
        download_artwork: Skip the artwork pass entirely when False.
    """

    base_url: str = ""
    api_token: str = field(default="", repr=False)
    output_file: Path = DATA_DIR / OUTPUT_FILENAME
    images_root: Path = DATA_DIR / IMAGES_DIRNAME
    request_timeout: float = 30.0
    max_retries: int = 2
    retry_backoff: float = 0.5
    artwork_workers: int = 4
    download_artwork: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", normalize_base_url(self.base_url))
        object.__setattr__(self, "api_token", (self.api_token or "").strip())
        object.__setattr__(self, "output_file", Path(self.output_file))
        object.__setattr__(self, "images_root", Path(self.images_root))
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.artwork_workers < 1:
            raise ValueError("artwork_workers must be at least 1")

    @property
    def is_complete(self) -> bool:
        """True when both the base URL and the token are set."""
        return bool(self.base_url) and bool(self.api_token)

    def with_overrides(self, **kwargs) -> SyncConfig:
        """Return a copy with the given non-None fields replaced."""
        changes = {key: value for key, value in kwargs.items() if value is not None}
        return replace(self, **changes) if changes else self


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default
    return value if value >= minimum else default


def load_config(settings_file: Path | None = None, data_dir: Path | None = None) -> SyncConfig:
    """Build a SyncConfig from defaults, the settings file and the environment.

    Precedence (lowest to highest): built-in defaults, settings file,
    environment variables. A ``.env`` file in the working directory is
    loaded first without overriding variables already set.

    Args:
        settings_file: Settings JSON to read. Defaults to ``<data_dir>/settings.json``.
        data_dir: Base directory for default output locations.

    Returns:
        A new SyncConfig. It may be incomplete; callers check ``is_complete``.
    """
    # Local import to avoid circular dependency
    from src.core.settings_store import SettingsStore

    load_dotenv()

    base_dir = data_dir or DATA_DIR
    settings = SettingsStore(settings_file or base_dir / SETTINGS_FILENAME).load()

    output_env = os.getenv("ROMM_OUTPUT_FILE", "").strip()
    images_env = os.getenv("ROMM_IMAGES_DIR", "").strip()

    cfg = SyncConfig(
        base_url=os.getenv("ROMM_BASE_URL") or settings.base_url,
        api_token=os.getenv("ROMM_API_TOKEN") or settings.api_token,
        output_file=Path(output_env).expanduser() if output_env else base_dir / OUTPUT_FILENAME,
        images_root=Path(images_env).expanduser() if images_env else base_dir / IMAGES_DIRNAME,
        request_timeout=_env_float("ROMM_REQUEST_TIMEOUT", 30.0),
        max_retries=_env_int("ROMM_MAX_RETRIES", 2, minimum=0),
        artwork_workers=_env_int("ROMM_ARTWORK_WORKERS", 4, minimum=1),
    )
    logger.debug("Loaded config for %s (complete=%s)", cfg.base_url or "<unset>", cfg.is_complete)
    return cfg
