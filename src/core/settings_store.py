# src/core/settings_store.py

"""Persistence for the user-entered RomM connection settings.

The file keeps the layout of the original LaunchBox plugin so existing
settings keep working::

    {
      "RommBaseUrl": "http://192.168.0.94:8080",
      "ApiToken": "..."
    }
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from src.config import normalize_base_url, validate_base_url
from src.utils.json_utils import load_json, save_json

logger = logging.getLogger("rommsync.settings_store")

__all__ = ["RommSettings", "SettingsStore"]

_URL_KEY = "RommBaseUrl"
_TOKEN_KEY = "ApiToken"


@dataclass(frozen=True)
class RommSettings:
    """Server URL and API token as entered by the user."""

    base_url: str = ""
    api_token: str = field(default="", repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.base_url.strip()) and bool(self.api_token.strip())


class SettingsStore:
    """Loads and saves RommSettings as a small JSON document.

    Attributes:
        path: Location of the settings file.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> RommSettings:
        """Read settings from disk.

        Returns:
            The stored settings, or empty settings if the file is missing
            or unreadable.
        """
        data = load_json(self.path, default={})
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed settings file %s", self.path)
            return RommSettings()

        url = data.get(_URL_KEY, "")
        token = data.get(_TOKEN_KEY, "")
        return RommSettings(
            base_url=url if isinstance(url, str) else "",
            api_token=token if isinstance(token, str) else "",
        )

    def save(self, settings: RommSettings) -> RommSettings:
        """Validate and persist settings.

        Args:
            settings: Values to store. Surrounding whitespace is removed.

        Returns:
            The settings as written.

        Raises:
            ValueError: If either value is blank or the URL is not an
                absolute http/https URL.
            PersistenceError: If the file cannot be written.
        """
        url = normalize_base_url(settings.base_url)
        token = settings.api_token.strip()
        if not url or not token:
            raise ValueError("Please enter both a valid URL and API token.")
        if not validate_base_url(url):
            raise ValueError(f"Please enter a valid URL (e.g., http://192.168.0.94:8080), got {url!r}.")

        save_json(self.path, {_URL_KEY: url, _TOKEN_KEY: token})
        logger.info("Saved RomM settings to %s", self.path)
        return RommSettings(base_url=url, api_token=token)
