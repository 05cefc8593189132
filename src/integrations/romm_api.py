"""RomM API client for catalog and artwork retrieval.

Issues authenticated GET requests against a self-hosted RomM server and
turns the responses into typed records. Transport failures and error
statuses are mapped onto the sync error taxonomy so callers never see
raw ``requests`` exceptions.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

import requests

from src.config import SyncConfig
from src.core.errors import AuthenticationError, ProtocolError, RommConnectionError
from src.core.models import RemoteGame, RemotePlatform
from src.version import user_agent

logger = logging.getLogger("rommsync.romm_api")

__all__ = ["RommClient"]

_GAMES_PATH = "/api/roms"
_PLATFORMS_PATH = "/api/platforms"
_RESOURCES_PATH = "/api/resources/"

_AUTH_STATUSES = frozenset({401, 403})
_RETRY_STATUSES = frozenset({429, 502, 503, 504})

T = TypeVar("T")


class RommClient:
    """Client for the RomM REST API.

    One instance carries the server URL, token and transport settings for
    a sync run. The underlying ``requests.Session`` is safe to share
    between artwork worker threads for GET requests.

    Attributes:
        base_url: Server root without trailing slash.
        timeout: Per-request timeout in seconds.
        max_retries: Extra attempts for transient failures.
    """

    def __init__(self, config: SyncConfig, session: requests.Session | None = None) -> None:
        """Initializes the client.

        Args:
            config: Connection settings. Must be complete.
            session: Optional pre-built session (mainly for tests).

        Raises:
            ValueError: If the base URL or token is empty.
        """
        if not config.is_complete:
            raise ValueError("RomM base URL and API token must not be empty")

        self.base_url: str = config.base_url
        self.timeout: float = config.request_timeout
        self.max_retries: int = config.max_retries
        self.retry_backoff: float = config.retry_backoff

        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {config.api_token}",
                "Accept": "application/json",
                "User-Agent": user_agent(),
            }
        )

    def __enter__(self) -> RommClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Releases pooled connections."""
        self._session.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch_games(self) -> list[RemoteGame]:
        """Fetches every game in the catalog.

        Returns:
            Games in server order.

        Raises:
            RommConnectionError: Host unreachable, timeout or error status.
            AuthenticationError: Token rejected.
            ProtocolError: Body is not a list of game objects.
        """
        items = self._get_collection(_GAMES_PATH)
        games = self._parse_items(items, RemoteGame.from_dict, "game")
        logger.info("Fetched %d games from %s", len(games), self.base_url)
        return games

    def fetch_platforms(self) -> list[RemotePlatform]:
        """Fetches every platform in the catalog.

        Returns:
            Platforms in server order.

        Raises:
            RommConnectionError: Host unreachable, timeout or error status.
            AuthenticationError: Token rejected.
            ProtocolError: Body is not a list of platform objects.
        """
        items = self._get_collection(_PLATFORMS_PATH)
        platforms = self._parse_items(items, RemotePlatform.from_dict, "platform")
        logger.info("Fetched %d platforms from %s", len(platforms), self.base_url)
        return platforms

    def fetch_artwork(self, ref: str) -> bytes:
        """Downloads the raw bytes of one artwork resource.

        Args:
            ref: Server-relative artwork locator as found on the game record.

        Returns:
            The image bytes.

        Raises:
            RommConnectionError: Host unreachable, timeout or error status.
            AuthenticationError: Token rejected.
            ProtocolError: Empty response body.
        """
        path = _RESOURCES_PATH + ref.lstrip("/")
        response = self._request(path)
        content = response.content
        if not content:
            raise ProtocolError(f"Empty artwork response for {ref}")
        return content

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(self, path: str) -> requests.Response:
        """Performs one GET with bounded retries and maps failures to errors."""
        url = self._url(path)
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            last_try = attempt == attempts - 1
            try:
                response = self._session.get(url, timeout=self.timeout)
            except (requests.ConnectionError, requests.Timeout) as exc:
                if last_try:
                    raise RommConnectionError(f"Failed to connect to RomM server at {url}: {exc}") from exc
                self._backoff(attempt, f"transport error: {exc}")
                continue
            except requests.RequestException as exc:
                raise RommConnectionError(f"Request to {url} failed: {exc}") from exc

            status = response.status_code
            if status in _AUTH_STATUSES:
                raise AuthenticationError(
                    f"RomM rejected the API token ({status}) for {path}",
                    status_code=status,
                )
            if status in _RETRY_STATUSES and not last_try:
                self._backoff(attempt, f"HTTP {status}")
                continue
            if not 200 <= status < 300:
                raise RommConnectionError(f"RomM returned HTTP {status} for {path}", status_code=status)
            return response

        # Unreachable: the last attempt either returns or raises
        raise RommConnectionError(f"Exhausted retries for {url}")

    def _backoff(self, attempt: int, reason: str) -> None:
        delay = self.retry_backoff * (2**attempt)
        logger.warning("RomM request failed (%s), retrying in %.1fs...", reason, delay)
        time.sleep(delay)

    def _get_collection(self, path: str) -> list[Any]:
        """Fetches a JSON list, unwrapping the paginated ``items`` envelope."""
        response = self._request(path)
        try:
            data = response.json()
        except ValueError as exc:
            raise ProtocolError(f"Response from {path} is not valid JSON: {exc}") from exc

        if isinstance(data, dict) and isinstance(data.get("items"), list):
            return data["items"]
        if isinstance(data, list):
            return data
        raise ProtocolError(f"Response from {path} is not a JSON array (got {type(data).__name__})")

    @staticmethod
    def _parse_items(items: list[Any], parser: Callable[[Any], T], kind: str) -> list[T]:
        records: list[T] = []
        for index, item in enumerate(items):
            try:
                records.append(parser(item))
            except ProtocolError as exc:
                raise ProtocolError(f"Malformed {kind} at index {index}: {exc}") from exc
        return records
