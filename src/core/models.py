# src/core/models.py

"""Data models for the RomM catalog sync.

Contains the immutable records that flow through one sync run:
RemoteGame and RemotePlatform as fetched from the server, NormalizedEntry
as produced by the join, and SyncResult as the finalized run summary.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

from src.core.errors import ProtocolError

__all__ = [
    "NormalizedEntry",
    "RemoteGame",
    "RemotePlatform",
    "SyncResult",
]

# Newer RomM releases expose the cover under these keys instead of cover_image
_COVER_FALLBACK_KEYS = ("path_cover_large", "path_cover_small")


def _require_mapping(data: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ProtocolError(f"Expected a JSON object for {kind}, got {type(data).__name__}")
    return data


def _require_int(data: Mapping[str, Any], key: str, kind: str) -> int:
    """Read an integer field, accepting ASCII digit-only strings."""
    value = data.get(key)
    if isinstance(value, bool):
        raise ProtocolError(f"{kind} field '{key}' must be an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        return int(value.strip())
    if value is None:
        raise ProtocolError(f"{kind} is missing required field '{key}'")
    raise ProtocolError(f"{kind} field '{key}' must be an integer, got {type(value).__name__}")


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass(frozen=True)
class RemotePlatform:
    """A platform record from ``/api/platforms``.

    Attributes:
        id: Server-assigned platform identifier.
        name: Display name, used as the LaunchBox platform name.
    """

    id: int
    name: str

    @classmethod
    def from_dict(cls, data: Any) -> RemotePlatform:
        """Build a platform from a server JSON object.

        Raises:
            ProtocolError: If the object lacks an integer ``id`` or a string ``name``.
        """
        obj = _require_mapping(data, "platform")
        platform_id = _require_int(obj, "id", "Platform")
        name = obj.get("name")
        if not isinstance(name, str):
            raise ProtocolError(f"Platform {platform_id} has no string 'name'")
        return cls(id=platform_id, name=name)


@dataclass(frozen=True)
class RemoteGame:
    """A game (ROM) record from ``/api/roms``.

    Attributes:
        id: Server-assigned game identifier.
        name: Display name.
        platform_id: Foreign key into the platform collection.
        cover_image: Server-relative artwork locator, if any.
        summary: Free-text description, if any.
    """

    id: int
    name: str
    platform_id: int
    cover_image: str | None = None
    summary: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> RemoteGame:
        """Build a game from a server JSON object.

        ``name`` falls back to the file name when the server has no scraped
        title. Empty ``cover_image`` and ``summary`` values become None.

        Raises:
            ProtocolError: If required fields are missing or mistyped.
        """
        obj = _require_mapping(data, "game")
        game_id = _require_int(obj, "id", "Game")
        platform_id = _require_int(obj, "platform_id", "Game")

        name = obj.get("name")
        if name is None:
            name = obj.get("fs_name_no_ext") or obj.get("fs_name")
        if not isinstance(name, str):
            raise ProtocolError(f"Game {game_id} has no string 'name'")

        cover = _optional_text(obj.get("cover_image"))
        if cover is None:
            for key in _COVER_FALLBACK_KEYS:
                cover = _optional_text(obj.get(key))
                if cover:
                    break

        return cls(
            id=game_id,
            name=name,
            platform_id=platform_id,
            cover_image=cover,
            summary=_optional_text(obj.get("summary")),
        )


@dataclass(frozen=True)
class NormalizedEntry:
    """A launcher-ready record combining one game with its platform name.

    ``game_id`` and ``cover_image`` are carried for the artwork pass only and
    are not part of the output document.
    """

    title: str
    platform: str
    application_path: str
    notes: str = ""
    front_image_path: Path | None = None
    game_id: int = 0
    cover_image: str | None = None

    def with_artwork(self, path: Path | None) -> NormalizedEntry:
        """Return a copy with the local artwork path set."""
        return replace(self, front_image_path=path)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the object shape LaunchBox imports."""
        return {
            "Title": self.title,
            "Platform": self.platform,
            "ApplicationPath": self.application_path,
            "Notes": self.notes,
            "FrontImagePath": str(self.front_image_path) if self.front_image_path else None,
        }


@dataclass(frozen=True)
class SyncResult:
    """Finalized summary of one sync run.

    Attributes:
        entries: Ordered entries written to the output document.
        artwork_failures: Entries whose artwork fetch or write failed.
        output_path: Location of the written document.
        artwork_skipped: Entries not attempted because the run was cancelled.
        orphaned_games: Games dropped because their platform was unknown.
        cancelled: Whether cancellation cut the artwork pass short.
    """

    entries: tuple[NormalizedEntry, ...]
    artwork_failures: int
    output_path: Path
    artwork_skipped: int = 0
    orphaned_games: int = 0
    cancelled: bool = False

    @property
    def entry_count(self) -> int:
        return len(self.entries)
