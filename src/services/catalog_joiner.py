"""Joins the RomM game and platform collections into launcher entries.

Each game is matched to its platform by integer identifier. Games whose
platform is unknown are dropped without error; the catalog commonly holds
ROMs for platforms that are hidden or were removed on the server.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from src.config import normalize_base_url
from src.core.models import NormalizedEntry, RemoteGame, RemotePlatform

logger = logging.getLogger("rommsync.catalog_joiner")

__all__ = ["build_launch_path", "count_orphans", "index_platforms", "join"]


def build_launch_path(base_url: str, game_id: int) -> str:
    """Returns the URL LaunchBox uses to start a game."""
    return f"{normalize_base_url(base_url)}/api/play/{game_id}"


def index_platforms(platforms: Iterable[RemotePlatform]) -> dict[int, RemotePlatform]:
    """Maps platform id to platform. The first record wins on duplicate ids."""
    index: dict[int, RemotePlatform] = {}
    for platform in platforms:
        index.setdefault(platform.id, platform)
    return index


def join(
    games: Sequence[RemoteGame],
    platforms: Sequence[RemotePlatform],
    base_url: str,
) -> list[NormalizedEntry]:
    """Builds one NormalizedEntry per game with a resolvable platform.

    Args:
        games: Games in server order.
        platforms: All known platforms.
        base_url: Server root used for launch paths.

    Returns:
        Entries in the same relative order as ``games``.
    """
    by_id = index_platforms(platforms)
    entries: list[NormalizedEntry] = []

    for game in games:
        platform = by_id.get(game.platform_id)
        if platform is None:
            logger.debug("Skipping '%s' (%d): unknown platform %d", game.name, game.id, game.platform_id)
            continue
        entries.append(
            NormalizedEntry(
                title=game.name,
                platform=platform.name,
                application_path=build_launch_path(base_url, game.id),
                notes=game.summary or "",
                game_id=game.id,
                cover_image=game.cover_image,
            )
        )

    return entries


def count_orphans(games: Sequence[RemoteGame], platforms: Sequence[RemotePlatform]) -> int:
    """Counts games whose platform id matches no platform."""
    known = {platform.id for platform in platforms}
    return sum(1 for game in games if game.platform_id not in known)
