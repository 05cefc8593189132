"""Service for downloading game box art from RomM.

This module provides the ArtworkFetcher class which downloads cover images
for normalized entries and stores them where LaunchBox expects front box
art: ``<images_root>/<platform>/Box - Front/<game_id>.jpg``.

Artwork is an enhancement, not part of catalog correctness: every failure
is recovered per entry. The entry keeps no artwork path and the caller
counts it as one artwork failure.
"""

from __future__ import annotations

import io
import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from PIL import Image, UnidentifiedImageError

from src.core.models import NormalizedEntry
from src.integrations.romm_api import RommClient
from src.utils.json_utils import atomic_write_bytes

logger = logging.getLogger("rommsync.artwork_service")

__all__ = ["ArtworkBatch", "ArtworkFetcher", "BOX_FRONT_DIR", "safe_dir_name"]

BOX_FRONT_DIR = "Box - Front"

_JPEG_SIGNATURE = b"\xff\xd8\xff"
_ILLEGAL_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_RESERVED_NAMES = frozenset(
    {"CON", "PRN", "AUX", "NUL"} | {f"COM{i}" for i in range(1, 10)} | {f"LPT{i}" for i in range(1, 10)}
)

ProgressCallback = Callable[[str, int, int], None]


def safe_dir_name(name: str) -> str:
    """Makes a server-supplied platform name usable as one path component.

    Args:
        name: Platform display name, e.g. ``"Sega CD/32X"``.

    Returns:
        The name with characters illegal on Windows or POSIX replaced by
        ``_``. Never empty, ``.`` or ``..``. Windows device names such as
        ``CON`` or ``COM1`` get a ``_`` prefix.
    """
    cleaned = _ILLEGAL_NAME_CHARS.sub("_", name).strip().rstrip(".")
    if cleaned in ("", ".", ".."):
        return "_"
    if cleaned.split(".", 1)[0].strip().upper() in _RESERVED_NAMES:
        return "_" + cleaned
    return cleaned


@dataclass(frozen=True)
class ArtworkBatch:
    """Merged outcome of an artwork pass.

    Attributes:
        entries: Input entries in order, with artwork paths filled in.
        failures: Entries whose download or write failed.
        skipped: Entries not attempted because the run was cancelled.
    """

    entries: tuple[NormalizedEntry, ...]
    failures: int = 0
    skipped: int = 0


class ArtworkFetcher:
    """Downloads and stores front box art for catalog entries.

    Attributes:
        images_root: Root directory for stored artwork.
        workers: Number of parallel downloads.
    """

    def __init__(self, client: RommClient, images_root: Path, workers: int = 4) -> None:
        """Initializes the ArtworkFetcher.

        Args:
            client: RomM client used for the downloads.
            images_root: Root directory for stored artwork.
            workers: Number of parallel downloads (1 = sequential).
        """
        self.client = client
        self.images_root = Path(images_root).absolute()
        self.workers = max(1, workers)

    def artwork_path(self, platform_name: str, game_id: int) -> Path:
        """Returns the deterministic storage path for a game's front art."""
        return self.images_root / safe_dir_name(platform_name) / BOX_FRONT_DIR / f"{game_id}.jpg"

    def fetch_and_store(self, entry: NormalizedEntry, platform_name: str) -> Path | None:
        """Downloads one entry's artwork and writes it to disk.

        Args:
            entry: Entry whose ``cover_image`` reference is fetched.
            platform_name: Platform directory to store the image under.

        Returns:
            Path of the stored image, or None if the entry has no artwork
            reference (no request is made) or anything went wrong.
        """
        if not entry.cover_image:
            return None

        target = self.artwork_path(platform_name, entry.game_id)
        try:
            data = self.client.fetch_artwork(entry.cover_image)
            atomic_write_bytes(target, self._as_jpeg(data))
        except Exception as exc:
            logger.warning("Artwork for '%s' (%d) not stored: %s", entry.title, entry.game_id, exc)
            return None

        logger.debug("Stored artwork for %d at %s", entry.game_id, target)
        return target

    def fetch_all(
        self,
        entries: Sequence[NormalizedEntry],
        cancel_event: threading.Event | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> ArtworkBatch:
        """Runs the artwork pass over all entries.

        Downloads run on a thread pool; results are merged here, in input
        order, only after every task has settled. Once ``cancel_event`` is
        set, tasks that have not started yet return without a request.

        Args:
            entries: Entries from the join, in output order.
            cancel_event: Optional signal to stop issuing new downloads.
            progress_callback: Optional ``(phase, current, total)`` hook.

        Returns:
            ArtworkBatch with updated entries and failure/skip counts.
        """
        pending = [index for index, entry in enumerate(entries) if entry.cover_image]
        total = len(pending)
        paths: dict[int, Path | None] = {}
        attempted: set[int] = set()

        def task(index: int) -> tuple[int, bool, Path | None]:
            if cancel_event is not None and cancel_event.is_set():
                return index, False, None
            entry = entries[index]
            return index, True, self.fetch_and_store(entry, entry.platform)

        if pending:
            with ThreadPoolExecutor(max_workers=min(self.workers, total), thread_name_prefix="artwork") as pool:
                futures = [pool.submit(task, index) for index in pending]
                for done, future in enumerate(as_completed(futures), start=1):
                    index, was_attempted, path = future.result()
                    if was_attempted:
                        attempted.add(index)
                    paths[index] = path
                    if progress_callback is not None:
                        progress_callback("artwork", done, total)

        failures = sum(1 for index in attempted if paths.get(index) is None)
        skipped = total - len(attempted)
        merged = tuple(
            entry.with_artwork(paths[index]) if paths.get(index) else entry for index, entry in enumerate(entries)
        )

        if failures:
            logger.warning("%d of %d artwork downloads failed", failures, total)
        if skipped:
            logger.info("Skipped %d artwork downloads after cancellation", skipped)
        return ArtworkBatch(entries=merged, failures=failures, skipped=skipped)

    @staticmethod
    def _as_jpeg(data: bytes) -> bytes:
        """Converts image bytes to JPEG so the ``.jpg`` name is truthful.

        JPEG input is returned unchanged. Formats Pillow cannot identify
        are returned unchanged as well.
        """
        if data.startswith(_JPEG_SIGNATURE):
            return data

        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
                    rgba = img.convert("RGBA")
                    rgb = Image.new("RGB", rgba.size, (255, 255, 255))
                    rgb.paste(rgba, mask=rgba.getchannel("A"))
                else:
                    rgb = img.convert("RGB")
        except (UnidentifiedImageError, OSError) as exc:
            logger.debug("Keeping artwork bytes unconverted: %s", exc)
            return data

        out = io.BytesIO()
        rgb.save(out, "JPEG", quality=95)
        return out.getvalue()
