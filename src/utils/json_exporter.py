# src/utils/json_exporter.py

"""JSON export of the synced catalog for LaunchBox.

Writes the full list of normalized entries as one JSON array that the
LaunchBox import picks up. Every write replaces the previous document
completely; a failed write leaves the previous document untouched.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Sequence, TYPE_CHECKING

from src.core.errors import PersistenceError
from src.utils.json_utils import save_json

if TYPE_CHECKING:
    from src.core.models import NormalizedEntry

logger = logging.getLogger("rommsync.json_exporter")

__all__ = ["OutputWriter"]


class OutputWriter:
    """Persists normalized entries as the LaunchBox import document.

    Attributes:
        output_path: Fixed location of the document.
    """

    def __init__(self, output_path: Path) -> None:
        self.output_path = Path(output_path)

    def write(self, entries: Sequence[NormalizedEntry]) -> Path:
        """Exports entries as a JSON array, replacing any previous document.

        Each entry is serialized as an object with the keys ``Title``,
        ``Platform``, ``ApplicationPath``, ``Notes`` and ``FrontImagePath``.

        Args:
            entries: Entries in output order.

        Returns:
            The path written.

        Raises:
            PersistenceError: If the file cannot be written. The previous
                document, if any, is unchanged.
        """
        data: list[dict[str, Any]] = [entry.to_document() for entry in entries]
        save_json(self.output_path, data)
        logger.info("Exported %d games (JSON) to %s", len(data), self.output_path)
        return self.output_path

    def read(self) -> list[dict[str, Any]]:
        """Loads the previously written document.

        Returns:
            The stored entries, or an empty list if no document exists.

        Raises:
            PersistenceError: If the document exists but cannot be read or
                is not a JSON array.
        """
        if not self.output_path.exists():
            return []
        try:
            with open(self.output_path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Cannot read {self.output_path}: {exc}") from exc
        if not isinstance(data, list):
            raise PersistenceError(f"{self.output_path} does not contain a JSON array")
        return data
