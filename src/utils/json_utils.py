"""Centralized file I/O with consistent error handling.

Provides load_json() for tolerant reads and save_json() /
atomic_write_bytes() for all-or-nothing writes: data goes to a temporary
file in the target directory and is renamed over the target only once it
is fully on disk.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from src.core.errors import PersistenceError

__all__ = ["atomic_write_bytes", "load_json", "save_json"]

logger = logging.getLogger("rommsync.json_utils")


def load_json(path: Path, default: Any = None) -> Any:
    """Load and parse a JSON file with unified error handling.

    Args:
        path: Path to the JSON file.
        default: Value to return if file doesn't exist or fails to parse.
            Defaults to empty dict if None.

    Returns:
        Parsed JSON data, or default value on failure.
    """
    if default is None:
        default = {}
    if not path.exists():
        return default
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
        logger.warning("Failed to load JSON from %s: %s", path, exc)
        return default


def atomic_write_bytes(path: Path, data: bytes, ensure_parents: bool = True) -> None:
    """Write bytes so that ``path`` holds either the old or the new content.

    Args:
        path: Target file path.
        data: Complete file content.
        ensure_parents: Create parent directories if needed.

    Raises:
        OSError: If the directory, temporary file or rename fails. The
            temporary file is removed and the target is left untouched.
    """
    if ensure_parents:
        path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def save_json(path: Path, data: Any, ensure_parents: bool = True) -> None:
    """Save data as pretty-printed JSON, atomically replacing the target.

    Args:
        path: Target file path.
        data: Data to serialize as JSON.
        ensure_parents: Create parent directories if needed.

    Raises:
        PersistenceError: If the data cannot be serialized or written.
    """
    try:
        payload = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PersistenceError(f"Cannot serialize JSON for {path}: {exc}") from exc

    try:
        atomic_write_bytes(path, payload, ensure_parents=ensure_parents)
    except OSError as exc:
        logger.error("Failed to save JSON to %s: %s", path, exc)
        raise PersistenceError(f"Cannot write {path}: {exc}") from exc
