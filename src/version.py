"""
Central version management for RomM Sync.
"""

from __future__ import annotations

__all__ = ["__app_name__", "__version__", "__release_date__", "__author__", "__license__", "user_agent"]

__app_name__ = "RomM Sync"
__version__ = "1.0.0"
__release_date__ = "2026-10-19"
__author__ = "RomM Sync contributors"
__license__ = "MIT"


def user_agent() -> str:
    """Return the User-Agent header value sent to the RomM server."""
    return f"RommSync/{__version__}"
