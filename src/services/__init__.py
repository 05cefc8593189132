from __future__ import annotations

from src.services.artwork_service import ArtworkFetcher
from src.services.sync_service import SyncOrchestrator, SyncOutcome, SyncState

__all__: list[str] = [
    "ArtworkFetcher",
    "SyncOrchestrator",
    "SyncOutcome",
    "SyncState",
]
