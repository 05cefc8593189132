"""Orchestrator for one RomM → LaunchBox catalog sync.

Sequences the pipeline (fetch games and platforms, join, best-effort
artwork pass, atomic output write) and reports a single terminal outcome.
Failures are returned in the SyncOutcome rather than raised, so a host
can show them without its own exception handling.

States of one run::

    IDLE -> FETCHING -> RECONCILING -> SUCCEEDED
               |             |
               +-------------+------> FAILED
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from src.config import SyncConfig
from src.core.errors import (
    AuthenticationError,
    ConfigurationMissingError,
    RommConnectionError,
    SyncCancelledError,
    SyncError,
    SyncInProgressError,
)
from src.core.models import SyncResult
from src.integrations.romm_api import RommClient
from src.services.artwork_service import ArtworkBatch, ArtworkFetcher
from src.services.catalog_joiner import count_orphans, join
from src.utils.json_exporter import OutputWriter

__all__ = ["SyncOrchestrator", "SyncOutcome", "SyncState", "format_summary", "sync"]

logger = logging.getLogger("rommsync.sync_service")

ProgressCallback = Callable[[str, int, int], None]
ConfigurationCallback = Callable[[SyncConfig], Optional[SyncConfig]]
ClientFactory = Callable[[SyncConfig], RommClient]


class SyncState(Enum):
    """Lifecycle state of a sync run."""

    IDLE = "idle"
    FETCHING = "fetching"
    RECONCILING = "reconciling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SyncState.SUCCEEDED, SyncState.FAILED)


@dataclass(frozen=True)
class SyncOutcome:
    """Terminal report of one ``sync()`` call.

    Attributes:
        state: Final state of the run.
        result: Run summary on success.
        error: Originating error on failure, or the missing-configuration error.
        configuration_required: True when the run never started because
            the base URL or token was missing.
    """

    state: SyncState
    result: SyncResult | None = None
    error: SyncError | None = None
    configuration_required: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state is SyncState.SUCCEEDED


class SyncOrchestrator:
    """Runs catalog syncs, one at a time.

    Args:
        config: Connection and output settings for the runs.
        client_factory: Builds the RomM client for a run. Defaults to RommClient.
        on_configuration_required: Called with the current config when it is
            incomplete. May return a completed config to sync with.
        progress_callback: Optional ``(phase, current, total)`` hook.
    """

    def __init__(
        self,
        config: SyncConfig,
        client_factory: ClientFactory | None = None,
        on_configuration_required: ConfigurationCallback | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initializes the orchestrator.

        Args:
            config: Connection and output settings for the runs.
            client_factory: Builds the RomM client for a run.
            on_configuration_required: Hook for collecting missing settings.
            progress_callback: Optional progress hook.
        """
        self.config = config
        self._client_factory: ClientFactory = client_factory or RommClient
        self._on_configuration_required = on_configuration_required
        self._progress_callback = progress_callback
        self._lock = threading.Lock()
        self._state = SyncState.IDLE

    @property
    def state(self) -> SyncState:
        """State of the current run, or the final state of the last one."""
        return self._state

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def sync(self, cancel_event: threading.Event | None = None) -> SyncOutcome:
        """Runs one full sync from a fresh IDLE state.

        Args:
            cancel_event: Optional signal. Once set, no new artwork downloads
                start and the entries resolved so far are written.

        Returns:
            The run's SyncOutcome. Never raises for sync failures.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Sync requested while another sync is running")
            return SyncOutcome(SyncState.FAILED, error=SyncInProgressError("Sync already in progress"))

        try:
            self._state = SyncState.IDLE
            config = self._resolve_config()
            if config is None:
                return SyncOutcome(
                    SyncState.IDLE,
                    error=ConfigurationMissingError("RomM server URL and API token are not configured"),
                    configuration_required=True,
                )
            return self._run(config, cancel_event)
        finally:
            self._lock.release()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_config(self) -> SyncConfig | None:
        """Returns a complete config, asking the host for one if needed."""
        if self.config.is_complete:
            return self.config

        logger.info("RomM server URL or API token missing; configuration required")
        if self._on_configuration_required is None:
            return None

        updated = self._on_configuration_required(self.config)
        if updated is None or not updated.is_complete:
            return None
        self.config = updated
        return updated

    def _transition(self, state: SyncState) -> None:
        logger.debug("Sync state %s -> %s", self._state.value, state.value)
        self._state = state

    def _progress(self, phase: str, current: int, total: int) -> None:
        if self._progress_callback is not None:
            self._progress_callback(phase, current, total)

    def _run(self, config: SyncConfig, cancel_event: threading.Event | None) -> SyncOutcome:
        client = self._client_factory(config)
        try:
            self._transition(SyncState.FETCHING)
            self._progress("fetching", 0, 2)
            games = client.fetch_games()
            self._progress("fetching", 1, 2)
            platforms = client.fetch_platforms()
            self._progress("fetching", 2, 2)

            if cancel_event is not None and cancel_event.is_set():
                raise SyncCancelledError("Sync cancelled before reconciling")

            self._transition(SyncState.RECONCILING)
            entries = join(games, platforms, config.base_url)
            orphans = count_orphans(games, platforms)
            if orphans:
                logger.debug("%d games have no matching platform", orphans)
            self._progress("reconciling", len(entries), len(games))

            if config.download_artwork and entries:
                fetcher = ArtworkFetcher(client, config.images_root, workers=config.artwork_workers)
                batch = fetcher.fetch_all(entries, cancel_event, self._progress_callback)
            else:
                batch = ArtworkBatch(entries=tuple(entries))

            self._progress("writing", 0, 1)
            output_path = OutputWriter(config.output_file).write(batch.entries)
            self._progress("writing", 1, 1)

            result = SyncResult(
                entries=batch.entries,
                artwork_failures=batch.failures,
                output_path=output_path,
                artwork_skipped=batch.skipped,
                orphaned_games=orphans,
                cancelled=cancel_event is not None and cancel_event.is_set(),
            )
            self._transition(SyncState.SUCCEEDED)
            logger.info(
                "Sync finished: %d games written, %d artwork failures",
                result.entry_count,
                result.artwork_failures,
            )
            return SyncOutcome(SyncState.SUCCEEDED, result=result)

        except SyncError as exc:
            self._transition(SyncState.FAILED)
            logger.error("Sync failed: %s", exc)
            return SyncOutcome(SyncState.FAILED, error=exc)
        except Exception as exc:
            self._transition(SyncState.FAILED)
            logger.exception("Unexpected error during sync")
            error = SyncError(f"Unexpected error during sync: {exc}")
            error.__cause__ = exc
            return SyncOutcome(SyncState.FAILED, error=error)
        finally:
            client.close()


def format_summary(outcome: SyncOutcome) -> str:
    """Renders the one-line message shown to the user after a sync."""
    if outcome.configuration_required:
        return "RomM server URL and API token are required. Configure them and sync again."

    if outcome.succeeded and outcome.result is not None:
        result = outcome.result
        message = f"RomM library synced successfully! {result.entry_count} games saved to {result.output_path}."
        if result.artwork_failures:
            message += f" {result.artwork_failures} artwork downloads failed."
        if result.cancelled:
            message += " Sync was cancelled; some artwork was not downloaded."
        return message + " Please manually import games into LaunchBox."

    error = outcome.error
    if isinstance(error, (RommConnectionError, AuthenticationError)):
        return f"Failed to connect to RomM server. Check URL and token: {error}"
    return f"Error syncing with RomM: {error}"


def sync(
    config: SyncConfig,
    cancel_event: threading.Event | None = None,
    progress_callback: ProgressCallback | None = None,
) -> SyncOutcome:
    """Runs a single sync with a fresh orchestrator.

    Convenience entry point for hosts that do not keep an orchestrator
    around between runs.
    """
    return SyncOrchestrator(config, progress_callback=progress_callback).sync(cancel_event)
