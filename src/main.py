#!/usr/bin/env python3
"""RomM Sync - command-line entry point.

A thin host around the sync pipeline: reads settings, applies
command-line overrides, runs one sync and prints the outcome.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path

# Add project root directory to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Local imports
from src.config import DATA_DIR, SETTINGS_FILENAME, load_config, validate_base_url
from src.core.errors import PersistenceError
from src.core.logging import logger, setup_logging
from src.core.settings_store import RommSettings, SettingsStore
from src.services.sync_service import SyncOrchestrator, SyncOutcome, format_summary
from src.version import __app_name__, __version__

__all__ = ["build_parser", "main"]

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_REQUIRED = 2


def build_parser() -> argparse.ArgumentParser:
    """Creates the argument parser for the ``romm-sync`` command."""
    parser = argparse.ArgumentParser(
        prog="romm-sync",
        description="Sync a RomM game library into a LaunchBox import document.",
    )
    parser.add_argument("--base-url", help="RomM server URL, e.g. http://192.168.0.94:8080")
    parser.add_argument("--token", help="RomM API token")
    parser.add_argument("--output", type=Path, help="Output JSON document path")
    parser.add_argument("--images-dir", type=Path, help="Root directory for downloaded box art")
    parser.add_argument("--no-artwork", action="store_true", help="Skip downloading box art")
    parser.add_argument("--workers", type=int, help="Parallel artwork downloads")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--retries", type=int, help="Retries for transient network errors")
    parser.add_argument(
        "--settings-file",
        type=Path,
        default=DATA_DIR / SETTINGS_FILENAME,
        help="Settings JSON holding RommBaseUrl and ApiToken",
    )
    parser.add_argument("--save-settings", action="store_true", help="Store --base-url and --token for later runs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    parser.add_argument("--version", action="version", version=f"{__app_name__} {__version__}")
    return parser


def _run_with_interrupt(orchestrator: SyncOrchestrator) -> SyncOutcome:
    """Runs the sync in a worker thread so Ctrl+C can request cancellation."""
    cancel_event = threading.Event()
    holder: dict[str, SyncOutcome] = {}

    worker = threading.Thread(
        target=lambda: holder.setdefault("outcome", orchestrator.sync(cancel_event)),
        name="romm-sync",
    )
    worker.start()
    while worker.is_alive():
        try:
            worker.join(timeout=0.5)
        except KeyboardInterrupt:
            logger.warning("Cancelling sync; finishing downloads already in progress...")
            cancel_event.set()
    return holder["outcome"]


def main(argv: list[str] | None = None) -> int:
    """Main application execution flow.

    Returns:
        Exit code: 0 on success, 1 on a failed run, 2 when the server URL
        or token is missing.
    """
    args = build_parser().parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    if args.save_settings:
        store = SettingsStore(args.settings_file)
        try:
            store.save(RommSettings(base_url=args.base_url or "", api_token=args.token or ""))
        except (ValueError, PersistenceError) as exc:
            logger.error("Settings not saved: %s", exc)
            return EXIT_FAILED

    try:
        config = load_config(settings_file=args.settings_file).with_overrides(
            base_url=args.base_url,
            api_token=args.token,
            output_file=args.output,
            images_root=args.images_dir,
            artwork_workers=args.workers,
            request_timeout=args.timeout,
            max_retries=args.retries,
            download_artwork=False if args.no_artwork else None,
        )
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_FAILED

    if config.base_url and not validate_base_url(config.base_url):
        print(f"Please enter a valid URL (e.g., http://192.168.0.94:8080), got {config.base_url!r}.")
        return EXIT_FAILED

    logger.info("%s %s", __app_name__, __version__)
    outcome = _run_with_interrupt(SyncOrchestrator(config))
    print(format_summary(outcome))

    if outcome.configuration_required:
        print("Set ROMM_BASE_URL and ROMM_API_TOKEN, or run with --base-url/--token --save-settings.")
        return EXIT_CONFIG_REQUIRED
    return EXIT_OK if outcome.succeeded else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
