"""Smoke tests – verify all modules are importable and free of syntax errors.

This is an infrastructure test (not a unit test), so it lives in the tests
root rather than under ``tests/unit/``.
"""

from __future__ import annotations

import importlib
import subprocess
import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Module lists
# ---------------------------------------------------------------------------

CORE_MODULES: list[str] = [
    "src.core.errors",
    "src.core.logging",
    "src.core.models",
    "src.core.settings_store",
]

SERVICE_MODULES: list[str] = [
    "src.services.artwork_service",
    "src.services.catalog_joiner",
    "src.services.sync_service",
]

UTILS_MODULES: list[str] = [
    "src.utils.json_exporter",
    "src.utils.json_utils",
]

INTEGRATION_MODULES: list[str] = [
    "src.integrations.romm_api",
]

TOP_LEVEL_MODULES: list[str] = [
    "src.config",
    "src.main",
    "src.version",
]

ALL_MODULES = CORE_MODULES + SERVICE_MODULES + UTILS_MODULES + INTEGRATION_MODULES + TOP_LEVEL_MODULES


# ---------------------------------------------------------------------------
# Parametrized import tests
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("module_path", ALL_MODULES)
def test_import_modules(module_path: str) -> None:
    """Module must be importable without errors."""
    importlib.import_module(module_path)


# ---------------------------------------------------------------------------
# Circular import check
# ---------------------------------------------------------------------------


def test_no_circular_imports() -> None:
    """All modules can be imported in a fresh subprocess without cycles.

    Uses subprocess isolation to avoid corrupting module references for
    other tests in the same session.
    """
    import_lines = "; ".join(f"import {m}" for m in ALL_MODULES)
    result = subprocess.run(
        [sys.executable, "-c", import_lines],
        capture_output=True,
        text=True,
        timeout=30,
        cwd=Path(__file__).resolve().parents[1],
    )
    assert result.returncode == 0, f"Circular import detected:\nstderr: {result.stderr}"
