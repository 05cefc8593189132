from __future__ import annotations

__all__: list[str] = ["RommClient"]

from src.integrations.romm_api import RommClient
