"""Centralised settings for the Panels backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_ROOT / ".env", override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Server / storage
    # ------------------------------------------------------------------
    port: int = field(
        default_factory=lambda: int(os.environ.get("PANELS_PORT", "3000"))
    )
    data_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("PANELS_DATA_DIR", _ROOT / "data"))
    )

    @property
    def comics_path(self) -> Path:
        """Static comic directory loaded once at startup."""
        return self.data_dir / "comics.json"

    @property
    def tags_path(self) -> Path:
        return self.data_dir / "tags.json"

    @property
    def snapshot_table_path(self) -> Path:
        """Archived-strip table written by the harvester."""
        return self.data_dir / "dilbert_cache.json"

    # ------------------------------------------------------------------
    # Strip cache
    # ------------------------------------------------------------------
    strip_cache_max: int = field(
        default_factory=lambda: int(os.environ.get("PANELS_STRIP_CACHE_MAX", "500"))
    )
    strip_cache_ttl: float = field(
        default_factory=lambda: float(os.environ.get("PANELS_STRIP_CACHE_TTL", "1800"))
    )

    # ------------------------------------------------------------------
    # HTTP client
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("PANELS_REQUEST_TIMEOUT", "15.0"))
    )
    max_redirects: int = 5

    # ------------------------------------------------------------------
    # Harvester
    # ------------------------------------------------------------------
    harvest_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("PANELS_HARVEST_CONCURRENCY", "8"))
    )
    harvest_save_interval: int = field(
        default_factory=lambda: int(os.environ.get("PANELS_HARVEST_SAVE_INTERVAL", "100"))
    )
    harvest_batch_pause: float = field(
        default_factory=lambda: float(os.environ.get("PANELS_HARVEST_BATCH_PAUSE", "0.2"))
    )


# Module-level singleton, import this everywhere:
#   from panels.config import settings
settings = Settings()
