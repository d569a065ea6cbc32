"""Loaders for the static comic directory bundled in the data directory."""

from __future__ import annotations

import json
from pathlib import Path

from panels.models import Comic


def load_comics(path: Path) -> list[Comic]:
    """Read ``comics.json`` into :class:`Comic` descriptors.

    Raises:
        RuntimeError: If the file is missing or malformed.  Startup cannot
            proceed without the directory.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return [Comic.from_dict(item) for item in raw]
    except (OSError, ValueError, KeyError, TypeError) as exc:
        raise RuntimeError(f"failed to load {path}: {exc}") from exc


def load_tags(path: Path) -> dict[str, list[str]]:
    """Read ``tags.json`` (endpoint → tag list).  A missing file means no tags."""
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise RuntimeError(f"failed to parse {path}: {exc}") from exc
    return {str(k): [str(t) for t in v] for k, v in raw.items()}
