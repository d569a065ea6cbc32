"""Data models for the fetch layer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Page:
    """A successfully fetched document after redirects were followed."""

    body: str
    final_url: str
