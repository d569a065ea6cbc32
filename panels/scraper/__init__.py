"""Scraper package — network fetch primitives."""

from panels.scraper.fetcher import build_client, fetch_image, fetch_page, random_user_agent
from panels.scraper.models import Page

__all__ = ["build_client", "fetch_page", "fetch_image", "random_user_agent", "Page"]
