"""Panels — comic strip retrieval, caching and archive harvesting."""

__version__ = "0.1.0"
