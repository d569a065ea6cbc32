"""Error taxonomy shared by the sources, the registry and the REST layer.

Each error carries the HTTP status the REST layer answers with, so the
mapping lives next to the error rather than in every route.
"""

from __future__ import annotations


class PanelsError(Exception):
    """Base class for every error surfaced to callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(PanelsError):
    """The identifier has no corresponding strip (or image)."""

    status_code = 404


class InvalidDateError(PanelsError):
    """A date-addressed source received something that is not ``YYYY-MM-DD``."""

    status_code = 400


class InvalidParamError(PanelsError):
    """An identifier does not belong to the source's addressing family."""

    status_code = 400


class ScrapeFailedError(PanelsError):
    """Upstream answered but its content could not be obtained."""

    status_code = 502
