"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from panels.api import app

    uvicorn panels.api:app --reload
"""

from panels.api.app import app

__all__ = ["app"]
