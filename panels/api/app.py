"""FastAPI application factory.

Lifespan
--------
On startup the app loads the comic directory and tags, opens one shared
``httpx.Client``, creates the process-wide :class:`StripCache` and builds the
source registry; all of it lives on ``app.state``.  On shutdown the client
is closed.  A missing or malformed ``comics.json`` aborts startup.

Routers
-------
    /api/health                              — liveness probe
    /api/comics, /api/recommendations        — directory
    /api/comics/{endpoint}/{identifier}      — strips and image proxy
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from panels.cache import StripCache
from panels.config import settings
from panels.data import load_comics, load_tags
from panels.errors import PanelsError
from panels.scraper.fetcher import build_client
from panels.sources import build_registry

from panels.api.routers import comics as comics_router
from panels.api.routers import strips as strips_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the retrieval pipeline on startup and close the client on shutdown."""
    comics = load_comics(settings.comics_path)
    tags = load_tags(settings.tags_path)
    print(f"[startup] Loaded {len(comics)} comics, {len(tags)} tag sets")

    client = build_client(settings)
    cache = StripCache(settings.strip_cache_max, settings.strip_cache_ttl)

    app.state.comics = comics
    app.state.tags = tags
    app.state.cache = cache
    app.state.registry = build_registry(client, comics, cache, settings)
    try:
        yield
    finally:
        client.close()


async def _panels_error_handler(request: Request, exc: PanelsError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Panels API",
        description=(
            "Comic strip aggregator: normalised strips from GoComics, xkcd, "
            "PHD Comics, comicsrss.com feeds and archived Dilbert, plus an "
            "image proxy and tag-based recommendations."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PanelsError, _panels_error_handler)

    @app.get("/api/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(comics_router.router, prefix="/api", tags=["comics"])
    app.include_router(strips_router.router, prefix="/api/comics", tags=["strips"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn panels.api.app:app --reload
app = create_app()
