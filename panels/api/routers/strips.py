"""Strip endpoints — JSON records and the image proxy.

Routes
------
GET /api/comics/{endpoint}/{identifier}          latest | random | date | #n
GET /api/comics/{endpoint}/{identifier}/image    proxied image bytes
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response

router = APIRouter()

LONG_CACHE = "public, max-age=86400, s-maxage=604800"
NO_STORE = "no-store"


@router.get("/{endpoint}/{identifier}")
def get_strip(endpoint: str, identifier: str, request: Request) -> dict[str, Any]:
    """Return the strip for *identifier* (404 when the source has none)."""
    registry = request.app.state.registry
    return registry.resolve(endpoint, identifier).to_dict()


@router.get("/{endpoint}/{identifier}/image")
def get_strip_image(endpoint: str, identifier: str, request: Request) -> Response:
    """Proxy the strip image so hotlink protection on the origin is satisfied.

    Random picks must not be cached by the browser; everything else is
    deterministic and cached for a day.
    """
    registry = request.app.state.registry
    source = registry.source_for(endpoint)
    strip = registry.resolve(endpoint, identifier)
    body, content_type = source.proxy_image(strip.image_url)

    cache_control = NO_STORE if identifier == "random" else LONG_CACHE
    return Response(
        content=body,
        media_type=content_type,
        headers={"Cache-Control": cache_control},
    )
