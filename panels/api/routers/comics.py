"""Directory endpoints.

Routes
------
GET /api/comics?search=&tag=                 List comics with their tags
GET /api/recommendations?selected=a,b&limit= Tag-overlap recommendations
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Request

from panels.recommendations import recommend

router = APIRouter()


@router.get("/comics")
def list_comics(
    request: Request,
    search: Optional[str] = None,
    tag: Optional[str] = None,
) -> list[dict[str, Any]]:
    """List the directory, optionally filtered by a title/endpoint substring or a tag."""
    tags = request.app.state.tags
    results = []
    for comic in request.app.state.comics:
        comic_tags = tags.get(comic.endpoint, [])
        if search:
            needle = search.lower()
            if needle not in comic.title.lower() and needle not in comic.endpoint.lower():
                continue
        if tag and tag.lower() not in (t.lower() for t in comic_tags):
            continue
        results.append(comic.to_dict(comic_tags))
    return results


@router.get("/recommendations")
def get_recommendations(
    request: Request,
    selected: Optional[str] = None,
    limit: int = 10,
) -> list[dict[str, Any]]:
    endpoints = [s.strip() for s in (selected or "").split(",") if s.strip()]
    tags = request.app.state.tags
    picks = recommend(request.app.state.comics, tags, endpoints, limit=limit)
    return [c.to_dict(tags.get(c.endpoint, [])) for c in picks]
