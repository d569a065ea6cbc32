"""Tag-overlap recommendations for the comic directory."""

from __future__ import annotations

from panels.models import Comic

SPANISH_TAG = "en-espanol"


def recommend(
    comics: list[Comic],
    tags: dict[str, list[str]],
    selected: list[str],
    limit: int = 10,
) -> list[Comic]:
    """Rank available comics by how much they share with *selected*.

    Each shared tag scores the number of selected comics carrying it, a
    shared author scores 2 and a shared source 0.5.  Spanish-language comics
    are only considered when the selection already contains one.
    """
    if not selected:
        return []

    chosen = set(selected)
    by_endpoint = {c.endpoint: c for c in comics}

    tag_counts: dict[str, int] = {}
    authors: set[str] = set()
    sources: set[str] = set()
    for endpoint in selected:
        for tag in tags.get(endpoint, []):
            tag_counts[tag] = tag_counts.get(tag, 0) + 1
        comic = by_endpoint.get(endpoint)
        if comic is not None:
            if comic.author:
                authors.add(comic.author)
            sources.add(comic.source)

    include_spanish = SPANISH_TAG in tag_counts

    scored: list[tuple[float, Comic]] = []
    for comic in comics:
        if not comic.available or comic.endpoint in chosen:
            continue
        comic_tags = tags.get(comic.endpoint, [])
        if not include_spanish and SPANISH_TAG in comic_tags:
            continue

        score = float(sum(tag_counts.get(t, 0) for t in comic_tags))
        if comic.author and comic.author in authors:
            score += 2.0
        if comic.source in sources:
            score += 0.5
        if score > 0:
            scored.append((score, comic))

    scored.sort(key=lambda item: item[0], reverse=True)
    return [comic for _, comic in scored[:limit]]
