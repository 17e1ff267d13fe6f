"""Marketplace search query construction."""

from cellar import bottle_sizes


def build_search_query(
    producer: str,
    vintage: int | None = None,
    region: str | None = None,
    bottle_size: str | None = bottle_sizes.STANDARD,
) -> str:
    """
    Build a free-text search string for a wine.

    Order is producer, vintage, region, then the bottle size phrase
    (e.g. "magnum 1.5L") for non-standard formats.
    """
    parts = [producer.strip()]
    if vintage:
        parts.append(str(vintage))
    if region and region.strip():
        parts.append(region.strip())
    modifier = bottle_sizes.search_modifier(bottle_size)
    if modifier:
        parts.append(modifier)
    return " ".join(p for p in parts if p).strip()
