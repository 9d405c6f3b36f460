"""Context-filtered candidate listing (no AI).

Narrows the factory catalog to the entries compatible with a vehicle series
context, then applies an optional free-text search term.
"""

from __future__ import annotations

from typing import Optional

from rapidfuzz import fuzz

from labormap.canonical.normalize import first_tokens, normalize_text
from labormap.config import get_config
from labormap.models import CatalogEntry, ServiceOrder


def series_matches(
    entry: CatalogEntry, context: str, fuzzy_min_score: Optional[int] = None
) -> bool:
    """Whether an entry's series/model is compatible with a series context.

    Compatible means equal, containing or contained in either direction, or a
    RapidFuzz partial ratio of at least `fuzzy_min_score`. Entries without
    series and model never match a non-empty context.
    """
    ctx = normalize_text(context)
    if not ctx:
        return False

    if fuzzy_min_score is None:
        fuzzy_min_score = get_config().matching.series_fuzzy_min_score

    for value in (entry.vehicle_series, entry.vehicle_model):
        series = normalize_text(value)
        if not series:
            continue
        if series == ctx or ctx in series or series in ctx:
            return True
        if fuzz.partial_ratio(ctx, series) >= fuzzy_min_score:
            return True
    return False


def matches_search(entry: CatalogEntry, term: str | None) -> bool:
    """Case-insensitive substring match on description or factory code."""
    needle = normalize_text(term)
    if not needle:
        return True
    return needle in normalize_text(entry.description) or needle in normalize_text(
        entry.factory_code
    )


def list_candidates(
    catalog: list[CatalogEntry],
    series_context: str | None,
    search_term: str | None = None,
    limit: Optional[int] = None,
) -> list[CatalogEntry]:
    """List catalog entries for a series context, unscored, in catalog order.

    Args:
        catalog: Full factory catalog
        series_context: Vehicle series context (e.g. "SONG")
        search_term: Optional free-text filter
        limit: Max entries to return (default from config)

    Returns:
        Matching entries; empty when the context is empty
    """
    if not normalize_text(series_context):
        return []

    matching = get_config().matching
    if limit is None:
        limit = matching.listing_limit

    results = []
    for entry in catalog:
        if not series_matches(entry, series_context, matching.series_fuzzy_min_score):
            continue
        if not matches_search(entry, search_term):
            continue
        results.append(entry)
        if len(results) >= limit:
            break
    return results


def series_context_for_order(order: ServiceOrder) -> str:
    """Series context for single-item linking: first token of the model description."""
    return first_tokens(order.model_desc_raw, 1) or first_tokens(order.model_code_raw, 1)
