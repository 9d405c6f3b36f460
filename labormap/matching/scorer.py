"""Keyword-scored candidate ranking.

Ranks series-compatible catalog entries by additive points awarded for
AI-extracted keyword hints. Points are rule-based rather than a similarity
metric, so every score can be explained line by line.

Per keyword:
    +15  keyword equals a whole token of the description
    +8   otherwise, keyword is a substring of the description
    +5   keyword is a substring of the factory code
Per entry:
    +5   description starts with a keyword longer than 4 characters
"""

from __future__ import annotations

from typing import Optional

from labormap.canonical.normalize import normalize_text, tokenize
from labormap.config import MatchingConfig, get_config
from labormap.matching.candidates import series_matches
from labormap.matching.models import ScoredCandidate
from labormap.models import CatalogEntry


def normalize_keywords(keywords: list[str] | None) -> list[str]:
    """Normalize hints, dropping blanks and duplicates while keeping order."""
    seen: set[str] = set()
    result = []
    for keyword in keywords or []:
        norm = normalize_text(keyword)
        if norm and norm not in seen:
            seen.add(norm)
            result.append(norm)
    return result


def score_entry(
    entry: CatalogEntry,
    keywords: list[str],
    weights: Optional[MatchingConfig] = None,
) -> ScoredCandidate:
    """Score one catalog entry against normalized keyword hints."""
    if weights is None:
        weights = get_config().matching

    description = normalize_text(entry.description)
    code = normalize_text(entry.factory_code)
    tokens = set(tokenize(description))

    candidate = ScoredCandidate(entry=entry)
    for keyword in keywords:
        if keyword in tokens:
            candidate.match_score += weights.token_match_points
            candidate.reasons.append(f"token '{keyword}' +{weights.token_match_points}")
        elif keyword in description:
            candidate.match_score += weights.substring_points
            candidate.reasons.append(f"text '{keyword}' +{weights.substring_points}")
        if keyword in code:
            candidate.match_score += weights.code_points
            candidate.reasons.append(f"code '{keyword}' +{weights.code_points}")

    for keyword in keywords:
        if len(keyword) > weights.prefix_bonus_min_length and description.startswith(keyword):
            candidate.match_score += weights.prefix_bonus_points
            candidate.reasons.append(f"starts with '{keyword}' +{weights.prefix_bonus_points}")
            break

    return candidate


def rank_candidates(
    catalog: list[CatalogEntry],
    series_context: str | None,
    keywords: list[str] | None,
    limit: Optional[int] = None,
) -> list[ScoredCandidate]:
    """Rank series-compatible catalog entries by keyword score.

    Ranking logic:
    1. Keep entries whose series/model matches the context
    2. Score each entry (see module docstring)
    3. Drop zero scores
    4. Stable sort descending by score (ties keep catalog order)
    5. Cap to `limit`

    Returns:
        Scored candidates; empty for empty hints or empty context
    """
    hints = normalize_keywords(keywords)
    if not hints or not normalize_text(series_context):
        return []

    weights = get_config().matching
    if limit is None:
        limit = weights.ranking_limit

    ranked = []
    for entry in catalog:
        if not series_matches(entry, series_context, weights.series_fuzzy_min_score):
            continue
        candidate = score_entry(entry, hints, weights)
        if candidate.match_score > 0:
            ranked.append(candidate)

    # list.sort is stable
    ranked.sort(key=lambda c: c.match_score, reverse=True)
    return ranked[:limit]
