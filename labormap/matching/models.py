"""Data models for candidate matching."""

from __future__ import annotations

from dataclasses import dataclass, field

from labormap.models import CatalogEntry


@dataclass
class ScoredCandidate:
    """Catalog entry with its additive keyword score.

    `reasons` lists the point awards so an operator can see why it ranked.
    """

    entry: CatalogEntry
    match_score: int = 0
    reasons: list[str] = field(default_factory=list)

    @property
    def factory_code(self) -> str:
        return self.entry.factory_code
