"""Catalog KPIs, filter facets and per-entry data-quality issues."""

from __future__ import annotations

from dataclasses import dataclass

from labormap.models import CatalogEntry, LinkStatus, OperationKind

GENERIC_CATEGORY = "General"
MIN_HEALTHY_DESCRIPTION = 5
MIN_QUALITY_DESCRIPTION = 10


@dataclass(frozen=True)
class CatalogStats:
    total: int
    linked: int
    labor: int
    repair: int
    health_score: int  # percent of entries with a specific category and a real description


@dataclass(frozen=True)
class CatalogFacets:
    series: list[str]
    categories: list[str]


def _is_healthy(entry: CatalogEntry) -> bool:
    return (
        bool(entry.category)
        and entry.category != GENERIC_CATEGORY
        and len(entry.description or "") > MIN_HEALTHY_DESCRIPTION
    )


def catalog_stats(entries: list[CatalogEntry]) -> CatalogStats:
    """Summary counts and the rounded health score (0-100)."""
    total = len(entries)
    healthy = sum(1 for e in entries if _is_healthy(e))
    return CatalogStats(
        total=total,
        linked=sum(1 for e in entries if e.status == LinkStatus.LINKED),
        labor=sum(1 for e in entries if e.kind == OperationKind.LABOR),
        repair=sum(1 for e in entries if e.kind == OperationKind.REPAIR),
        health_score=round(healthy * 100 / total) if total else 0,
    )


def catalog_facets(entries: list[CatalogEntry]) -> CatalogFacets:
    """Sorted distinct series and categories for filter menus."""
    series = {e.vehicle_series for e in entries if e.vehicle_series}
    categories = {e.category for e in entries if e.category}
    return CatalogFacets(series=sorted(series), categories=sorted(categories))


def filter_catalog(
    entries: list[CatalogEntry],
    query: str | None = None,
    series: str | None = None,
    category: str | None = None,
) -> list[CatalogEntry]:
    """Case-insensitive text search over codes and description, plus exact facet filters."""
    results = entries
    q = (query or "").strip().lower()
    if q:
        results = [
            e
            for e in results
            if q in e.factory_code.lower()
            or q in e.internal_code.lower()
            or q in (e.description or "").lower()
        ]
    if series:
        results = [e for e in results if e.vehicle_series == series]
    if category:
        results = [e for e in results if e.category == category]
    return list(results)


def data_quality_issues(entry: CatalogEntry) -> list[str]:
    """Audit findings for one catalog entry; empty when the entry is complete."""
    issues = []
    if not entry.standard_hours:
        issues.append("Missing standard hours")
    if not entry.category or entry.category == GENERIC_CATEGORY:
        issues.append("Generic category")
    if len(entry.description or "") < MIN_QUALITY_DESCRIPTION:
        issues.append("Description too short")
    return issues
