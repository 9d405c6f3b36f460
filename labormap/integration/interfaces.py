"""Collaborator interfaces consumed by the reconciliation engine.

The engine owns no wire format. Catalog storage, the dealership order feed,
link persistence and the AI provider are injected behind these protocols.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Protocol, runtime_checkable

from labormap.models import (
    AiSuggestion,
    CatalogEntry,
    EnrichedEntry,
    KeywordHints,
    OperationKind,
    ServiceOrder,
)


@dataclass(frozen=True)
class LinkRequest:
    """One internal-code line to bind to a factory code."""

    internal_code: str
    description: str
    order_number: str | None = None


@runtime_checkable
class CatalogStore(Protocol):
    """Master catalog of factory codes."""

    async def list(self) -> list[CatalogEntry]: ...

    async def create(self, entry: CatalogEntry) -> CatalogEntry: ...

    async def delete(self, entry_id: str) -> bool: ...


@runtime_checkable
class OrderStore(Protocol):
    """Service orders from the dealership management system."""

    async def list_orders(
        self, start: date, end: date, branch: str | None
    ) -> list[ServiceOrder]: ...


@runtime_checkable
class LinkPersistence(Protocol):
    """Backing store for confirmed links.

    Implementations raise `PersistenceError` (or return False) on failure.
    """

    async def link_item(
        self,
        internal_code: str,
        factory_code: str,
        kind: OperationKind,
        description: str,
    ) -> bool: ...

    async def link_batch(
        self,
        items: list[LinkRequest],
        factory_code: str,
        kind: OperationKind,
    ) -> bool: ...


@runtime_checkable
class SuggestionProvider(Protocol):
    """AI suggestion source. Unavailability must surface as empty results."""

    async def extract_keywords(self, text: str) -> KeywordHints: ...

    async def suggest_candidates(
        self, description: str, code: str, history: list[CatalogEntry]
    ) -> list[AiSuggestion]: ...

    async def enrich_catalog(self, entries: list[CatalogEntry]) -> list[EnrichedEntry]: ...
