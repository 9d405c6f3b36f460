"""In-memory collaborator implementations for local runs and tests."""

from __future__ import annotations

from datetime import date

from labormap.exceptions import PersistenceError
from labormap.integration.interfaces import LinkRequest
from labormap.models import CatalogEntry, OperationKind, ServiceOrder


class InMemoryCatalogStore:
    def __init__(self, entries: list[CatalogEntry] | None = None):
        self._entries: list[CatalogEntry] = list(entries or [])

    async def list(self) -> list[CatalogEntry]:
        return list(self._entries)

    async def create(self, entry: CatalogEntry) -> CatalogEntry:
        # Newest first, matching the DMS listing order
        self._entries.insert(0, entry)
        return entry

    async def delete(self, entry_id: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        return len(self._entries) < before


class InMemoryOrderStore:
    """Orders filtered by branch only; `date` strings are not parsed."""

    def __init__(self, orders: list[ServiceOrder] | None = None):
        self._orders: list[ServiceOrder] = list(orders or [])

    async def list_orders(
        self, start: date, end: date, branch: str | None = None
    ) -> list[ServiceOrder]:
        if not branch:
            return list(self._orders)
        return [o for o in self._orders if o.branch_code == branch]


class InMemoryLinkStore:
    """Records confirmed links. `fail=True` simulates a rejecting backend."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.links: dict[str, tuple[str, OperationKind]] = {}
        self.calls = 0

    async def link_item(
        self,
        internal_code: str,
        factory_code: str,
        kind: OperationKind,
        description: str,
    ) -> bool:
        self.calls += 1
        if self.fail:
            raise PersistenceError(f"Link store rejected {internal_code}", affected_count=1)
        self.links[internal_code] = (factory_code, kind)
        return True

    async def link_batch(
        self,
        items: list[LinkRequest],
        factory_code: str,
        kind: OperationKind,
    ) -> bool:
        self.calls += 1
        if self.fail:
            raise PersistenceError(
                f"Link store rejected batch to {factory_code}", affected_count=len(items)
            )
        for item in items:
            self.links[item.internal_code] = (factory_code, kind)
        return True
