"""Reconciliation service wiring the collaborators to the pure engine.

Each call follows the same shape: await the collaborator I/O, run the pure
computation on the fetched values, and only then mutate local order state.
Derived views (groups, candidates) are recomputed on request.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from labormap.exceptions import ValidationBlockedError
from labormap.grouping.model_groups import ModelGroup, build_model_groups
from labormap.ingestion.catalog import ImportResult, import_catalog_rows, read_catalog_file
from labormap.ingestion.enrichment import EnrichmentStats, enrich_catalog_entries
from labormap.integration.interfaces import (
    CatalogStore,
    LinkPersistence,
    OrderStore,
    SuggestionProvider,
)
from labormap.linking.service import (
    apply_batch_link,
    ensure_linkable,
    ensure_transmittable,
    link_single,
)
from labormap.matching.candidates import list_candidates, series_context_for_order
from labormap.matching.models import ScoredCandidate
from labormap.matching.scorer import rank_candidates
from labormap.models import AiSuggestion, CatalogEntry, KeywordHints, OrderLineItem, ServiceOrder
from labormap.rules.admission import RuleSet
from labormap.rules.classification import ClassificationRule

logger = logging.getLogger(__name__)


class ReconciliationService:
    """Operator-facing reconciliation workflow over injected collaborators."""

    def __init__(
        self,
        catalog_store: CatalogStore,
        order_store: OrderStore,
        link_persistence: LinkPersistence,
        rule_set: RuleSet,
        classification_rules: list[ClassificationRule] | None = None,
        suggestion_provider: SuggestionProvider | None = None,
    ):
        self.catalog_store = catalog_store
        self.order_store = order_store
        self.link_persistence = link_persistence
        self.rule_set = rule_set
        self.classification_rules = classification_rules or []
        self.suggestion_provider = suggestion_provider

        self.catalog: list[CatalogEntry] = []
        self.orders: list[ServiceOrder] = []

    async def load(self, start: date, end: date, branch: str | None = None) -> None:
        """Fetch the catalog and the working set of orders."""
        self.catalog = await self.catalog_store.list()
        self.orders = await self.order_store.list_orders(start, end, branch)
        logger.info(
            f"Loaded {len(self.catalog)} catalog entries and {len(self.orders)} orders"
        )

    def groups(self) -> list[ModelGroup]:
        return build_model_groups(self.orders, self.rule_set.active)

    def list_candidates(
        self, order: ServiceOrder, search_term: str | None = None
    ) -> list[CatalogEntry]:
        return list_candidates(self.catalog, series_context_for_order(order), search_term)

    async def keyword_hints(self, text: str) -> KeywordHints:
        """AI keyword hints; any provider failure means zero hints."""
        if self.suggestion_provider is None:
            return KeywordHints()
        try:
            return await self.suggestion_provider.extract_keywords(text)
        except Exception as e:
            logger.warning(f"Keyword hints unavailable: {e}")
            return KeywordHints()

    async def rank_for_item(
        self, order: ServiceOrder, item: OrderLineItem
    ) -> list[ScoredCandidate]:
        """Rank catalog entries for one item using AI keyword hints."""
        hints = await self.keyword_hints(item.description)
        return rank_candidates(self.catalog, series_context_for_order(order), hints.keywords)

    async def rank_for_group(self, group: ModelGroup, text: str) -> list[ScoredCandidate]:
        """Rank catalog entries for a whole model group (series = group model name)."""
        hints = await self.keyword_hints(text)
        return rank_candidates(self.catalog, group.model_name, hints.keywords)

    async def suggestions(self, item: OrderLineItem) -> list[AiSuggestion]:
        if self.suggestion_provider is None:
            return []
        try:
            return await self.suggestion_provider.suggest_candidates(
                item.description, item.code, self.catalog
            )
        except Exception as e:
            logger.warning(f"Suggestions unavailable for {item.code}: {e}")
            return []

    async def link_item(
        self, order: ServiceOrder, item: OrderLineItem, entry: CatalogEntry
    ) -> OrderLineItem:
        """Link one item of an order to a catalog entry.

        Raises:
            ValidationBlockedError: If the order cannot take links
            PersistenceError: If the link store rejects the link
        """
        ensure_linkable(order)
        return await link_single(
            item, entry.factory_code, entry.kind, entry.description, self.link_persistence
        )

    async def link_group(
        self,
        group: ModelGroup,
        entry: CatalogEntry,
        selection_keys: set[str] | None = None,
    ) -> list[OrderLineItem]:
        """Link a whole group, or the selected subset of it, in one batch.

        Every order in the batch must accept links; one blocked order blocks
        the whole batch before any I/O.

        Raises:
            ValidationBlockedError: If any order cannot take links
            PersistenceError: If the link store rejects the batch
        """
        targets = group.select(selection_keys) if selection_keys is not None else group.items

        orders_by_id = {order.id: order for order in self.orders}
        for target in targets:
            order = orders_by_id.get(target.order_id)
            if order is None:
                raise ValidationBlockedError(target.order_number, "order is not loaded")
            ensure_linkable(order)

        return await apply_batch_link(
            targets,
            entry.factory_code,
            entry.kind,
            self.link_persistence,
            description=entry.description,
        )

    def check_transmittable(self, order: ServiceOrder) -> None:
        ensure_transmittable(order, self.rule_set.active)

    async def import_catalog(self, path: Path) -> ImportResult:
        """Import a CSV/XLSX catalog file and store every accepted entry."""
        headers, rows = read_catalog_file(path)
        result = import_catalog_rows(headers, rows, self.rule_set, self.classification_rules)
        for entry in result.entries:
            await self.catalog_store.create(entry)
        self.catalog = await self.catalog_store.list()
        return result

    async def enrich_catalog(self) -> EnrichmentStats:
        if self.suggestion_provider is None:
            return EnrichmentStats()
        return await enrich_catalog_entries(self.catalog, self.suggestion_provider)
