"""Apply AI clean-up results to catalog entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from labormap.config import get_config
from labormap.integration.interfaces import SuggestionProvider
from labormap.models import CatalogEntry

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentStats:
    processed: int = 0
    improved: int = 0


async def enrich_catalog_entries(
    entries: list[CatalogEntry],
    provider: SuggestionProvider,
    batch_size: int | None = None,
) -> EnrichmentStats:
    """Send the first `batch_size` entries to the provider and apply results in place.

    Results with unknown ids are ignored. An unavailable provider yields
    zero improvements.
    """
    if batch_size is None:
        batch_size = get_config().llm.enrichment_batch_size

    batch = entries[:batch_size]
    if not batch:
        return EnrichmentStats()

    by_id = {entry.id: entry for entry in batch}
    try:
        enriched = await provider.enrich_catalog(batch)
    except Exception as e:
        logger.warning(f"Catalog enrichment unavailable: {e}")
        return EnrichmentStats(processed=len(batch))

    improved = 0
    for result in enriched:
        entry = by_id.get(result.id)
        if entry is None:
            continue
        entry.description = result.clean_description
        entry.category = result.category
        improved += 1

    logger.info(f"Enriched {improved} of {len(batch)} catalog entries")
    return EnrichmentStats(processed=len(batch), improved=improved)
