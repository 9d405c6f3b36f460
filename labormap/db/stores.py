"""SQL-backed catalog and link stores."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from labormap.db.connection import get_session_factory
from labormap.db.models import CatalogEntryModel, ItemLinkModel
from labormap.exceptions import PersistenceError
from labormap.integration.interfaces import LinkRequest
from labormap.models import CatalogEntry, LinkStatus, OperationKind

logger = logging.getLogger(__name__)


def _to_entry(row: CatalogEntryModel) -> CatalogEntry:
    return CatalogEntry(
        id=row.id,
        factory_code=row.factory_code,
        kind=OperationKind(row.kind),
        internal_code=row.internal_code,
        description=row.description,
        vehicle_series=row.vehicle_series,
        vehicle_model=row.vehicle_model,
        category=row.category,
        standard_hours=row.standard_hours,
        is_battery_repair=row.is_battery_repair,
        status=LinkStatus(row.status),
        confidence=row.confidence,
    )


class SqlCatalogStore:
    """Catalog store over the `catalog_entries` table.

    Entries are listed in insertion order so that candidate ranking ties
    stay reproducible across runs.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory or get_session_factory()

    async def list(self) -> list[CatalogEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CatalogEntryModel).order_by(CatalogEntryModel.pk)
            )
            return [_to_entry(row) for row in result.scalars().all()]

    async def create(self, entry: CatalogEntry) -> CatalogEntry:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        CatalogEntryModel(
                            **entry.model_dump(exclude={"kind", "status"}),
                            kind=entry.kind.value,
                            status=entry.status.value,
                        )
                    )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not store catalog entry {entry.factory_code}: {e}") from e
        return entry

    async def create_many(self, entries: list[CatalogEntry]) -> int:
        """Insert entries in one transaction."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    for entry in entries:
                        session.add(
                            CatalogEntryModel(
                                **entry.model_dump(exclude={"kind", "status"}),
                                kind=entry.kind.value,
                                status=entry.status.value,
                            )
                        )
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Catalog bulk insert failed: {e}", affected_count=len(entries)
            ) from e
        logger.info(f"Stored {len(entries)} catalog entries")
        return len(entries)

    async def delete(self, entry_id: str) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(CatalogEntryModel).where(CatalogEntryModel.id == entry_id)
                )
        return result.rowcount > 0


class SqlLinkStore:
    """Link persistence over the `item_links` table.

    A batch is written in a single transaction so it either lands whole or
    not at all.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory or get_session_factory()

    async def link_item(
        self,
        internal_code: str,
        factory_code: str,
        kind: OperationKind,
        description: str,
    ) -> bool:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        ItemLinkModel(
                            internal_code=internal_code,
                            factory_code=factory_code,
                            kind=kind.value,
                            description=description,
                        )
                    )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Link of {internal_code} failed: {e}", affected_count=1) from e
        return True

    async def link_batch(
        self,
        items: list[LinkRequest],
        factory_code: str,
        kind: OperationKind,
    ) -> bool:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add_all(
                        [
                            ItemLinkModel(
                                internal_code=item.internal_code,
                                order_number=item.order_number,
                                factory_code=factory_code,
                                kind=kind.value,
                                description=item.description,
                                batch=True,
                            )
                            for item in items
                        ]
                    )
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Batch link to {factory_code} failed: {e}", affected_count=len(items)
            ) from e
        return True

    async def current_link(self, internal_code: str) -> tuple[str, OperationKind] | None:
        """Latest factory code bound to an internal code."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(ItemLinkModel)
                .where(ItemLinkModel.internal_code == internal_code)
                .order_by(ItemLinkModel.created_at.desc(), ItemLinkModel.id.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
        if row is None:
            return None
        return row.factory_code, OperationKind(row.kind)
