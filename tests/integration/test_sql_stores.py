"""Integration tests for the SQLAlchemy catalog and link stores."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from labormap.db.models import Base, ItemLinkModel
from labormap.db.stores import SqlCatalogStore, SqlLinkStore
from labormap.exceptions import PersistenceError
from labormap.integration.interfaces import LinkRequest
from labormap.models import OperationKind


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """File-backed SQLite database with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'labormap.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


class TestSqlCatalogStore:
    @pytest.mark.asyncio
    async def test_create_and_list_in_insertion_order(self, session_factory, catalog):
        store = SqlCatalogStore(session_factory)
        for entry in reversed(catalog):
            await store.create(entry)

        listed = await store.list()

        assert [e.factory_code for e in listed] == [
            "SHARK_LAB_01",
            "WSA3HRF00501GH00",
            "WSA3HAC02101GH00",
        ]
        assert listed[1].kind == OperationKind.REPAIR
        assert listed[2] == catalog[0]

    @pytest.mark.asyncio
    async def test_create_many_and_delete(self, session_factory, catalog):
        store = SqlCatalogStore(session_factory)

        assert await store.create_many(catalog) == 3
        assert await store.delete("2")
        assert not await store.delete("2")
        assert [e.id for e in await store.list()] == ["1", "3"]

    @pytest.mark.asyncio
    async def test_duplicate_id_raises(self, session_factory, catalog):
        store = SqlCatalogStore(session_factory)
        await store.create(catalog[0])

        with pytest.raises(PersistenceError):
            await store.create(catalog[0])


class TestSqlLinkStore:
    @pytest.mark.asyncio
    async def test_batch_written_in_one_transaction(self, session_factory):
        store = SqlLinkStore(session_factory)
        items = [LinkRequest("MO006", "REVISION", "XCL00435"), LinkRequest("MO-GEN", "RUIDO", "XCL00436")]

        assert await store.link_batch(items, "WSA3HAC02101GH00", OperationKind.LABOR)

        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(ItemLinkModel))
        assert count == 2

    @pytest.mark.asyncio
    async def test_latest_link_wins(self, session_factory):
        store = SqlLinkStore(session_factory)
        await store.link_item("MO006", "A", OperationKind.LABOR, "first")
        await store.link_item("MO006", "B", OperationKind.REPAIR, "second")

        assert await store.current_link("MO006") == ("B", OperationKind.REPAIR)
        assert await store.current_link("MO-GEN") is None
