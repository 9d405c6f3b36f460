"""Unit tests for link application and the transmission guard."""

from __future__ import annotations

import pytest

from labormap.exceptions import PersistenceError, ValidationBlockedError
from labormap.grouping.model_groups import build_model_groups
from labormap.integration.memory import InMemoryLinkStore
from labormap.linking.service import (
    apply_batch_link,
    apply_link,
    can_transmit,
    ensure_linkable,
    ensure_transmittable,
    link_single,
    unresolved_mandatory_items,
)
from labormap.models import OperationKind, OrderLineItem, OrderStatus


class RejectingLinkStore:
    """Backend that answers False instead of raising."""

    async def link_item(self, internal_code, factory_code, kind, description):
        return False

    async def link_batch(self, items, factory_code, kind):
        return False


class CrashingLinkStore:
    async def link_item(self, internal_code, factory_code, kind, description):
        raise RuntimeError("connection reset")

    async def link_batch(self, items, factory_code, kind):
        raise RuntimeError("connection reset")


class TestApplyLink:
    def test_marks_item_linked(self):
        item = OrderLineItem(code="MO006", description="REVISION DE FRENOS")

        apply_link(item, "WSA3HAC02101GH00", OperationKind.LABOR, "Replace EGR gasket 2")

        assert item.is_linked
        assert item.linked_factory_code == "WSA3HAC02101GH00"
        assert item.linked_kind == OperationKind.LABOR
        assert item.linked_description == "Replace EGR gasket 2"

    def test_relink_overwrites(self):
        item = OrderLineItem(code="MO006")
        apply_link(item, "A", OperationKind.LABOR, "first")

        apply_link(item, "B", OperationKind.REPAIR, "second")

        assert item.linked_factory_code == "B"
        assert item.linked_kind == OperationKind.REPAIR
        assert item.linked_description == "second"


class TestLinkSingle:
    @pytest.mark.asyncio
    async def test_persists_then_applies(self):
        store = InMemoryLinkStore()
        item = OrderLineItem(code="MO006", description="REVISION")

        await link_single(item, "WSA3", OperationKind.LABOR, "desc", store)

        assert item.is_linked
        assert store.links == {"MO006": ("WSA3", OperationKind.LABOR)}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("store", [InMemoryLinkStore(fail=True), RejectingLinkStore(), CrashingLinkStore()])
    async def test_failure_leaves_item_untouched(self, store):
        item = OrderLineItem(code="MO006")

        with pytest.raises(PersistenceError) as exc_info:
            await link_single(item, "WSA3", OperationKind.LABOR, "desc", store)

        assert exc_info.value.affected_count == 1
        assert not item.is_linked
        assert item.linked_factory_code is None


class TestApplyBatchLink:
    @pytest.mark.asyncio
    async def test_links_every_item(self):
        store = InMemoryLinkStore()
        items = [OrderLineItem(code="MO006"), OrderLineItem(code="MO-GEN")]

        linked = await apply_batch_link(items, "WSA3", OperationKind.REPAIR, store, "Replace ACC bracket")

        assert linked == items
        assert all(i.is_linked and i.linked_factory_code == "WSA3" for i in items)
        assert all(i.linked_description == "Replace ACC bracket" for i in items)
        assert set(store.links) == {"MO006", "MO-GEN"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("store", [InMemoryLinkStore(fail=True), RejectingLinkStore(), CrashingLinkStore()])
    async def test_batch_is_all_or_nothing(self, store):
        items = [OrderLineItem(code="MO006"), OrderLineItem(code="MO-GEN"), OrderLineItem(code="MO006")]

        with pytest.raises(PersistenceError) as exc_info:
            await apply_batch_link(items, "WSA3", OperationKind.LABOR, store)

        assert exc_info.value.affected_count == 3
        assert not any(i.is_linked for i in items)

    @pytest.mark.asyncio
    async def test_empty_batch_is_noop(self):
        store = InMemoryLinkStore()

        assert await apply_batch_link([], "WSA3", OperationKind.LABOR, store) == []
        assert store.calls == 0

    @pytest.mark.asyncio
    async def test_links_grouped_items(self, orders, mirror_rule):
        store = InMemoryLinkStore()
        song = build_model_groups(orders, mirror_rule)[1]

        await apply_batch_link(song.items, "WSA3", OperationKind.LABOR, store)

        assert all(g.item.is_linked for g in song.items)
        assert build_model_groups(orders, mirror_rule)[0].key == "HAN EV 2024"
        assert len(build_model_groups(orders, mirror_rule)) == 1


class TestTransmissionGuard:
    def test_can_transmit_requires_a_linked_item(self, order_factory):
        order = order_factory("A", "HAN EV", "2024", ["MO006"])

        assert not can_transmit(order)

        order.items[0].is_linked = True
        assert can_transmit(order)

    def test_transmitted_order_cannot_transmit(self, order_factory):
        order = order_factory("A", "HAN EV", "2024", ["MO006"], status=OrderStatus.TRANSMITTED)
        order.items[0].is_linked = True

        assert not can_transmit(order)

    def test_unresolved_placeholders(self, orders, mirror_rule):
        unresolved = unresolved_mandatory_items(orders[0], mirror_rule)

        assert [i.code for i in unresolved] == ["MO006"]
        assert not unresolved[0].is_linked

    def test_blocked_by_unresolved_placeholder(self, orders, mirror_rule):
        """Test an order with one linked line and one open MO006 is still blocked."""
        with pytest.raises(ValidationBlockedError) as exc_info:
            ensure_transmittable(orders[0], mirror_rule)

        assert exc_info.value.order_number == "XCL00435"
        assert [i.code for i in exc_info.value.items] == ["MO006"]
        assert "MO006" in str(exc_info.value)

    def test_blocked_when_nothing_linked(self, order_factory, open_rule):
        order = order_factory("A", "HAN EV", "2024", ["ACEITE"])

        with pytest.raises(ValidationBlockedError) as exc_info:
            ensure_transmittable(order, open_rule)

        assert exc_info.value.items == []

    def test_transmittable_once_placeholders_linked(self, orders, mirror_rule):
        order = orders[0]
        for item in order.items:
            if item.code == "MO006":
                apply_link(item, "WSA3", OperationKind.LABOR, "desc")

        ensure_transmittable(order, mirror_rule)


class TestEnsureLinkable:
    def test_repair_order_is_linkable(self, order_factory):
        ensure_linkable(order_factory("A", "HAN EV", "2024", ["MO006"]))

    def test_internal_order_type_blocked(self, order_factory):
        order = order_factory("A", "HAN EV", "2024", ["MO006"], doc_type="INT")

        with pytest.raises(ValidationBlockedError):
            ensure_linkable(order)

    def test_terminal_order_blocked(self, order_factory):
        order = order_factory("A", "HAN EV", "2024", ["MO006"], status=OrderStatus.COMPLETED)

        with pytest.raises(ValidationBlockedError):
            ensure_linkable(order)
