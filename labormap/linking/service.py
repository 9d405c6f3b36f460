"""Link application and the transmission consistency guard.

Local order state is only mutated after the link persistence collaborator
confirms. A batch is all-or-nothing: if persistence fails, no item in the
batch is marked linked.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from labormap.exceptions import PersistenceError, ValidationBlockedError
from labormap.grouping.model_groups import GroupedItem
from labormap.integration.interfaces import LinkPersistence, LinkRequest
from labormap.models import OperationKind, OrderLineItem, OrderStatus, ServiceOrder
from labormap.rules.admission import AdmissionRule, is_placeholder
from labormap.rules.order_types import get_order_type

logger = logging.getLogger(__name__)


def apply_link(
    item: OrderLineItem,
    factory_code: str,
    kind: OperationKind,
    description: str,
) -> OrderLineItem:
    """Bind an item to a factory code. Relinking overwrites the binding."""
    item.is_linked = True
    item.linked_factory_code = factory_code
    item.linked_kind = kind
    item.linked_description = description
    return item


def _as_line_item(target: OrderLineItem | GroupedItem) -> OrderLineItem:
    return target.item if isinstance(target, GroupedItem) else target


def _as_request(target: OrderLineItem | GroupedItem) -> LinkRequest:
    item = _as_line_item(target)
    order_number = target.order_number if isinstance(target, GroupedItem) else None
    return LinkRequest(
        internal_code=item.code, description=item.description, order_number=order_number
    )


async def link_single(
    item: OrderLineItem,
    factory_code: str,
    kind: OperationKind,
    description: str,
    persistence: LinkPersistence,
) -> OrderLineItem:
    """Persist one link, then apply it locally.

    Raises:
        PersistenceError: If the collaborator fails; the item is left untouched
    """
    try:
        ok = await persistence.link_item(item.code, factory_code, kind, item.description)
    except PersistenceError:
        raise
    except Exception as e:
        raise PersistenceError(f"Link of {item.code} failed: {e}", affected_count=1) from e

    if not ok:
        raise PersistenceError(f"Link of {item.code} was rejected", affected_count=1)

    return apply_link(item, factory_code, kind, description)


async def apply_batch_link(
    targets: Sequence[OrderLineItem | GroupedItem],
    factory_code: str,
    kind: OperationKind,
    persistence: LinkPersistence,
    description: str = "",
) -> list[OrderLineItem]:
    """Persist a batch link, then apply the same binding to every item.

    Args:
        targets: Line items or grouped items to link
        factory_code: Factory code to bind
        kind: Operation kind of the factory code
        persistence: Link persistence collaborator
        description: Factory description snapshot recorded on each item

    Returns:
        The linked line items (empty when `targets` is empty)

    Raises:
        PersistenceError: If the collaborator fails; no item is mutated
    """
    if not targets:
        return []

    requests = [_as_request(t) for t in targets]
    try:
        ok = await persistence.link_batch(requests, factory_code, kind)
    except PersistenceError as e:
        logger.error(f"Batch link to {factory_code} aborted for {len(targets)} items: {e}")
        raise PersistenceError(str(e), affected_count=len(targets)) from e
    except Exception as e:
        logger.error(f"Batch link to {factory_code} aborted for {len(targets)} items: {e}")
        raise PersistenceError(
            f"Batch link to {factory_code} failed: {e}", affected_count=len(targets)
        ) from e

    if not ok:
        logger.error(f"Batch link to {factory_code} rejected for {len(targets)} items")
        raise PersistenceError(
            f"Batch link to {factory_code} was rejected", affected_count=len(targets)
        )

    linked = [
        apply_link(_as_line_item(t), factory_code, kind, description) for t in targets
    ]
    logger.info(f"Linked {len(linked)} items to {factory_code}")
    return linked


def can_transmit(order: ServiceOrder) -> bool:
    """At least one linked item and not already transmitted."""
    return any(item.is_linked for item in order.items) and order.status != OrderStatus.TRANSMITTED


def unresolved_mandatory_items(
    order: ServiceOrder, rule: AdmissionRule | None
) -> list[OrderLineItem]:
    """Placeholder items that are still unlinked."""
    return [
        item for item in order.items if not item.is_linked and is_placeholder(item.code, rule)
    ]


def ensure_transmittable(order: ServiceOrder, rule: AdmissionRule | None) -> None:
    """Raise unless the order may be handed to the transmission collaborator.

    Raises:
        ValidationBlockedError: Unresolved placeholders, nothing linked, or
            already transmitted
    """
    unresolved = unresolved_mandatory_items(order, rule)
    if unresolved:
        raise ValidationBlockedError(
            order.order_number, "mandatory placeholder items are not linked", unresolved
        )
    if not can_transmit(order):
        raise ValidationBlockedError(
            order.order_number, "no linked items or order already transmitted"
        )


def ensure_linkable(order: ServiceOrder) -> None:
    """Raise unless the order's document type and status allow linking.

    Raises:
        ValidationBlockedError: Terminal order or non-linkable document type
    """
    if order.is_terminal:
        raise ValidationBlockedError(
            order.order_number, f"order is {order.status.value}"
        )
    strategy = get_order_type(order.doc_type)
    if not strategy.allow_linking:
        raise ValidationBlockedError(
            order.order_number, f"document type {strategy.label} does not allow linking"
        )
