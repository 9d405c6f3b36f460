"""Batch grouping of unresolved order items by vehicle model and year.

Groups are derived on every pass and never updated incrementally. The group
key uses only the first two tokens of the model description, so trims such as
"SONG PLUS 2025 BC DM-I" and "SONG PLUS 2025 BL DM-I" collapse together.
Distinct models sharing their first two words merge as well; that is a known
limitation of the key, kept on purpose.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from labormap.canonical.normalize import first_tokens, normalize_text
from labormap.models import OrderLineItem, ServiceOrder
from labormap.rules.admission import AdmissionRule, is_relevant

UNKNOWN_MODEL = "SIN MODELO"
MODEL_KEY_TOKENS = 2


@dataclass(frozen=True)
class GroupedItem:
    """An unresolved item together with the order it belongs to."""

    order_id: str
    order_number: str
    vin: str
    item: OrderLineItem

    @property
    def selection_key(self) -> str:
        return f"{self.order_number}_{self.item.code}"


@dataclass
class ModelGroup:
    """Unresolved, relevant items sharing a normalized model name and year."""

    key: str
    model_name: str
    year: str
    items: list[GroupedItem] = field(default_factory=list)
    count: int = 0

    def add(self, grouped: GroupedItem) -> None:
        self.items.append(grouped)
        self.count += 1

    def select(self, selection_keys: set[str]) -> list[GroupedItem]:
        """Items whose `order_number`_`code` key is in the selection."""
        return [g for g in self.items if g.selection_key in selection_keys]


def model_name_for(order: ServiceOrder) -> str:
    """First two tokens of the model description, else the raw model code."""
    name = first_tokens(order.model_desc_raw, MODEL_KEY_TOKENS)
    if not name:
        name = normalize_text(order.model_code_raw)
    return name or UNKNOWN_MODEL


def group_key(order: ServiceOrder) -> str:
    """Composite key: normalized model name + year."""
    year = normalize_text(order.year)
    name = model_name_for(order)
    return f"{name} {year}" if year else name


def build_model_groups(
    orders: list[ServiceOrder], rule: AdmissionRule | None
) -> list[ModelGroup]:
    """Partition all outstanding linking work by vehicle model/year.

    Args:
        orders: Current working set of service orders
        rule: Active admission rule (decides item relevance)

    Returns:
        Non-empty groups sorted by key
    """
    groups: dict[str, ModelGroup] = {}

    for order in orders:
        if order.is_terminal:
            continue

        key = group_key(order)
        for item in order.items:
            if item.is_linked or not is_relevant(item.code, rule):
                continue
            group = groups.get(key)
            if group is None:
                group = ModelGroup(
                    key=key, model_name=model_name_for(order), year=normalize_text(order.year)
                )
                groups[key] = group
            group.add(
                GroupedItem(
                    order_id=order.id,
                    order_number=order.order_number,
                    vin=order.vin,
                    item=item,
                )
            )

    return sorted((g for g in groups.values() if g.count > 0), key=lambda g: g.key)


def total_pending(groups: list[ModelGroup]) -> int:
    return sum(group.count for group in groups)
