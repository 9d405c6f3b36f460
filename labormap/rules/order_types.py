"""Per document-type handling rules for service orders."""

from __future__ import annotations

from dataclasses import dataclass

from labormap.canonical.normalize import normalize_text


@dataclass(frozen=True)
class OrderTypeStrategy:
    code: str
    label: str
    allow_linking: bool
    auto_processing: bool
    requires_approval: bool
    visible_in_list: bool = True


DEFAULT_ORDER_TYPES: tuple[OrderTypeStrategy, ...] = (
    OrderTypeStrategy("OS", "Repair Order (RO)", allow_linking=True, auto_processing=True, requires_approval=False),
    OrderTypeStrategy("WAR", "Warranty Claim", allow_linking=True, auto_processing=False, requires_approval=True),
    # Internal work does not map to factory standard codes
    OrderTypeStrategy("INT", "Internal Service", allow_linking=False, auto_processing=False, requires_approval=False),
    OrderTypeStrategy("PDI", "PDI", allow_linking=True, auto_processing=True, requires_approval=False),
)


def get_order_type(
    doc_type: str,
    strategies: tuple[OrderTypeStrategy, ...] = DEFAULT_ORDER_TYPES,
) -> OrderTypeStrategy:
    """Look up the strategy for a document type; unknown types are not linkable."""
    code = normalize_text(doc_type)
    for strategy in strategies:
        if strategy.code == code:
            return strategy
    return OrderTypeStrategy(
        code=code,
        label=f"Other ({code})",
        allow_linking=False,
        auto_processing=False,
        requires_approval=False,
    )
