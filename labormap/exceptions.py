"""Error taxonomy for the reconciliation engine.

"No candidates", "no groups" and "no classification" are not errors: the
engine returns empty lists or None for those.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from labormap.models import OrderLineItem


class ConfigurationError(Exception):
    """Rule configuration file is invalid or missing."""

    pass


class ColumnDetectionError(Exception):
    """A mandatory column could not be identified in an import file."""

    def __init__(self, field: str, headers: list[str] | None = None):
        self.field = field
        self.headers = list(headers or [])
        super().__init__(
            f"Could not detect the '{field}' column among headers: {self.headers}"
        )


class ValidationBlockedError(Exception):
    """Transmission or linking is blocked for an order."""

    def __init__(
        self,
        order_number: str,
        reason: str,
        items: list[OrderLineItem] | None = None,
    ):
        self.order_number = order_number
        self.reason = reason
        self.items = list(items or [])
        message = f"Order {order_number} blocked: {reason}"
        if self.items:
            codes = ", ".join(item.code for item in self.items)
            message += f" (unresolved: {codes})"
        super().__init__(message)


class PersistenceError(Exception):
    """A collaborator I/O call failed; no local state was changed."""

    def __init__(self, message: str, affected_count: int = 0):
        self.affected_count = affected_count
        super().__init__(message)
