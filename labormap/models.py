"""LaborMap Pydantic models for type-safe data validation.

Factory catalog entries, service orders with their line items, and the
payloads exchanged with the AI suggestion provider.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


class OperationKind(str, Enum):
    """Factory operation kind."""

    LABOR = "Labor"
    REPAIR = "Repair"


class LinkStatus(str, Enum):
    """Linking status of a catalog entry."""

    PENDING = "Pending"
    LINKED = "Linked"
    ERROR = "Error"


class OrderStatus(str, Enum):
    """Service order lifecycle, driven by the transmission collaborator."""

    PENDING = "Pending"
    IN_PROCESS = "In Process"
    TRANSMITTED = "Transmitted"
    REJECTED = "Rejected"
    COMPLETED = "Completed"
    ERROR = "Error"


# Orders in these states take no further grouping or linking work
TERMINAL_STATUSES = frozenset({OrderStatus.TRANSMITTED, OrderStatus.COMPLETED})


class Priority(str, Enum):
    """Classification priority."""

    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"


def _new_id() -> str:
    return str(uuid4())


class CatalogEntry(BaseModel):
    """Factory labor/repair code from the master catalog."""

    id: str = Field(default_factory=_new_id)
    factory_code: str
    kind: OperationKind = OperationKind.LABOR
    internal_code: str = ""
    description: str = ""

    vehicle_series: str | None = None
    vehicle_model: str | None = None
    category: str | None = None
    standard_hours: float | None = None
    is_battery_repair: bool | None = None

    status: LinkStatus = LinkStatus.PENDING
    confidence: float | None = None

    @field_validator("factory_code")
    @classmethod
    def validate_factory_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("factory_code must not be empty")
        return v

    @field_validator("standard_hours")
    @classmethod
    def validate_hours(cls, v: float | None) -> float | None:
        if v is not None and v < 0:
            raise ValueError("standard_hours must be non-negative")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "factory_code": "WSA3HAC02101GH00",
                "kind": "Labor",
                "internal_code": "19897094-00",
                "description": "Replace EGR gasket 2",
                "vehicle_series": "SONG PLUS DMI",
                "vehicle_model": "SONG PLUS DMI",
                "status": "Linked",
            }
        }


class OrderLineItem(BaseModel):
    """Line item of a service order, keyed by its internal code."""

    code: str
    description: str = ""
    quantity: Decimal = Decimal("1")
    unit_price: Decimal | None = None
    total: Decimal | None = None

    is_linked: bool = False
    linked_factory_code: str | None = None
    linked_kind: OperationKind | None = None
    linked_description: str | None = None  # factory description snapshot at link time

    @model_validator(mode="after")
    def compute_total(self) -> OrderLineItem:
        if self.total is None and self.unit_price is not None:
            self.total = self.quantity * self.unit_price
        return self


class OrderLog(BaseModel):
    """Event recorded against a service order."""

    timestamp: datetime = Field(default_factory=datetime.utcnow)
    message: str
    status: OrderStatus


class ServiceOrder(BaseModel):
    """Service order read from the dealership management system."""

    id: str
    branch_code: str = ""
    doc_type: str = "OS"
    order_number: str
    date: str = ""
    customer_code: str | None = None
    customer_name: str | None = None
    vin: str = ""
    model_code_raw: str = ""
    model_desc_raw: str = ""
    year: str = ""
    total_amount: Decimal = Decimal("0")

    status: OrderStatus = OrderStatus.PENDING
    items: list[OrderLineItem] = Field(default_factory=list)
    logs: list[OrderLog] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    class Config:
        json_schema_extra = {
            "example": {
                "id": "435",
                "branch_code": "MEX022429",
                "doc_type": "OS",
                "order_number": "XCL00435",
                "vin": "LGXC74C48S0147557",
                "model_code_raw": "SOPL25BY",
                "model_desc_raw": "SONG PLUS 2025 BC DM-I AT DELAN BLACK",
                "year": "2025",
                "status": "Pending",
                "items": [
                    {"code": "MO006", "description": "CONFIGURACION DE TARJETAS NFC"}
                ],
            }
        }


class KeywordHints(BaseModel):
    """AI keyword extraction result for a free-text description."""

    translation: str = ""
    keywords: list[str] = Field(default_factory=list)


class AiSuggestion(BaseModel):
    """AI-proposed factory code for an unlinked item."""

    code: str
    kind: OperationKind = OperationKind.LABOR
    reasoning: str = ""
    confidence: Literal["High", "Medium", "Low"] = "Low"
    vehicle_series_match: str | None = None


class EnrichedEntry(BaseModel):
    """AI clean-up of a catalog entry."""

    id: str
    clean_description: str
    category: str
    tags: list[str] = Field(default_factory=list)
