"""Pytest configuration and fixtures for LaborMap tests.

Provides a small factory catalog, service orders and rule sets.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from labormap.models import (
    CatalogEntry,
    EnrichedEntry,
    KeywordHints,
    LinkStatus,
    OperationKind,
    OrderLineItem,
    OrderStatus,
    ServiceOrder,
)
from labormap.rules.admission import AdmissionRule, CodeStrategy, RuleSet
from labormap.rules.classification import ClassificationRule


class FakeSuggestionProvider:
    """Suggestion provider returning canned keyword hints."""

    def __init__(self, keywords: list[str] | None = None, fail: bool = False):
        self.keywords = keywords or []
        self.fail = fail
        self.calls: list[str] = []

    async def extract_keywords(self, text: str) -> KeywordHints:
        self.calls.append(text)
        if self.fail:
            raise RuntimeError("provider offline")
        return KeywordHints(translation=text, keywords=self.keywords)

    async def suggest_candidates(self, description, code, history):
        if self.fail:
            raise RuntimeError("provider offline")
        return []

    async def enrich_catalog(self, entries):
        if self.fail:
            raise RuntimeError("provider offline")
        return [
            EnrichedEntry(
                id=e.id,
                clean_description=e.description.title(),
                category="Mantenimiento",
                tags=[],
            )
            for e in entries
        ]


@pytest.fixture
def mirror_rule() -> AdmissionRule:
    """Whitelist rule: only MO006 / MO-GEN lines need linking."""
    return AdmissionRule(
        id="default-mirror",
        name="Standard (mirror)",
        active=True,
        placeholder_codes=["MO006", "MO-GEN"],
    )


@pytest.fixture
def open_rule() -> AdmissionRule:
    """Open policy rule: every line needs linking."""
    return AdmissionRule(id="open", name="Open", placeholder_codes=[])


@pytest.fixture
def rule_set(mirror_rule: AdmissionRule) -> RuleSet:
    return RuleSet(
        [
            mirror_rule,
            AdmissionRule(
                id="fixed-mo006",
                name="Campaign MO006",
                strategy=CodeStrategy.FIXED,
                placeholder_codes=["MO006"],
            ),
        ]
    )


@pytest.fixture
def classification_rules() -> list[ClassificationRule]:
    return [
        ClassificationRule(id="battery", keyword="BATERIA", category="Electrico"),
        ClassificationRule(id="brakes", keyword="FRENO", category="Frenos"),
        ClassificationRule(id="brakes-en", keyword="BRAKE", category="Frenos"),
    ]


@pytest.fixture
def catalog() -> list[CatalogEntry]:
    """Factory catalog for two SONG PLUS operations and one SHARK operation."""
    return [
        CatalogEntry(
            id="1",
            factory_code="WSA3HAC02101GH00",
            kind=OperationKind.LABOR,
            internal_code="19897094-00",
            description="Replace EGR gasket 2",
            vehicle_series="SONG PLUS DMI",
            vehicle_model="SONG PLUS DMI",
            status=LinkStatus.LINKED,
        ),
        CatalogEntry(
            id="2",
            factory_code="WSA3HRF00501GH00",
            kind=OperationKind.REPAIR,
            internal_code="10500005-00",
            description="Replace ACC bracket",
            vehicle_series="SONG PLUS DMI",
            vehicle_model="SONG PLUS DMI",
            status=LinkStatus.LINKED,
        ),
        CatalogEntry(
            id="3",
            factory_code="SHARK_LAB_01",
            kind=OperationKind.LABOR,
            internal_code="S_LAB_01",
            description="Shark Battery Replace",
            vehicle_series="SHARK",
            vehicle_model="SHARK",
            status=LinkStatus.PENDING,
        ),
    ]


def make_order(
    order_number: str,
    model_desc: str,
    year: str,
    codes: list[str],
    status: OrderStatus = OrderStatus.PENDING,
    doc_type: str = "OS",
    model_code: str = "",
) -> ServiceOrder:
    """Build an order with one unlinked line per code."""
    return ServiceOrder(
        id=order_number,
        branch_code="MEX022429",
        doc_type=doc_type,
        order_number=order_number,
        vin=f"VIN{order_number}",
        model_code_raw=model_code,
        model_desc_raw=model_desc,
        year=year,
        status=status,
        items=[
            OrderLineItem(code=code, description=f"LINE {code}", unit_price=Decimal("100"))
            for code in codes
        ],
    )


@pytest.fixture
def orders() -> list[ServiceOrder]:
    """Two SONG PLUS trims, one HAN EV and one transmitted order."""
    song_bc = make_order("XCL00435", "SONG PLUS 2025 BC DM-I AT DELAN BLACK", "2025", ["MO006", "ACEITE"])
    song_bc.items.append(
        OrderLineItem(
            code="MO006",
            description="ALREADY DONE",
            is_linked=True,
            linked_factory_code="WSA3HAC02101GH00",
        )
    )
    return [
        song_bc,
        make_order("XCL00436", "SONG PLUS 2025 BL DM-I", "2025", ["MO-GEN"]),
        make_order("XCL00437", "HAN EV 2024", "2024", ["mo006 "]),
        make_order("XCL00400", "SEAL 2025", "2025", ["MO006"], status=OrderStatus.TRANSMITTED),
    ]


@pytest.fixture
def fake_provider() -> FakeSuggestionProvider:
    return FakeSuggestionProvider(keywords=["BRAKE", "INSPECTION"])


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables and a fresh config singleton."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr("labormap.config._config", None)


@pytest.fixture
def order_factory():
    return make_order


@pytest.fixture
def provider_factory():
    return FakeSuggestionProvider
