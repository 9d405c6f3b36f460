"""Dealership management system (DMS) REST client.

Implements the order feed, link persistence and catalog storage protocols
over the DMS equivalences API. Transport errors and non-2xx responses are
raised as `PersistenceError`.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx
from pydantic import ValidationError

from labormap.config import DMSConfig, get_config
from labormap.exceptions import PersistenceError
from labormap.integration.interfaces import LinkRequest
from labormap.models import CatalogEntry, OperationKind, ServiceOrder

logger = logging.getLogger(__name__)


class DMSClient:
    """Async client for the DMS orders, mappings and link endpoints."""

    ORDERS = "/orders"
    MAPPINGS = "/mappings"
    LINK = "/link"
    LINK_BATCH = "/link-batch"

    def __init__(
        self,
        config: DMSConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or get_config().dms

        headers = {"Accept": "application/json"}
        if self.config.api_key:
            headers["x-api-key"] = self.config.api_key

        self.client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> DMSClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PersistenceError(
                f"DMS {method} {url} returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise PersistenceError(f"DMS {method} {url} failed: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError(f"DMS {method} {url} returned invalid JSON") from e

    # --- OrderStore ---

    async def list_orders(
        self, start: date, end: date, branch: str | None = None
    ) -> list[ServiceOrder]:
        """Fetch service orders for a date range and branch."""
        params = {"startDate": start.isoformat(), "endDate": end.isoformat()}
        dealer = branch or self.config.branch_code
        if dealer:
            params["dealerCode"] = dealer

        data = await self._request("GET", self.ORDERS, params=params)
        if not isinstance(data, list):
            return []

        orders = []
        for raw in data:
            try:
                orders.append(ServiceOrder.model_validate(raw))
            except ValidationError as e:
                number = raw.get("order_number") if isinstance(raw, dict) else None
                logger.warning(f"Skipping malformed order {number}: {e}")
        logger.info(f"Fetched {len(orders)} orders from DMS")
        return orders

    # --- CatalogStore ---

    async def list(self) -> list[CatalogEntry]:
        data = await self._request("GET", self.MAPPINGS)
        if not isinstance(data, list):
            return []
        entries = []
        for raw in data:
            try:
                entries.append(CatalogEntry.model_validate(raw))
            except ValidationError as e:
                code = raw.get("factory_code") if isinstance(raw, dict) else None
                logger.warning(f"Skipping malformed catalog entry {code}: {e}")
        return entries

    async def create(self, entry: CatalogEntry) -> CatalogEntry:
        data = await self._request("POST", self.MAPPINGS, json=entry.model_dump(mode="json"))
        if not data:
            return entry
        try:
            return CatalogEntry.model_validate(data)
        except ValidationError as e:
            raise PersistenceError(f"DMS returned an invalid catalog entry: {e}") from e

    async def delete(self, entry_id: str) -> bool:
        await self._request("DELETE", f"{self.MAPPINGS}/{entry_id}")
        return True

    # --- LinkPersistence ---

    async def link_item(
        self,
        internal_code: str,
        factory_code: str,
        kind: OperationKind,
        description: str,
    ) -> bool:
        payload = {
            "internalCode": internal_code,
            "factoryCode": factory_code,
            "kind": kind.value,
            "description": description,
            "dealerCode": self.config.branch_code,
        }
        data = await self._request("POST", self.LINK, json=payload)
        return data is not False

    async def link_batch(
        self,
        items: list[LinkRequest],
        factory_code: str,
        kind: OperationKind,
    ) -> bool:
        payload = {
            "items": [
                {
                    "internalCode": item.internal_code,
                    "description": item.description,
                    "orderNumber": item.order_number,
                }
                for item in items
            ],
            "targetFactoryCode": factory_code,
            "kind": kind.value,
            "dealerCode": self.config.branch_code,
        }
        data = await self._request("POST", self.LINK_BATCH, json=payload)
        return data is not False
