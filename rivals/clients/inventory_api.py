"""
HTTP client for the remote inventory service.

Covers the public inventory listing, the two admin publishing endpoints
(replace and bulk upsert) and the optional order completion mirror.
Every call is bounded by the configured request timeout.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from rivals.config import Settings, settings
from rivals.models.inventory import InventoryItem
from rivals.parsers.normalizer import as_record

logger = logging.getLogger(__name__)


class InventoryFetchError(Exception):
    """Raised when the inventory listing cannot be loaded."""

    pass


class AdminUploadError(Exception):
    """Raised when an admin publish is rejected or cannot be sent."""

    pass


class OrderSyncError(Exception):
    """Raised when a completed order cannot be mirrored to the server."""

    pass


def _error_message(response: httpx.Response) -> str:
    """Server-supplied ``error`` string, or the HTTP status."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}"


class InventoryApiClient:
    """
    Client for the inventory REST collaborator.

    Example:
        >>> client = InventoryApiClient.from_settings()
        >>> rows = await client.fetch_inventory()
    """

    def __init__(
        self,
        inventory_url: str = "",
        replace_url: str = "",
        bulk_upsert_url: str = "",
        orders_url: str = "",
        admin_token: str = "",
        timeout: float = 8.0,
    ) -> None:
        self.inventory_url = inventory_url
        self.replace_url = replace_url
        self.bulk_upsert_url = bulk_upsert_url
        self.orders_url = orders_url
        self.admin_token = admin_token
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "InventoryApiClient":
        return cls(
            inventory_url=config.inventory_url,
            replace_url=config.admin_replace_url,
            bulk_upsert_url=config.admin_bulk_upsert_url,
            orders_url=config.orders_complete_url,
            admin_token=config.admin_token,
            timeout=config.request_timeout,
        )

    async def fetch_inventory(self) -> list[dict[str, Any]]:
        """
        Fetch raw inventory rows.

        Returns:
            The object rows as sent by the server.

        Raises:
            InventoryFetchError: On missing configuration, non-2xx status,
                malformed JSON, a body that is not a list, connection
                failure or timeout.
        """
        if not self.inventory_url:
            raise InventoryFetchError("Inventory URL not set")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.inventory_url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise InventoryFetchError(f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise InventoryFetchError(f"Failed to load inventory: {e}") from e
        except ValueError as e:
            raise InventoryFetchError("Inventory response is not valid JSON") from e

        if not isinstance(data, list):
            logger.warning("Inventory response is %s, not a list", type(data).__name__)
            raise InventoryFetchError("Inventory response is not a list")

        return [row for row in data if isinstance(row, dict)]

    async def replace(self, items: Iterable[InventoryItem | Mapping[str, Any]]) -> dict[str, Any]:
        """Replace the whole server inventory with ``items``."""
        return await self._publish(self.replace_url, items)

    async def bulk_upsert(
        self, items: Iterable[InventoryItem | Mapping[str, Any]]
    ) -> dict[str, Any]:
        """Merge ``items`` into the server inventory by sku."""
        return await self._publish(self.bulk_upsert_url, items)

    async def _publish(
        self, url: str, items: Iterable[InventoryItem | Mapping[str, Any]]
    ) -> dict[str, Any]:
        if not url or not self.admin_token:
            raise AdminUploadError("Missing admin configuration")

        payload = {"items": [as_record(item) for item in items]}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.admin_token}"},
                )
        except httpx.RequestError as e:
            raise AdminUploadError(f"Upload failed: {e}") from e

        if not response.is_success:
            raise AdminUploadError(_error_message(response))

        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    async def complete_order(
        self, lines: Iterable[Mapping[str, Any]], order_id: str | None = None
    ) -> dict[str, Any]:
        """
        Mirror a completed order so the server decrements its own stock.

        Args:
            lines: ``{"sku": ..., "quantity": ...}`` pairs
            order_id: Lets the server ignore a repeated completion

        Raises:
            OrderSyncError: If the mirror endpoint is unset or the call fails
        """
        if not self.orders_url:
            raise OrderSyncError("Orders URL not set")

        payload = {"lines": [dict(line) for line in lines], "orderId": order_id}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.orders_url, json=payload)
        except httpx.RequestError as e:
            raise OrderSyncError(f"Order sync failed: {e}") from e

        if not response.is_success:
            raise OrderSyncError(_error_message(response))

        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
