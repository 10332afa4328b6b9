"""
Market price lookups for collection valuation.

The pricing collaborator answers "what is this catalog card worth in this
condition". Implementations raise PricingError for any failed lookup so
callers can keep the last known price.
"""

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from rivals.config import DEFAULT_CURRENCY
from rivals.parsers.normalizer import coerce_number


class PricingError(Exception):
    """Raised when a market price cannot be fetched."""

    pass


@dataclass(frozen=True)
class MarketPrice:
    """A quote. ``price`` is None when the source has no price for the card."""

    price: float | None
    currency: str = DEFAULT_CURRENCY


class PricingSource(Protocol):
    async def get_market_price(self, catalog_id: str, condition: str) -> MarketPrice: ...


class HttpPricingSource:
    """
    Pricing source backed by a JSON endpoint.

    ``GET {base_url}/{catalog_id}?condition=NM`` returning
    ``{"price": 12.5, "currency": "USD"}``.
    """

    def __init__(self, base_url: str, timeout: float = 8.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def get_market_price(self, catalog_id: str, condition: str) -> MarketPrice:
        if not self.base_url:
            raise PricingError("Pricing URL not set")

        url = f"{self.base_url}/{catalog_id}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params={"condition": condition})
                response.raise_for_status()
                data: Any = response.json()
        except httpx.HTTPStatusError as e:
            raise PricingError(
                f"Failed to price {catalog_id}: HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise PricingError(f"Failed to price {catalog_id}: {e}") from e
        except ValueError as e:
            raise PricingError(f"Failed to price {catalog_id}: invalid JSON") from e

        if not isinstance(data, dict):
            raise PricingError(f"Failed to price {catalog_id}: unexpected payload")

        return MarketPrice(
            price=coerce_number(data.get("price")),
            currency=str(data.get("currency") or DEFAULT_CURRENCY),
        )
