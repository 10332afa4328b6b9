"""
Personal card collection.

Rows are keyed by (catalog_id, condition), with condition defaulting to
"NM". Market prices come from a PricingSource; a failed lookup never
blocks adding a card and never aborts a valuation refresh.
"""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from rivals.clients.pricing import MarketPrice, PricingError, PricingSource
from rivals.config import COLLECTION_STORAGE_KEY, DEFAULT_CONDITION, DEFAULT_CURRENCY
from rivals.models.collection import CollectionItem
from rivals.parsers.normalizer import clamp_count, coerce_number, is_blank
from rivals.services.storage import KeyValueStore, NotHydratedError, PersistedState

logger = logging.getLogger(__name__)


class CollectionNotHydratedError(NotHydratedError):
    """Raised when the collection is changed before it has loaded from storage."""

    pass


def _condition(value: Any) -> str:
    return DEFAULT_CONDITION if is_blank(value) else str(value)


def _text(value: Any) -> str | None:
    return None if is_blank(value) else str(value)


def collection_item_from_record(record: Mapping[str, Any]) -> CollectionItem:
    """Build a CollectionItem from a persisted or caller-supplied dict."""
    return CollectionItem(
        catalog_id=str(record["catalogId"]),
        name=str(record.get("name") or ""),
        condition=_condition(record.get("condition")),
        quantity=clamp_count(record.get("quantity", 1)),
        set_name=_text(record.get("setName")),
        number=_text(record.get("number")),
        image_url=_text(record.get("imageUrl")),
        rarity=_text(record.get("rarity")),
        last_price=coerce_number(record.get("lastPrice")),
        currency=str(record.get("currency") or DEFAULT_CURRENCY),
        updated_at=_text(record.get("updatedAt")),
    )


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class CollectionService(PersistedState):
    """
    Owned cards with market valuation.

    Mutations raise CollectionNotHydratedError until the stored collection
    has loaded.
    """

    not_hydrated_error = CollectionNotHydratedError

    def __init__(
        self,
        store: KeyValueStore,
        pricing: PricingSource | None = None,
        storage_key: str = COLLECTION_STORAGE_KEY,
    ) -> None:
        super().__init__(store, storage_key)
        self.pricing = pricing
        self.items: list[CollectionItem] = []
        self.currency = DEFAULT_CURRENCY

    async def hydrate(self) -> None:
        rows = await self._load([])
        self.items = [
            collection_item_from_record(row)
            for row in rows
            if isinstance(row, dict) and row.get("catalogId") is not None
        ]
        self.currency = next(
            (item.currency for item in self.items if item.currency), DEFAULT_CURRENCY
        )
        self.is_hydrated = True

    @property
    def total_value(self) -> float:
        return sum(item.value for item in self.items)

    @property
    def total_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find(self, catalog_id: str, condition: str | None = None) -> CollectionItem | None:
        key = (str(catalog_id), _condition(condition))
        for item in self.items:
            if item.key == key:
                return item
        return None

    async def add_or_increment(
        self, base: CollectionItem | Mapping[str, Any], qty: Any = 1
    ) -> CollectionItem:
        """
        Add copies of a card, or increase the count of an existing row.

        A current market price is looked up first. If the lookup fails the
        card is still added; an existing row keeps its previous price.
        """
        self._require_hydrated()
        record = base.to_dict() if isinstance(base, CollectionItem) else dict(base)
        incoming = collection_item_from_record({**record, "quantity": qty})
        quote = await self._quote(incoming.catalog_id, incoming.condition)

        existing = self.find(incoming.catalog_id, incoming.condition)
        if existing is None:
            incoming.last_price = None
            incoming.currency = self.currency
            incoming.updated_at = None
            target = incoming
            self.items.insert(0, target)
        else:
            existing.quantity += incoming.quantity
            existing.name = incoming.name or existing.name
            existing.set_name = incoming.set_name or existing.set_name
            existing.number = incoming.number or existing.number
            existing.image_url = incoming.image_url or existing.image_url
            existing.rarity = incoming.rarity or existing.rarity
            target = existing

        if quote is not None:
            self._apply_quote(target, quote)

        await self._persist()
        return target

    async def set_quantity(
        self, catalog_id: str, qty: Any, condition: str = DEFAULT_CONDITION
    ) -> CollectionItem | None:
        """Set the count for a row, floored at one. Returns None if absent."""
        self._require_hydrated()
        item = self.find(catalog_id, condition)
        if item is None:
            return None
        item.quantity = clamp_count(qty)
        await self._persist()
        return item

    async def remove_item(self, catalog_id: str, condition: str = DEFAULT_CONDITION) -> None:
        self._require_hydrated()
        key = (str(catalog_id), _condition(condition))
        self.items = [item for item in self.items if item.key != key]
        await self._persist()

    async def refresh_valuations(self) -> int:
        """
        Re-price every row independently.

        A failed lookup keeps that row's previous price and does not stop
        the others.

        Returns:
            Number of rows that received a fresh quote.
        """
        self._require_hydrated()
        refreshed = 0
        for item in self.items:
            quote = await self._quote(item.catalog_id, item.condition)
            if quote is None:
                continue
            self._apply_quote(item, quote)
            refreshed += 1

        await self._persist()
        logger.info("Refreshed %d of %d collection valuations", refreshed, len(self.items))
        return refreshed

    async def clear_all(self) -> None:
        self._require_hydrated()
        self.items = []
        await self._forget()

    async def _quote(self, catalog_id: str, condition: str) -> MarketPrice | None:
        if self.pricing is None:
            return None
        try:
            return await self.pricing.get_market_price(catalog_id, condition)
        except PricingError as e:
            logger.warning("Price lookup failed for %s (%s): %s", catalog_id, condition, e)
            return None

    def _apply_quote(self, item: CollectionItem, quote: MarketPrice) -> None:
        if quote.price is not None:
            item.last_price = quote.price
        item.currency = quote.currency or item.currency
        item.updated_at = _now_iso()
        self.currency = item.currency

    async def _persist(self) -> None:
        await self._save([item.to_dict() for item in self.items])
