"""
Shopping cart.

Lines are keyed by inventory item id. Quantities never drop below one
through arithmetic; taking a line out of the cart is always an explicit
remove. Totals are derived on every read and never stored.
"""

import logging
from collections.abc import Mapping
from typing import Any

from rivals.config import CART_STORAGE_KEY
from rivals.models.cart import CartItem
from rivals.models.inventory import InventoryItem
from rivals.models.order import OrderLine
from rivals.parsers.normalizer import clamp_count, coerce_number, normalize_row
from rivals.services.storage import KeyValueStore, NotHydratedError, PersistedState

logger = logging.getLogger(__name__)


class CartNotHydratedError(NotHydratedError):
    """Raised when the cart is changed before it has loaded from storage."""

    pass


def snapshot_item(item: InventoryItem | Mapping[str, Any], quantity: Any = 1) -> CartItem:
    """Copy the descriptive fields of an inventory item into a new cart line."""
    source = item if isinstance(item, InventoryItem) else normalize_row(item)
    return CartItem(
        id=source.id,
        quantity=clamp_count(quantity),
        price=source.current_price,
        name=source.name,
        image_url=source.image_url,
        sku=source.sku,
        set_name=source.set_name or None,
        number=source.number if source.number != "" else None,
    )


def _from_stored(record: Mapping[str, Any]) -> CartItem:
    """Rebuild a cart line from its persisted form."""
    return CartItem(
        id=str(record["id"]),
        quantity=clamp_count(record.get("quantity")),
        price=coerce_number(record.get("price")),
        name=record.get("name"),
        image_url=record.get("imageUrl") or record.get("image"),
        sku=record.get("sku"),
        set_name=record.get("set"),
        number=record.get("number"),
    )


class CartService(PersistedState):
    """
    Cart lines persisted as one document.

    All mutations require the cart to be hydrated first, otherwise the
    stored cart would overwrite lines added before it loaded.
    """

    not_hydrated_error = CartNotHydratedError

    def __init__(self, store: KeyValueStore, storage_key: str = CART_STORAGE_KEY) -> None:
        super().__init__(store, storage_key)
        self.items: list[CartItem] = []

    async def hydrate(self) -> None:
        rows = await self._load([])
        self.items = [
            _from_stored(row) for row in rows if isinstance(row, dict) and row.get("id") is not None
        ]
        self.is_hydrated = True

    @property
    def total_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> float:
        return sum(item.line_total for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def get(self, item_id: str) -> CartItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    async def add(self, item: InventoryItem | Mapping[str, Any], qty: Any = 1) -> CartItem:
        """
        Add ``qty`` of an item, merging into an existing line with the same id.

        ``qty`` is floored to a whole number of at least one, so adding 0 or a
        negative amount to an existing line still adds one unit.
        """
        self._require_hydrated()
        incoming = snapshot_item(item, qty)

        existing = self.get(incoming.id)
        if existing is not None:
            existing.quantity += incoming.quantity
            line = existing
        else:
            self.items.append(incoming)
            line = incoming

        await self._persist()
        return line

    async def remove(self, item_id: str) -> None:
        self._require_hydrated()
        remaining = [item for item in self.items if item.id != item_id]
        if len(remaining) == len(self.items):
            return
        self.items = remaining
        await self._persist()

    async def increment(self, item_id: str, delta: Any = 1) -> CartItem | None:
        return await self._adjust(item_id, delta)

    async def decrement(self, item_id: str, delta: Any = 1) -> CartItem | None:
        """Lower a line's quantity. Stops at one; never removes the line."""
        step = coerce_number(delta)
        return await self._adjust(item_id, -step if step is not None else None)

    async def set_quantity(self, item_id: str, qty: Any) -> CartItem | None:
        self._require_hydrated()
        line = self.get(item_id)
        if line is None:
            return None
        line.quantity = clamp_count(qty)
        await self._persist()
        return line

    async def clear(self) -> None:
        self._require_hydrated()
        self.items = []
        await self._persist()

    def to_order_lines(self) -> list[OrderLine]:
        return [OrderLine(id=item.id, quantity=item.quantity) for item in self.items]

    async def _adjust(self, item_id: str, delta: Any) -> CartItem | None:
        self._require_hydrated()
        line = self.get(item_id)
        if line is None:
            return None
        step = coerce_number(delta)
        if step is None:
            return line
        line.quantity = clamp_count(line.quantity + step)
        await self._persist()
        return line

    async def _persist(self) -> None:
        await self._save([item.to_dict() for item in self.items])
