from dataclasses import dataclass, field
from typing import Any

# Wire keys owned by InventoryItem. Everything else on a source row is
# carried in ``extra`` and written back out untouched.
CANONICAL_KEYS = frozenset(
    {
        "id",
        "sku",
        "name",
        "set",
        "number",
        "rarity",
        "condition",
        "price",
        "forSalePrice",
        "marketPrice",
        "costPrice",
        "quantity",
        "imageUrl",
    }
)


@dataclass
class InventoryItem:
    """
    A card listed in the marketplace inventory.

    ``id`` is the primary identity and is never reassigned once set.
    ``sku`` is the reconciliation key used by the server and may equal ``id``.
    ``quantity`` is stock on hand and never drops below zero.
    """

    id: str
    sku: str
    name: str = "Unknown"
    set_name: str = ""
    number: str | int | float = ""
    rarity: str | None = None
    condition: str | None = None
    price: float | None = None
    for_sale_price: float | None = None
    market_price: float | None = None
    cost_price: float | None = None
    quantity: int = 0
    image_url: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def current_price(self) -> float | None:
        """Sale price shown to buyers: for-sale, then legacy, market, cost."""
        for candidate in (self.for_sale_price, self.price, self.market_price, self.cost_price):
            if candidate is not None:
                return candidate
        return None

    @property
    def in_stock(self) -> bool:
        return self.quantity > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire/storage shape. Unset optional fields are omitted."""
        data: dict[str, Any] = dict(self.extra)
        canonical = {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "set": self.set_name,
            "number": self.number,
            "rarity": self.rarity,
            "condition": self.condition,
            "price": self.price,
            "forSalePrice": self.for_sale_price,
            "marketPrice": self.market_price,
            "costPrice": self.cost_price,
            "quantity": self.quantity,
            "imageUrl": self.image_url,
        }
        data.update({key: value for key, value in canonical.items() if value is not None})
        return data
