from dataclasses import dataclass
from typing import Any

from rivals.config import DEFAULT_CONDITION, DEFAULT_CURRENCY


@dataclass
class CollectionItem:
    """
    A card the user owns, keyed by (catalog_id, condition).

    The same catalog card in two conditions is two separate rows.
    """

    catalog_id: str
    name: str = ""
    condition: str = DEFAULT_CONDITION
    quantity: int = 1
    set_name: str | None = None
    number: str | None = None
    image_url: str | None = None
    rarity: str | None = None
    last_price: float | None = None
    currency: str = DEFAULT_CURRENCY
    updated_at: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.catalog_id, self.condition or DEFAULT_CONDITION)

    @property
    def value(self) -> float:
        """Estimated value of all copies held."""
        return (self.last_price or 0) * self.quantity

    def to_dict(self) -> dict[str, Any]:
        data = {
            "catalogId": self.catalog_id,
            "name": self.name,
            "condition": self.condition,
            "quantity": self.quantity,
            "setName": self.set_name,
            "number": self.number,
            "imageUrl": self.image_url,
            "rarity": self.rarity,
            "lastPrice": self.last_price,
            "currency": self.currency,
            "updatedAt": self.updated_at,
        }
        return {key: value for key, value in data.items() if value is not None}
