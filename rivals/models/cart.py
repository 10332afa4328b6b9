from dataclasses import dataclass
from typing import Any


@dataclass
class CartItem:
    """
    A line in the shopping cart.

    Descriptive fields are a snapshot taken when the item was added;
    later inventory edits do not flow back into the cart.
    """

    id: str
    quantity: int = 1
    price: float | None = None
    name: str | None = None
    image_url: str | None = None
    sku: str | None = None
    set_name: str | None = None
    number: str | int | float | None = None

    @property
    def line_total(self) -> float:
        """Price times quantity; a missing price counts as zero."""
        return (self.price or 0) * self.quantity

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "quantity": self.quantity,
            "price": self.price,
            "name": self.name,
            "imageUrl": self.image_url,
            "sku": self.sku,
            "set": self.set_name,
            "number": self.number,
        }
        return {key: value for key, value in data.items() if value is not None}
