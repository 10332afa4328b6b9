from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OrderStatus(str, Enum):
    """Lifecycle of a locally recorded order."""

    PENDING = "pending"
    FULFILLED = "fulfilled"


@dataclass(frozen=True)
class OrderLine:
    """One (item id, quantity) pair consumed by inventory fulfillment."""

    id: str
    quantity: int


@dataclass(frozen=True)
class FulfillmentChange:
    """Stock movement applied to one inventory item."""

    id: str
    before: int
    purchased: int
    after: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "before": self.before,
            "purchased": self.purchased,
            "after": self.after,
        }


@dataclass
class OrderItem:
    id: str
    name: str
    price: float
    qty: int
    sku: str | None = None
    image_url: str | None = None

    @property
    def line_total(self) -> float:
        return self.price * self.qty

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "qty": self.qty,
            "sku": self.sku,
            "imageUrl": self.image_url,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class Order:
    """A checked-out cart, recorded before inventory is touched."""

    id: str
    user_email: str
    total: float
    created_at: str
    items: list[OrderItem] = field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING

    def lines(self) -> list[OrderLine]:
        return [OrderLine(id=item.id, quantity=item.qty) for item in self.items]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userEmail": self.user_email,
            "total": self.total,
            "createdAt": self.created_at,
            "status": self.status.value,
            "items": [item.to_dict() for item in self.items],
        }
