from rivals.models.cart import CartItem
from rivals.models.collection import CollectionItem
from rivals.models.inventory import CANONICAL_KEYS, InventoryItem
from rivals.models.order import (
    FulfillmentChange,
    Order,
    OrderItem,
    OrderLine,
    OrderStatus,
)

__all__ = [
    "CANONICAL_KEYS",
    "CartItem",
    "CollectionItem",
    "FulfillmentChange",
    "InventoryItem",
    "Order",
    "OrderItem",
    "OrderLine",
    "OrderStatus",
]
