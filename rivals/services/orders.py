"""
Local order history.

Orders are kept newest first. The history doubles as the write-ahead
record for checkout: an order is saved as pending before inventory is
touched and marked fulfilled afterwards.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from rivals.config import ORDERS_STORAGE_KEY
from rivals.models.order import Order, OrderItem, OrderStatus
from rivals.parsers.csv_import import items_to_csv
from rivals.parsers.normalizer import clamp_count, coerce_number
from rivals.services.storage import KeyValueStore, NotHydratedError, PersistedState

ORDER_EXPORT_HEADERS: tuple[str, ...] = (
    "order_id",
    "created_at",
    "user_email",
    "item_id",
    "item_name",
    "qty",
    "price",
    "line_total",
    "order_total",
)


def _order_from_record(record: Mapping[str, Any]) -> Order:
    items = [
        OrderItem(
            id=str(raw["id"]),
            name=str(raw.get("name") or "Item"),
            price=coerce_number(raw.get("price")) or 0.0,
            qty=clamp_count(raw.get("qty")),
            sku=raw.get("sku"),
            image_url=raw.get("imageUrl"),
        )
        for raw in record.get("items") or []
        if isinstance(raw, dict) and raw.get("id") is not None
    ]
    try:
        status = OrderStatus(record.get("status", OrderStatus.PENDING.value))
    except ValueError:
        status = OrderStatus.PENDING
    return Order(
        id=str(record["id"]),
        user_email=str(record.get("userEmail") or ""),
        total=coerce_number(record.get("total")) or 0.0,
        created_at=str(record.get("createdAt") or ""),
        items=items,
        status=status,
    )


def orders_to_csv(orders: Iterable[Order]) -> str:
    """Flatten orders into one CSV row per purchased line."""
    rows = [
        {
            "order_id": order.id,
            "created_at": order.created_at,
            "user_email": order.user_email,
            "item_id": item.id,
            "item_name": item.name,
            "qty": item.qty,
            "price": item.price,
            "line_total": item.line_total,
            "order_total": order.total,
        }
        for order in orders
        for item in order.items
    ]
    return items_to_csv(rows, ORDER_EXPORT_HEADERS)


class OrdersNotHydratedError(NotHydratedError):
    pass


class OrderHistory(PersistedState):
    not_hydrated_error = OrdersNotHydratedError

    def __init__(self, store: KeyValueStore, storage_key: str = ORDERS_STORAGE_KEY) -> None:
        super().__init__(store, storage_key)
        self.orders: list[Order] = []

    async def hydrate(self) -> None:
        rows = await self._load([])
        self.orders = [
            _order_from_record(row)
            for row in rows
            if isinstance(row, dict) and row.get("id") is not None
        ]
        self.is_hydrated = True

    def get(self, order_id: str) -> Order | None:
        for order in self.orders:
            if order.id == order_id:
                return order
        return None

    async def add_order(self, order: Order) -> None:
        self._require_hydrated()
        self.orders.insert(0, order)
        await self._persist()

    async def mark_fulfilled(self, order_id: str) -> Order | None:
        self._require_hydrated()
        order = self.get(order_id)
        if order is None:
            return None
        order.status = OrderStatus.FULFILLED
        await self._persist()
        return order

    async def remove_order(self, order_id: str) -> None:
        self._require_hydrated()
        self.orders = [order for order in self.orders if order.id != order_id]
        await self._persist()

    async def clear_all(self) -> None:
        self._require_hydrated()
        self.orders = []
        await self._persist()

    def export_csv(self) -> str:
        return orders_to_csv(self.orders)

    async def _persist(self) -> None:
        await self._save([order.to_dict() for order in self.orders])
