"""
Order completion.

Turns the cart into an order and drains it into inventory. The steps run
in a fixed order so that an interrupted completion can be replayed with
the same order id without decrementing stock twice:

1. Record the order as pending (skipped if it already exists).
2. Fulfill inventory, keyed by order id (a replay is a no-op).
3. Mark the order fulfilled.
4. Mirror the order to the server, if configured.
5. Clear the cart.
"""

import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

from rivals.clients.inventory_api import InventoryApiClient, OrderSyncError
from rivals.models.order import FulfillmentChange, Order, OrderItem, OrderStatus
from rivals.services.cart import CartService
from rivals.services.inventory_store import InventoryStore
from rivals.services.orders import OrderHistory

logger = logging.getLogger(__name__)

_ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits


class EmptyCartError(Exception):
    """Raised when checking out a cart with no lines."""

    pass


def new_order_id() -> str:
    """Order ids look like ``ORD-7QX2-48213``."""
    token = "".join(secrets.choice(_ORDER_ID_ALPHABET) for _ in range(4))
    millis = str(int(time.time() * 1000))[-5:]
    return f"ORD-{token}-{millis}"


@dataclass
class CheckoutResult:
    order: Order
    changes: list[FulfillmentChange] = field(default_factory=list)
    duplicate: bool = False
    """True when the order had already been fulfilled before this call."""
    mirrored: bool = False


class CheckoutService:
    def __init__(
        self,
        cart: CartService,
        inventory: InventoryStore,
        orders: OrderHistory,
        client: InventoryApiClient | None = None,
    ) -> None:
        self.cart = cart
        self.inventory = inventory
        self.orders = orders
        self.client = client

    def _order_from_cart(self, order_id: str, user_email: str) -> Order:
        items = [
            OrderItem(
                id=line.id,
                name=line.name or "Item",
                price=line.price or 0.0,
                qty=line.quantity,
                sku=line.sku,
                image_url=line.image_url,
            )
            for line in self.cart.items
        ]
        return Order(
            id=order_id,
            user_email=user_email,
            total=self.cart.subtotal,
            created_at=datetime.now(UTC).isoformat(),
            items=items,
        )

    async def complete_order(
        self, order_id: str | None = None, user_email: str = ""
    ) -> CheckoutResult:
        """
        Complete an order exactly once.

        Calling again with the same ``order_id`` (for example when the
        confirmation screen is shown a second time) leaves inventory alone
        and only makes sure the cart is empty.

        Raises:
            EmptyCartError: If this is a new order and the cart is empty
        """
        order_id = order_id or new_order_id()
        order = self.orders.get(order_id)

        if order is not None and order.status == OrderStatus.FULFILLED:
            logger.info("Order %s already completed", order_id)
            if not self.cart.is_empty:
                await self.cart.clear()
            return CheckoutResult(order=order, duplicate=True)

        if order is None:
            if self.cart.is_empty:
                raise EmptyCartError("Cart is empty")
            order = self._order_from_cart(order_id, user_email)
            await self.orders.add_order(order)

        duplicate = self.inventory.was_fulfilled(order.id)
        changes = await self.inventory.fulfill(order.lines(), order_id=order.id)
        await self.orders.mark_fulfilled(order.id)

        mirrored = await self._mirror(order)
        await self.cart.clear()

        return CheckoutResult(order=order, changes=changes, duplicate=duplicate, mirrored=mirrored)

    async def _mirror(self, order: Order) -> bool:
        if self.client is None or not self.client.orders_url:
            return False
        lines = [{"sku": item.sku or item.id, "quantity": item.qty} for item in order.items]
        try:
            await self.client.complete_order(lines, order_id=order.id)
        except OrderSyncError as e:
            logger.warning("Order %s not mirrored to server: %s", order.id, e)
            return False
        return True
