"""Tests for order completion."""

import re

import httpx
import pytest
import respx

from rivals.clients.inventory_api import InventoryApiClient
from rivals.models.order import OrderStatus
from rivals.services.cart import CartService
from rivals.services.checkout import CheckoutService, EmptyCartError, new_order_id
from rivals.services.inventory_store import InventoryStore
from rivals.services.orders import OrderHistory
from rivals.services.storage import MemoryKeyValueStore

ORDERS_URL = "https://api.test/orders/complete"


async def build_checkout(
    store: MemoryKeyValueStore, client: InventoryApiClient | None = None
) -> CheckoutService:
    inventory = InventoryStore(store)
    cart = CartService(store)
    orders = OrderHistory(store)
    for service in (inventory, cart, orders):
        await service.hydrate()
    return CheckoutService(cart, inventory, orders, client)


@pytest.fixture
async def checkout(memory_store: MemoryKeyValueStore) -> CheckoutService:
    service = await build_checkout(memory_store)
    await service.inventory.replace_all(
        [
            {
                "id": "1",
                "name": "Charizard",
                "set": "Base",
                "number": "4",
                "price": 350,
                "quantity": 3,
            },
            {"id": "2", "name": "Energy", "price": 0.25, "quantity": 40},
        ]
    )
    return service


def stock(service: CheckoutService, item_id: str) -> int:
    item = service.inventory.get(item_id)
    assert item is not None
    return item.quantity


class TestNewOrderId:
    def test_format(self) -> None:
        assert re.fullmatch(r"ORD-[A-Z0-9]{4}-\d{5}", new_order_id())


class TestCompleteOrder:
    async def test_drains_cart_into_inventory(self, checkout: CheckoutService) -> None:
        await checkout.cart.add(checkout.inventory.get("1"), 2)
        await checkout.cart.add(checkout.inventory.get("2"), 10)

        result = await checkout.complete_order("ORD-1", "buyer@example.com")

        assert stock(checkout, "1") == 1
        assert stock(checkout, "2") == 30
        assert checkout.cart.is_empty
        assert result.order.total == 702.5
        assert result.order.status == OrderStatus.FULFILLED
        assert not result.duplicate
        assert not result.mirrored
        assert [change.id for change in result.changes] == ["1", "2"]

    async def test_generates_order_id(self, checkout: CheckoutService) -> None:
        await checkout.cart.add(checkout.inventory.get("1"))

        result = await checkout.complete_order()

        assert result.order.id.startswith("ORD-")
        assert checkout.orders.get(result.order.id) is not None

    async def test_empty_cart(self, checkout: CheckoutService) -> None:
        with pytest.raises(EmptyCartError):
            await checkout.complete_order("ORD-1")

    async def test_repeat_does_not_decrement_twice(self, checkout: CheckoutService) -> None:
        """Showing the confirmation twice leaves stock alone the second time."""
        await checkout.cart.add(checkout.inventory.get("1"), 2)
        await checkout.complete_order("ORD-1")

        await checkout.cart.add(checkout.inventory.get("1"), 1)
        result = await checkout.complete_order("ORD-1")

        assert result.duplicate
        assert stock(checkout, "1") == 1
        assert checkout.cart.is_empty

    async def test_repeat_after_reload(
        self, checkout: CheckoutService, memory_store: MemoryKeyValueStore
    ) -> None:
        await checkout.cart.add(checkout.inventory.get("1"), 2)
        await checkout.complete_order("ORD-1")

        reloaded = await build_checkout(memory_store)
        result = await reloaded.complete_order("ORD-1")

        assert result.duplicate
        assert stock(reloaded, "1") == 1

    async def test_resume_after_interrupted_completion(self, checkout: CheckoutService) -> None:
        """Stock already drained for the order is not drained again."""
        await checkout.cart.add(checkout.inventory.get("1"), 2)
        await checkout.inventory.fulfill(checkout.cart.to_order_lines(), order_id="ORD-1")

        result = await checkout.complete_order("ORD-1")

        assert result.duplicate
        assert result.changes == []
        assert stock(checkout, "1") == 1
        assert checkout.cart.is_empty
        assert checkout.orders.get("ORD-1").status == OrderStatus.FULFILLED

    async def test_resume_pending_order(self, checkout: CheckoutService) -> None:
        """A pending order is fulfilled from its own lines, not the cart."""
        await checkout.cart.add(checkout.inventory.get("1"), 2)
        pending = checkout._order_from_cart("ORD-1", "")
        await checkout.orders.add_order(pending)
        await checkout.cart.clear()

        result = await checkout.complete_order("ORD-1")

        assert not result.duplicate
        assert stock(checkout, "1") == 1


class TestMirror:
    @respx.mock
    async def test_mirrors_to_server(self, memory_store: MemoryKeyValueStore) -> None:
        route = respx.post(ORDERS_URL).mock(
            return_value=httpx.Response(200, json={"ok": True, "lines": []})
        )
        checkout = await build_checkout(memory_store, InventoryApiClient(orders_url=ORDERS_URL))
        await checkout.inventory.replace_all([{"id": "1", "sku": "S1", "quantity": 2}])
        await checkout.cart.add(checkout.inventory.get("1"))

        result = await checkout.complete_order("ORD-1")

        assert result.mirrored
        assert route.called
        body = route.calls.last.request.content
        assert b'"orderId":"ORD-1"' in body.replace(b" ", b"")
        assert b'"sku":"S1"' in body.replace(b" ", b"")

    @respx.mock
    async def test_mirror_failure_does_not_fail_checkout(
        self, memory_store: MemoryKeyValueStore
    ) -> None:
        respx.post(ORDERS_URL).mock(return_value=httpx.Response(500))
        checkout = await build_checkout(memory_store, InventoryApiClient(orders_url=ORDERS_URL))
        await checkout.inventory.replace_all([{"id": "1", "quantity": 2}])
        await checkout.cart.add(checkout.inventory.get("1"))

        result = await checkout.complete_order("ORD-1")

        assert not result.mirrored
        assert stock(checkout, "1") == 1
        assert checkout.cart.is_empty
