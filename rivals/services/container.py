"""
Service wiring.

All marketplace services are built once at startup and handed to the
code that needs them, so each can be exercised on its own in tests.
"""

from dataclasses import dataclass

from rivals.clients.inventory_api import InventoryApiClient
from rivals.clients.pricing import HttpPricingSource, PricingSource
from rivals.config import Settings, settings
from rivals.services.cart import CartService
from rivals.services.checkout import CheckoutService
from rivals.services.collection import CollectionService
from rivals.services.favorites import FavoritesService
from rivals.services.inventory_store import InventoryStore
from rivals.services.orders import OrderHistory
from rivals.services.storage import KeyValueStore, MemoryKeyValueStore


@dataclass
class MarketplaceServices:
    api_client: InventoryApiClient
    inventory: InventoryStore
    cart: CartService
    collection: CollectionService
    favorites: FavoritesService
    orders: OrderHistory
    checkout: CheckoutService

    async def hydrate(self) -> None:
        """Load every service's persisted state."""
        await self.inventory.hydrate()
        await self.cart.hydrate()
        await self.collection.hydrate()
        await self.favorites.hydrate()
        await self.orders.hydrate()


def build_services(
    config: Settings = settings,
    store: KeyValueStore | None = None,
    pricing: PricingSource | None = None,
    user_id: str | None = None,
) -> MarketplaceServices:
    """
    Construct the service graph.

    Args:
        config: Endpoint URLs, admin token and timeout
        store: Local key/value store; defaults to an in-memory store
        pricing: Pricing source; defaults to the configured HTTP source
            when a pricing URL is set
        user_id: Signed-in user, used to scope favorites
    """
    store = store if store is not None else MemoryKeyValueStore()
    client = InventoryApiClient.from_settings(config)
    if pricing is None and config.pricing_url:
        pricing = HttpPricingSource(config.pricing_url, timeout=config.request_timeout)

    inventory = InventoryStore(store, client)
    cart = CartService(store)
    orders = OrderHistory(store)

    return MarketplaceServices(
        api_client=client,
        inventory=inventory,
        cart=cart,
        collection=CollectionService(store, pricing),
        favorites=FavoritesService(store, user_id),
        orders=orders,
        checkout=CheckoutService(cart, inventory, orders, client),
    )
