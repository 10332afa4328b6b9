from rivals.services.auth import is_seller
from rivals.services.cart import CartNotHydratedError, CartService
from rivals.services.checkout import CheckoutResult, CheckoutService, EmptyCartError
from rivals.services.collection import CollectionNotHydratedError, CollectionService
from rivals.services.container import MarketplaceServices, build_services
from rivals.services.favorites import FavoritesNotHydratedError, FavoritesService
from rivals.services.inventory_store import (
    InventoryNotHydratedError,
    InventoryStore,
    UpsertResult,
)
from rivals.services.orders import OrderHistory, OrdersNotHydratedError, orders_to_csv
from rivals.services.price_transform import apply_transforms
from rivals.services.storage import (
    KeyValueStore,
    MemoryKeyValueStore,
    NotHydratedError,
    SqlKeyValueStore,
    StorageError,
)

__all__ = [
    "CartNotHydratedError",
    "CartService",
    "CheckoutResult",
    "CheckoutService",
    "CollectionNotHydratedError",
    "CollectionService",
    "EmptyCartError",
    "FavoritesNotHydratedError",
    "FavoritesService",
    "InventoryNotHydratedError",
    "InventoryStore",
    "KeyValueStore",
    "MarketplaceServices",
    "MemoryKeyValueStore",
    "NotHydratedError",
    "OrderHistory",
    "OrdersNotHydratedError",
    "SqlKeyValueStore",
    "StorageError",
    "UpsertResult",
    "apply_transforms",
    "build_services",
    "is_seller",
    "orders_to_csv",
]
