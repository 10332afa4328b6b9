from rivals.clients.inventory_api import (
    AdminUploadError,
    InventoryApiClient,
    InventoryFetchError,
    OrderSyncError,
)
from rivals.clients.pricing import (
    HttpPricingSource,
    MarketPrice,
    PricingError,
    PricingSource,
)

__all__ = [
    "AdminUploadError",
    "HttpPricingSource",
    "InventoryApiClient",
    "InventoryFetchError",
    "MarketPrice",
    "OrderSyncError",
    "PricingError",
    "PricingSource",
]
