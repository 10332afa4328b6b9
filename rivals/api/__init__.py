from rivals.api.health import router as health_router
from rivals.api.inventory import router as inventory_router
from rivals.api.orders import router as orders_router

__all__ = [
    "health_router",
    "inventory_router",
    "orders_router",
]
