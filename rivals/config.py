from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="RIVALS_")

    app_name: str = "Rivals"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./rivals.db"

    # Remote collaborators. Empty string means "not configured".
    inventory_url: str = ""
    admin_replace_url: str = ""
    admin_bulk_upsert_url: str = ""
    orders_complete_url: str = ""
    pricing_url: str = ""

    # Never ship a real admin token in a client build
    admin_token: str = ""

    # Seconds before any remote call is abandoned
    request_timeout: float = 8.0


settings = Settings()


# =============================================================================
# DOMAIN DEFAULTS
# =============================================================================

DEFAULT_CONDITION = "NM"

DEFAULT_CURRENCY = "USD"

# =============================================================================
# LOCAL STORAGE KEYS
# =============================================================================

CART_STORAGE_KEY = "rivals.cart.v1"
COLLECTION_STORAGE_KEY = "rivals.collection.v1"
ORDERS_STORAGE_KEY = "rivals.orders.v1"
PROCESSED_ORDERS_STORAGE_KEY = "rivals.orders.processed.v1"
INVENTORY_STORAGE_KEY = "inventory:products"


def favorites_storage_key(user_id: str | None) -> str:
    """Favorites are stored per signed-in user, with a shared guest bucket."""
    return f"favorites:{user_id or 'guest'}"
