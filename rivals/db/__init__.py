from rivals.db.database import get_session, init_db
from rivals.db.operations import (
    BulkUpsertCounts,
    OrderCompletion,
    bulk_upsert_inventory,
    complete_order,
    export_inventory_csv,
    get_inventory,
    replace_inventory,
)

__all__ = [
    "BulkUpsertCounts",
    "OrderCompletion",
    "bulk_upsert_inventory",
    "complete_order",
    "export_inventory_csv",
    "get_inventory",
    "init_db",
    "get_session",
    "replace_inventory",
]
