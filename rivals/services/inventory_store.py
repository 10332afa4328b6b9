"""
Inventory store.

Holds the marketplace inventory in memory and persists a snapshot to the
local key/value store. Supports wholesale replacement, upsert by id,
fulfillment of completed orders and a stale-but-available refresh from
the remote inventory service.

INVARIANT: every item's quantity is >= 0. Fulfillment clamps at zero.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from rivals.clients.inventory_api import (
    AdminUploadError,
    InventoryApiClient,
    InventoryFetchError,
)
from rivals.config import INVENTORY_STORAGE_KEY, PROCESSED_ORDERS_STORAGE_KEY
from rivals.models.inventory import InventoryItem
from rivals.models.order import FulfillmentChange, OrderLine
from rivals.parsers.normalizer import as_record, coerce_number, merge_records, normalize_row
from rivals.services.storage import (
    KeyValueStore,
    NotHydratedError,
    PersistedState,
    get_json,
    set_json,
)

logger = logging.getLogger(__name__)

PublishMode = Literal["replace", "bulk-upsert"]


@dataclass
class UpsertResult:
    """Outcome of a merge_upsert batch."""

    added: int = 0
    updated: int = 0
    collisions: int = 0
    """Rows in the batch whose identity repeated an earlier row in the same batch."""

    @property
    def total(self) -> int:
        return self.added + self.updated


def _line_parts(line: OrderLine | Mapping[str, Any]) -> tuple[str, int]:
    """(item id, decrement amount) for a line. Bad amounts decrement nothing."""
    if isinstance(line, OrderLine):
        raw_id: Any = line.id
        raw_quantity: Any = line.quantity
    else:
        raw_id = line.get("id", line.get("productId"))
        raw_quantity = line.get("quantity")

    amount = coerce_number(raw_quantity)
    if amount is None:
        return str(raw_id), 0
    return str(raw_id), max(0, int(amount))


def _log_collisions(operation: str, keys: list[str]) -> None:
    if not keys:
        return
    logger.warning(
        "inventory_identity_collision",
        extra={
            "operation": operation,
            "collision_count": len(keys),
            "colliding_keys": keys[:10],
        },
    )


class InventoryNotHydratedError(NotHydratedError):
    """Raised when inventory is changed before the local snapshot has loaded."""

    pass


class InventoryStore(PersistedState):
    """
    Marketplace inventory with a persisted local snapshot.

    ``error`` holds the message of the last failed refresh and is cleared
    when a new refresh starts. A failed refresh never clears ``items``.
    """

    not_hydrated_error = InventoryNotHydratedError

    def __init__(
        self,
        store: KeyValueStore,
        client: InventoryApiClient | None = None,
        storage_key: str = INVENTORY_STORAGE_KEY,
    ) -> None:
        super().__init__(store, storage_key)
        self.client = client
        self.items: list[InventoryItem] = []
        self.is_loading = False
        self.error: str | None = None
        self._processed_orders: set[str] = set()

    async def hydrate(self) -> None:
        """Load the persisted snapshot and the set of already fulfilled orders."""
        rows = await self._load([])
        self.items = [normalize_row(row) for row in rows if isinstance(row, dict)]
        processed = await get_json(self.store, PROCESSED_ORDERS_STORAGE_KEY, [])
        self._processed_orders = {str(order_id) for order_id in processed}
        self.is_hydrated = True

    def get(self, item_id: str) -> InventoryItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def search(self, query: str) -> list[InventoryItem]:
        """Case-insensitive substring match on name, set, number and sku."""
        needle = query.strip().lower()
        if not needle:
            return list(self.items)
        return [
            item
            for item in self.items
            if any(
                needle in str(value).lower()
                for value in (item.name, item.set_name, item.number, item.sku)
                if value not in (None, "")
            )
        ]

    async def replace_all(self, items: Iterable[InventoryItem | Mapping[str, Any]]) -> None:
        """
        Discard the current inventory and store ``items`` in its place.

        Every item is normalized; nothing is merged with prior state.
        """
        normalized = [normalize_row(as_record(item)) for item in items]

        seen: set[str] = set()
        repeated: list[str] = []
        for item in normalized:
            if item.id in seen:
                repeated.append(item.id)
            seen.add(item.id)
        _log_collisions("replace_all", repeated)

        self.items = normalized
        self.is_hydrated = True
        await self._persist()

    async def merge_upsert(
        self, items: Iterable[InventoryItem | Mapping[str, Any]]
    ) -> UpsertResult:
        """
        Update-or-insert each item by ``id``, in input order.

        An existing item is shallow-merged: incoming fields overwrite,
        fields only on the existing record are kept. Within one batch a
        later row for the same id wins over an earlier one.
        """
        self._require_hydrated()
        result = UpsertResult()
        positions = {item.id: index for index, item in enumerate(self.items)}
        seen: set[str] = set()
        repeated: list[str] = []

        for incoming in items:
            record = as_record(incoming)
            candidate = normalize_row(record)
            identity = candidate.id

            if identity in seen:
                result.collisions += 1
                repeated.append(identity)
            seen.add(identity)

            position = positions.get(identity)
            if position is None:
                positions[identity] = len(self.items)
                self.items.append(candidate)
                result.added += 1
                continue

            merged = merge_records(self.items[position].to_dict(), record)
            self.items[position] = normalize_row(merged)
            result.updated += 1

        _log_collisions("merge_upsert", repeated)
        await self._persist()
        return result

    async def add_item(self, item: InventoryItem | Mapping[str, Any]) -> InventoryItem:
        """Add or edit a single item locally (upsert by id)."""
        record = as_record(item)
        normalized = normalize_row(record)
        identity = normalized.id
        record["id"] = identity
        record.setdefault("sku", normalized.sku)
        await self.merge_upsert([record])
        stored = self.get(identity)
        if stored is None:
            msg = f"Inventory item {identity} missing after upsert"
            raise RuntimeError(msg)
        return stored

    async def fulfill(
        self,
        lines: Iterable[OrderLine | Mapping[str, Any]],
        order_id: str | None = None,
    ) -> list[FulfillmentChange]:
        """
        Decrement stock for a completed order.

        Each inventory item takes the first line whose id matches (string
        compared) and loses that many units, floored at zero. Lines for
        unknown ids are ignored.

        Args:
            lines: Order lines as OrderLine or ``{"id", "quantity"}`` dicts
            order_id: When given, the order is applied at most once; a
                repeated call with the same id changes nothing.

        Returns:
            One FulfillmentChange per inventory item that was matched.
        """
        self._require_hydrated()
        if order_id is not None:
            # refresh() can mark the store hydrated without reading this set
            processed = await get_json(self.store, PROCESSED_ORDERS_STORAGE_KEY, [])
            self._processed_orders.update(str(value) for value in processed)

        if order_id is not None and str(order_id) in self._processed_orders:
            logger.info("Order %s already fulfilled, skipping", order_id)
            return []

        parsed = [_line_parts(line) for line in lines]
        changes: list[FulfillmentChange] = []

        for item in self.items:
            amount = next((qty for line_id, qty in parsed if line_id == item.id), None)
            if amount is None:
                continue
            before = item.quantity
            item.quantity = max(0, before - amount)
            changes.append(
                FulfillmentChange(id=item.id, before=before, purchased=amount, after=item.quantity)
            )

        if order_id is not None:
            self._processed_orders.add(str(order_id))
            await set_json(self.store, PROCESSED_ORDERS_STORAGE_KEY, sorted(self._processed_orders))

        await self._persist()
        logger.info("Fulfilled %d inventory lines (order %s)", len(changes), order_id)
        return changes

    def was_fulfilled(self, order_id: str) -> bool:
        return str(order_id) in self._processed_orders

    async def refresh(self) -> bool:
        """
        Reload inventory from the remote service.

        On failure the current items are kept and ``error`` is set.

        Returns:
            True if fresh data replaced the in-memory inventory.
        """
        self.is_loading = True
        self.error = None
        try:
            if self.client is None:
                raise InventoryFetchError("Inventory URL not set")
            rows = await self.client.fetch_inventory()
        except InventoryFetchError as e:
            self.error = str(e) or "Failed to load inventory"
            logger.warning("Inventory refresh failed, keeping %d items: %s", len(self.items), e)
            return False
        else:
            self.items = [normalize_row(row) for row in rows]
            await self._persist()
            return True
        finally:
            self.is_loading = False
            self.is_hydrated = True

    async def publish(
        self, items: list[InventoryItem], mode: PublishMode = "bulk-upsert"
    ) -> dict[str, Any]:
        """
        Push items to the server, then reflect the change locally.

        Raises:
            AdminUploadError: If the server rejects or cannot receive the upload
        """
        if self.client is None:
            raise AdminUploadError("Missing admin configuration")

        if mode == "replace":
            response = await self.client.replace(items)
            await self.replace_all(items)
        else:
            response = await self.client.bulk_upsert(items)
            if not self.is_hydrated:
                await self.hydrate()
            await self.merge_upsert(items)

        logger.info("Published %d items (%s)", len(items), mode)
        await self.refresh()
        return response

    async def _persist(self) -> None:
        await self._save([item.to_dict() for item in self.items])
