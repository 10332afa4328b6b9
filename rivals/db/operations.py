"""
Database operations for the server-held inventory.

Server inventory is keyed by sku. Records are stored fully normalized so
the listing endpoint returns the same shape the client normalizer emits.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rivals.models.db import InventoryRecordDB, ProcessedOrderDB
from rivals.parsers.csv_import import INVENTORY_EXPORT_HEADERS, items_to_csv
from rivals.parsers.normalizer import coerce_number, merge_records, normalize_row

logger = logging.getLogger(__name__)


@dataclass
class BulkUpsertCounts:
    added: int
    updated: int
    total: int


@dataclass
class OrderCompletion:
    """Per-line stock changes for one order completion."""

    lines: list[dict[str, Any]] = field(default_factory=list)
    duplicate: bool = False


def _apply_record(row: InventoryRecordDB, record: dict[str, Any]) -> None:
    row.item_id = str(record["id"])
    row.name = str(record["name"])
    row.quantity = int(record["quantity"])
    # Reassign rather than mutate so the JSON column is flagged dirty
    row.data = record


def _new_row(record: dict[str, Any]) -> InventoryRecordDB:
    row = InventoryRecordDB(sku=str(record["sku"]))
    _apply_record(row, record)
    return row


async def _rows_by_sku(session: AsyncSession) -> dict[str, InventoryRecordDB]:
    result = await session.execute(select(InventoryRecordDB).order_by(InventoryRecordDB.id))
    return {row.sku: row for row in result.scalars().all()}


async def get_inventory(session: AsyncSession) -> list[dict[str, Any]]:
    """All inventory records in insertion order."""
    result = await session.execute(select(InventoryRecordDB).order_by(InventoryRecordDB.id))
    return [dict(row.data) for row in result.scalars().all()]


async def replace_inventory(
    session: AsyncSession, items: Iterable[Mapping[str, Any]]
) -> int:
    """
    Replace the whole inventory.

    Rows repeating an earlier sku in the same batch overwrite it.

    Returns:
        Number of records stored.
    """
    await session.execute(delete(InventoryRecordDB))

    by_sku: dict[str, dict[str, Any]] = {}
    for raw in items:
        record = normalize_row(raw).to_dict()
        by_sku[str(record["sku"])] = record

    session.add_all(_new_row(record) for record in by_sku.values())
    await session.flush()
    return len(by_sku)


async def bulk_upsert_inventory(
    session: AsyncSession, items: Iterable[Mapping[str, Any]]
) -> BulkUpsertCounts:
    """
    Merge items into the inventory by sku.

    An existing record is shallow-merged with the incoming fields; fields
    the incoming row does not mention are kept.
    """
    rows = await _rows_by_sku(session)
    added = 0
    updated = 0

    for raw in items:
        sku = normalize_row(raw).sku
        row = rows.get(sku)
        if row is None:
            record = normalize_row({**raw, "sku": sku}).to_dict()
            row = _new_row(record)
            session.add(row)
            rows[sku] = row
            added += 1
        else:
            merged = merge_records(row.data, {**raw, "sku": sku})
            _apply_record(row, normalize_row(merged).to_dict())
            updated += 1

    await session.flush()
    return BulkUpsertCounts(added=added, updated=updated, total=len(rows))


async def complete_order(
    session: AsyncSession,
    lines: Iterable[Mapping[str, Any]],
    order_id: str | None = None,
) -> OrderCompletion:
    """
    Decrement stock for a completed order, keyed by sku.

    Quantities are floored at zero; unknown skus are skipped. When
    ``order_id`` was already processed nothing changes and the result is
    flagged as a duplicate.
    """
    if order_id and await session.get(ProcessedOrderDB, order_id) is not None:
        logger.info("Order %s already completed on server", order_id)
        return OrderCompletion(duplicate=True)

    rows = await _rows_by_sku(session)
    changes: list[dict[str, Any]] = []

    for line in lines:
        sku = str(line.get("sku"))
        row = rows.get(sku)
        if row is None:
            continue
        amount = coerce_number(line.get("quantity"))
        purchased = max(0, int(amount)) if amount is not None else 0
        before = int(row.quantity or 0)
        after = max(0, before - purchased)
        _apply_record(row, {**row.data, "quantity": after})
        changes.append({"sku": sku, "before": before, "purchased": purchased, "after": after})

    if order_id:
        session.add(ProcessedOrderDB(order_id=order_id, changes=changes))

    await session.flush()
    return OrderCompletion(lines=changes)


async def export_inventory_csv(session: AsyncSession) -> str:
    """Inventory as CSV with every cell quoted."""
    records = await get_inventory(session)
    if not records:
        return ",".join(INVENTORY_EXPORT_HEADERS)
    return items_to_csv(records, INVENTORY_EXPORT_HEADERS, quote_all=True)
