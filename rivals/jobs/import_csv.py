"""
Import an inventory CSV.

Parses and normalizes the file, applies the optional price transforms and
logs a summary. Nothing is published unless --apply is given.

    python -m rivals.jobs.import_csv inventory.csv --multiplier 1.1 --round-99
    python -m rivals.jobs.import_csv inventory.csv --mode replace --apply
"""

import argparse
import asyncio
import logging
from pathlib import Path

from rivals.clients.inventory_api import AdminUploadError
from rivals.models.inventory import InventoryItem
from rivals.parsers.csv_import import ImportSummary, items_from_csv, summarize
from rivals.services.container import build_services
from rivals.services.inventory_store import InventoryStore, PublishMode
from rivals.services.price_transform import apply_transforms

logger = logging.getLogger(__name__)


def load_items(
    path: Path, multiplier: float = 1.0, round_to_99: bool = False
) -> list[InventoryItem]:
    """Read a CSV file and return transformed inventory items."""
    text = path.read_text(encoding="utf-8-sig")
    return apply_transforms(items_from_csv(text), multiplier, round_to_99)


async def run_import(
    path: Path,
    multiplier: float = 1.0,
    round_to_99: bool = False,
    mode: PublishMode = "bulk-upsert",
    apply: bool = False,
    inventory: InventoryStore | None = None,
) -> ImportSummary:
    """
    Import a CSV file, publishing it when ``apply`` is set.

    Raises:
        AdminUploadError: If publishing fails
    """
    items = load_items(path, multiplier, round_to_99)
    summary = summarize(items)
    logger.info(
        "Parsed %d rows (%d priced, %d total quantity) from %s",
        summary.rows,
        summary.with_price,
        summary.quantity_total,
        path,
    )

    if not items:
        logger.warning("Nothing to upload")
        return summary

    if not apply:
        logger.info("Dry run: pass --apply to %s %d items", mode, len(items))
        return summary

    store = inventory if inventory is not None else build_services().inventory
    try:
        await store.publish(items, mode)
    except AdminUploadError as e:
        logger.error("Upload failed: %s", e)
        raise

    return summary


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Import an inventory CSV")
    parser.add_argument("path", type=Path, help="CSV file with a header row")
    parser.add_argument("--multiplier", type=float, default=1.0, help="Price multiplier")
    parser.add_argument(
        "--round-99", action="store_true", help="Round to whole units, then subtract 0.01"
    )
    parser.add_argument("--mode", choices=["replace", "bulk-upsert"], default="bulk-upsert")
    parser.add_argument("--apply", action="store_true", help="Publish instead of a dry run")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_import(args.path, args.multiplier, args.round_99, args.mode, args.apply))


if __name__ == "__main__":
    main()
