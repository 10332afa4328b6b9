"""
CSV import and export for inventory rows.

Import assumes a header row. Blank lines and rows whose cells are all
blank are skipped. Each surviving row is handed to the row normalizer,
so any column spelling the normalizer knows about is accepted and
unknown columns are preserved on the resulting items.
"""

import csv
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from io import StringIO
from typing import Any

from rivals.models.inventory import InventoryItem
from rivals.parsers.normalizer import as_record, is_blank, normalize_row

# Column order used by the server's inventory export
INVENTORY_EXPORT_HEADERS: tuple[str, ...] = (
    "id",
    "sku",
    "name",
    "set",
    "number",
    "rarity",
    "condition",
    "price",
    "quantity",
    "imageUrl",
)


@dataclass
class ImportSummary:
    """Counts shown to the operator before an import is published."""

    rows: int
    with_price: int
    quantity_total: int


def parse_csv_text(text: str) -> list[dict[str, str]]:
    """
    Parse CSV text into one dict per data row, keyed by header.

    Returns an empty list for empty input or a header with no rows.
    """
    if not text or not text.strip():
        return []

    # Spreadsheet exports often start with a UTF-8 byte order mark
    reader = csv.DictReader(StringIO(text.lstrip("\ufeff")))
    if not reader.fieldnames:
        return []

    rows: list[dict[str, str]] = []
    for row in reader:
        # Short rows leave None values; extra cells land under the None key
        cleaned = {key: value for key, value in row.items() if key is not None}
        if all(is_blank(value) for value in cleaned.values()):
            continue
        rows.append({key: value if value is not None else "" for key, value in cleaned.items()})

    return rows


def items_from_csv(text: str) -> list[InventoryItem]:
    """Parse CSV text and normalize every row into an InventoryItem."""
    return [normalize_row(row) for row in parse_csv_text(text)]


def summarize(items: Iterable[InventoryItem]) -> ImportSummary:
    """Count rows, rows carrying any price, and total stock."""
    rows = 0
    with_price = 0
    quantity_total = 0
    for item in items:
        rows += 1
        if item.current_price is not None:
            with_price += 1
        quantity_total += item.quantity
    return ImportSummary(rows=rows, with_price=with_price, quantity_total=quantity_total)


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def items_to_csv(
    rows: Sequence[InventoryItem | Mapping[str, Any]],
    headers: Sequence[str] | None = None,
    quote_all: bool = False,
) -> str:
    """
    Render rows as CSV text.

    Args:
        rows: Inventory items or plain dicts
        headers: Column order; defaults to the keys of the first row
        quote_all: Quote every cell instead of only cells containing
            a quote, comma or line break

    Returns:
        CSV text with a header line, or "" when there are no rows.
    """
    if not rows:
        return ""

    records = [as_record(row) for row in rows]
    columns = list(headers) if headers is not None else list(records[0].keys())

    buffer = StringIO()
    writer = csv.writer(
        buffer,
        quoting=csv.QUOTE_ALL if quote_all else csv.QUOTE_MINIMAL,
        lineterminator="\n",
    )
    writer.writerow(columns)
    for record in records:
        writer.writerow([_format_cell(record.get(column)) for column in columns])

    return buffer.getvalue().rstrip("\n")
