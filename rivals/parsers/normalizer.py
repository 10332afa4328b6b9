"""
Row normalization for inventory records.

Inventory rows arrive from the remote API, from CSV imports and from
manual edits, each with its own column spellings. Every target field is
resolved from an ordered list of candidate column names; the first
non-blank candidate wins.

Nothing in this module raises on bad input. Malformed numbers become
None (prices) or 0 (quantity), and missing text falls back to defaults.
"""

import math
import re
import uuid
from collections.abc import Mapping
from typing import Any

from rivals.models.inventory import CANONICAL_KEYS, InventoryItem

# Candidate source columns per target field, highest precedence first.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("name", "cardName", "title"),
    "set": ("set", "Set", "series"),
    "number": ("number", "No", "num"),
    "rarity": ("rarity", "Rarity"),
    "condition": ("condition", "Condition"),
    "quantity": ("quantity", "Quantity", "qty"),
    "forSalePrice": (
        "forSalePrice",
        "sale_price",
        "salePrice",
        "listPrice",
        "list_price",
        "price",
    ),
    "marketPrice": (
        "market",
        "marketPrice",
        "tcg_market",
        "tcgMarket",
        "tcgplayerMarketPrice",
        "tcg_low",
        "lowPrice",
    ),
    "costPrice": ("cost", "costPrice", "wholesale", "buy_price", "purchasePrice"),
    "imageUrl": (
        "imageUrl",
        "image_url",
        "image",
        "imgUrl",
        "img_url",
        "img",
        "Image URL",
        "Image",
        "imageLink",
    ),
}

SKU_SEPARATOR = "|"

# Everything except digits, decimal point and minus sign is noise ("$1,299.00")
_NUMERIC_NOISE = re.compile(r"[^0-9.\-]")


def is_blank(value: Any) -> bool:
    """True for None and for strings that are empty after stripping."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def pick_first(row: Mapping[str, Any], candidates: tuple[str, ...]) -> Any:
    """Return the first non-blank value among ``candidates``, or None."""
    for key in candidates:
        value = row.get(key)
        if not is_blank(value):
            return value
    return None


def coerce_number(value: Any) -> float | None:
    """
    Coerce loosely formatted numeric input to a float.

    Strings are stripped of every character other than digits, "." and "-"
    before parsing, so "$12.50" and "12.50 USD" both read as 12.5.

    Returns:
        The parsed finite number, or None when nothing usable remains.
    """
    if is_blank(value) or isinstance(value, bool):
        return None

    if isinstance(value, int | float):
        number = float(value)
    else:
        cleaned = _NUMERIC_NOISE.sub("", str(value))
        try:
            number = float(cleaned)
        except ValueError:
            return None

    return number if math.isfinite(number) else None


def coerce_quantity(value: Any) -> int:
    """Stock count from loose input: whole units, never negative, 0 on failure."""
    number = coerce_number(value)
    if number is None:
        return 0
    return max(0, int(number))


def clamp_count(value: Any, minimum: int = 1) -> int:
    """Floor ``value`` to a whole count of at least ``minimum``."""
    number = coerce_number(value)
    if number is None:
        return minimum
    return max(minimum, math.floor(number))


def compute_sku(row: Mapping[str, Any]) -> str:
    """
    Derive an identity key for a row.

    Joins set, number and name with "|", skipping blank parts. When all
    three are blank, falls back to an explicit sku or id on the row, and
    finally to a random token.

    The composite key is not unique: two physical cards sharing
    set/number/name resolve to the same key.
    """
    parts = [
        pick_first(row, FIELD_ALIASES["set"]),
        pick_first(row, FIELD_ALIASES["number"]),
        pick_first(row, FIELD_ALIASES["name"]),
    ]
    joined = SKU_SEPARATOR.join(str(part) for part in parts if not is_blank(part))
    if joined:
        return joined

    explicit = pick_first(row, ("sku", "id"))
    if explicit is not None:
        return str(explicit)

    return uuid.uuid4().hex


def _optional_text(value: Any) -> str | None:
    return None if is_blank(value) else str(value)


def normalize_row(row: Mapping[str, Any] | None) -> InventoryItem:
    """
    Map an arbitrary source row onto an InventoryItem.

    ``id`` and ``sku`` are taken from the row when present, and otherwise
    both default to the computed key. Columns that are not canonical
    inventory fields are copied into ``extra`` unchanged.

    Args:
        row: Remote JSON object, parsed CSV row, or a previously
            serialized InventoryItem.

    Returns:
        A canonical InventoryItem. Never raises.
    """
    source: dict[str, Any] = dict(row or {})

    explicit_id = pick_first(source, ("id",))
    explicit_sku = pick_first(source, ("sku",))
    computed = compute_sku(source) if explicit_id is None or explicit_sku is None else None

    set_value = pick_first(source, FIELD_ALIASES["set"])
    number_value = pick_first(source, FIELD_ALIASES["number"])
    name_value = pick_first(source, FIELD_ALIASES["name"])

    for_sale_price = coerce_number(pick_first(source, FIELD_ALIASES["forSalePrice"]))
    legacy_price = coerce_number(source.get("price"))

    return InventoryItem(
        id=str(explicit_id) if explicit_id is not None else str(computed),
        sku=str(explicit_sku) if explicit_sku is not None else str(computed),
        name=str(name_value) if name_value is not None else "Unknown",
        set_name=str(set_value) if set_value is not None else "",
        number=number_value if number_value is not None else "",
        rarity=_optional_text(pick_first(source, FIELD_ALIASES["rarity"])),
        condition=_optional_text(pick_first(source, FIELD_ALIASES["condition"])),
        price=legacy_price if legacy_price is not None else for_sale_price,
        for_sale_price=for_sale_price,
        market_price=coerce_number(pick_first(source, FIELD_ALIASES["marketPrice"])),
        cost_price=coerce_number(pick_first(source, FIELD_ALIASES["costPrice"])),
        quantity=coerce_quantity(pick_first(source, FIELD_ALIASES["quantity"])),
        image_url=_optional_text(pick_first(source, FIELD_ALIASES["imageUrl"])),
        extra={key: value for key, value in source.items() if key not in CANONICAL_KEYS},
    )


def merge_records(existing: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """
    Shallow-merge an incoming row over an existing record.

    Incoming fields overwrite existing ones. When the incoming row sets a
    target field under any spelling, every spelling of that field is
    dropped from the existing record first, so a stale alias column
    (``market``) cannot outrank a fresh canonical one (``marketPrice``).
    """
    merged = dict(existing)
    for candidates in FIELD_ALIASES.values():
        if pick_first(incoming, candidates) is None:
            continue
        for key in candidates:
            merged.pop(key, None)
    merged.update(incoming)
    return merged


def as_record(item: InventoryItem | Mapping[str, Any]) -> dict[str, Any]:
    """Plain dict view of an item or raw row, safe to mutate."""
    if isinstance(item, InventoryItem):
        return item.to_dict()
    return dict(item)
