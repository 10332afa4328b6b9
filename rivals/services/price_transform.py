"""
Batch price transforms for CSV imports.

An operator tool, not a normalization step: applying a multiplier other
than 1 or the .99 adjustment twice compounds.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from rivals.models.inventory import InventoryItem
from rivals.parsers.normalizer import normalize_row


def coerce_multiplier(value: Any) -> float:
    """Numeric multiplier, or 1.0 for anything non-numeric, non-finite or zero."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1.0
    if not math.isfinite(number) or number == 0:
        return 1.0
    return number


def drop_to_99(price: float) -> float:
    """
    Round to the nearest whole unit (halves round up), then subtract 0.01.

    10.40 -> 9.99 and 10.60 -> 10.99. Never below zero.
    """
    return max(0.0, math.floor(price + 0.5) - 0.01)


def apply_transforms(
    items: Iterable[InventoryItem | Mapping[str, Any]],
    multiplier: Any = 1.0,
    round_to_99: bool = False,
) -> list[InventoryItem]:
    """
    Reprice items from their current price.

    The starting price is the first of for-sale, legacy, market and cost
    price. The result is written to ``for_sale_price`` and mirrored into
    the legacy ``price``. Items without any price pass through unchanged.

    Returns:
        New InventoryItem objects; the inputs are not modified.
    """
    factor = coerce_multiplier(multiplier)
    transformed: list[InventoryItem] = []

    for raw in items:
        item = raw if isinstance(raw, InventoryItem) else normalize_row(raw)
        copy = replace(item, extra=dict(item.extra))

        price = item.current_price
        if price is not None:
            price = price * factor
            if round_to_99:
                price = drop_to_99(price)
            copy.for_sale_price = price
            copy.price = price

        transformed.append(copy)

    return transformed
