from rivals.parsers.csv_import import (
    INVENTORY_EXPORT_HEADERS,
    ImportSummary,
    items_from_csv,
    items_to_csv,
    parse_csv_text,
    summarize,
)
from rivals.parsers.normalizer import (
    FIELD_ALIASES,
    as_record,
    clamp_count,
    coerce_number,
    coerce_quantity,
    compute_sku,
    merge_records,
    normalize_row,
)

__all__ = [
    "FIELD_ALIASES",
    "INVENTORY_EXPORT_HEADERS",
    "ImportSummary",
    "as_record",
    "clamp_count",
    "coerce_number",
    "coerce_quantity",
    "compute_sku",
    "items_from_csv",
    "items_to_csv",
    "merge_records",
    "normalize_row",
    "parse_csv_text",
    "summarize",
]
