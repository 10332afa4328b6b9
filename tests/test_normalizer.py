"""Tests for inventory row normalization and sku computation."""

import pytest

from rivals.models.inventory import InventoryItem
from rivals.parsers.normalizer import (
    clamp_count,
    coerce_number,
    coerce_quantity,
    compute_sku,
    merge_records,
    normalize_row,
)


class TestComputeSku:
    def test_joins_set_number_name(self) -> None:
        """Composite key is set|number|name."""
        row = {"set": "Base", "number": "4", "name": "Charizard"}

        assert compute_sku(row) == "Base|4|Charizard"

    def test_skips_blank_components(self) -> None:
        """Missing parts are left out rather than joined as empty."""
        assert compute_sku({"set": "Base", "name": "Pikachu"}) == "Base|Pikachu"
        assert compute_sku({"number": "", "name": "Pikachu"}) == "Pikachu"

    def test_uses_alias_columns(self) -> None:
        """Alias spellings feed the composite key."""
        row = {"Set": "Jungle", "No": 60, "cardName": "Pikachu"}

        assert compute_sku(row) == "Jungle|60|Pikachu"

    def test_falls_back_to_explicit_id(self) -> None:
        """An empty composite falls back to an explicit id."""
        assert compute_sku({"id": "xyz"}) == "xyz"

    def test_prefers_explicit_sku_over_id(self) -> None:
        assert compute_sku({"sku": "SKU-1", "id": "xyz"}) == "SKU-1"

    def test_random_token_when_nothing_identifies_row(self) -> None:
        """Rows with no identity get distinct random tokens."""
        first = compute_sku({})
        second = compute_sku({})

        assert first
        assert second
        assert first != second


class TestNormalizeRowFields:
    def test_name_resolution_order(self) -> None:
        assert normalize_row({"name": "A", "cardName": "B", "title": "C"}).name == "A"
        assert normalize_row({"cardName": "B", "title": "C"}).name == "B"
        assert normalize_row({"title": "C"}).name == "C"
        assert normalize_row({}).name == "Unknown"

    def test_blank_name_counts_as_missing(self) -> None:
        assert normalize_row({"name": "  ", "title": "C"}).name == "C"

    def test_set_resolution_order(self) -> None:
        assert normalize_row({"Set": "Base", "series": "Other"}).set_name == "Base"
        assert normalize_row({"series": "Fossil"}).set_name == "Fossil"
        assert normalize_row({}).set_name == ""

    def test_number_resolution_keeps_numeric_type(self) -> None:
        assert normalize_row({"No": 4}).number == 4
        assert normalize_row({"num": "58a"}).number == "58a"
        assert normalize_row({}).number == ""

    def test_rarity_and_condition_columns(self) -> None:
        item = normalize_row({"Rarity": "Holo Rare", "Condition": "LP"})

        assert item.rarity == "Holo Rare"
        assert item.condition == "LP"

    def test_image_url_first_non_empty(self) -> None:
        """Blank image columns are skipped in favour of later spellings."""
        item = normalize_row({"imageUrl": "", "image": "", "Image URL": "https://img/x.png"})

        assert item.image_url == "https://img/x.png"

    def test_image_url_absent(self) -> None:
        assert normalize_row({"name": "A"}).image_url is None


class TestNormalizeRowPrices:
    def test_for_sale_market_and_cost_columns(self) -> None:
        item = normalize_row({"sale_price": "$4.50", "tcg_market": "3", "wholesale": "1.25"})

        assert item.for_sale_price == 4.5
        assert item.market_price == 3.0
        assert item.cost_price == 1.25

    def test_plain_price_is_a_for_sale_price(self) -> None:
        """The legacy price column feeds for-sale price and is kept as price."""
        item = normalize_row({"price": "12"})

        assert item.for_sale_price == 12.0
        assert item.price == 12.0

    def test_explicit_for_sale_wins_over_price(self) -> None:
        item = normalize_row({"forSalePrice": 3, "price": 5})

        assert item.for_sale_price == 3.0
        assert item.price == 5.0
        assert item.current_price == 3.0

    def test_unparseable_price_is_none(self) -> None:
        item = normalize_row({"price": "N/A", "market": "call"})

        assert item.price is None
        assert item.for_sale_price is None
        assert item.market_price is None

    def test_each_price_independently_optional(self) -> None:
        item = normalize_row({"cost": "2"})

        assert item.for_sale_price is None
        assert item.market_price is None
        assert item.cost_price == 2.0
        assert item.current_price == 2.0


class TestNormalizeRowQuantity:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("5", 5),
            (" 7 ", 7),
            ("1,200 units", 1200),
            (3, 3),
            ("abc", 0),
            ("", 0),
            (None, 0),
            ("-3", 0),
        ],
    )
    def test_quantity_coercion(self, raw: object, expected: int) -> None:
        assert normalize_row({"quantity": raw}).quantity == expected

    def test_missing_quantity_defaults_to_zero(self) -> None:
        assert normalize_row({"name": "A"}).quantity == 0


class TestNormalizeRowIdentity:
    def test_id_and_sku_default_to_computed_key(self) -> None:
        item = normalize_row({"set": "Base", "number": "4", "name": "Charizard"})

        assert item.id == "Base|4|Charizard"
        assert item.sku == "Base|4|Charizard"

    def test_explicit_id_kept_sku_computed(self) -> None:
        item = normalize_row({"id": "a1", "set": "Base", "number": "4", "name": "Charizard"})

        assert item.id == "a1"
        assert item.sku == "Base|4|Charizard"

    def test_explicit_identity_stringified(self) -> None:
        item = normalize_row({"id": 17, "sku": 99})

        assert item.id == "17"
        assert item.sku == "99"


class TestNormalizeRowPassthrough:
    def test_unknown_columns_preserved(self) -> None:
        item = normalize_row({"name": "A", "language": "JP", "grade": 9})

        assert item.extra == {"language": "JP", "grade": 9}
        assert item.to_dict()["language"] == "JP"

    def test_alias_columns_preserved_verbatim(self) -> None:
        """Alias columns are not canonical keys and stay on the record."""
        item = normalize_row({"cardName": "Pikachu"})

        assert item.extra == {"cardName": "Pikachu"}

    def test_never_raises_on_none(self) -> None:
        item = normalize_row(None)

        assert item.name == "Unknown"
        assert item.quantity == 0

    def test_serialized_item_normalizes_to_itself(self) -> None:
        item = normalize_row(
            {
                "id": "a",
                "name": "Foo",
                "set": "Base",
                "number": "4",
                "price": "5",
                "quantity": "2",
                "foo": "bar",
            }
        )

        assert normalize_row(item.to_dict()) == item


class TestMergeRecords:
    def test_incoming_spelling_drops_existing_aliases(self) -> None:
        merged = merge_records({"market": "5", "cost": "2", "name": "Foo"}, {"marketPrice": 7})

        assert merged == {"cost": "2", "name": "Foo", "marketPrice": 7}

    def test_blank_incoming_value_keeps_existing(self) -> None:
        merged = merge_records({"market": "5"}, {"marketPrice": ""})

        assert normalize_row(merged).market_price == 5.0


class TestCurrentPrice:
    def test_preference_order(self) -> None:
        item = InventoryItem(id="a", sku="a", price=2.0, market_price=3.0, cost_price=1.0)
        assert item.current_price == 2.0

        item.for_sale_price = 4.0
        assert item.current_price == 4.0

    def test_none_when_unpriced(self) -> None:
        assert InventoryItem(id="a", sku="a").current_price is None


class TestNumberHelpers:
    def test_coerce_number(self) -> None:
        assert coerce_number("$1,299.99") == pytest.approx(1299.99)
        assert coerce_number("1.2.3") is None
        assert coerce_number(float("inf")) is None
        assert coerce_number(True) is None

    def test_coerce_quantity_truncates(self) -> None:
        assert coerce_quantity("2.9") == 2

    def test_clamp_count(self) -> None:
        assert clamp_count(2.7) == 2
        assert clamp_count(0) == 1
        assert clamp_count(-4) == 1
        assert clamp_count("junk") == 1
        assert clamp_count(0, minimum=0) == 0


class TestInStock:
    def test_quantity_above_zero(self) -> None:
        assert InventoryItem(id="a", sku="a", quantity=1).in_stock
        assert not InventoryItem(id="a", sku="a").in_stock
