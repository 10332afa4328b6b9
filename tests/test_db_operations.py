"""Tests for server-side inventory database operations."""

from sqlalchemy.ext.asyncio import AsyncSession

from rivals.db.operations import (
    bulk_upsert_inventory,
    complete_order,
    export_inventory_csv,
    get_inventory,
    replace_inventory,
)

MEW = {"name": "Mew", "set": "Promo", "number": "8", "quantity": 2, "rarity": "Promo"}


class TestReplaceInventory:
    async def test_stores_normalized_records(self, session: AsyncSession) -> None:
        count = await replace_inventory(session, [MEW, {"cardName": "Pikachu", "qty": "3"}])

        records = await get_inventory(session)
        assert count == 2
        assert [record["sku"] for record in records] == ["Promo|8|Mew", "Pikachu"]
        assert records[1]["name"] == "Pikachu"
        assert records[1]["quantity"] == 3

    async def test_discards_previous_inventory(self, session: AsyncSession) -> None:
        await replace_inventory(session, [MEW])
        await session.commit()

        await replace_inventory(session, [{"sku": "S2", "name": "Eevee"}])

        records = await get_inventory(session)
        assert [record["sku"] for record in records] == ["S2"]

    async def test_repeated_sku_in_batch_keeps_last(self, session: AsyncSession) -> None:
        count = await replace_inventory(session, [MEW, {**MEW, "quantity": 5}])

        records = await get_inventory(session)
        assert count == 1
        assert records[0]["quantity"] == 5


class TestBulkUpsertInventory:
    async def test_merges_existing_by_sku(self, session: AsyncSession) -> None:
        await replace_inventory(session, [{**MEW, "sku": "S1"}])

        counts = await bulk_upsert_inventory(session, [{"sku": "S1", "quantity": 7}])

        [record] = await get_inventory(session)
        assert record["quantity"] == 7
        assert record["name"] == "Mew"
        assert record["rarity"] == "Promo"
        assert (counts.added, counts.updated, counts.total) == (0, 1, 1)

    async def test_adds_new_skus(self, session: AsyncSession) -> None:
        await replace_inventory(session, [{**MEW, "sku": "S1"}])

        counts = await bulk_upsert_inventory(
            session, [{"sku": "S2", "name": "Eevee"}, {"name": "Snorlax", "set": "Jungle"}]
        )

        records = await get_inventory(session)
        assert [record["sku"] for record in records] == ["S1", "S2", "Jungle|Snorlax"]
        assert (counts.added, counts.updated, counts.total) == (2, 0, 3)

    async def test_repeat_in_batch_updates_new_row(self, session: AsyncSession) -> None:
        counts = await bulk_upsert_inventory(
            session, [{"sku": "S1", "name": "Mew", "quantity": 1}, {"sku": "S1", "quantity": 4}]
        )

        [record] = await get_inventory(session)
        assert record["quantity"] == 4
        assert record["name"] == "Mew"
        assert (counts.added, counts.updated) == (1, 1)

    async def test_canonical_price_replaces_alias_column(self, session: AsyncSession) -> None:
        """A stored ``market`` column does not shadow an incoming marketPrice."""
        await replace_inventory(session, [{**MEW, "sku": "S1", "market": "5"}])

        await bulk_upsert_inventory(session, [{"sku": "S1", "marketPrice": 9}])

        [record] = await get_inventory(session)
        assert record["marketPrice"] == 9
        assert record["name"] == "Mew"


class TestCompleteOrder:
    async def test_decrements_by_sku(self, session: AsyncSession) -> None:
        await replace_inventory(session, [{**MEW, "sku": "S1", "quantity": 5}])

        result = await complete_order(session, [{"sku": "S1", "quantity": 2}], "ORD-1")

        [record] = await get_inventory(session)
        assert record["quantity"] == 3
        assert result.lines == [{"sku": "S1", "before": 5, "purchased": 2, "after": 3}]
        assert not result.duplicate

    async def test_floors_at_zero(self, session: AsyncSession) -> None:
        await replace_inventory(session, [{**MEW, "sku": "S1"}])

        result = await complete_order(session, [{"sku": "S1", "quantity": 99}])

        assert result.lines[0]["after"] == 0

    async def test_unknown_sku_skipped(self, session: AsyncSession) -> None:
        result = await complete_order(session, [{"sku": "nope", "quantity": 1}])

        assert result.lines == []

    async def test_repeated_order_id_is_noop(self, session: AsyncSession) -> None:
        await replace_inventory(session, [{**MEW, "sku": "S1", "quantity": 5}])
        await complete_order(session, [{"sku": "S1", "quantity": 2}], "ORD-1")
        await session.commit()

        result = await complete_order(session, [{"sku": "S1", "quantity": 2}], "ORD-1")

        [record] = await get_inventory(session)
        assert result.duplicate
        assert record["quantity"] == 3


class TestExportInventoryCsv:
    async def test_empty_inventory_is_header_only(self, session: AsyncSession) -> None:
        text = await export_inventory_csv(session)

        assert text == "id,sku,name,set,number,rarity,condition,price,quantity,imageUrl"

    async def test_every_cell_quoted(self, session: AsyncSession) -> None:
        await replace_inventory(session, [{"id": "1", "sku": "S1", "name": "Mew", "quantity": 2}])

        lines = (await export_inventory_csv(session)).splitlines()

        assert lines[0].startswith('"id","sku","name"')
        assert lines[1] == '"1","S1","Mew","","","","","","2",""'
