"""Tests for the in-memory adapter."""

import pytest

from facetsearch.adapters.memory import MemoryAdapter
from facetsearch.domain.exceptions import QueryExecutionError
from facetsearch.domain.pricing import ComputedPrice, Discount, ReductionType
from facetsearch.domain.value_objects import Predicate


@pytest.fixture
def adapter() -> MemoryAdapter:
    """Three products; product 2 has two index rows."""
    return MemoryAdapter(
        index_rows=[
            {"id_product": 1, "id_shop": 1, "color": "red", "size": "S"},
            {"id_product": 2, "id_shop": 1, "color": "red", "size": "M"},
            {"id_product": 2, "id_shop": 1, "color": "blue", "size": "S"},
            {"id_product": 3, "id_shop": 2, "color": "blue", "size": "L"},
        ],
        products={
            1: {"id_product": 1, "name": "b", "price": 10.0, "position": 2},
            2: {"id_product": 2, "name": "a", "price": 30.0, "position": 1},
            3: {"id_product": 3, "name": "c", "price": 20.0, "position": 1},
        },
        discounts={2: Discount(ReductionType.PERCENTAGE, reduction=0.5)},
    )


class TestMatching:
    """Tests for row semantics."""

    @pytest.mark.asyncio
    async def test_plain_filters_on_one_row(self, adapter: MemoryAdapter) -> None:
        """All plain filters must hold on the same index row."""
        adapter.add_filter("color", ["blue"])
        adapter.add_filter("size", ["M"])
        assert await adapter.count() == 0

    @pytest.mark.asyncio
    async def test_groups_on_any_row(self, adapter: MemoryAdapter) -> None:
        """Each group may be satisfied by a different row of the product."""
        adapter.add_operations_filter("colors", [[Predicate.of("color", ["blue"])]])
        adapter.add_operations_filter("sizes", [[Predicate.of("size", ["M"])]])
        rows = await adapter.execute()
        assert [row["id_product"] for row in rows] == [2]

    @pytest.mark.asyncio
    async def test_initial_population(self, adapter: MemoryAdapter) -> None:
        """Later filters only narrow the base population."""
        adapter.add_filter("id_shop", [1])
        adapter.use_filters_as_initial_population()
        adapter.add_filter("color", ["blue"])
        assert await adapter.count() == 1

    @pytest.mark.asyncio
    async def test_no_filters_matches_all(self, adapter: MemoryAdapter) -> None:
        """An empty state matches every indexed product."""
        assert await adapter.count() == 3


class TestExecution:
    """Tests for sorting, paging and projection."""

    @pytest.mark.asyncio
    async def test_ties_broken_by_id(self, adapter: MemoryAdapter) -> None:
        """Equal sort keys keep ascending IDs in both directions."""
        adapter.set_order_field("position")
        rows = await adapter.execute()
        assert [row["id_product"] for row in rows] == [2, 3, 1]

        adapter.set_order_direction("DESC")
        rows = await adapter.execute()
        assert [row["id_product"] for row in rows] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_paging(self, adapter: MemoryAdapter) -> None:
        """Limit and offset slice the sorted rows."""
        adapter.set_order_field("name")
        adapter.set_limit(1, 1)
        rows = await adapter.execute()
        assert [row["id_product"] for row in rows] == [1]
        assert await adapter.count() == 3

    @pytest.mark.asyncio
    async def test_computed_price(self, adapter: MemoryAdapter) -> None:
        """The computed price applies the discount."""
        adapter.add_select_field(ComputedPrice())
        adapter.set_order_field("computed_price")
        rows = await adapter.execute()
        assert [(row["id_product"], row["computed_price"]) for row in rows] == [
            (1, 10.0),
            (2, 15.0),
            (3, 20.0),
        ]

    @pytest.mark.asyncio
    async def test_unknown_field(self, adapter: MemoryAdapter) -> None:
        """Filtering on a missing field fails loudly."""
        adapter.add_filter("weight", [1.0], "<=")
        with pytest.raises(QueryExecutionError) as exc_info:
            await adapter.execute()
        assert exc_info.value.backend == "memory"
        with pytest.raises(QueryExecutionError):
            await adapter.count()

    @pytest.mark.asyncio
    async def test_unknown_order_field(self, adapter: MemoryAdapter) -> None:
        """Ordering on a missing column fails loudly."""
        adapter.set_order_field("sales")
        with pytest.raises(QueryExecutionError):
            await adapter.execute()
