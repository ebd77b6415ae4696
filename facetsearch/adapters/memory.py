"""In-memory query adapter.

Evaluates the adapter state over plain Python rows. Used by tests and
small fixtures; it follows the same row semantics as the SQL adapter:

- a product matches the plain filters when one of its index rows
  satisfies all of them,
- each operation filter group needs one index row of the product that
  satisfies the group,
- the product must belong to the base population, if one is set.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import structlog

from facetsearch.domain.exceptions import QueryExecutionError
from facetsearch.domain.pricing import COMPUTED_PRICE, ComputedPrice, Discount
from facetsearch.domain.value_objects import ProductRow, SortDirection
from facetsearch.search.adapter import AbstractAdapter, FilterState

logger = structlog.get_logger()


class MemoryAdapter(AbstractAdapter):
    """Adapter over in-memory catalog index rows.

    Example usage:
        adapter = MemoryAdapter(
            index_rows=[{"id_product": 1, "id_category": 2, ...}],
            products={1: {"id_product": 1, "name": "Mug", "price": 12.0, ...}},
            discounts={1: Discount(ReductionType.PERCENTAGE, reduction=0.1)},
        )
    """

    backend = "memory"

    def __init__(
        self,
        index_rows: Iterable[Mapping[str, Any]],
        products: Mapping[int, Mapping[str, Any]],
        discounts: Mapping[int, Discount] | None = None,
    ) -> None:
        """Initialize adapter.

        Args:
            index_rows: Denormalized catalog index, one row per product
                and category/group/shop/feature/attribute combination.
            products: Product rows by product ID.
            discounts: Active discount by product ID.
        """
        super().__init__()
        self.index_rows: Sequence[Mapping[str, Any]] = list(index_rows)
        self.products = products
        self.discounts = discounts or {}

    async def execute(self) -> list[ProductRow]:
        try:
            ids = self._matching_ids(self.state)
            rows = [self._project(self._product(id_product)) for id_product in ids]
            rows = self._sort(rows)
        except KeyError as e:
            logger.error("Memory query failed", missing_field=str(e))
            raise QueryExecutionError(
                f"Unknown field or product: {e}",
                backend=self.backend,
            ) from e

        end = None if self.limit is None else self.offset + self.limit
        return rows[self.offset:end]

    async def count(self) -> int:
        try:
            return len(self._matching_ids(self.state))
        except KeyError as e:
            raise QueryExecutionError(
                f"Unknown field: {e}",
                backend=self.backend,
            ) from e

    def _matching_ids(self, state: FilterState) -> set[int]:
        predicates = state.predicates
        ids = {
            row["id_product"]
            for row in self.index_rows
            if all(predicate.matches(row) for predicate in predicates)
        }

        for group in state.active_groups:
            ids &= {row["id_product"] for row in self.index_rows if group.matches(row)}

        if state.initial_population is not None:
            ids &= self._matching_ids(state.initial_population)

        return ids

    def _product(self, id_product: int) -> Mapping[str, Any]:
        return self.products[id_product]

    def _project(self, product: Mapping[str, Any]) -> ProductRow:
        row = dict(product)
        for select_field in self.select_fields:
            if isinstance(select_field, ComputedPrice):
                row[select_field.alias] = self._computed_price(product, select_field)
        return row

    def _computed_price(self, product: Mapping[str, Any], expression: ComputedPrice) -> float:
        return expression.formula.compute(
            product["price"],
            self.discounts.get(product["id_product"]),
            product.get("tax_rate") or 0.0,
        )

    def _sort(self, rows: list[ProductRow]) -> list[ProductRow]:
        field = self.order_field
        if field == COMPUTED_PRICE and any(field not in row for row in rows):
            expression = self.computed_price or ComputedPrice()
            for row in rows:
                row.setdefault(field, self._computed_price(row, expression))

        # Two stable sorts: ties keep ascending product IDs in both directions,
        # missing values sort last ascending and first descending
        rows.sort(key=lambda row: row["id_product"])
        rows.sort(
            key=lambda row: (row[field] is None, row[field]),
            reverse=self.order_direction == SortDirection.DESC.value,
        )
        return rows
