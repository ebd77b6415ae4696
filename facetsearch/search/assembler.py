"""Result assembler.

Applies paging and sorting to an adapter that already holds the filtered
base population, runs it and normalizes the result.
"""

import structlog

from facetsearch.domain.filters import FacetKey, SelectedFilters
from facetsearch.domain.pricing import COMPUTED_PRICE, ComputedPrice, PriceFormula
from facetsearch.domain.value_objects import (
    DEFAULT_SORT_FIELD,
    ProductSearchQuery,
    SearchResult,
    SortDirection,
)
from facetsearch.search.adapter import AbstractAdapter

logger = structlog.get_logger()

SORTABLE_FIELDS = frozenset(
    {
        "position",
        "name",
        "price",
        "date_add",
        "date_upd",
        "id_product",
        "reference",
        "quantity",
        "weight",
        "sales",
    }
)


def resolve_sort(field: str | None, direction: str | None) -> tuple[str, str]:
    """Validate a requested sort, falling back to ``position`` / ``ASC``.

    Args:
        field: Requested sort field.
        direction: Requested direction, any case.

    Returns:
        Tuple of (field, direction).
    """
    normalized = (direction or "").upper()
    valid_directions = {item.value for item in SortDirection}
    direction = normalized if normalized in valid_directions else SortDirection.ASC.value
    field = field if field in SORTABLE_FIELDS else DEFAULT_SORT_FIELD
    return field, direction


class ResultAssembler:
    """Pages, sorts and executes a composed search."""

    def __init__(self, adapter: AbstractAdapter, price_formula: PriceFormula | None = None) -> None:
        """Initialize assembler.

        Args:
            adapter: Adapter holding the base population.
            price_formula: Rules of the computed price.
        """
        self.adapter = adapter
        self.price_formula = price_formula or PriceFormula()

    async def assemble(
        self,
        query: ProductSearchQuery,
        selected_filters: SelectedFilters,
    ) -> SearchResult:
        """Run the search and return one page of products with the total.

        Args:
            query: Validated search query.
            selected_filters: Facets already applied by the composer.

        Returns:
            SearchResult with the page rows and total count.

        Raises:
            QueryExecutionError: If the data store fails.
        """
        per_page = query.results_per_page
        page = max(query.page, 1)
        self.adapter.set_limit(per_page, (page - 1) * per_page)

        order_by, order_way = resolve_sort(query.sort_order.field, query.sort_order.direction)
        self.adapter.set_order_field(COMPUTED_PRICE if order_by == "price" else order_by)
        self.adapter.set_order_direction(order_way)

        self.adapter.add_group_by("id_product")
        if FacetKey.PRICE in selected_filters or order_by == "price":
            self.adapter.add_select_field("id_product")
            self.adapter.add_select_field(ComputedPrice(formula=self.price_formula))

        products = await self.adapter.execute()
        count = await self.adapter.count()

        if not count:
            products = []

        logger.debug(
            "Search results assembled",
            order_by=order_by,
            order_way=order_way,
            page=page,
            per_page=per_page,
            count=count,
        )
        return SearchResult(products=list(products), count=count or 0)
