"""Filter composer.

Translates the selected facet filters of one request into query adapter
calls. The resulting filters are materialized as the base population
the result assembler pages through.
"""

from collections.abc import Iterable, Sequence
from typing import Any

import structlog

from facetsearch.domain.filters import (
    ConditionSelection,
    FacetKey,
    GroupedIdFacet,
    IdListFacet,
    RangeFacet,
    SelectedFilters,
    StockSelection,
    StockState,
)
from facetsearch.domain.value_objects import (
    CategoryBounds,
    Conjunction,
    Predicate,
    ProductSearchQuery,
    SearchContext,
)
from facetsearch.infrastructure.config import SearchConfig
from facetsearch.search.adapter import AbstractAdapter

logger = structlog.get_logger()

STOCK_MANAGEMENT_FILTER = "with_stock_management"
FEATURE_FILTER_PREFIX = "with_features_"
ATTRIBUTE_FILTER_PREFIX = "with_attributes_"

VISIBLE_IN_CATALOG = ("both", "catalog")


def resolve_category_id(query: ProductSearchQuery, config: SearchConfig) -> int:
    """Category the search runs in: the query's, else the home category."""
    return query.id_category or config.home_category_id


# ============================================================================
# Stock Availability
# ============================================================================


def stock_clauses(
    states: Iterable[StockState],
    order_out_of_stock: bool,
) -> list[Conjunction] | None:
    """Build the predicate group for a stock availability selection.

    Args:
        states: Selected availability states.
        order_out_of_stock: Whether products can be ordered with no stock.

    Returns:
        Disjunction of conjunctions, or None when the selection matches
        every product.
    """
    selected = frozenset(states)
    if not selected or len(selected) == len(StockState):
        return None
    # Available or not available covers every product
    if selected == {StockState.NOT_AVAILABLE, StockState.AVAILABLE}:
        return None

    not_available: Conjunction = (
        Predicate.of("quantity", [0], "<="),
        Predicate.of("out_of_stock", [0] if order_out_of_stock else [0, 2]),
    )
    available: Conjunction = (
        Predicate.of("out_of_stock", [1, 2] if order_out_of_stock else [1]),
        Predicate.of("quantity", [0], ">"),
    )
    in_stock: Conjunction = (Predicate.of("quantity", [0], ">"),)

    clauses: list[Conjunction] = []
    if StockState.NOT_AVAILABLE in selected:
        clauses.append(not_available)
    if StockState.AVAILABLE in selected:
        clauses.append(available)
    if StockState.IN_STOCK in selected:
        clauses.append(in_stock)
    return clauses


# ============================================================================
# Composer
# ============================================================================


class FilterComposer:
    """Drives a query adapter from the selected filters of one search.

    Example usage:
        composer = FilterComposer(config, context, adapter)
        composer.compose(query, SelectedFilters.from_raw({"quantity": [2]}), parent)
        # adapter.initial_population now holds the filtered products
    """

    def __init__(
        self,
        config: SearchConfig,
        context: SearchContext,
        adapter: AbstractAdapter,
    ) -> None:
        """Initialize composer.

        Args:
            config: Shop-wide search settings.
            context: Shop and customer groups of the request.
            adapter: Adapter owned by this search.
        """
        self.config = config
        self.context = context
        self.adapter = adapter
        self.query: ProductSearchQuery | None = None

    def compose(
        self,
        query: ProductSearchQuery,
        selected_filters: SelectedFilters,
        parent_category: CategoryBounds | None = None,
    ) -> AbstractAdapter:
        """Apply base filters and facets, then fix the base population.

        Args:
            query: Search query.
            selected_filters: Facet selections.
            parent_category: Bounds of the current category; used in full
                tree mode when no category facet is selected.

        Returns:
            The adapter, holding the base population.
        """
        self.query = query
        self._init_search(query)

        category_filter_applied = self._add_search_filters(selected_filters)

        # No category facet: restrict to the current category and its children
        if not category_filter_applied and parent_category is not None:
            self.adapter.add_filter("nleft", [parent_category.nleft], ">=")
            self.adapter.add_filter("nright", [parent_category.nright], "<=")

        self.adapter.add_filter("id_shop", [self.context.shop_id])
        self.adapter.add_group_by("id_product")
        self.adapter.use_filters_as_initial_population()

        logger.debug(
            "Search filters composed",
            id_category=resolve_category_id(query, self.config),
            facets=[key.value for key in selected_filters],
            category_filter_applied=category_filter_applied,
        )
        return self.adapter

    def add_filter(self, name: str, values: Sequence[Any]) -> None:
        """Add an equality filter from raw values.

        Nested lists are flattened one level with their items cast to
        int; scalars pass unchanged. Nothing is added for no values.

        Args:
            name: Data store field.
            values: Raw values.
        """
        flat: list[Any] = []
        for value in values:
            if isinstance(value, (list, tuple, set, frozenset)):
                flat.extend(int(sub_value) for sub_value in value)
            else:
                flat.append(value)

        if flat:
            self.adapter.add_filter(name, flat)

    def _init_search(self, query: ProductSearchQuery) -> None:
        id_category = resolve_category_id(query, self.config)

        if not self.config.full_tree:
            self.add_filter("id_category", [id_category])

        if self.config.filter_by_default_category:
            self.add_filter("id_category_default", [id_category])

        self.add_filter("visibility", VISIBLE_IN_CATALOG)

        groups = self.context.groups
        if groups.active:
            self.add_filter("id_group", groups.effective_group_ids)

    def _add_search_filters(self, selected_filters: SelectedFilters) -> bool:
        """Translate each facet. Returns whether a category facet was applied."""
        category_filter_applied = False

        for key, facet in selected_filters.items():
            if facet.is_empty:
                continue

            if key is FacetKey.FEATURE and isinstance(facet, GroupedIdFacet):
                self._add_grouped_filters(FEATURE_FILTER_PREFIX, "id_feature_value", facet)

            elif key is FacetKey.ATTRIBUTE_GROUP and isinstance(facet, GroupedIdFacet):
                self._add_grouped_filters(ATTRIBUTE_FILTER_PREFIX, "id_attribute", facet)

            elif key is FacetKey.CATEGORY and isinstance(facet, IdListFacet):
                self.add_filter("id_category", facet.values)
                self.adapter.reset_filter("id_category_default")
                category_filter_applied = True

            elif key is FacetKey.QUANTITY and isinstance(facet, StockSelection):
                self._add_stock_filter(facet)

            elif key is FacetKey.MANUFACTURER and isinstance(facet, IdListFacet):
                self.add_filter("id_manufacturer", facet.values)

            elif key is FacetKey.CONDITION and isinstance(facet, ConditionSelection):
                # TODO: derive "all selected" from the conditions present in
                # the catalog so a new condition does not silently disable this.
                if not facet.is_complete:
                    self.add_filter("condition", sorted(facet.values))

            elif key is FacetKey.WEIGHT and isinstance(facet, RangeFacet):
                if facet.minimum is not None:
                    self.adapter.add_filter("weight", [facet.minimum], ">=")
                if facet.maximum is not None:
                    self.adapter.add_filter("weight", [facet.maximum], "<=")

            elif key is FacetKey.PRICE and isinstance(facet, RangeFacet):
                self._add_price_filter(facet.minimum, facet.maximum)

        return category_filter_applied

    def _add_grouped_filters(self, prefix: str, field: str, facet: GroupedIdFacet) -> None:
        for group_id, value_ids in facet.groups:
            self.adapter.add_operations_filter(
                f"{prefix}{group_id}",
                [[Predicate.of(field, value_ids)]],
            )

    def _add_stock_filter(self, facet: StockSelection) -> None:
        # Without stock management every product counts as available
        if not self.config.stock_management:
            return

        clauses = stock_clauses(facet.states, self.config.order_out_of_stock)
        if clauses is None:
            return

        self.adapter.add_operations_filter(STOCK_MANAGEMENT_FILTER, clauses)

    def _add_price_filter(self, min_price: float | None, max_price: float | None) -> None:
        """Match products whose price range overlaps the requested one.

        ``price_min`` and ``price_max`` are the lowest and highest price a
        product sells at, so a discounted price inside the range matches
        even when the base price is outside of it.
        """
        if min_price is None and max_price is None:
            return
        if max_price is not None:
            self.adapter.add_filter("price_min", [max_price], "<=")
        self.adapter.add_filter("price_max", [min_price or 0.0], ">=")
