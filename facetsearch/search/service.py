"""Product search service.

Entry point of the engine: one call composes the filters, assembles the
result and returns it. Every call gets its own adapter, so concurrent
searches never see each other's half-built queries.
"""

import time
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from facetsearch.domain.exceptions import QueryExecutionError
from facetsearch.domain.filters import SelectedFilters
from facetsearch.domain.value_objects import (
    CategoryBounds,
    ProductSearchQuery,
    SearchContext,
    SearchResult,
)
from facetsearch.infrastructure.config import SearchConfig
from facetsearch.search.adapter import AbstractAdapter
from facetsearch.search.assembler import ResultAssembler
from facetsearch.search.category_tree import CategoryTree
from facetsearch.search.composer import FilterComposer, resolve_category_id

logger = structlog.get_logger()

AdapterFactory = Callable[[], AbstractAdapter]


class ProductSearchService:
    """Service for faceted product searches.

    Example usage:
        async with async_session_factory() as session:
            service = ProductSearchService(
                config=SearchConfig.from_settings(),
                context=context_from_settings(group_ids=(1,)),
                adapter_factory=lambda: SqlAlchemyAdapter(session),
                category_tree=SqlCategoryTree(session),
            )
            result = await service.search(
                ProductSearchQuery(page=1, sort_order=SortOrder("price", "asc")),
                {"quantity": [2], "price": [10, 50]},
            )
    """

    def __init__(
        self,
        config: SearchConfig,
        context: SearchContext,
        adapter_factory: AdapterFactory,
        category_tree: CategoryTree | None = None,
    ) -> None:
        """Initialize service.

        Args:
            config: Shop-wide search settings.
            context: Shop and customer groups of the caller.
            adapter_factory: Builds a fresh adapter for each search.
            category_tree: Source of category bounds for full-tree mode.
        """
        self.config = config
        self.context = context
        self.adapter_factory = adapter_factory
        self.category_tree = category_tree

    async def search(
        self,
        query: ProductSearchQuery,
        selected_filters: SelectedFilters | Mapping[str, Any] | None = None,
    ) -> SearchResult:
        """Search products matching the selected filters.

        Args:
            query: Validated search query.
            selected_filters: Parsed filters, or raw filter input.

        Returns:
            One page of products and the total number of matches.

        Raises:
            QueryExecutionError: If the data store fails.
        """
        if not isinstance(selected_filters, SelectedFilters):
            selected_filters = SelectedFilters.from_raw(selected_filters)

        log = logger.bind(
            shop_id=self.context.shop_id,
            id_category=resolve_category_id(query, self.config),
            page=query.page,
            facets=[key.value for key in selected_filters],
        )
        start_time = time.perf_counter()

        adapter = self.adapter_factory()

        try:
            parent_category = await self._get_parent_category(query)
            FilterComposer(self.config, self.context, adapter).compose(
                query,
                selected_filters,
                parent_category,
            )
            result = await ResultAssembler(adapter, self.config.price_formula).assemble(
                query,
                selected_filters,
            )
        except QueryExecutionError as e:
            log.error("Product search failed", backend=e.backend, error=e.message)
            raise

        log.info(
            "Product search completed",
            count=result.count,
            returned=len(result.products),
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return result

    async def _get_parent_category(self, query: ProductSearchQuery) -> CategoryBounds | None:
        """Bounds of the searched category in full-tree mode."""
        if not self.config.full_tree or self.category_tree is None:
            return None
        return await self.category_tree.get_bounds(resolve_category_id(query, self.config))
