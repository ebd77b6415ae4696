"""Domain layer - value objects, facet filters, pricing rules, exceptions.

This module exports the building blocks shared by the search engine
and its adapters:

- **Value Objects**: Predicates, operation filter groups, search query, context
- **Filters**: Tagged facet variants and the SelectedFilters mapping
- **Pricing**: Discounts and the computed price formula
- **Exceptions**: Caller-contract and execution errors

Example usage:
    from facetsearch.domain import ProductSearchQuery, SelectedFilters, SortOrder

    query = ProductSearchQuery(page=1, results_per_page=20, sort_order=SortOrder("price", "desc"))
    filters = SelectedFilters.from_raw({"quantity": [1], "price": [10, 50]})
"""

from facetsearch.domain.base import ValueObject
from facetsearch.domain.exceptions import (
    InvalidSearchQueryError,
    QueryExecutionError,
    SearchError,
)
from facetsearch.domain.filters import (
    CONDITIONS,
    ConditionSelection,
    Facet,
    FacetKey,
    GroupedIdFacet,
    IdListFacet,
    RangeFacet,
    SelectedFilters,
    StockSelection,
    StockState,
)
from facetsearch.domain.pricing import (
    COMPUTED_PRICE,
    ComputedPrice,
    Discount,
    PriceFormula,
    ReductionType,
    price_bounds,
)
from facetsearch.domain.value_objects import (
    DEFAULT_SORT_FIELD,
    CategoryBounds,
    Conjunction,
    GroupVisibility,
    OperationFilterGroup,
    Operator,
    Predicate,
    ProductRow,
    ProductSearchQuery,
    SearchContext,
    SearchResult,
    SortDirection,
    SortOrder,
)

__all__ = [
    # Base
    "ValueObject",
    # Exceptions
    "InvalidSearchQueryError",
    "QueryExecutionError",
    "SearchError",
    # Filters
    "CONDITIONS",
    "ConditionSelection",
    "Facet",
    "FacetKey",
    "GroupedIdFacet",
    "IdListFacet",
    "RangeFacet",
    "SelectedFilters",
    "StockSelection",
    "StockState",
    # Pricing
    "COMPUTED_PRICE",
    "ComputedPrice",
    "Discount",
    "PriceFormula",
    "ReductionType",
    "price_bounds",
    # Value Objects
    "DEFAULT_SORT_FIELD",
    "CategoryBounds",
    "Conjunction",
    "GroupVisibility",
    "OperationFilterGroup",
    "Operator",
    "Predicate",
    "ProductRow",
    "ProductSearchQuery",
    "SearchContext",
    "SearchResult",
    "SortDirection",
    "SortOrder",
]
