"""Search request and response schemas.

Pydantic models validating search input read from JSON (the CLI, or any
caller that receives requests over the wire) and serializing results.
"""

from typing import Any

from pydantic import BaseModel, Field

from facetsearch.domain.filters import SelectedFilters
from facetsearch.domain.value_objects import ProductSearchQuery, SearchResult, SortOrder


class SearchRequest(BaseModel):
    """Faceted product search request."""

    page: int = Field(default=1, ge=1, description="Page number (1-based)")
    results_per_page: int = Field(default=12, ge=1, description="Products per page")
    order: str | None = Field(
        default=None,
        description="Sort as field.direction, e.g. price.desc",
    )
    id_category: int | None = Field(default=None, description="Category searched in")
    filters: dict[str, Any] = Field(
        default_factory=dict,
        description="Selected facet values by facet key",
    )
    groups: list[int] = Field(
        default_factory=list,
        description="Customer groups of the visitor",
    )

    def to_query(self) -> ProductSearchQuery:
        """Convert to the engine's query value object."""
        return ProductSearchQuery(
            page=self.page,
            results_per_page=self.results_per_page,
            sort_order=SortOrder.from_string(self.order),
            id_category=self.id_category,
        )

    def to_selected_filters(self) -> SelectedFilters:
        """Parse the raw facet values."""
        return SelectedFilters.from_raw(self.filters)


class SearchResponse(BaseModel):
    """One page of products and the total match count."""

    products: list[dict[str, Any]] = Field(default_factory=list)
    count: int = Field(default=0, ge=0, description="Total number of matching products")

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResponse":
        """Build a response from a search result."""
        return cls(products=result.products, count=result.count)
