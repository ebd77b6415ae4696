"""Faceted search engine.

Composes selected facet filters into query adapter calls and assembles
paged, sorted results.
"""

from facetsearch.search.adapter import AbstractAdapter, FilterState
from facetsearch.search.assembler import SORTABLE_FIELDS, ResultAssembler, resolve_sort
from facetsearch.search.category_tree import CategoryTree, InMemoryCategoryTree
from facetsearch.search.composer import (
    ATTRIBUTE_FILTER_PREFIX,
    FEATURE_FILTER_PREFIX,
    STOCK_MANAGEMENT_FILTER,
    FilterComposer,
    resolve_category_id,
    stock_clauses,
)
from facetsearch.search.service import AdapterFactory, ProductSearchService

__all__ = [
    # Adapter contract
    "AbstractAdapter",
    "FilterState",
    # Composer
    "ATTRIBUTE_FILTER_PREFIX",
    "FEATURE_FILTER_PREFIX",
    "STOCK_MANAGEMENT_FILTER",
    "FilterComposer",
    "resolve_category_id",
    "stock_clauses",
    # Assembler
    "SORTABLE_FIELDS",
    "ResultAssembler",
    "resolve_sort",
    # Category tree
    "CategoryTree",
    "InMemoryCategoryTree",
    # Service
    "AdapterFactory",
    "ProductSearchService",
]
