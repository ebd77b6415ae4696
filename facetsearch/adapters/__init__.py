"""Query adapter backends."""

from facetsearch.adapters.memory import MemoryAdapter
from facetsearch.adapters.sql import SqlAlchemyAdapter, computed_price_expression

__all__ = [
    "MemoryAdapter",
    "SqlAlchemyAdapter",
    "computed_price_expression",
]
