"""Base classes for domain layer.

Provides the value object foundation shared by search predicates,
queries and pricing rules.
"""

from abc import ABC
from dataclasses import dataclass


# ============================================================================
# Value Object Base
# ============================================================================


@dataclass(frozen=True)
class ValueObject(ABC):
    """Base class for value objects.

    Value objects are immutable and compared by their attributes,
    not by identity. They have no lifecycle and are interchangeable
    when their values are equal.

    Example:
        @dataclass(frozen=True)
        class CategoryBounds(ValueObject):
            id_category: int
            nleft: int
            nright: int
    """

    pass
