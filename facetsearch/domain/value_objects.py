"""Value Objects for the domain layer.

Predicates, operation filter groups and the search query are immutable
objects compared by value. They are built once per search request and
discarded after the response is assembled.
"""

import operator as _operator
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Self

from facetsearch.domain.base import ValueObject
from facetsearch.domain.exceptions import InvalidSearchQueryError

ProductRow = dict[str, Any]


# ============================================================================
# Predicates
# ============================================================================


class Operator(str, Enum):
    """Comparison operators supported by the query adapters."""

    EQ = "="
    LTE = "<="
    GTE = ">="
    LT = "<"
    GT = ">"

    def compare(self, left: Any, right: Any) -> bool:
        """Apply the operator to a stored value and a filter value.

        Args:
            left: Value read from the data store row.
            right: Value supplied by the predicate.

        Returns:
            True if the comparison holds. Missing values never match.
        """
        if left is None:
            return False
        return _COMPARATORS[self](left, right)


_COMPARATORS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQ: _operator.eq,
    Operator.LTE: _operator.le,
    Operator.GTE: _operator.ge,
    Operator.LT: _operator.lt,
    Operator.GT: _operator.gt,
}


@dataclass(frozen=True)
class Predicate(ValueObject):
    """A single comparison on one field.

    With the ``=`` operator the values form a set and the predicate is a
    membership test. With a range operator the comparison must hold for
    at least one of the values; facets only ever pass one bound.

    Attributes:
        field: Name of the data store field.
        values: Values to compare against.
        operator: Comparison operator.
    """

    field: str
    values: tuple[Any, ...]
    operator: Operator = Operator.EQ

    @classmethod
    def of(
        cls,
        field: str,
        values: Iterable[Any],
        operator: Operator | str = Operator.EQ,
    ) -> Self:
        """Build a predicate from loosely typed arguments.

        Args:
            field: Name of the data store field.
            values: Any iterable of values.
            operator: Operator or its string symbol.

        Returns:
            Predicate instance.
        """
        return cls(field=field, values=tuple(values), operator=Operator(operator))

    def matches(self, row: Mapping[str, Any]) -> bool:
        """Evaluate the predicate against a data store row.

        Args:
            row: Mapping of field names to values.

        Returns:
            True if the row satisfies the predicate.

        Raises:
            KeyError: If the row has no such field.
        """
        value = row[self.field]
        if self.operator is Operator.EQ:
            return value in self.values
        return any(self.operator.compare(value, bound) for bound in self.values)

    def __str__(self) -> str:
        """Return a readable rendering, e.g. ``quantity > 0``."""
        if self.operator is Operator.EQ:
            return f"{self.field} IN {list(self.values)}"
        return " OR ".join(f"{self.field} {self.operator.value} {v}" for v in self.values)


Conjunction = tuple[Predicate, ...]


@dataclass(frozen=True)
class OperationFilterGroup(ValueObject):
    """Named OR-of-AND predicate bundle.

    The group holds when any of its clauses holds, and a clause holds
    when all of its predicates hold. Distinct groups are combined with
    AND by the adapters. A group with no clauses imposes no constraint.

    Attributes:
        name: Unique group name, e.g. ``with_features_3``.
        clauses: Disjunction of predicate conjunctions.
    """

    name: str
    clauses: tuple[Conjunction, ...] = ()

    @classmethod
    def of(cls, name: str, clauses: Iterable[Iterable[Predicate]]) -> Self:
        """Build a group from nested iterables of predicates.

        Args:
            name: Group name.
            clauses: Iterable of conjunctions.

        Returns:
            OperationFilterGroup instance.
        """
        return cls(name=name, clauses=tuple(tuple(clause) for clause in clauses))

    @property
    def is_empty(self) -> bool:
        """Check whether the group has no clauses."""
        return not self.clauses

    def matches(self, row: Mapping[str, Any]) -> bool:
        """Evaluate the group against a single data store row."""
        if self.is_empty:
            return True
        return any(
            all(predicate.matches(row) for predicate in clause)
            for clause in self.clauses
        )


# ============================================================================
# Search Query
# ============================================================================


class SortDirection(str, Enum):
    """Legal sort directions."""

    ASC = "ASC"
    DESC = "DESC"


DEFAULT_SORT_FIELD = "position"


@dataclass(frozen=True)
class SortOrder(ValueObject):
    """Requested sort field and direction.

    Values are kept as received. Validation against the allow-lists is
    the result assembler's job, which falls back silently.

    Attributes:
        field: Requested sort field.
        direction: Requested direction, usually ``asc`` or ``desc``.
    """

    field: str = DEFAULT_SORT_FIELD
    direction: str = SortDirection.ASC.value

    @classmethod
    def from_string(cls, value: str | None) -> Self:
        """Parse an order string such as ``price.desc``.

        An optional entity prefix (``product.price.desc``) is ignored.
        A missing direction defaults to ascending.

        Args:
            value: Order string.

        Returns:
            SortOrder instance.
        """
        if not value:
            return cls()
        parts = value.split(".")
        if len(parts) == 1:
            return cls(field=parts[0])
        return cls(field=parts[-2], direction=parts[-1])


@dataclass(frozen=True)
class ProductSearchQuery(ValueObject):
    """Immutable input of a single product search.

    Attributes:
        page: Page number, 1-indexed.
        results_per_page: Page size.
        sort_order: Requested sort.
        id_category: Optional category context.
    """

    page: int = 1
    results_per_page: int = 12
    sort_order: SortOrder = field(default_factory=SortOrder)
    id_category: int | None = None

    def __post_init__(self) -> None:
        """Validate pagination."""
        if not isinstance(self.page, int) or self.page < 1:
            raise InvalidSearchQueryError("page", self.page, "must be an integer >= 1")
        if not isinstance(self.results_per_page, int) or self.results_per_page <= 0:
            raise InvalidSearchQueryError(
                "results_per_page", self.results_per_page, "must be an integer > 0"
            )


# ============================================================================
# Search Context
# ============================================================================


@dataclass(frozen=True)
class CategoryBounds(ValueObject):
    """Nested-set bounds of a category.

    A category is inside the subtree of another when its ``nleft`` and
    ``nright`` both fall within the other's bounds.
    """

    id_category: int
    nleft: int
    nright: int

    def contains(self, other: "CategoryBounds") -> bool:
        """Check whether ``other`` lies in this category's subtree."""
        return self.nleft <= other.nleft and other.nright <= self.nright


@dataclass(frozen=True)
class GroupVisibility(ValueObject):
    """Customer group restriction for the current visitor.

    Attributes:
        active: Whether group-based visibility is enabled.
        group_ids: Groups of the current customer, possibly empty.
        current_group_id: Fallback group when the customer has none.
    """

    active: bool = False
    group_ids: tuple[int, ...] = ()
    current_group_id: int = 1

    @property
    def effective_group_ids(self) -> tuple[int, ...]:
        """Groups used for filtering, with the fallback applied."""
        return self.group_ids or (self.current_group_id,)


@dataclass(frozen=True)
class SearchContext(ValueObject):
    """Request context resolved by the caller.

    Attributes:
        shop_id: Shop the search runs in.
        groups: Customer group visibility.
    """

    shop_id: int = 1
    groups: GroupVisibility = field(default_factory=GroupVisibility)


# ============================================================================
# Search Result
# ============================================================================


@dataclass
class SearchResult:
    """Paged products and total number of matches.

    Attributes:
        products: Rows of the requested page.
        count: Total number of matching products.
    """

    products: list[ProductRow]
    count: int

    @property
    def product_ids(self) -> list[int]:
        """IDs of the returned products, in order."""
        return [row["id_product"] for row in self.products]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Dictionary with ``products`` and ``count`` keys.
        """
        return {"products": self.products, "count": self.count}
