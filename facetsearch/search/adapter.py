"""Query adapter contract.

An adapter accumulates predicates, operation filter groups, grouping,
selection, ordering and paging, then runs them against a data store.
The builder state lives here; backends only implement execution.

An adapter is owned by exactly one search. Build a new one per request
or call :meth:`AbstractAdapter.reset_all` before reuse.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from facetsearch.domain.pricing import ComputedPrice
from facetsearch.domain.value_objects import (
    DEFAULT_SORT_FIELD,
    OperationFilterGroup,
    Operator,
    Predicate,
    ProductRow,
    SortDirection,
)

SelectField = str | ComputedPrice


@dataclass(frozen=True)
class FilterState:
    """Frozen copy of the filtering part of an adapter.

    Used for the base population: once materialized, every later filter
    is evaluated inside the products this state matches.

    Attributes:
        filters: Field -> operator -> values.
        operations_filters: Group name -> group.
        group_by: Grouping fields.
        initial_population: Base population this state was built on.
    """

    filters: Mapping[str, Mapping[Operator, tuple[Any, ...]]] = field(default_factory=dict)
    operations_filters: Mapping[str, OperationFilterGroup] = field(default_factory=dict)
    group_by: tuple[str, ...] = ()
    initial_population: "FilterState | None" = None

    @property
    def predicates(self) -> list[Predicate]:
        """Plain filters as predicates, in insertion order."""
        return [
            Predicate(field=name, values=values, operator=operator)
            for name, by_operator in self.filters.items()
            for operator, values in by_operator.items()
        ]

    @property
    def active_groups(self) -> list[OperationFilterGroup]:
        """Operation filter groups that constrain the result."""
        return [group for group in self.operations_filters.values() if not group.is_empty]


class AbstractAdapter(ABC):
    """Base class for query adapters.

    Example usage:
        adapter.add_filter("id_manufacturer", [1, 2])
        adapter.add_filter("weight", [0.5], ">=")
        adapter.add_operations_filter(
            "with_stock_management",
            [[Predicate.of("quantity", [0], ">")]],
        )
        adapter.use_filters_as_initial_population()
        adapter.set_limit(20, 40)
        rows = await adapter.execute()
        total = await adapter.count()
    """

    backend: str = "abstract"

    def __init__(self) -> None:
        """Initialize an empty builder."""
        self.reset_all()

    def reset_all(self) -> None:
        """Clear all builder state, base population included."""
        self._filters: dict[str, dict[Operator, tuple[Any, ...]]] = {}
        self._operations_filters: dict[str, OperationFilterGroup] = {}
        self._group_by: list[str] = []
        self._select_fields: list[SelectField] = []
        self._order_field = DEFAULT_SORT_FIELD
        self._order_direction = SortDirection.ASC.value
        self._limit: int | None = None
        self._offset = 0
        self._initial_population: FilterState | None = None

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def add_filter(
        self,
        field: str,
        values: Iterable[Any],
        operator: Operator | str = Operator.EQ,
    ) -> None:
        """Add a predicate on a field.

        Adding the same field and operator again replaces its values.
        Different operators on one field are kept side by side, which is
        how range bounds are expressed.

        Args:
            field: Data store field.
            values: Values to compare against.
            operator: Comparison operator.
        """
        self._filters.setdefault(field, {})[Operator(operator)] = tuple(values)

    def add_operations_filter(
        self,
        name: str,
        clauses: Iterable[Iterable[Predicate]],
    ) -> None:
        """Register an OR-of-AND predicate group.

        Args:
            name: Group name; an existing group with this name is replaced.
            clauses: Disjunction of predicate conjunctions.
        """
        self._operations_filters[name] = OperationFilterGroup.of(name, clauses)

    def reset_filter(self, field: str) -> None:
        """Drop every predicate on a field."""
        self._filters.pop(field, None)

    def reset_operations_filter(self, name: str) -> None:
        """Drop an operation filter group."""
        self._operations_filters.pop(name, None)

    def use_filters_as_initial_population(self) -> None:
        """Materialize the current filters as the base population.

        The plain filters, operation groups and grouping are frozen into
        :attr:`initial_population` and cleared from the builder. Filters
        added afterwards only narrow down that population.
        """
        self._initial_population = self._snapshot()
        self._filters = {}
        self._operations_filters = {}
        self._group_by = []

    def _snapshot(self) -> FilterState:
        return FilterState(
            filters={name: dict(by_operator) for name, by_operator in self._filters.items()},
            operations_filters=dict(self._operations_filters),
            group_by=tuple(self._group_by),
            initial_population=self._initial_population,
        )

    # ------------------------------------------------------------------
    # Shape of the result
    # ------------------------------------------------------------------

    def add_group_by(self, field: str) -> None:
        """Group rows by a field. Adding a field twice has no effect."""
        if field not in self._group_by:
            self._group_by.append(field)

    def add_select_field(self, field: SelectField) -> None:
        """Add a column or expression to result rows. Idempotent."""
        if field not in self._select_fields:
            self._select_fields.append(field)

    def set_order_field(self, field: str) -> None:
        self._order_field = field

    def set_order_direction(self, direction: str) -> None:
        self._order_direction = direction.upper()

    def set_limit(self, limit: int | None, offset: int = 0) -> None:
        """Set paging. Negative offsets are clamped to zero.

        Args:
            limit: Maximum number of rows, None for no limit.
            offset: Number of rows to skip.
        """
        self._limit = limit
        self._offset = max(offset, 0)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def filters(self) -> dict[str, dict[Operator, tuple[Any, ...]]]:
        return {name: dict(by_operator) for name, by_operator in self._filters.items()}

    @property
    def operations_filters(self) -> dict[str, OperationFilterGroup]:
        return dict(self._operations_filters)

    @property
    def initial_population(self) -> FilterState | None:
        return self._initial_population

    @property
    def group_by(self) -> tuple[str, ...]:
        return tuple(self._group_by)

    @property
    def select_fields(self) -> tuple[SelectField, ...]:
        return tuple(self._select_fields)

    @property
    def order_field(self) -> str:
        return self._order_field

    @property
    def order_direction(self) -> str:
        return self._order_direction

    @property
    def limit(self) -> int | None:
        return self._limit

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def state(self) -> FilterState:
        """Current filtering state, base population attached."""
        return self._snapshot()

    @property
    def computed_price(self) -> ComputedPrice | None:
        """Computed price expression, if selected."""
        for select_field in self._select_fields:
            if isinstance(select_field, ComputedPrice):
                return select_field
        return None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @abstractmethod
    async def execute(self) -> list[ProductRow]:
        """Run the query and return the requested page of product rows.

        Raises:
            QueryExecutionError: If the data store fails.
        """

    @abstractmethod
    async def count(self) -> int:
        """Count all matching products, ignoring paging.

        Raises:
            QueryExecutionError: If the data store fails.
        """
