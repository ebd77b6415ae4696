"""Selected facet filters.

Raw filter input arrives as a loosely typed mapping whose value shape
depends on the facet key. It is parsed once into one tagged variant per
facet so every translation rule works on a known shape.

Raw shapes accepted by :meth:`SelectedFilters.from_raw`:

    {
        "category": [5, 6],
        "manufacturer": [2],
        "id_feature": {1: [10, 11], 2: [20]},
        "id_attribute_group": {1: [1, 2]},
        "quantity": [0, 2],
        "condition": ["new", "used"],
        "weight": [0.5, ""],
        "price": [10, 50],
    }

Values that cannot be parsed are dropped, and a facet left without
values is skipped altogether.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Self

from facetsearch.domain.base import ValueObject


class FacetKey(str, Enum):
    """Facet keys understood by the filter composer."""

    FEATURE = "id_feature"
    ATTRIBUTE_GROUP = "id_attribute_group"
    CATEGORY = "category"
    QUANTITY = "quantity"
    MANUFACTURER = "manufacturer"
    CONDITION = "condition"
    WEIGHT = "weight"
    PRICE = "price"


class StockState(int, Enum):
    """Stock availability options of the quantity facet.

    NOT_AVAILABLE: 0 or less in stock and backorders refused.
    AVAILABLE: positive quantity and backorders accepted, both required.
    IN_STOCK: positive quantity.
    """

    NOT_AVAILABLE = 0
    AVAILABLE = 1
    IN_STOCK = 2


CONDITIONS = frozenset({"new", "used", "refurbished"})


# ============================================================================
# Facet Variants
# ============================================================================


def _as_list(raw: Any) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        return list(raw)
    return [raw]


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_ids(raw: Any) -> tuple[int, ...]:
    ids: list[int] = []
    for value in _as_list(raw):
        for item in _as_list(value):
            parsed = _to_int(item)
            if parsed is not None and parsed not in ids:
                ids.append(parsed)
    return tuple(ids)


@dataclass(frozen=True)
class IdListFacet(ValueObject):
    """Set of integer IDs (category, manufacturer)."""

    values: tuple[int, ...] = ()

    @classmethod
    def parse(cls, raw: Any) -> Self:
        return cls(values=_parse_ids(raw))

    @property
    def is_empty(self) -> bool:
        return not self.values


@dataclass(frozen=True)
class GroupedIdFacet(ValueObject):
    """Value IDs grouped by a parent ID (features, attribute groups).

    Attributes:
        groups: Pairs of (parent id, value ids), sorted by parent id.
    """

    groups: tuple[tuple[int, tuple[int, ...]], ...] = ()

    @classmethod
    def parse(cls, raw: Any) -> Self:
        if not isinstance(raw, Mapping):
            return cls()
        groups: dict[int, tuple[int, ...]] = {}
        for key, values in raw.items():
            group_id = _to_int(key)
            ids = _parse_ids(values)
            if group_id is not None and ids:
                groups[group_id] = ids
        return cls(groups=tuple(sorted(groups.items())))

    @property
    def is_empty(self) -> bool:
        return not self.groups


@dataclass(frozen=True)
class RangeFacet(ValueObject):
    """Numeric range with optional bounds (weight, price)."""

    minimum: float | None = None
    maximum: float | None = None

    @classmethod
    def parse(cls, raw: Any) -> Self:
        values = _as_list(raw)
        if len(values) != 2:
            return cls()
        return cls(minimum=_to_float(values[0]), maximum=_to_float(values[1]))

    @property
    def is_empty(self) -> bool:
        return self.minimum is None and self.maximum is None


@dataclass(frozen=True)
class StockSelection(ValueObject):
    """Selected stock availability states."""

    states: frozenset[StockState] = frozenset()

    @classmethod
    def parse(cls, raw: Any) -> Self:
        states = set()
        for value in _as_list(raw):
            parsed = _to_int(value)
            if parsed in {state.value for state in StockState}:
                states.add(StockState(parsed))
        return cls(states=frozenset(states))

    @property
    def is_empty(self) -> bool:
        return not self.states

    @property
    def is_complete(self) -> bool:
        """All known states are selected."""
        return len(self.states) == len(StockState)


@dataclass(frozen=True)
class ConditionSelection(ValueObject):
    """Selected product conditions."""

    values: frozenset[str] = frozenset()

    @classmethod
    def parse(cls, raw: Any) -> Self:
        values = {
            value.strip().lower()
            for value in _as_list(raw)
            if isinstance(value, str) and value.strip().lower() in CONDITIONS
        }
        return cls(values=frozenset(values))

    @property
    def is_empty(self) -> bool:
        return not self.values

    @property
    def is_complete(self) -> bool:
        """All known conditions are selected."""
        return len(self.values) == len(CONDITIONS)


Facet = IdListFacet | GroupedIdFacet | RangeFacet | StockSelection | ConditionSelection

FACET_TYPES: dict[FacetKey, type] = {
    FacetKey.FEATURE: GroupedIdFacet,
    FacetKey.ATTRIBUTE_GROUP: GroupedIdFacet,
    FacetKey.CATEGORY: IdListFacet,
    FacetKey.QUANTITY: StockSelection,
    FacetKey.MANUFACTURER: IdListFacet,
    FacetKey.CONDITION: ConditionSelection,
    FacetKey.WEIGHT: RangeFacet,
    FacetKey.PRICE: RangeFacet,
}


# ============================================================================
# Selected Filters
# ============================================================================


@dataclass(frozen=True)
class SelectedFilters(Mapping[FacetKey, Facet]):
    """Facet selections of one search request.

    Behaves as a read-only mapping from facet key to facet variant.
    Empty facets are never stored.

    Example usage:
        filters = SelectedFilters.from_raw({"category": [5], "price": [10, 50]})
        if FacetKey.PRICE in filters:
            ...
    """

    facets: dict[FacetKey, Facet] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate variants and drop empty facets."""
        cleaned: dict[FacetKey, Facet] = {}
        for key, facet in self.facets.items():
            facet_key = FacetKey(key)
            if not isinstance(facet, FACET_TYPES[facet_key]):
                raise TypeError(
                    f"Facet {facet_key.value!r} expects {FACET_TYPES[facet_key].__name__}, "
                    f"got {type(facet).__name__}"
                )
            if not facet.is_empty:
                cleaned[facet_key] = facet
        object.__setattr__(self, "facets", cleaned)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> Self:
        """Parse loosely typed filter input.

        Unknown keys are ignored and malformed values are dropped.

        Args:
            raw: Mapping of facet key to raw value(s).

        Returns:
            SelectedFilters instance.
        """
        facets: dict[FacetKey, Facet] = {}
        for key, value in (raw or {}).items():
            try:
                facet_key = FacetKey(key)
            except ValueError:
                continue
            facets[facet_key] = FACET_TYPES[facet_key].parse(value)
        return cls(facets=facets)

    def __getitem__(self, key: FacetKey | str) -> Facet:
        try:
            return self.facets[FacetKey(key)]
        except ValueError:
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[FacetKey]:
        return iter(self.facets)

    def __len__(self) -> int:
        return len(self.facets)

    def __contains__(self, key: object) -> bool:
        try:
            return FacetKey(key) in self.facets
        except ValueError:
            return False
