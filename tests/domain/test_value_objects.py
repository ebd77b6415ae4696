"""Tests for domain value objects."""

import pytest

from facetsearch.domain.exceptions import InvalidSearchQueryError, QueryExecutionError
from facetsearch.domain.value_objects import (
    CategoryBounds,
    GroupVisibility,
    OperationFilterGroup,
    Operator,
    Predicate,
    ProductSearchQuery,
    SearchResult,
    SortOrder,
)


class TestPredicate:
    """Tests for Predicate."""

    def test_equality_is_membership(self) -> None:
        """The = operator matches any of the values."""
        predicate = Predicate.of("id_manufacturer", [1, 2])
        assert predicate.matches({"id_manufacturer": 2})
        assert not predicate.matches({"id_manufacturer": 3})

    def test_range_operator(self) -> None:
        """Range operators compare against the bound."""
        predicate = Predicate.of("quantity", [0], ">")
        assert predicate.operator is Operator.GT
        assert predicate.matches({"quantity": 5})
        assert not predicate.matches({"quantity": 0})

    def test_missing_value_never_matches_range(self) -> None:
        """A null column never satisfies a comparison."""
        assert not Predicate.of("weight", [1.0], "<=").matches({"weight": None})

    def test_missing_field_raises(self) -> None:
        """An unknown field is an error, not a silent mismatch."""
        with pytest.raises(KeyError):
            Predicate.of("color", ["red"]).matches({"quantity": 1})

    def test_unknown_operator_rejected(self) -> None:
        """Only the supported operators are accepted."""
        with pytest.raises(ValueError):
            Predicate.of("quantity", [0], "!=")

    def test_str(self) -> None:
        """Predicates render readably."""
        assert str(Predicate.of("quantity", [0], ">")) == "quantity > 0"
        assert str(Predicate.of("id_shop", [1])) == "id_shop IN [1]"


class TestOperationFilterGroup:
    """Tests for OperationFilterGroup."""

    @pytest.fixture
    def group(self) -> OperationFilterGroup:
        """Available: backorders allowed, or positive quantity."""
        return OperationFilterGroup.of(
            "with_stock_management",
            [
                [Predicate.of("out_of_stock", [1])],
                [Predicate.of("quantity", [0], ">"), Predicate.of("id_shop", [1])],
            ],
        )

    def test_any_clause_matches(self, group: OperationFilterGroup) -> None:
        """The group holds when one clause holds."""
        assert group.matches({"out_of_stock": 1, "quantity": 0, "id_shop": 2})
        assert group.matches({"out_of_stock": 0, "quantity": 3, "id_shop": 1})

    def test_clause_needs_all_predicates(self, group: OperationFilterGroup) -> None:
        """A clause holds only when all of its predicates hold."""
        assert not group.matches({"out_of_stock": 0, "quantity": 3, "id_shop": 2})

    def test_empty_group_matches_everything(self) -> None:
        """A group with no clauses imposes no constraint."""
        group = OperationFilterGroup.of("empty", [])
        assert group.is_empty
        assert group.matches({})


class TestSortOrder:
    """Tests for SortOrder."""

    def test_from_string(self) -> None:
        """Field and direction are split on the dot."""
        order = SortOrder.from_string("price.desc")
        assert order.field == "price"
        assert order.direction == "desc"

    def test_entity_prefix_ignored(self) -> None:
        """A leading entity name is dropped."""
        assert SortOrder.from_string("product.name.asc") == SortOrder("name", "asc")

    def test_field_only(self) -> None:
        """Direction defaults to ascending."""
        assert SortOrder.from_string("sales") == SortOrder("sales", "ASC")

    def test_empty_is_default(self) -> None:
        """No order string means position ascending."""
        assert SortOrder.from_string(None) == SortOrder()


class TestProductSearchQuery:
    """Tests for ProductSearchQuery."""

    def test_defaults(self) -> None:
        """Default query is the first page of 12."""
        query = ProductSearchQuery()
        assert query.page == 1
        assert query.results_per_page == 12
        assert query.sort_order.field == "position"
        assert query.id_category is None

    @pytest.mark.parametrize("page", [0, -1])
    def test_invalid_page(self, page: int) -> None:
        """Pages start at 1."""
        with pytest.raises(InvalidSearchQueryError) as exc_info:
            ProductSearchQuery(page=page)
        assert exc_info.value.details["field"] == "page"

    def test_invalid_page_size(self) -> None:
        """Page size must be positive."""
        with pytest.raises(InvalidSearchQueryError):
            ProductSearchQuery(results_per_page=0)


class TestCategoryBounds:
    """Tests for CategoryBounds."""

    def test_contains(self) -> None:
        """Nested-set containment."""
        clothes = CategoryBounds(3, 3, 8)
        assert clothes.contains(CategoryBounds(5, 6, 7))
        assert not clothes.contains(CategoryBounds(6, 9, 12))


class TestGroupVisibility:
    """Tests for GroupVisibility."""

    def test_customer_groups_used(self) -> None:
        """Customer groups win over the fallback."""
        assert GroupVisibility(active=True, group_ids=(3, 4)).effective_group_ids == (3, 4)

    def test_fallback_group(self) -> None:
        """A customer with no groups falls back to the current group."""
        groups = GroupVisibility(active=True, current_group_id=2)
        assert groups.effective_group_ids == (2,)


class TestSearchResult:
    """Tests for SearchResult."""

    def test_to_dict(self) -> None:
        """Result serializes to products and count."""
        result = SearchResult(products=[{"id_product": 4}, {"id_product": 1}], count=9)
        assert result.product_ids == [4, 1]
        assert result.to_dict() == {"products": [{"id_product": 4}, {"id_product": 1}], "count": 9}


class TestExceptions:
    """Tests for search exceptions."""

    def test_query_execution_error_details(self) -> None:
        """Execution errors carry the failing backend."""
        error = QueryExecutionError("boom", backend="sqlalchemy", operation="count")
        assert error.backend == "sqlalchemy"
        assert error.details == {"backend": "sqlalchemy", "operation": "count"}
        assert str(error) == "boom"
