"""SQLAlchemy query adapter.

Compiles the adapter state into SQLAlchemy Core statements over the
catalog index:

- plain filters become WHERE clauses on one index row,
- each operation filter group becomes an ``id_product IN (...)``
  subquery holding its OR-of-AND expression,
- the base population is nested as another ``id_product IN (...)``.

Result rows come from the products table, joined with the active
discount when the computed price is needed.
"""

import operator as _operator
from collections.abc import Callable
from typing import Any

import structlog
from sqlalchemy import ColumnElement, Select, Table, and_, case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from facetsearch.domain.exceptions import QueryExecutionError
from facetsearch.domain.pricing import COMPUTED_PRICE, ComputedPrice, ReductionType
from facetsearch.domain.value_objects import (
    OperationFilterGroup,
    Operator,
    Predicate,
    ProductRow,
    SortDirection,
)
from facetsearch.infrastructure.models import CatalogIndexModel, ProductModel, SpecificPriceModel
from facetsearch.search.adapter import AbstractAdapter, FilterState

logger = structlog.get_logger()

_SQL_OPERATORS: dict[Operator, Callable[[Any, Any], ColumnElement[bool]]] = {
    Operator.LTE: _operator.le,
    Operator.GTE: _operator.ge,
    Operator.LT: _operator.lt,
    Operator.GT: _operator.gt,
}


def computed_price_expression(
    expression: ComputedPrice,
    products: Table,
    discounts: Table,
) -> ColumnElement[Any]:
    """SQL counterpart of :meth:`PriceFormula.compute`.

    Args:
        expression: Computed price select expression.
        products: Products table.
        discounts: Discounts table, outer joined on the product.

    Returns:
        Unlabeled SQL expression.
    """
    formula = expression.formula
    price: ColumnElement[Any] = case(
        (discounts.c.reduction_type.is_(None), products.c.price),
        (
            discounts.c.reduction_type == ReductionType.PERCENTAGE.value,
            products.c.price * (1 - discounts.c.reduction),
        ),
        else_=func.coalesce(discounts.c.price, products.c.price),
    )
    if formula.use_tax:
        price = price * (1 + products.c.tax_rate / 100)
    if formula.rounding_precision is not None:
        price = func.round(price, formula.rounding_precision)
    return price


class SqlAlchemyAdapter(AbstractAdapter):
    """Adapter running searches through an async SQLAlchemy session.

    Example usage:
        async with async_session_factory() as session:
            adapter = SqlAlchemyAdapter(session)
            adapter.add_filter("id_shop", [1])
            rows = await adapter.execute()
    """

    backend = "sqlalchemy"

    def __init__(self, session: AsyncSession) -> None:
        """Initialize adapter with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        super().__init__()
        self.session = session

    async def execute(self) -> list[ProductRow]:
        try:
            statement = self.select_statement()
            result = await self.session.execute(statement)
            rows = result.mappings().all()
        except (KeyError, SQLAlchemyError) as e:
            raise self._execution_error("execute", e) from e

        return [dict(row) for row in rows]

    async def count(self) -> int:
        try:
            population = self.population_statement(self.state).subquery()
            result = await self.session.execute(select(func.count()).select_from(population))
            return int(result.scalar_one())
        except (KeyError, SQLAlchemyError) as e:
            raise self._execution_error("count", e) from e

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def population_statement(self, state: FilterState) -> Select[Any]:
        """IDs of the products matching a filter state.

        Args:
            state: Filter state, base population included.

        Returns:
            SELECT of ``id_product``.

        Raises:
            KeyError: If a predicate targets an unknown field.
        """
        index = CatalogIndexModel.__table__.alias()
        statement = select(index.c.id_product)

        for predicate in state.predicates:
            statement = statement.where(self._compile_predicate(predicate, index))

        for group in state.active_groups:
            group_index = CatalogIndexModel.__table__.alias()
            statement = statement.where(
                index.c.id_product.in_(
                    select(group_index.c.id_product).where(
                        self._compile_group(group, group_index)
                    )
                )
            )

        if state.initial_population is not None:
            statement = statement.where(
                index.c.id_product.in_(self.population_statement(state.initial_population))
            )

        if state.group_by:
            return statement.group_by(*(index.c[field] for field in state.group_by))
        return statement.distinct()

    def select_statement(self) -> Select[Any]:
        """Page of product rows for the current state.

        Raises:
            KeyError: If a predicate or the order field is unknown.
        """
        products = ProductModel.__table__
        discounts = SpecificPriceModel.__table__

        computed = self.computed_price
        computed_column = (
            computed_price_expression(computed, products, discounts)
            if computed is not None
            else None
        )

        columns: list[Any] = [products]
        if computed is not None:
            columns.append(computed_column.label(computed.alias))

        statement = (
            select(*columns)
            .select_from(
                products.outerjoin(discounts, discounts.c.id_product == products.c.id_product)
            )
            .where(products.c.id_product.in_(self.population_statement(self.state)))
        )

        if self.order_field == COMPUTED_PRICE:
            order_column = (
                computed_column
                if computed_column is not None
                else computed_price_expression(ComputedPrice(), products, discounts)
            )
        else:
            order_column = products.c[self.order_field]

        if self.order_direction == SortDirection.DESC.value:
            statement = statement.order_by(
                order_column.desc().nulls_first(), products.c.id_product.asc()
            )
        else:
            statement = statement.order_by(
                order_column.asc().nulls_last(), products.c.id_product.asc()
            )

        if self.limit is not None:
            statement = statement.limit(self.limit)
        if self.offset:
            statement = statement.offset(self.offset)
        return statement

    def _compile_predicate(self, predicate: Predicate, table: Any) -> ColumnElement[bool]:
        column = table.c[predicate.field]
        if predicate.operator is Operator.EQ:
            return column.in_(predicate.values)
        compare = _SQL_OPERATORS[predicate.operator]
        return or_(*(compare(column, value) for value in predicate.values))

    def _compile_group(self, group: OperationFilterGroup, table: Any) -> ColumnElement[bool]:
        return or_(
            *(
                and_(*(self._compile_predicate(predicate, table) for predicate in clause))
                for clause in group.clauses
            )
        )

    def _execution_error(self, operation: str, error: Exception) -> QueryExecutionError:
        logger.error(
            "SQL query failed",
            operation=operation,
            error_type=type(error).__name__,
            error=str(error),
        )
        return QueryExecutionError(
            f"Search {operation} failed: {error}",
            backend=self.backend,
            operation=operation,
        )
