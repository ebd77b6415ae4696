"""Category repository for nested-set lookups."""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from facetsearch.domain.exceptions import QueryExecutionError
from facetsearch.domain.value_objects import CategoryBounds
from facetsearch.infrastructure.models import CategoryModel
from facetsearch.search.category_tree import CategoryTree

logger = structlog.get_logger()


class SqlCategoryTree(CategoryTree):
    """Category tree read from the ``categories`` table.

    Example usage:
        async with async_session_factory() as session:
            tree = SqlCategoryTree(session)
            bounds = await tree.get_bounds(2)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def get_bounds(self, id_category: int) -> CategoryBounds | None:
        query = select(CategoryModel.nleft, CategoryModel.nright).where(
            CategoryModel.id_category == id_category
        )
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            logger.error("Category lookup failed", id_category=id_category, error=str(e))
            raise QueryExecutionError(
                f"Category lookup failed: {e}",
                backend="sqlalchemy",
                id_category=id_category,
            ) from e

        row = result.one_or_none()
        if row is None:
            return None
        return CategoryBounds(id_category=id_category, nleft=row.nleft, nright=row.nright)
