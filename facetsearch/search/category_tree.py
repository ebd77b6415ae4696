"""Category tree lookups.

The composer restricts full-tree searches to the nested-set bounds of
the current category. Where the bounds come from is up to the caller.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from facetsearch.domain.value_objects import CategoryBounds


class CategoryTree(ABC):
    """Resolves nested-set bounds of categories."""

    @abstractmethod
    async def get_bounds(self, id_category: int) -> CategoryBounds | None:
        """Get the bounds of a category.

        Args:
            id_category: Category ID.

        Returns:
            Bounds if the category exists, None otherwise.
        """


class InMemoryCategoryTree(CategoryTree):
    """Category tree backed by a mapping of ID to (nleft, nright)."""

    def __init__(self, bounds: Mapping[int, tuple[int, int]]) -> None:
        self._bounds = {
            id_category: CategoryBounds(id_category=id_category, nleft=nleft, nright=nright)
            for id_category, (nleft, nright) in bounds.items()
        }

    async def get_bounds(self, id_category: int) -> CategoryBounds | None:
        return self._bounds.get(id_category)
