"""Shared fixtures for search tests.

Every search scenario runs against the in-memory adapter and against
the SQLAlchemy adapter on an in-memory SQLite database, both loaded
with the demo catalog.
"""

from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from facetsearch.adapters.memory import MemoryAdapter
from facetsearch.adapters.sql import SqlAlchemyAdapter
from facetsearch.domain.value_objects import GroupVisibility, SearchContext
from facetsearch.infrastructure.category_repository import SqlCategoryTree
from facetsearch.infrastructure.config import SearchConfig
from facetsearch.infrastructure.database import build_engine, create_tables
from facetsearch.infrastructure.seed import DEMO_CATALOG, Catalog, seed_catalog
from facetsearch.search.adapter import AbstractAdapter
from facetsearch.search.category_tree import CategoryTree
from facetsearch.search.service import ProductSearchService


@dataclass
class SearchBackend:
    """Adapter factory and category tree of one backend."""

    name: str
    adapter_factory: Callable[[], AbstractAdapter]
    category_tree: CategoryTree


async def create_test_engine() -> AsyncEngine:
    """Create an in-memory SQLite engine with the catalog tables."""
    engine = build_engine("sqlite+aiosqlite://", echo=False)
    await create_tables(engine)
    return engine


# ============================================================================
# Catalog Fixtures
# ============================================================================


@pytest.fixture
def catalog() -> Catalog:
    """Demo catalog."""
    return DEMO_CATALOG


@pytest.fixture
def memory_adapter(catalog: Catalog) -> MemoryAdapter:
    """In-memory adapter over the demo catalog."""
    return catalog.memory_adapter()


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory on a fresh in-memory database seeded with the demo catalog."""
    engine = await create_test_engine()
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await seed_catalog(session, DEMO_CATALOG)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session on the seeded database."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(params=["memory", "sql"])
async def backend(
    request: pytest.FixtureRequest, catalog: Catalog
) -> AsyncGenerator[SearchBackend, None]:
    """Each search backend in turn, loaded with the catalog fixture."""
    if request.param == "memory":
        yield SearchBackend(
            name="memory",
            adapter_factory=catalog.memory_adapter,
            category_tree=catalog.category_tree(),
        )
        return

    engine = await create_test_engine()
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await seed_catalog(session, catalog)
        yield SearchBackend(
            name="sql",
            adapter_factory=lambda: SqlAlchemyAdapter(session),
            category_tree=SqlCategoryTree(session),
        )
    await engine.dispose()


# ============================================================================
# Search Fixtures
# ============================================================================


@pytest.fixture
def search_config() -> SearchConfig:
    """Default shop settings: full tree, home category 2."""
    return SearchConfig(home_category_id=2, full_tree=True)


@pytest.fixture
def search_context() -> SearchContext:
    """Shop 1, visitor in customer group 1."""
    return SearchContext(
        shop_id=1,
        groups=GroupVisibility(active=True, group_ids=(1,), current_group_id=1),
    )


@pytest.fixture
def make_service(
    backend: SearchBackend,
    search_config: SearchConfig,
    search_context: SearchContext,
) -> Callable[..., ProductSearchService]:
    """Build a search service on the current backend."""

    def factory(
        config: SearchConfig | None = None,
        context: SearchContext | None = None,
    ) -> ProductSearchService:
        return ProductSearchService(
            config=config or search_config,
            context=context or search_context,
            adapter_factory=backend.adapter_factory,
            category_tree=backend.category_tree,
        )

    return factory
