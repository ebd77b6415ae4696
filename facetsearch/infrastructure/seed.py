"""Catalog seeding.

Describes a catalog as plain dataclasses, expands it into the rows of
the products, discount, category and catalog index tables, and loads
it either into the database or into a MemoryAdapter.

The demo catalog is small on purpose: a handful of products that cover
every facet (stock states, discounts, conditions, customer groups,
shops, features and attributes).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import product as cartesian
from typing import Any

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from facetsearch.adapters.memory import MemoryAdapter
from facetsearch.domain.pricing import Discount, ReductionType, price_bounds
from facetsearch.infrastructure.models import (
    CatalogIndexModel,
    CategoryModel,
    ProductModel,
    SpecificPriceModel,
)
from facetsearch.search.category_tree import InMemoryCategoryTree

logger = structlog.get_logger()


# ============================================================================
# Catalog Description
# ============================================================================


@dataclass(frozen=True)
class CatalogCategory:
    """Category of the catalog tree, nested-set encoded."""

    id_category: int
    name: str
    nleft: int
    nright: int
    id_parent: int | None = None
    level_depth: int = 0

    def to_row(self) -> dict[str, Any]:
        return {
            "id_category": self.id_category,
            "id_parent": self.id_parent,
            "name": self.name,
            "nleft": self.nleft,
            "nright": self.nright,
            "level_depth": self.level_depth,
        }


@dataclass(frozen=True)
class CatalogProduct:
    """Product with everything needed to index it.

    Attributes:
        categories: Categories the product is listed in.
        groups: Customer groups allowed to see the product.
        shops: Shops the product is sold in.
        feature_values: Feature value IDs.
        attributes: Attribute IDs of its combinations.
        discount: Active discount, if any.
    """

    id_product: int
    name: str
    price: float
    id_category_default: int
    categories: tuple[int, ...]
    reference: str | None = None
    tax_rate: float = 0.0
    weight: float = 0.0
    quantity: int = 0
    out_of_stock: int = 2
    condition: str = "new"
    visibility: str = "both"
    id_manufacturer: int | None = None
    position: int = 0
    sales: int = 0
    groups: tuple[int, ...] = (1, 2, 3)
    shops: tuple[int, ...] = (1,)
    feature_values: tuple[int, ...] = ()
    attributes: tuple[int, ...] = ()
    discount: Discount | None = None
    date_add: datetime = field(default_factory=lambda: datetime(2024, 1, 1, tzinfo=timezone.utc))

    def to_row(self) -> dict[str, Any]:
        """Row of the products table."""
        return {
            "id_product": self.id_product,
            "name": self.name,
            "reference": self.reference,
            "price": self.price,
            "tax_rate": self.tax_rate,
            "weight": self.weight,
            "quantity": self.quantity,
            "out_of_stock": self.out_of_stock,
            "condition": self.condition,
            "visibility": self.visibility,
            "id_manufacturer": self.id_manufacturer,
            "id_category_default": self.id_category_default,
            "position": self.position,
            "sales": self.sales,
            "date_add": self.date_add,
            "date_upd": self.date_add,
        }

    def discount_row(self) -> dict[str, Any] | None:
        """Row of the specific prices table, if discounted."""
        if self.discount is None:
            return None
        return {
            "id_product": self.id_product,
            "reduction_type": self.discount.reduction_type.value,
            "reduction": self.discount.reduction,
            "price": self.discount.price,
        }

    def index_rows(self, categories: dict[int, CatalogCategory]) -> list[dict[str, Any]]:
        """Rows of the catalog index, one per combination.

        Args:
            categories: Catalog categories by ID.

        Returns:
            Denormalized index rows.
        """
        price_min, price_max = price_bounds(self.price, self.discount)
        rows = []
        for id_category, id_group, id_shop, id_feature_value, id_attribute in cartesian(
            self.categories,
            self.groups,
            self.shops,
            self.feature_values or (None,),
            self.attributes or (None,),
        ):
            category = categories[id_category]
            rows.append(
                {
                    "id_product": self.id_product,
                    "id_category": id_category,
                    "id_category_default": self.id_category_default,
                    "nleft": category.nleft,
                    "nright": category.nright,
                    "visibility": self.visibility,
                    "id_group": id_group,
                    "id_shop": id_shop,
                    "id_manufacturer": self.id_manufacturer,
                    "condition": self.condition,
                    "weight": self.weight,
                    "quantity": self.quantity,
                    "out_of_stock": self.out_of_stock,
                    "id_feature_value": id_feature_value,
                    "id_attribute": id_attribute,
                    "price_min": price_min,
                    "price_max": price_max,
                }
            )
        return rows


@dataclass(frozen=True)
class Catalog:
    """Categories and products of a catalog."""

    categories: tuple[CatalogCategory, ...]
    products: tuple[CatalogProduct, ...]

    @property
    def categories_by_id(self) -> dict[int, CatalogCategory]:
        return {category.id_category: category for category in self.categories}

    def index_rows(self) -> list[dict[str, Any]]:
        categories = self.categories_by_id
        return [row for product in self.products for row in product.index_rows(categories)]

    def product_rows(self) -> dict[int, dict[str, Any]]:
        return {product.id_product: product.to_row() for product in self.products}

    def discounts(self) -> dict[int, Discount]:
        return {
            product.id_product: product.discount
            for product in self.products
            if product.discount is not None
        }

    def category_tree(self) -> InMemoryCategoryTree:
        return InMemoryCategoryTree(
            {
                category.id_category: (category.nleft, category.nright)
                for category in self.categories
            }
        )

    def memory_adapter(self) -> MemoryAdapter:
        """Fresh in-memory adapter over this catalog."""
        return MemoryAdapter(
            index_rows=self.index_rows(),
            products=self.product_rows(),
            discounts=self.discounts(),
        )


# ============================================================================
# Demo Catalog
# ============================================================================

DEMO_CATEGORIES = (
    CatalogCategory(1, "Root", 1, 14, None, 0),
    CatalogCategory(2, "Home", 2, 13, 1, 1),
    CatalogCategory(3, "Clothes", 3, 8, 2, 2),
    CatalogCategory(4, "Men", 4, 5, 3, 3),
    CatalogCategory(5, "Women", 6, 7, 3, 3),
    CatalogCategory(6, "Accessories", 9, 12, 2, 2),
    CatalogCategory(7, "Stationery", 10, 11, 6, 3),
)

# Features: 1 composition (10 cotton, 11 polyester), 2 property
# (20 short sleeves, 21 long sleeves), 3 material (30 ceramic).
# Attribute groups: 1 size (1 S, 2 M, 3 L), 2 color (8 white, 11 black),
# 3 paper (13 ruled).
DEMO_PRODUCTS = (
    CatalogProduct(
        id_product=1,
        name="Hummingbird printed t-shirt",
        reference="demo_1",
        price=40.0,
        tax_rate=20.0,
        discount=Discount(ReductionType.PERCENTAGE, reduction=0.2),
        weight=0.3,
        quantity=5,
        out_of_stock=1,
        condition="new",
        id_manufacturer=1,
        id_category_default=4,
        categories=(2, 3, 4),
        position=1,
        sales=30,
        feature_values=(10, 20),
        attributes=(1, 2, 8),
        date_add=datetime(2024, 1, 1, tzinfo=timezone.utc),
    ),
    CatalogProduct(
        id_product=2,
        name="Hummingbird printed sweater",
        reference="demo_2",
        price=60.0,
        tax_rate=20.0,
        discount=Discount(ReductionType.AMOUNT, price=45.0),
        weight=0.5,
        quantity=0,
        out_of_stock=1,
        condition="new",
        id_manufacturer=1,
        id_category_default=4,
        categories=(2, 3, 4),
        position=2,
        sales=12,
        feature_values=(10, 21),
        attributes=(1, 3, 11),
        date_add=datetime(2024, 1, 2, tzinfo=timezone.utc),
    ),
    CatalogProduct(
        id_product=3,
        name="Printed dress",
        reference="demo_3",
        price=35.0,
        tax_rate=20.0,
        weight=1.2,
        quantity=0,
        out_of_stock=0,
        condition="used",
        id_manufacturer=2,
        id_category_default=5,
        categories=(2, 3, 5),
        position=3,
        sales=7,
        feature_values=(11,),
        attributes=(2, 8),
        date_add=datetime(2024, 1, 3, tzinfo=timezone.utc),
    ),
    CatalogProduct(
        id_product=4,
        name="Mug the best is yet to come",
        reference="demo_4",
        price=12.0,
        tax_rate=10.0,
        weight=0.8,
        quantity=300,
        out_of_stock=2,
        condition="new",
        id_manufacturer=2,
        id_category_default=6,
        categories=(2, 6),
        position=4,
        sales=54,
        feature_values=(30,),
        date_add=datetime(2024, 1, 4, tzinfo=timezone.utc),
    ),
    CatalogProduct(
        id_product=5,
        name="Hummingbird notebook",
        reference="demo_5",
        price=12.9,
        tax_rate=10.0,
        discount=Discount(ReductionType.PERCENTAGE, reduction=0.1),
        weight=0.2,
        quantity=0,
        out_of_stock=2,
        condition="refurbished",
        id_manufacturer=3,
        id_category_default=7,
        categories=(2, 6, 7),
        position=5,
        sales=3,
        attributes=(13,),
        date_add=datetime(2024, 1, 5, tzinfo=timezone.utc),
    ),
    CatalogProduct(
        id_product=6,
        name="Framed poster",
        reference="demo_6",
        price=29.0,
        weight=1.0,
        quantity=10,
        visibility="search",
        id_manufacturer=3,
        id_category_default=6,
        categories=(2, 6),
        position=6,
        date_add=datetime(2024, 1, 6, tzinfo=timezone.utc),
    ),
    CatalogProduct(
        id_product=7,
        name="Wholesale mug pack",
        reference="demo_7",
        price=100.0,
        weight=5.0,
        quantity=50,
        id_manufacturer=2,
        id_category_default=6,
        categories=(2, 6),
        position=7,
        groups=(3,),
        date_add=datetime(2024, 1, 7, tzinfo=timezone.utc),
    ),
    CatalogProduct(
        id_product=8,
        name="Mountain fox mug",
        reference="demo_8",
        price=15.0,
        weight=0.8,
        quantity=10,
        id_manufacturer=2,
        id_category_default=6,
        categories=(2, 6),
        position=8,
        shops=(2,),
        date_add=datetime(2024, 1, 8, tzinfo=timezone.utc),
    ),
)

DEMO_CATALOG = Catalog(categories=DEMO_CATEGORIES, products=DEMO_PRODUCTS)


# ============================================================================
# Database Loading
# ============================================================================


async def seed_catalog(
    session: AsyncSession,
    catalog: Catalog = DEMO_CATALOG,
    clear_existing: bool = True,
) -> dict[str, int]:
    """Load a catalog into the database.

    Args:
        session: Async SQLAlchemy session.
        catalog: Catalog to load.
        clear_existing: Whether to delete existing catalog rows first.

    Returns:
        Number of rows written per table.
    """
    if clear_existing:
        for model in (CatalogIndexModel, SpecificPriceModel, ProductModel, CategoryModel):
            await session.execute(delete(model))
        session.expunge_all()

    session.add_all(CategoryModel(**category.to_row()) for category in catalog.categories)
    session.add_all(ProductModel(**row) for row in catalog.product_rows().values())
    await session.flush()

    discount_rows = [row for product in catalog.products if (row := product.discount_row())]
    session.add_all(SpecificPriceModel(**row) for row in discount_rows)

    index_rows = catalog.index_rows()
    session.add_all(CatalogIndexModel(**row) for row in index_rows)
    await session.commit()

    result = {
        "categories": len(catalog.categories),
        "products": len(catalog.products),
        "specific_prices": len(discount_rows),
        "catalog_index": len(index_rows),
    }
    logger.info("Catalog seeded", **result)
    return result
