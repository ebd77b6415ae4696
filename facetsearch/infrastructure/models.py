"""SQLAlchemy models for the product catalog.

Defines the product table, the denormalized catalog index searched by
the SQL adapter, discounts and the nested-set category tree.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from facetsearch.infrastructure.database import Base


class ProductModel(Base):
    """Product entity in the catalog.

    Source of the rows returned by a search.

    Attributes:
        id_product: Product identifier.
        name: Product name.
        reference: Merchant reference.
        price: Base price, tax excluded.
        tax_rate: Tax rate in percent.
        weight: Shipping weight.
        quantity: Available quantity.
        out_of_stock: Backorder policy (0 refuse, 1 accept, 2 shop default).
        condition: new, used or refurbished.
        visibility: both, catalog, search or none.
        id_manufacturer: Manufacturer ID.
        id_category_default: Main category.
        position: Position in category listings.
        sales: Units sold.
        date_add: Creation timestamp.
        date_upd: Last update timestamp.
    """

    __tablename__ = "products"

    id_product: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(64), nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    tax_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    out_of_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    condition: Mapped[str] = mapped_column(String(16), nullable=False, default="new")
    visibility: Mapped[str] = mapped_column(String(16), nullable=False, default="both")
    id_manufacturer: Mapped[int | None] = mapped_column(Integer, nullable=True)
    id_category_default: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sales: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date_add: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    date_upd: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id_product}, name={self.name[:30]})>"


class CatalogIndexModel(Base):
    """Denormalized catalog index.

    One row per product and combination of category, customer group,
    shop, feature value and attribute. Product level fields are repeated
    on every row so all facet predicates apply to a single table.
    """

    __tablename__ = "catalog_index"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id_product: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id_product", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    id_category: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    id_category_default: Mapped[int | None] = mapped_column(Integer, nullable=True)
    nleft: Mapped[int] = mapped_column(Integer, nullable=False)
    nright: Mapped[int] = mapped_column(Integer, nullable=False)
    visibility: Mapped[str] = mapped_column(String(16), nullable=False)
    id_group: Mapped[int] = mapped_column(Integer, nullable=False)
    id_shop: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    id_manufacturer: Mapped[int | None] = mapped_column(Integer, nullable=True)
    condition: Mapped[str] = mapped_column(String(16), nullable=False)
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    out_of_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    id_feature_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    id_attribute: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_min: Mapped[float] = mapped_column(Float, nullable=False)
    price_max: Mapped[float] = mapped_column(Float, nullable=False)


class SpecificPriceModel(Base):
    """Active discount of a product.

    At most one discount per product is active at a time.
    """

    __tablename__ = "specific_prices"

    id_specific_price: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id_product: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id_product", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    reduction_type: Mapped[str] = mapped_column(String(16), nullable=False)
    reduction: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)


class CategoryModel(Base):
    """Category stored as a nested set."""

    __tablename__ = "categories"

    id_category: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    id_parent: Mapped[int | None] = mapped_column(Integer, nullable=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    nleft: Mapped[int] = mapped_column(Integer, nullable=False)
    nright: Mapped[int] = mapped_column(Integer, nullable=False)
    level_depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Category(id={self.id_category}, name={self.name})>"
