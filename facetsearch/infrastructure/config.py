"""Application configuration.

Loads settings from environment variables with sensible defaults and
collects the flags the search engine reads into one SearchConfig.
"""

from dataclasses import dataclass
from typing import Self

from pydantic_settings import BaseSettings

from facetsearch.domain.pricing import PriceFormula
from facetsearch.domain.value_objects import GroupVisibility, SearchContext


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # General
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./catalog.db"

    # Shop
    shop_id: int = 1
    home_category_id: int = 2

    # Catalog browsing
    layered_full_tree: bool = True
    filter_by_default_category: bool = False

    # Stock
    stock_management: bool = True
    order_out_of_stock: bool = False

    # Prices
    price_use_tax: bool = False
    price_rounding: bool = False
    price_rounding_precision: int = 2

    # Customer groups
    group_feature_active: bool = True
    default_group_id: int = 1

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()


@dataclass(frozen=True)
class SearchConfig:
    """Shop-wide flags read by the filter composer and result assembler.

    Attributes:
        home_category_id: Category searched when the query has none.
        full_tree: Include products of subcategories.
        filter_by_default_category: Only match products whose default
            category is the current one.
        stock_management: Whether stock quantities are tracked.
        order_out_of_stock: Whether products with no stock can be ordered.
        price_use_tax: Whether computed prices include tax.
        price_rounding_precision: Decimals of computed prices, None to
            leave them unrounded.
    """

    home_category_id: int = 2
    full_tree: bool = True
    filter_by_default_category: bool = False
    stock_management: bool = True
    order_out_of_stock: bool = False
    price_use_tax: bool = False
    price_rounding_precision: int | None = None

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> Self:
        """Build the search config from application settings.

        Args:
            source: Settings to read, the module settings by default.

        Returns:
            SearchConfig instance.
        """
        source = source or settings
        return cls(
            home_category_id=source.home_category_id,
            full_tree=source.layered_full_tree,
            filter_by_default_category=source.filter_by_default_category,
            stock_management=source.stock_management,
            order_out_of_stock=source.order_out_of_stock,
            price_use_tax=source.price_use_tax,
            price_rounding_precision=(
                source.price_rounding_precision if source.price_rounding else None
            ),
        )

    @property
    def price_formula(self) -> PriceFormula:
        """Computed price rules."""
        return PriceFormula(
            use_tax=self.price_use_tax,
            rounding_precision=self.price_rounding_precision,
        )


def context_from_settings(
    group_ids: tuple[int, ...] = (),
    source: Settings | None = None,
) -> SearchContext:
    """Build a search context for the configured shop.

    Args:
        group_ids: Groups of the current customer.
        source: Settings to read, the module settings by default.

    Returns:
        SearchContext instance.
    """
    source = source or settings
    return SearchContext(
        shop_id=source.shop_id,
        groups=GroupVisibility(
            active=source.group_feature_active,
            group_ids=tuple(group_ids),
            current_group_id=source.default_group_id,
        ),
    )
