"""Price computation rules.

A product may carry one active discount (a "specific price"). The price
shown and sorted on is the base price with that discount applied, and
optionally with tax added and rounding applied.
"""

from dataclasses import dataclass
from enum import Enum

from facetsearch.domain.base import ValueObject

COMPUTED_PRICE = "computed_price"


class ReductionType(str, Enum):
    """Kinds of discount."""

    PERCENTAGE = "percentage"
    AMOUNT = "amount"


@dataclass(frozen=True)
class Discount(ValueObject):
    """Active discount of a product.

    Attributes:
        reduction_type: Percentage or absolute discount.
        reduction: Fraction taken off for percentage discounts (0.2 = 20%).
        price: Fixed discounted price for absolute discounts.
    """

    reduction_type: ReductionType
    reduction: float = 0.0
    price: float | None = None

    def apply(self, base_price: float) -> float:
        """Apply the discount to a base price.

        Args:
            base_price: Undiscounted product price.

        Returns:
            Discounted price.
        """
        if self.reduction_type is ReductionType.PERCENTAGE:
            return base_price * (1 - self.reduction)
        return self.price if self.price is not None else base_price


@dataclass(frozen=True)
class PriceFormula(ValueObject):
    """Shop-wide settings of the computed price.

    Attributes:
        use_tax: Whether prices include the product tax rate.
        rounding_precision: Decimals to round to, None to keep raw values.
    """

    use_tax: bool = False
    rounding_precision: int | None = None

    def compute(
        self,
        base_price: float,
        discount: Discount | None = None,
        tax_rate: float = 0.0,
    ) -> float:
        """Compute the price a product is displayed and sorted with.

        Args:
            base_price: Undiscounted, untaxed product price.
            discount: Active discount, if any.
            tax_rate: Product tax rate in percent.

        Returns:
            Computed price.
        """
        price = discount.apply(base_price) if discount else base_price
        if self.use_tax:
            price = price * (1 + tax_rate / 100)
        if self.rounding_precision is not None:
            price = round(price, self.rounding_precision)
        return price


@dataclass(frozen=True)
class ComputedPrice(ValueObject):
    """Select expression adding the computed price to result rows.

    Adapters compile it into their own query language.
    """

    formula: PriceFormula = PriceFormula()
    alias: str = COMPUTED_PRICE


def price_bounds(base_price: float, discount: Discount | None = None) -> tuple[float, float]:
    """Lowest and highest price a product can be sold at.

    These are the ``price_min`` / ``price_max`` values stored in the
    catalog index so a single range query matches discounted prices.

    Args:
        base_price: Undiscounted product price.
        discount: Active discount, if any.

    Returns:
        Tuple of (price_min, price_max).
    """
    discounted = discount.apply(base_price) if discount else base_price
    return min(base_price, discounted), max(base_price, discounted)
