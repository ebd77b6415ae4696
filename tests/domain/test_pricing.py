"""Tests for price computation rules."""

import pytest

from facetsearch.domain.pricing import (
    ComputedPrice,
    Discount,
    PriceFormula,
    ReductionType,
    price_bounds,
)


class TestDiscount:
    """Tests for Discount."""

    def test_percentage(self) -> None:
        """Percentage discounts take a fraction off."""
        discount = Discount(ReductionType.PERCENTAGE, reduction=0.2)
        assert discount.apply(40.0) == pytest.approx(32.0)

    def test_amount_uses_fixed_price(self) -> None:
        """Absolute discounts replace the price."""
        discount = Discount(ReductionType.AMOUNT, price=45.0)
        assert discount.apply(60.0) == 45.0

    def test_amount_without_price_keeps_base(self) -> None:
        """An absolute discount with no price leaves the base price."""
        assert Discount(ReductionType.AMOUNT).apply(60.0) == 60.0


class TestPriceFormula:
    """Tests for PriceFormula."""

    def test_no_discount(self) -> None:
        """Without discount, tax or rounding the base price is kept."""
        assert PriceFormula().compute(12.9) == 12.9

    def test_tax_applied_after_discount(self) -> None:
        """Tax is added on the discounted price."""
        formula = PriceFormula(use_tax=True)
        price = formula.compute(40.0, Discount(ReductionType.PERCENTAGE, reduction=0.2), 20.0)
        assert price == pytest.approx(38.4)

    def test_rounding(self) -> None:
        """Prices are rounded to the configured precision."""
        formula = PriceFormula(rounding_precision=2)
        assert formula.compute(12.9, Discount(ReductionType.PERCENTAGE, reduction=0.1)) == 11.61

    def test_tax_ignored_when_disabled(self) -> None:
        """The tax rate has no effect unless enabled."""
        assert PriceFormula().compute(10.0, None, 20.0) == 10.0


class TestComputedPrice:
    """Tests for ComputedPrice."""

    def test_default_alias(self) -> None:
        """The expression is exposed as computed_price."""
        assert ComputedPrice().alias == "computed_price"

    def test_equal_expressions_are_deduplicated(self) -> None:
        """Equal expressions compare equal, so selecting twice is a no-op."""
        taxed = PriceFormula(use_tax=True)
        assert ComputedPrice(taxed) == ComputedPrice(PriceFormula(use_tax=True))
        assert ComputedPrice() != ComputedPrice(PriceFormula(use_tax=True))


class TestPriceBounds:
    """Tests for price_bounds."""

    def test_without_discount(self) -> None:
        """Lowest and highest price are the base price."""
        assert price_bounds(35.0) == (35.0, 35.0)

    def test_with_discount(self) -> None:
        """The discounted price is the lower bound."""
        assert price_bounds(60.0, Discount(ReductionType.AMOUNT, price=45.0)) == (45.0, 60.0)
