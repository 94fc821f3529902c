import pytest
from decimal import Decimal
from apps.pricing.cart import CartLine, LineOrigin
from apps.pricing.discounts import Discount, DiscountKind, apply_discount
from apps.pricing.exceptions import ValidationError
from apps.pricing.totals import compute_totals, price_line


# =============================================================================
# Discount Tests
# =============================================================================

class TestDiscount:
    """Tests for the Discount value type."""

    def test_percent_off(self):
        """Percent discounts take a share of the base."""
        assert apply_discount(Decimal('100'), Discount.percent(10)) == Decimal('90')

    def test_amount_capped_at_base(self):
        """Amount discounts never push the price below zero."""
        assert apply_discount(Decimal('5'), Discount.amount(8)) == Decimal('0')

    def test_none_leaves_base(self):
        """No discount returns the base untouched."""
        assert apply_discount(Decimal('12.34'), Discount.none()) == Decimal('12.34')
        assert apply_discount(Decimal('12.34'), None) == Decimal('12.34')

    def test_negative_value_rejected(self):
        """Negative discounts are malformed."""
        with pytest.raises(ValidationError):
            Discount.amount(-1)

    def test_percent_over_100_rejected(self):
        """Percent discounts above 100 are malformed."""
        with pytest.raises(ValidationError) as exc_info:
            Discount.percent(101)
        assert 'value' in exc_info.value.errors

    def test_unknown_kind_rejected(self):
        """Only none, percent and amount are accepted."""
        with pytest.raises(ValidationError):
            Discount('bogus', 1)

    def test_from_dict(self):
        """Plain dict payloads are accepted."""
        discount = Discount.from_data({'kind': 'amount', 'value': '2.50'})
        assert discount.kind == DiscountKind.AMOUNT
        assert discount.value == Decimal('2.50')


# =============================================================================
# CartLine Tests
# =============================================================================

class TestCartLine:
    """Tests for cart line validation and per-unit discounting."""

    def test_zero_quantity_rejected(self):
        """Quantity must be positive."""
        with pytest.raises(ValidationError) as exc_info:
            CartLine('SKU', 0, Decimal('1'))
        assert 'quantity' in exc_info.value.errors

    def test_fractional_quantity_rejected(self):
        """Quantity must be a whole number."""
        with pytest.raises(ValidationError):
            CartLine('SKU', 1.5, Decimal('1'))

    def test_negative_price_rejected(self):
        """Unit price cannot be negative."""
        with pytest.raises(ValidationError):
            CartLine('SKU', 1, Decimal('-1'))

    def test_negative_tax_rejected(self):
        """Tax rate cannot be negative."""
        with pytest.raises(ValidationError):
            CartLine('SKU', 1, Decimal('1'), Decimal('-5'))

    def test_combo_line_needs_ref(self):
        """Combo-origin lines must reference their combo."""
        with pytest.raises(ValidationError) as exc_info:
            CartLine('SKU', 1, Decimal('1'), origin=LineOrigin.COMBO)
        assert 'combo_ref' in exc_info.value.errors

    def test_amount_discount_spread_over_units(self):
        """A line amount discount is divided across the units."""
        line = CartLine('SKU', 4, Decimal('2.50'), discount=Discount.amount(3))
        assert line.discounted_unit_net == Decimal('1.75')

    def test_amount_discount_capped_at_line_value(self):
        """An amount larger than the line value zeroes the line."""
        line = CartLine('SKU', 2, Decimal('3.00'), discount=Discount.amount(50))
        assert line.discounted_unit_net == Decimal('0')

    def test_discounted_net_within_bounds(self, mixed_cart):
        """Discounted net is between zero and the unit price."""
        for line in mixed_cart:
            assert Decimal('0') <= line.discounted_unit_net <= line.unit_price_net


# =============================================================================
# compute_totals Tests
# =============================================================================

class TestComputeTotals:
    """Tests for the discount/tax pipeline."""

    def test_worked_example(self, taxed_line):
        """100 net, 10% line discount, 21% tax, 5% global discount."""
        priced = price_line(taxed_line)
        assert priced.discounted_unit_net == Decimal('90')
        assert priced.unit_tax == Decimal('18.9')
        assert priced.unit_gross == Decimal('108.9')

        totals = compute_totals([taxed_line], Discount.percent(5))

        assert totals.item_discount_total == Decimal('10.00')
        assert totals.subtotal_net == Decimal('90.00')
        assert totals.total_tax == Decimal('18.90')
        assert totals.global_discount_exact == Decimal('5.445')
        assert totals.grand_total == Decimal('103.46')
        assert totals.global_discount_amount == Decimal('5.44')

    def test_tax_is_computed_on_discounted_net(self, taxed_line):
        """Line discounts reduce the tax base."""
        totals = compute_totals([taxed_line])
        assert totals.total_tax == Decimal('18.90')
        assert totals.grand_total == Decimal('108.90')

    def test_global_discount_applies_to_tax_inclusive_total(self):
        """The global discount is taken from net plus tax."""
        line = CartLine('SKU', 1, Decimal('100'), Decimal('21'))
        totals = compute_totals([line], Discount.amount(21))
        assert totals.total_tax == Decimal('21.00')
        assert totals.grand_total == Decimal('100.00')

    def test_grand_total_identity(self, mixed_cart):
        """grand_total equals subtotal_net + total_tax - global_discount_amount."""
        for discount in (None, Discount.percent(7), Discount.amount('3.333'), Discount.percent(100)):
            totals = compute_totals(mixed_cart, discount)
            assert totals.grand_total == (
                totals.subtotal_net + totals.total_tax - totals.global_discount_amount
            )

    def test_global_amount_capped(self, mixed_cart):
        """A global discount larger than the cart zeroes it, never below."""
        totals = compute_totals(mixed_cart, Discount.amount(100000))
        assert totals.grand_total == Decimal('0.00')
        assert totals.global_discount_amount == totals.pre_global_gross

    def test_mixed_cart_figures(self, mixed_cart):
        """Per-line math keeps precision until the totals are surfaced."""
        totals = compute_totals(mixed_cart)
        # 20.00 + 3 * 4.2415 + 4 * 1.75
        assert totals.subtotal_net == Decimal('39.72')
        # 4.20 + 3 * 0.4453575
        assert totals.total_tax == Decimal('5.54')
        # 2.2455 + 3.00
        assert totals.item_discount_total == Decimal('5.25')
        assert totals.grand_total == Decimal('45.26')

    def test_tax_breakdown_per_rate(self, mixed_cart):
        """Tax is grouped by rate, ordered by rate."""
        totals = compute_totals(mixed_cart)
        rates = [bucket.rate for bucket in totals.tax_breakdown]
        assert rates == [Decimal('0'), Decimal('10.5'), Decimal('21')]
        assert totals.tax_breakdown[2].net == Decimal('20.00')
        assert totals.tax_breakdown[2].tax == Decimal('4.20')

    def test_empty_cart(self):
        """An empty cart totals zero."""
        totals = compute_totals([])
        assert totals.grand_total == Decimal('0.00')
        assert totals.tax_breakdown == ()

    def test_global_discount_from_dict(self, taxed_line):
        """Global discount may be a plain payload."""
        totals = compute_totals([taxed_line], {'kind': 'percent', 'value': 5})
        assert totals.grand_total == Decimal('103.46')

    def test_rejects_non_lines(self):
        """Only CartLine instances are priced."""
        with pytest.raises(ValidationError):
            compute_totals([{'product_ref': 'SKU'}])

    def test_oversized_price(self):
        """A price too large to total in cents is a validation error."""
        line = CartLine('SKU-1', 1, Decimal('1e30'))
        with pytest.raises(ValidationError):
            compute_totals([line])
