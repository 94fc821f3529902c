import pytest
from decimal import Decimal
from apps.pricing.cart import LineOrigin
from apps.pricing.combos import (
    ComboDefinition,
    ComboDiscountKind,
    ComboItem,
    combo_discount_amount,
    combo_price,
    expand_combo,
)
from apps.pricing.discounts import DiscountKind
from apps.pricing.exceptions import InvalidComboError, ValidationError
from apps.pricing.money import round2
from apps.pricing.totals import compute_totals


# =============================================================================
# Validation
# =============================================================================

class TestComboValidation:
    """Tests for combo definition validation."""

    def test_requires_items(self):
        """A combo without items is rejected."""
        with pytest.raises(InvalidComboError) as exc_info:
            ComboDefinition('C1', 'Empty', [], ComboDiscountKind.PERCENT, 10)
        assert 'base_items' in exc_info.value.errors

    def test_requires_name(self):
        """A combo needs a name."""
        with pytest.raises(InvalidComboError) as exc_info:
            ComboDefinition('C1', '  ', [ComboItem('A', 1, 1)])
        assert 'name' in exc_info.value.errors

    def test_percent_over_100_rejected(self):
        """Percent combos cannot discount more than 100%."""
        with pytest.raises(InvalidComboError) as exc_info:
            ComboDefinition('C1', 'Too much', [ComboItem('A', 1, 1)], ComboDiscountKind.PERCENT, 150)
        assert 'discount_value' in exc_info.value.errors

    def test_unknown_discount_kind_rejected(self):
        """Only percent and fixed_amount combos exist."""
        with pytest.raises(InvalidComboError):
            ComboDefinition('C1', 'Odd', [ComboItem('A', 1, 1)], 'amount', 1)

    def test_item_quantity_must_be_positive(self):
        """Every item needs a positive quantity."""
        with pytest.raises(InvalidComboError) as exc_info:
            ComboDefinition('C1', 'Bad', [ComboItem('A', 0, 1)])
        assert 'base_items[0].quantity' in exc_info.value.errors

    def test_invalid_combo_is_a_validation_error(self):
        """Combo errors are caught with the general validation error."""
        with pytest.raises(ValidationError):
            ComboDefinition('C1', 'Bad', [ComboItem('A', 1, -1)])


# =============================================================================
# Discount amount
# =============================================================================

class TestComboDiscountAmount:
    """Tests for the bundle discount calculation."""

    def test_percent(self):
        assert combo_discount_amount(ComboDiscountKind.PERCENT, Decimal('20'), Decimal('13')) == Decimal('2.6')

    def test_fixed_capped_at_base(self):
        """A fixed discount never exceeds the base price."""
        assert combo_discount_amount(ComboDiscountKind.FIXED_AMOUNT, Decimal('50'), Decimal('30')) == Decimal('30')

    def test_zero_base(self):
        """A free combo has no discount."""
        assert combo_discount_amount(ComboDiscountKind.FIXED_AMOUNT, Decimal('5'), Decimal('0')) == Decimal('0')


# =============================================================================
# Expansion
# =============================================================================

class TestExpandCombo:
    """Tests for combo decomposition into cart lines."""

    def test_percent_combo_lines(self, burger_combo):
        """Each line carries the bundle percent."""
        lines = expand_combo(burger_combo)

        assert [line.product_ref for line in lines] == ['BURGER', 'FRIES', 'DRINK']
        for line in lines:
            assert line.origin == LineOrigin.COMBO
            assert line.combo_ref == 'COMBO-BURGER'
            assert line.discount.kind == DiscountKind.PERCENT
            assert line.discount.value == Decimal('20')

    def test_fixed_combo_re_expressed_as_percent(self, fixed_combo):
        """5.00 off a 30.00 bundle is one sixth off every unit."""
        lines = expand_combo(fixed_combo)
        for line in lines:
            assert round(line.discount.value, 6) == Decimal('16.666667')

    def test_gross_matches_discounted_base(self, fixed_combo):
        """Emitted lines add up to base price minus discount."""
        totals = compute_totals(expand_combo(fixed_combo))
        assert totals.grand_total == Decimal('25.00')

    def test_quantity_multiplies_lines(self, fixed_combo):
        """Buying two combos doubles every line quantity."""
        lines = expand_combo(fixed_combo, quantity=2)
        assert [line.quantity for line in lines] == [4, 8]
        assert compute_totals(lines).grand_total == Decimal('50.00')

    def test_extra_selection_merged_with_base_item(self, burger_combo):
        """Extras sharing a product ref are merged into one line."""
        lines = expand_combo(burger_combo, [ComboItem('FRIES', 1, Decimal('3.00'))])

        assert len(lines) == 3
        fries = lines[1]
        assert fries.product_ref == 'FRIES'
        assert fries.quantity == 2
        assert fries.unit_price_net == Decimal('3.00')

    def test_extra_with_conflicting_tax_rate(self, burger_combo):
        """The same product cannot be taxed at two rates in one combo."""
        with pytest.raises(InvalidComboError) as exc_info:
            expand_combo(burger_combo, [ComboItem('FRIES', 1, Decimal('3.00'), Decimal('21'))])
        assert 'FRIES' in exc_info.value.errors

    def test_base_items_with_conflicting_tax_rate(self):
        """Duplicate base items must share a tax rate."""
        with pytest.raises(InvalidComboError) as exc_info:
            ComboDefinition(
                'DUP', 'Duplicate', [ComboItem('X', 1, Decimal('10'), Decimal('21')), ComboItem('X', 1, Decimal('10'))],
                ComboDiscountKind.PERCENT, Decimal('0'),
            )
        assert 'base_items[1].tax_rate' in exc_info.value.errors

    def test_extra_selection_adds_line(self, burger_combo):
        """New extras become their own line and share the discount."""
        lines = expand_combo(burger_combo, [ComboItem('SAUCE', 2, Decimal('0.50'))])
        assert lines[-1].product_ref == 'SAUCE'
        # base 14.00, 20% off
        assert compute_totals(lines).grand_total == Decimal('11.20')

    def test_zero_base_combo_no_discount(self):
        """A combo of free items emits lines without a discount."""
        combo = ComboDefinition(
            'FREE', 'Free sample', [ComboItem('SAMPLE', 1, Decimal('0'))],
            ComboDiscountKind.FIXED_AMOUNT, Decimal('5'),
        )
        lines = expand_combo(combo)
        assert lines[0].discount.is_none

    def test_full_discount_caps_at_100_percent(self):
        """A fixed discount larger than the bundle zeroes every line."""
        combo = ComboDefinition(
            'GIFT', 'Gift', [ComboItem('A', 1, Decimal('4')), ComboItem('B', 3, Decimal('2'))],
            ComboDiscountKind.FIXED_AMOUNT, Decimal('99'),
        )
        lines = expand_combo(combo)
        for line in lines:
            assert Decimal('0') <= line.discount.value <= Decimal('100')
        assert compute_totals(lines).grand_total == Decimal('0.00')

    def test_taxed_items(self):
        """Tax is charged on the discounted combo price."""
        combo = ComboDefinition(
            'TAXED', 'Taxed', [ComboItem('A', 1, Decimal('100'), Decimal('21'))],
            ComboDiscountKind.PERCENT, Decimal('10'),
        )
        totals = compute_totals(expand_combo(combo))
        assert totals.subtotal_net == Decimal('90.00')
        assert totals.grand_total == Decimal('108.90')

    def test_invalid_quantity(self, burger_combo):
        """Combo quantity must be positive."""
        with pytest.raises(ValidationError):
            expand_combo(burger_combo, quantity=0)

    def test_invalid_extra(self, burger_combo):
        """Extras are validated like base items."""
        with pytest.raises(InvalidComboError):
            expand_combo(burger_combo, [ComboItem('SAUCE', -1, Decimal('1'))])


# =============================================================================
# Combo price breakdown
# =============================================================================

class TestComboPrice:
    """Tests for the combo price breakdown."""

    def test_breakdown(self, burger_combo):
        """Base, discount and final price are reported."""
        price = combo_price(burger_combo)
        assert price.base_price == Decimal('13.00')
        assert price.discount_amount == Decimal('2.60')
        assert price.final_price == Decimal('10.40')

    def test_item_totals_sum_to_final(self, fixed_combo):
        """Allocated item totals add up exactly to the final price."""
        price = combo_price(fixed_combo, [ComboItem('JUICE', 1, Decimal('3.33'))])
        assert sum(item.final_total for item in price.items) == price.final_price

    def test_matches_expansion(self, burger_combo):
        """The breakdown and the expanded lines agree on the final price."""
        price = combo_price(burger_combo)
        totals = compute_totals(expand_combo(burger_combo))
        assert round2(totals.grand_total) == price.final_price
