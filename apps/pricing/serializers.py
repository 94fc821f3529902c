from rest_framework import serializers

from .cart import CartLine, LineOrigin
from .combos import ComboDefinition, ComboDiscountKind, ComboItem
from .discounts import Discount, DiscountKind


# =============================================================================
# Input Serializers
# =============================================================================

class DiscountInputSerializer(serializers.Serializer):
    """
    Validate a discount payload.

    Fields:
        kind (str): none, percent or amount
        value (Decimal): Percentage (0-100) or currency amount (>= 0)
    """

    kind = serializers.ChoiceField(choices=DiscountKind.choices)
    value = serializers.DecimalField(max_digits=12, decimal_places=4, min_value=0, default=0)

    def validate(self, attrs):
        """Percent discounts are limited to 100."""
        if attrs['kind'] == DiscountKind.PERCENT and attrs['value'] > 100:
            raise serializers.ValidationError({
                'value': 'Percent discount cannot exceed 100.'
            })
        return attrs

    def to_discount(self):
        return Discount(self.validated_data['kind'], self.validated_data['value'])


class CartLineInputSerializer(serializers.Serializer):
    """Validate one cart line payload."""

    product_ref = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)
    unit_price_net = serializers.DecimalField(max_digits=12, decimal_places=4, min_value=0)
    tax_rate = serializers.DecimalField(max_digits=7, decimal_places=4, min_value=0, default=0)
    discount = DiscountInputSerializer(required=False, allow_null=True)
    origin = serializers.ChoiceField(choices=LineOrigin.choices, default=LineOrigin.STANDALONE)
    combo_ref = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        """Combo-derived lines must name their combo."""
        if attrs.get('origin') == LineOrigin.COMBO and not attrs.get('combo_ref'):
            raise serializers.ValidationError({
                'combo_ref': 'Required for combo lines.'
            })
        return attrs


class ComboItemInputSerializer(serializers.Serializer):
    product_ref = serializers.CharField(max_length=64)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=4, min_value=0)
    tax_rate = serializers.DecimalField(max_digits=7, decimal_places=4, min_value=0, default=0)


class ComboInputSerializer(serializers.Serializer):
    """
    Validate a combo sold in a cart.

    Fields:
        ref (str): Combo identifier
        name (str): Display name
        base_items (list): Items included in the combo
        discount_kind (str): percent or fixed_amount
        discount_value (Decimal): Bundle discount value
        extra_selections (list): Optional extras priced into the bundle
        quantity (int): Number of combos purchased
    """

    ref = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=200)
    base_items = ComboItemInputSerializer(many=True, allow_empty=False)
    discount_kind = serializers.ChoiceField(choices=ComboDiscountKind.choices)
    discount_value = serializers.DecimalField(max_digits=12, decimal_places=4, min_value=0)
    extra_selections = ComboItemInputSerializer(many=True, required=False)
    quantity = serializers.IntegerField(min_value=1, default=1)

    def validate(self, attrs):
        if attrs['discount_kind'] == ComboDiscountKind.PERCENT and attrs['discount_value'] > 100:
            raise serializers.ValidationError({
                'discount_value': 'Percent discount cannot exceed 100.'
            })
        return attrs


# =============================================================================
# Builders
# =============================================================================

def build_cart_line(data):
    """Build a CartLine from CartLineInputSerializer.validated_data."""
    return CartLine(
        product_ref=data['product_ref'],
        quantity=data['quantity'],
        unit_price_net=data['unit_price_net'],
        tax_rate=data.get('tax_rate', 0),
        discount=Discount.from_data(data.get('discount')),
        origin=data.get('origin', LineOrigin.STANDALONE),
        combo_ref=data.get('combo_ref') or None,
    )


def build_combo(data):
    """Build (combo, extra_selections, quantity) from ComboInputSerializer.validated_data."""
    combo = ComboDefinition(
        ref=data['ref'],
        name=data['name'],
        base_items=[ComboItem(**item) for item in data['base_items']],
        discount_kind=data['discount_kind'],
        discount_value=data['discount_value'],
    )
    extras = [ComboItem(**item) for item in data.get('extra_selections', [])]
    return combo, extras, data.get('quantity', 1)
