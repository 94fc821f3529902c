from rest_framework import serializers

from apps.payments.serializers import PaymentLineInputSerializer
from apps.pricing.serializers import (
    CartLineInputSerializer,
    ComboInputSerializer,
    DiscountInputSerializer,
)


# =============================================================================
# Input Serializers
# =============================================================================

class SaleInputSerializer(serializers.Serializer):
    """
    Validate a sale confirmation payload.

    Fields:
        branch_ref (str): Branch whose open register takes the sale
        lines (list): Standalone cart lines
        combos (list): Combos to expand into lines
        payments (list): Payment rows in entry order
        global_discount (dict): Optional post-tax cart discount
        change_row (int): Optional index of the cash row giving change
        acknowledged_change (Decimal): Change amount shown to the operator
    """

    branch_ref = serializers.CharField(max_length=64)
    lines = CartLineInputSerializer(many=True, required=False)
    combos = ComboInputSerializer(many=True, required=False)
    payments = PaymentLineInputSerializer(many=True, allow_empty=False)
    global_discount = DiscountInputSerializer(required=False, allow_null=True)
    change_row = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    acknowledged_change = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=0,
        required=False,
        allow_null=True
    )

    def validate(self, attrs):
        """A sale needs at least one line or combo."""
        if not attrs.get('lines') and not attrs.get('combos'):
            raise serializers.ValidationError({
                'lines': 'Provide at least one line or combo.'
            })

        change_row = attrs.get('change_row')
        if change_row is not None and change_row >= len(attrs['payments']):
            raise serializers.ValidationError({
                'change_row': 'Must reference one of the payment rows.'
            })
        return attrs
