from rest_framework import serializers
from .models import PaymentMethod


# =============================================================================
# Input Serializers
# =============================================================================

class PaymentLineInputSerializer(serializers.Serializer):
    """
    Validate one payment row.

    Fields:
        method_ref (str): PaymentMethod code
        amount (Decimal): Amount handed over, >= 0
    """

    method_ref = serializers.CharField(max_length=32)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)

    def validate_method_ref(self, value):
        """Method must exist and be active."""
        if not PaymentMethod.objects.filter(code=value, is_active=True).exists():
            raise serializers.ValidationError(f"Unknown or inactive payment method: {value}")
        return value
