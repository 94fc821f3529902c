from django.db import models
from django.core.validators import MaxValueValidator, MinValueValidator
from decimal import Decimal
import uuid


class PaymentMethod(models.Model):
    """Tender accepted at the register (cash, card, transfer, store credit)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Referenced by payment rows as method_ref
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=100)

    # Discount granted on the amount paid with this method (0 for most)
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[
            MinValueValidator(Decimal('0.00')),
            MaxValueValidator(Decimal('100.00')),
        ]
    )

    # True for tenders that physically change the drawer contents
    affects_cash_drawer = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payment_methods'
        indexes = [
            models.Index(fields=['is_active'], name='payment_met_is_acti_5c1e2a_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        suffix = f" (-{self.discount_percent}%)" if self.discount_percent else ""
        return f"{self.name}{suffix}"
