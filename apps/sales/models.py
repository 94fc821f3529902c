from django.db import models
from decimal import Decimal
import uuid

from apps.pricing.cart import LineOrigin
from apps.pricing.discounts import DiscountKind


def _money(**kwargs):
    return models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'), **kwargs)


class Sale(models.Model):
    """A confirmed sale with the totals it was charged at."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    branch_ref = models.CharField(max_length=64)
    session = models.ForeignKey(
        'cash.CashRegisterSession',
        on_delete=models.PROTECT,
        related_name='sales'
    )

    # Cart totals
    gross_before_discounts = _money()
    item_discount_total = _money()
    subtotal_net = _money()
    total_tax = _money()
    global_discount_kind = models.CharField(
        max_length=10,
        choices=DiscountKind.choices,
        default=DiscountKind.NONE
    )
    global_discount_value = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal('0'))
    global_discount_amount = _money()
    grand_total = _money()
    tax_breakdown = models.JSONField(default=list, blank=True)

    # Settlement
    payment_discount_total = _money()
    final_total = _money()
    amount_tendered = _money()
    change_given = _money()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sales'
        indexes = [
            models.Index(fields=['branch_ref', 'created_at'], name='sales_branch__c4a1f7_idx'),
            models.Index(fields=['session'], name='sales_session_9e3b21_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"Sale {self.id} - {self.final_total} ({self.branch_ref})"


class SaleLine(models.Model):
    """One priced line of a sale."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='lines')
    position = models.PositiveIntegerField()

    product_ref = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField()
    unit_price_net = models.DecimalField(max_digits=12, decimal_places=4)
    tax_rate = models.DecimalField(max_digits=7, decimal_places=4, default=Decimal('0'))
    discount_kind = models.CharField(
        max_length=10,
        choices=DiscountKind.choices,
        default=DiscountKind.NONE
    )
    discount_value = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal('0'))
    origin = models.CharField(
        max_length=10,
        choices=LineOrigin.choices,
        default=LineOrigin.STANDALONE
    )
    combo_ref = models.CharField(max_length=64, blank=True)

    # Pricing result
    discounted_unit_net = models.DecimalField(max_digits=12, decimal_places=4)
    line_net = _money()
    line_tax = _money()
    line_total = _money()
    global_discount_share = _money()

    class Meta:
        db_table = 'sale_lines'
        ordering = ['sale', 'position']

    def __str__(self):
        return f"{self.quantity} x {self.product_ref} = {self.line_total}"


class SalePayment(models.Model):
    """
    One payment row of a sale.

    ``submitted_amount`` is what the operator entered; ``amount`` is what was
    kept after change was given from this row.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='payments')
    position = models.PositiveIntegerField()
    payment_method = models.ForeignKey(
        'payments.PaymentMethod',
        on_delete=models.PROTECT,
        related_name='sale_payments'
    )

    submitted_amount = _money()
    amount = _money()
    discount_amount = _money()
    gave_change = models.BooleanField(default=False)

    class Meta:
        db_table = 'sale_payments'
        ordering = ['sale', 'position']

    def __str__(self):
        return f"{self.payment_method.code}: {self.amount}"
