from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid

from .exceptions import ImmutableMovementError


class SessionStatus(models.TextChoices):
    OPEN = 'open', 'Open'
    CLOSED = 'closed', 'Closed'


class Reconciliation(models.TextChoices):
    BALANCED = 'balanced', 'Balanced'
    SURPLUS = 'surplus', 'Surplus'
    SHORTAGE = 'shortage', 'Shortage'


class MovementDirection(models.TextChoices):
    INFLOW = 'inflow', 'Inflow'
    OUTFLOW = 'outflow', 'Outflow'


class MovementKind(models.TextChoices):
    SALE = 'sale', 'Sale'
    DEPOSIT = 'deposit', 'Deposit'
    WITHDRAWAL = 'withdrawal', 'Withdrawal'
    EXPENSE = 'expense', 'Expense'
    ADJUSTMENT = 'adjustment', 'Adjustment'


class CashRegisterSession(models.Model):
    """One opening-to-closing run of a branch's cash register."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    branch_ref = models.CharField(max_length=64, db_index=True)
    operator = models.CharField(max_length=150, blank=True)

    # Opening
    opening_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    opened_at = models.DateTimeField(default=timezone.now)
    status = models.CharField(
        max_length=10,
        choices=SessionStatus.choices,
        default=SessionStatus.OPEN
    )

    # Closing (set exactly once)
    closing_balance = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    # Reconciliation snapshot taken at close
    expected_cash_at_close = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cash_difference = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    reconciliation = models.CharField(
        max_length=10,
        choices=Reconciliation.choices,
        blank=True
    )
    payment_method_totals = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cash_register_sessions'
        constraints = [
            models.UniqueConstraint(
                fields=['branch_ref'],
                condition=models.Q(status='open'),
                name='unique_open_session_per_branch',
            ),
        ]
        indexes = [
            models.Index(fields=['branch_ref', 'status'], name='cash_regist_branch__3f1a9c_idx'),
            models.Index(fields=['opened_at'], name='cash_regist_opened__8d2e47_idx'),
        ]
        ordering = ['-opened_at']

    def __str__(self):
        return f"Register {self.branch_ref} opened {self.opened_at:%Y-%m-%d %H:%M} ({self.status})"

    @property
    def is_open(self):
        return self.status == SessionStatus.OPEN


class CashMovement(models.Model):
    """
    Money entering or leaving a register session.

    ``amount`` is unsigned; ``direction`` carries the sign. Movements are
    immutable once saved. Informational movements (``affects_balance`` False)
    are kept for the record but ignored by every balance.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    session = models.ForeignKey(
        CashRegisterSession,
        on_delete=models.PROTECT,
        related_name='movements'
    )
    direction = models.CharField(max_length=10, choices=MovementDirection.choices)
    kind = models.CharField(
        max_length=20,
        choices=MovementKind.choices,
        default=MovementKind.SALE
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    # Null for movements not tied to a tender
    payment_method = models.ForeignKey(
        'payments.PaymentMethod',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='cash_movements'
    )
    affects_balance = models.BooleanField(default=True)

    description = models.CharField(max_length=255, blank=True)
    reference = models.CharField(max_length=64, blank=True, db_index=True)

    occurred_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'cash_movements'
        indexes = [
            models.Index(fields=['session', 'occurred_at'], name='cash_moveme_session_b71c05_idx'),
            models.Index(fields=['occurred_at'], name='cash_moveme_occurre_4e9d13_idx'),
        ]
        ordering = ['occurred_at', 'created_at']

    def __str__(self):
        sign = '+' if self.direction == MovementDirection.INFLOW else '-'
        return f"{sign}{self.amount} {self.kind} ({self.session.branch_ref})"

    def save(self, *args, **kwargs):
        """Only new movements may be saved."""
        if not self._state.adding:
            raise ImmutableMovementError(f'Cash movement {self.id} cannot be modified')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableMovementError(f'Cash movement {self.id} cannot be deleted')

    @property
    def signed_amount(self):
        if self.direction == MovementDirection.OUTFLOW:
            return -self.amount
        return self.amount

    @property
    def is_cash(self):
        """True when the movement's tender changes the drawer contents."""
        return self.payment_method is not None and self.payment_method.affects_cash_drawer
