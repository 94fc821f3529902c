"""
Payment Settlement
==================

Applies per-method discount rates to the payment rows entered for a sale,
computes what is still pending (or owed back as change), and decides at
confirmation time whether the sale may commit.

Every function here is pure. ``methods`` is a mapping from method ref to an
object exposing ``discount_percent`` and ``affects_cash_drawer`` (and
optionally ``is_active``), normally ``PaymentMethod`` rows keyed by code.

Formulas::

    payment_discount = sum(amount_i * discount_percent_i / 100)   (all rows)
    final_total      = round2(grand_total - payment_discount)
    pending_amount   = final_total - sum(amount_i)

``pending_amount > 0`` is a shortfall, ``< 0`` is change owed to the
customer.

Classes:
    PaymentLine: One payment row.
    Settlement: Result of settle().
    ChangeResolution: Result of resolve_change().
    PaymentDraft: Editable rows with the frozen payment discount.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from apps.pricing.exceptions import ValidationError
from apps.pricing.money import HUNDRED, ZERO, round2, to_decimal

from .exceptions import (
    ChangeNotAllowedError,
    InsufficientPaymentError,
    UnknownPaymentMethodError,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentLine:
    """A payment row: tender ref and amount handed over (rounded to cents)."""

    method_ref: str
    amount: Decimal

    def __post_init__(self):
        if not self.method_ref:
            raise ValidationError('Payment method is required', {'method_ref': 'Required.'})
        amount = round2(to_decimal(self.amount, field='amount'))
        if amount < 0:
            raise ValidationError('Payment amount cannot be negative', {'amount': 'Must be >= 0.'})
        object.__setattr__(self, 'amount', amount)

    @classmethod
    def from_data(cls, data):
        if isinstance(data, cls):
            return data
        if not isinstance(data, dict):
            raise ValidationError('Payment must be an object with method_ref and amount')
        return cls(data.get('method_ref'), data.get('amount'))


@dataclass(frozen=True)
class Settlement:
    grand_total: Decimal
    payment_discount_exact: Decimal
    payment_discount_total: Decimal
    final_total: Decimal
    paid_total: Decimal
    pending_amount: Decimal

    @property
    def is_exact(self):
        return self.pending_amount == 0

    @property
    def missing_amount(self):
        return max(ZERO, self.pending_amount)

    @property
    def change_amount(self):
        return max(ZERO, -self.pending_amount)


@dataclass(frozen=True)
class ChangeResolution:
    """
    Outcome of a confirmed settlement.

    ``payments`` are the rows to persist: identical to the submitted rows
    except the change row, whose amount is reduced by ``change_due``
    (never below zero).
    """

    settlement: Settlement
    payments: Tuple[PaymentLine, ...]
    change_due: Decimal
    change_row: Optional[int] = None


def get_method(method_ref, methods):
    """
    Look up the method for a payment row.

    Raises:
        UnknownPaymentMethodError: If the ref is unknown or the method inactive.
    """
    method = methods.get(method_ref)
    if method is None:
        raise UnknownPaymentMethodError(method_ref)
    if not getattr(method, 'is_active', True):
        raise UnknownPaymentMethodError(method_ref, reason='inactive')
    return method


def payment_discount_total(payments, methods):
    """Sum of amount * discount_percent / 100 over every payment row, unrounded."""
    total = ZERO
    for payment in payments:
        method = get_method(payment.method_ref, methods)
        total += payment.amount * to_decimal(method.discount_percent) / HUNDRED
    return total


def _build_settlement(grand_total, discount_exact, payments):
    # The payment discount can never take the total below zero
    discount_exact = min(discount_exact, grand_total)
    final_total = round2(grand_total - discount_exact)
    paid_total = sum((payment.amount for payment in payments), ZERO)

    return Settlement(
        grand_total=grand_total,
        payment_discount_exact=discount_exact,
        payment_discount_total=grand_total - final_total,
        final_total=final_total,
        paid_total=paid_total,
        pending_amount=final_total - paid_total,
    )


def _grand_total(value):
    grand_total = round2(to_decimal(value, field='grand_total'))
    if grand_total < 0:
        raise ValidationError('Grand total cannot be negative', {'grand_total': 'Must be >= 0.'})
    return grand_total


def settle(grand_total, payments, methods) -> Settlement:
    """
    Settle payment rows against a grand total using live values.

    This is the authoritative settlement; the checkout screen may show a
    PaymentDraft's frozen figures, but confirmation always calls this.

    Args:
        grand_total (Decimal): Cart grand total from compute_totals().
        payments (list[PaymentLine | dict]): Payment rows in entry order.
        methods (dict): Method ref to payment method.

    Returns:
        Settlement: Discount, final total, amount paid and pending amount.

    Raises:
        ValidationError: If a row is malformed or references an unknown or
            inactive method.

    Example:
        >>> settle(Decimal('1000.00'),
        ...        [PaymentLine('cash', Decimal('600')), PaymentLine('card', Decimal('500'))],
        ...        {'cash': cash, 'card': card_3_percent}).pending_amount
        Decimal('-115.00')
    """
    grand_total = _grand_total(grand_total)
    payments = [PaymentLine.from_data(payment) for payment in payments]
    discount_exact = payment_discount_total(payments, methods)
    return _build_settlement(grand_total, discount_exact, payments)


def resolve_change(settlement, payments, methods, change_row=None) -> ChangeResolution:
    """
    Decide whether a settlement may be confirmed.

    - Nothing pending: proceed unchanged.
    - Shortfall: reject with the missing amount.
    - Overpayment: allowed only when at least one row is a cash-drawer
      tender. The change row absorbs the change; its persisted amount is
      ``max(0, submitted - change_due)``.

    Args:
        settlement (Settlement): Result of settle() over the same rows.
        payments (list[PaymentLine | dict]): Payment rows in entry order.
        methods (dict): Method ref to payment method.
        change_row (int, optional): Index of the row that gives change. Must
            be a cash-drawer tender. Defaults to the last cash-drawer row.

    Returns:
        ChangeResolution: Rows to persist and the change owed.

    Raises:
        InsufficientPaymentError: If payments fall short.
        ChangeNotAllowedError: If overpaid with no cash-drawer row.
        ValidationError: If change_row is out of range or not a cash row.
    """
    payments = [PaymentLine.from_data(payment) for payment in payments]
    pending = settlement.pending_amount

    if pending > 0:
        logger.info('Settlement rejected: %s missing of %s', pending, settlement.final_total)
        raise InsufficientPaymentError(pending)

    if pending == 0:
        return ChangeResolution(settlement=settlement, payments=tuple(payments), change_due=ZERO)

    change_due = -pending
    cash_rows = [
        index for index, payment in enumerate(payments)
        if get_method(payment.method_ref, methods).affects_cash_drawer
    ]
    if not cash_rows:
        logger.info('Settlement rejected: overpaid by %s with no cash tender', change_due)
        raise ChangeNotAllowedError(change_due)

    if change_row is None:
        change_row = cash_rows[-1]
    elif isinstance(change_row, bool) or not isinstance(change_row, int) or not 0 <= change_row < len(payments):
        raise ValidationError(
            f'Change row {change_row!r} does not exist',
            {'change_row': f'Must be between 0 and {len(payments) - 1}.'},
        )
    elif change_row not in cash_rows:
        raise ValidationError(
            'Change can only be given from a cash-drawer payment',
            {'change_row': 'Payment method does not affect the cash drawer.'},
        )

    row = payments[change_row]
    adjusted = max(ZERO, row.amount - change_due)
    if row.amount < change_due:
        logger.warning(
            'Change %s exceeds cash row amount %s; row clamped to zero', change_due, row.amount
        )
    payments[change_row] = PaymentLine(row.method_ref, adjusted)

    return ChangeResolution(
        settlement=settlement,
        payments=tuple(payments),
        change_due=change_due,
        change_row=change_row,
    )


class PaymentDraft:
    """
    Payment rows being edited at the register.

    The payment-method discount is frozen: it is recomputed only by
    ``set_base_total`` (when the total actually changes), ``add_row``,
    ``remove_row`` and ``change_method``. ``change_amount`` keeps the frozen
    value so the displayed total does not move while the operator types an
    amount. ``display()`` shows frozen figures; ``settle()`` is the live,
    authoritative settlement used at confirmation.
    """

    def __init__(self, grand_total, methods, payments=()):
        self._methods = methods
        self._grand_total = _grand_total(grand_total)
        self._rows = [PaymentLine.from_data(payment) for payment in payments]
        self._frozen_discount = ZERO
        self._recompute_discount()

    @property
    def grand_total(self):
        return self._grand_total

    @property
    def rows(self):
        return tuple(self._rows)

    @property
    def payment_discount_total(self):
        return self.display().payment_discount_total

    @property
    def final_total(self):
        return self.display().final_total

    @property
    def pending_amount(self):
        return self.display().pending_amount

    def _recompute_discount(self):
        self._frozen_discount = payment_discount_total(self._rows, self._methods)

    def _check_index(self, index):
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._rows):
            raise ValidationError(f'Payment row {index!r} does not exist')

    # Structural changes: recompute the payment discount

    def set_base_total(self, grand_total):
        grand_total = _grand_total(grand_total)
        if grand_total != self._grand_total:
            self._grand_total = grand_total
            self._recompute_discount()

    def add_row(self, method_ref, amount=ZERO):
        """Append a row and return its index."""
        get_method(method_ref, self._methods)
        self._rows.append(PaymentLine(method_ref, amount))
        self._recompute_discount()
        return len(self._rows) - 1

    def remove_row(self, index):
        self._check_index(index)
        del self._rows[index]
        self._recompute_discount()

    def change_method(self, index, method_ref):
        self._check_index(index)
        get_method(method_ref, self._methods)
        if self._rows[index].method_ref != method_ref:
            self._rows[index] = PaymentLine(method_ref, self._rows[index].amount)
            self._recompute_discount()

    # Amount edits keep the frozen discount

    def change_amount(self, index, amount):
        self._check_index(index)
        self._rows[index] = PaymentLine(self._rows[index].method_ref, amount)

    def display(self) -> Settlement:
        """Settlement figures for the screen, using the frozen discount."""
        return _build_settlement(self._grand_total, self._frozen_discount, self._rows)

    def settle(self) -> Settlement:
        """Authoritative settlement over the current rows."""
        return settle(self._grand_total, self._rows, self._methods)
