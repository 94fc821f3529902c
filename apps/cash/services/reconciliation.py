"""
Cash Ledger Reconciliation
==========================

Pure balance functions over a register session and an iterable of cash
movements. Signs and the cash-drawer test come from ``CashMovement.signed_amount``
and ``CashMovement.is_cash``. Nothing here queries the database, so callers should
``select_related('payment_method')``.

Only movements with ``affects_balance`` set are counted anywhere.

Functions:
    expected_cash_balance: Opening balance plus cash-drawer movements.
    income_today / expenses_today: Today's inflow/outflow.
    balance_since_opening: Opening balance plus every movement since opening.
    payment_method_totals: Signed totals per tender.
    classify_difference: balanced / surplus / shortage.
    reconcile: Counted vs expected for a session.
"""

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from apps.pricing.money import ZERO, to_decimal

from ..models import MovementDirection, Reconciliation


UNASSIGNED_LABEL = 'Unassigned'


@dataclass(frozen=True)
class ReconciliationResult:
    expected: Decimal
    counted: Decimal
    difference: Decimal
    classification: str


def _counted(movements):
    return [movement for movement in movements if movement.affects_balance]


def _local_date(value):
    if timezone.is_aware(value):
        return timezone.localtime(value).date()
    return value.date()


def expected_cash_balance(session, movements):
    """
    Opening balance plus the signed cash-drawer movements of this session.

    Movements of other sessions and non-cash tenders are ignored; the result
    does not depend on movement order.
    """
    total = session.opening_balance
    for movement in _counted(movements):
        if movement.session_id == session.id and movement.is_cash:
            total += movement.signed_amount
    return total


def _todays_movements(session, movements, today):
    today = today or timezone.localdate()
    opened_today = _local_date(session.opened_at) == today

    for movement in _counted(movements):
        if _local_date(movement.occurred_at) != today:
            continue
        # A drawer opened today only reports its own movements
        if opened_today and movement.session_id != session.id:
            continue
        yield movement


def income_today(session, movements, today=None):
    """
    Inflows that occurred today.

    If the session was opened today only its own movements count. Otherwise
    every movement supplied counts, so callers pass the branch's movements
    of the day across all its registers.
    """
    return sum(
        (m.amount for m in _todays_movements(session, movements, today)
         if m.direction == MovementDirection.INFLOW),
        ZERO,
    )


def expenses_today(session, movements, today=None):
    """Outflows that occurred today, scoped like income_today()."""
    return sum(
        (m.amount for m in _todays_movements(session, movements, today)
         if m.direction == MovementDirection.OUTFLOW),
        ZERO,
    )


def balance_since_opening(session, movements):
    """Opening balance plus every movement (cash or not) since the session opened."""
    total = session.opening_balance
    for movement in _counted(movements):
        if movement.occurred_at >= session.opened_at:
            total += movement.signed_amount
    return total


def payment_method_totals(session, movements):
    """
    Signed movement totals per payment method name for this session.

    The opening balance is added to the first cash-drawer method seen, or
    reported under the cash-drawer label when no cash movement exists yet.
    Movements without a tender are grouped as "Unassigned".
    """
    totals = OrderedDict()
    cash_label = None

    for movement in _counted(movements):
        if movement.session_id != session.id:
            continue
        method = movement.payment_method
        label = method.name if method is not None else UNASSIGNED_LABEL
        if cash_label is None and movement.is_cash:
            cash_label = label
        totals[label] = totals.get(label, ZERO) + movement.signed_amount

    if session.opening_balance:
        if cash_label is None:
            cash_label = getattr(settings, 'POS_CASH_DRAWER_LABEL', 'Cash')
        totals[cash_label] = totals.get(cash_label, ZERO) + session.opening_balance

    return totals


def classify_difference(difference, tolerance=None):
    """Classify counted-minus-expected: within tolerance is balanced."""
    if tolerance is None:
        tolerance = to_decimal(getattr(settings, 'POS_BALANCE_TOLERANCE', '0.01'))
    if abs(difference) < tolerance:
        return Reconciliation.BALANCED
    if difference > 0:
        return Reconciliation.SURPLUS
    return Reconciliation.SHORTAGE


def reconcile(session, counted_amount, movements):
    """Compare the operator's count with the expected cash balance."""
    counted = to_decimal(counted_amount, field='counted_amount')
    expected = expected_cash_balance(session, movements)
    difference = counted - expected
    return ReconciliationResult(
        expected=expected,
        counted=counted,
        difference=difference,
        classification=classify_difference(difference),
    )
