import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.pricing.exceptions import ValidationError
from apps.pricing.money import round2, to_decimal

from ..exceptions import (
    AlreadyClosedError,
    NoOpenRegisterError,
    RegisterAlreadyOpenError,
    SessionNotFoundError,
)
from ..models import (
    CashMovement,
    CashRegisterSession,
    MovementDirection,
    MovementKind,
    SessionStatus,
)
from .reconciliation import ReconciliationResult, payment_method_totals, reconcile


logger = logging.getLogger(__name__)


def _non_negative(value, field):
    amount = to_decimal(value, field=field)
    if amount < 0:
        raise ValidationError(f'{field} cannot be negative', {field: 'Must be >= 0.'})
    return amount


@transaction.atomic
def open_session(
    *,
    branch_ref: str,
    opening_balance,
    operator: str = '',
    notes: str = '',
) -> CashRegisterSession:
    """
    Open a register session for a branch.

    Args:
        branch_ref: Branch identifier.
        opening_balance: Cash in the drawer at opening, >= 0.
        operator: Name of the person opening the register.
        notes: Free-text notes.

    Returns:
        The new open CashRegisterSession.

    Raises:
        RegisterAlreadyOpenError: If the branch already has an open session.
        ValidationError: If the opening balance is negative.
    """
    if not branch_ref:
        raise ValidationError('Branch is required', {'branch_ref': 'Required.'})
    opening_balance = round2(_non_negative(opening_balance, 'opening_balance'))

    # Lock the branch's open session, if any, against a concurrent open
    existing = CashRegisterSession.objects.select_for_update().filter(
        branch_ref=branch_ref,
        status=SessionStatus.OPEN,
    ).first()
    if existing is not None:
        raise RegisterAlreadyOpenError(branch_ref)

    try:
        with transaction.atomic():
            session = CashRegisterSession.objects.create(
                branch_ref=branch_ref,
                operator=operator,
                opening_balance=opening_balance,
                notes=notes,
            )
    except IntegrityError:
        # Lost the race to another open on the same branch
        raise RegisterAlreadyOpenError(branch_ref)

    logger.info('Cash register opened for branch %s with %s', branch_ref, opening_balance)
    return session


def get_open_session(branch_ref: str) -> CashRegisterSession:
    """
    Return the branch's open session.

    Raises:
        NoOpenRegisterError: If the branch has no open session.
    """
    try:
        return CashRegisterSession.objects.get(branch_ref=branch_ref, status=SessionStatus.OPEN)
    except CashRegisterSession.DoesNotExist:
        raise NoOpenRegisterError(branch_ref)


def lock_open_session(branch_ref):
    """Return the branch's open session locked for update; call inside a transaction."""
    try:
        return CashRegisterSession.objects.select_for_update().get(
            branch_ref=branch_ref,
            status=SessionStatus.OPEN,
        )
    except CashRegisterSession.DoesNotExist:
        raise NoOpenRegisterError(branch_ref)


@transaction.atomic
def record_movement(
    *,
    branch_ref: str,
    direction: str,
    amount,
    kind: str = MovementKind.SALE,
    payment_method=None,
    affects_balance: bool = True,
    description: str = '',
    reference: str = '',
    occurred_at=None,
) -> CashMovement:
    """
    Append a cash movement to the branch's open session.

    The session row is locked for the duration, so a movement either lands
    before a concurrent close (and is reconciled by it) or finds the
    session closed and is rejected.

    Raises:
        NoOpenRegisterError: If the branch has no open session.
        ValidationError: If direction, kind or amount is invalid.
    """
    if direction not in MovementDirection.values:
        raise ValidationError(f'Unknown direction {direction!r}', {'direction': 'Must be inflow or outflow.'})
    if kind not in MovementKind.values:
        raise ValidationError(f'Unknown movement kind {kind!r}', {'kind': 'Invalid choice.'})
    amount = round2(_non_negative(amount, 'amount'))

    session = lock_open_session(branch_ref)

    movement = CashMovement.objects.create(
        session=session,
        direction=direction,
        kind=kind,
        amount=amount,
        payment_method=payment_method,
        affects_balance=affects_balance,
        description=description,
        reference=reference,
        occurred_at=occurred_at or timezone.now(),
    )

    logger.info(
        'Cash movement %s %s %s recorded for branch %s',
        kind, direction, amount, branch_ref,
    )
    return movement


def _close(session, counted_amount, notes):
    counted = _non_negative(counted_amount, 'counted_amount')
    movements = list(session.movements.select_related('payment_method'))

    result = reconcile(session, counted, movements)
    totals = payment_method_totals(session, movements)

    session.status = SessionStatus.CLOSED
    session.closing_balance = round2(counted)
    session.closed_at = timezone.now()
    session.expected_cash_at_close = round2(result.expected)
    session.cash_difference = round2(result.difference)
    session.reconciliation = result.classification
    session.payment_method_totals = {label: str(round2(total)) for label, total in totals.items()}
    if notes:
        session.notes = f'{session.notes}\n{notes}'.strip()
    session.save(update_fields=[
        'status',
        'closing_balance',
        'closed_at',
        'expected_cash_at_close',
        'cash_difference',
        'reconciliation',
        'payment_method_totals',
        'notes',
        'updated_at',
    ])

    logger.info(
        'Cash register closed for branch %s: expected %s, counted %s, %s',
        session.branch_ref, result.expected, counted, result.classification,
    )
    return result


@transaction.atomic
def close_session(*, session_id: UUID, counted_amount, notes: str = '') -> ReconciliationResult:
    """
    Close a register session against the operator's cash count.

    The expected balance, the difference, its classification and the
    per-method totals are computed once, inside the same transaction that
    marks the session closed, and stored on the session.

    Args:
        session_id: Session to close.
        counted_amount: Cash counted in the drawer, recorded as given.
        notes: Appended to the session notes.

    Returns:
        ReconciliationResult with expected, counted, difference and
        classification.

    Raises:
        SessionNotFoundError: If the session does not exist.
        AlreadyClosedError: If the session was already closed.
    """
    try:
        session = CashRegisterSession.objects.select_for_update().get(id=session_id)
    except CashRegisterSession.DoesNotExist:
        raise SessionNotFoundError(f'Cash register session {session_id} not found')

    if session.status == SessionStatus.CLOSED:
        raise AlreadyClosedError(session_id)

    return _close(session, counted_amount, notes)


@transaction.atomic
def close_branch_session(*, branch_ref: str, counted_amount, notes: str = '') -> ReconciliationResult:
    """
    Close the branch's open session.

    Raises:
        NoOpenRegisterError: If the branch has no open session.
    """
    session = lock_open_session(branch_ref)
    return _close(session, counted_amount, notes)


def last_closing_balance(branch_ref: str) -> Optional[Decimal]:
    """Closing balance of the branch's most recent closed session, if any."""
    session = CashRegisterSession.objects.filter(
        branch_ref=branch_ref,
        status=SessionStatus.CLOSED,
    ).order_by('-closed_at').first()
    return session.closing_balance if session else None
