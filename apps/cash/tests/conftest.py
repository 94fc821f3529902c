import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from django.utils import timezone
from apps.cash.models import CashMovement, CashRegisterSession, MovementDirection, MovementKind
from apps.cash.services import open_session
from apps.payments.models import PaymentMethod


# =============================================================================
# Unsaved objects for the pure reconciliation functions
# =============================================================================

@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def cash_tender():
    return PaymentMethod(code='cash', name='Cash', affects_cash_drawer=True)


@pytest.fixture
def card_tender():
    return PaymentMethod(code='card', name='Card', discount_percent=Decimal('3.00'))


@pytest.fixture
def drawer(today):
    """Return an unsaved session opened this morning with 1000.00."""
    opened = timezone.make_aware(datetime.combine(today, datetime.min.time()) + timedelta(hours=8))
    return CashRegisterSession(branch_ref='BR-1', opening_balance=Decimal('1000.00'), opened_at=opened)


@pytest.fixture
def movement():
    """Return a factory for unsaved movements."""
    def make(session, amount, direction=MovementDirection.INFLOW, method=None,
             occurred_at=None, affects_balance=True, kind=MovementKind.SALE):
        return CashMovement(
            session=session,
            direction=direction,
            kind=kind,
            amount=Decimal(amount),
            payment_method=method,
            affects_balance=affects_balance,
            occurred_at=occurred_at or session.opened_at + timedelta(hours=1),
        )
    return make


# =============================================================================
# Database fixtures
# =============================================================================

@pytest.fixture
def cash_method(db):
    """Create and return the cash tender."""
    return PaymentMethod.objects.create(code='cash', name='Cash', affects_cash_drawer=True)


@pytest.fixture
def card_method(db):
    """Create and return a card tender."""
    return PaymentMethod.objects.create(code='card', name='Card', discount_percent=Decimal('3.00'))


@pytest.fixture
def open_register(db):
    """Open and return a session for BR-1 with 1000.00."""
    return open_session(branch_ref='BR-1', opening_balance=Decimal('1000.00'), operator='Alice')


@pytest.fixture
def second_register(db):
    """Open and return a session for BR-2 with 200.00."""
    return open_session(branch_ref='BR-2', opening_balance=Decimal('200.00'), operator='Bob')
