import pytest
from decimal import Decimal
from apps.payments.models import PaymentMethod


@pytest.fixture
def methods():
    """Return unsaved payment methods keyed by code."""
    return {
        'cash': PaymentMethod(code='cash', name='Cash', affects_cash_drawer=True),
        'card': PaymentMethod(code='card', name='Card', discount_percent=Decimal('3.00')),
        'transfer': PaymentMethod(code='transfer', name='Bank transfer'),
        'voucher': PaymentMethod(code='voucher', name='Voucher', is_active=False),
    }


@pytest.fixture
def cash_method(db):
    """Create and return the cash tender."""
    return PaymentMethod.objects.create(
        code='cash',
        name='Cash',
        affects_cash_drawer=True,
    )


@pytest.fixture
def card_method(db):
    """Create and return a card tender with a 3% discount."""
    return PaymentMethod.objects.create(
        code='card',
        name='Card',
        discount_percent=Decimal('3.00'),
    )


@pytest.fixture
def retired_method(db):
    """Create and return an inactive tender."""
    return PaymentMethod.objects.create(
        code='cheque',
        name='Cheque',
        is_active=False,
    )
