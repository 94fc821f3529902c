import pytest
from decimal import Decimal
from apps.cash.services import open_session
from apps.payments.models import PaymentMethod
from apps.pricing.cart import CartLine


@pytest.fixture
def cash_method(db):
    """Create and return the cash tender."""
    return PaymentMethod.objects.create(code='cash', name='Cash', affects_cash_drawer=True)


@pytest.fixture
def card_method(db):
    """Create and return a card tender with a 3% discount."""
    return PaymentMethod.objects.create(code='card', name='Card', discount_percent=Decimal('3.00'))


@pytest.fixture
def open_register(db):
    """Open and return a session for BR-1 with 1000.00."""
    return open_session(branch_ref='BR-1', opening_balance=Decimal('1000.00'), operator='Alice')


@pytest.fixture
def thousand_cart():
    """Return a single untaxed line totalling 1000.00."""
    return [CartLine('SKU-1', 1, Decimal('1000.00'))]


@pytest.fixture
def sale_payload():
    """Return a payload with one combo and one standalone line."""
    return {
        'branch_ref': 'BR-1',
        'lines': [
            {'product_ref': 'COOKIE', 'quantity': 2, 'unit_price_net': '1.50', 'tax_rate': '20'},
        ],
        'combos': [
            {
                'ref': 'MENU-1',
                'name': 'Burger menu',
                'base_items': [
                    {'product_ref': 'BURGER', 'quantity': 1, 'unit_price': '8.00', 'tax_rate': '20'},
                    {'product_ref': 'FRIES', 'quantity': 1, 'unit_price': '3.00', 'tax_rate': '20'},
                    {'product_ref': 'DRINK', 'quantity': 1, 'unit_price': '2.00', 'tax_rate': '20'},
                ],
                'discount_kind': 'percent',
                'discount_value': '10',
            },
        ],
        'payments': [
            {'method_ref': 'cash', 'amount': '20.00'},
        ],
    }
