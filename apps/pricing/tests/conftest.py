import pytest
from decimal import Decimal
from apps.pricing.cart import CartLine
from apps.pricing.combos import ComboDefinition, ComboDiscountKind, ComboItem
from apps.pricing.discounts import Discount


@pytest.fixture
def taxed_line():
    """Return a 100.00 net line at 21% tax with a 10% line discount."""
    return CartLine(
        product_ref='SKU-100',
        quantity=1,
        unit_price_net=Decimal('100.00'),
        tax_rate=Decimal('21'),
        discount=Discount.percent(10),
    )


@pytest.fixture
def mixed_cart():
    """Return a cart mixing tax rates and discount kinds."""
    return [
        CartLine('SKU-A', 2, Decimal('10.00'), Decimal('21')),
        CartLine('SKU-B', 3, Decimal('4.99'), Decimal('10.5'), Discount.percent(15)),
        CartLine('SKU-C', 4, Decimal('2.50'), Decimal('0'), Discount.amount(3)),
    ]


@pytest.fixture
def burger_combo():
    """Return a percent combo: burger, fries and a drink at 20% off."""
    return ComboDefinition(
        ref='COMBO-BURGER',
        name='Burger Menu',
        base_items=[
            ComboItem('BURGER', 1, Decimal('8.00')),
            ComboItem('FRIES', 1, Decimal('3.00')),
            ComboItem('DRINK', 1, Decimal('2.00')),
        ],
        discount_kind=ComboDiscountKind.PERCENT,
        discount_value=Decimal('20'),
    )


@pytest.fixture
def fixed_combo():
    """Return a fixed-amount combo worth 30.00 at base price, 5.00 off."""
    return ComboDefinition(
        ref='COMBO-BREAKFAST',
        name='Breakfast',
        base_items=[
            ComboItem('COFFEE', 2, Decimal('5.00')),
            ComboItem('CROISSANT', 4, Decimal('5.00')),
        ],
        discount_kind=ComboDiscountKind.FIXED_AMOUNT,
        discount_value=Decimal('5.00'),
    )
