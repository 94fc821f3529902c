"""
Payment-method registry lookups.

Settlement itself is pure (see settlement.py); these helpers load the
methods it needs from the database.
"""

import logging
from decimal import Decimal

from django.db import IntegrityError, transaction

from apps.pricing.exceptions import ValidationError

from .exceptions import UnknownPaymentMethodError
from .models import PaymentMethod


logger = logging.getLogger(__name__)


def get_active_methods():
    """Return all active payment methods keyed by code."""
    return {method.code: method for method in PaymentMethod.objects.filter(is_active=True)}


def resolve_methods(method_refs):
    """
    Load the payment methods referenced by a set of payment rows.

    Args:
        method_refs (iterable[str]): Method codes used by the rows.

    Returns:
        dict: Code to active PaymentMethod.

    Raises:
        UnknownPaymentMethodError: If a code does not exist or is inactive.
    """
    refs = set(method_refs)
    methods = {
        method.code: method
        for method in PaymentMethod.objects.filter(code__in=refs)
    }

    for ref in sorted(refs):
        method = methods.get(ref)
        if method is None:
            raise UnknownPaymentMethodError(ref)
        if not method.is_active:
            raise UnknownPaymentMethodError(ref, reason='inactive')

    return methods


@transaction.atomic
def create_payment_method(*, code: str, name: str, discount_percent=Decimal('0.00'),
                          affects_cash_drawer: bool = False) -> PaymentMethod:
    """
    Register a new payment method.

    Raises:
        ValidationError: If the code is taken or the discount is outside 0-100.
    """
    discount_percent = Decimal(str(discount_percent))
    if not Decimal('0') <= discount_percent <= Decimal('100'):
        raise ValidationError(
            'Discount percent must be between 0 and 100',
            {'discount_percent': 'Must be between 0 and 100.'},
        )

    try:
        method = PaymentMethod.objects.create(
            code=code,
            name=name,
            discount_percent=discount_percent,
            affects_cash_drawer=affects_cash_drawer,
        )
    except IntegrityError:
        raise ValidationError(
            f'Payment method {code!r} already exists',
            {'code': 'Already in use.'},
        )

    logger.info('Payment method %s created (discount %s%%, cash=%s)', code, discount_percent, affects_cash_drawer)
    return method
