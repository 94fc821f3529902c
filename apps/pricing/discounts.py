"""
Discount value type shared by manual line discounts, the global cart
discount and combo-derived lines.
"""

from dataclasses import dataclass
from decimal import Decimal

from django.db import models

from .exceptions import ValidationError
from .money import HUNDRED, ZERO, to_decimal


class DiscountKind(models.TextChoices):
    NONE = 'none', 'No discount'
    PERCENT = 'percent', 'Percentage'
    AMOUNT = 'amount', 'Fixed amount'


@dataclass(frozen=True)
class Discount:
    """
    A discount of one kind: none, percent of the base, or a fixed amount.

    Instances are validated on construction: the value must be a finite
    non-negative number and a percent may not exceed 100.
    """

    kind: str = DiscountKind.NONE
    value: Decimal = ZERO

    def __post_init__(self):
        if self.kind not in DiscountKind.values:
            raise ValidationError(
                f'Unknown discount kind: {self.kind!r}',
                {'kind': f'Must be one of: {", ".join(DiscountKind.values)}'},
            )
        kind = DiscountKind(self.kind)
        value = to_decimal(self.value, field='value')

        if value < 0:
            raise ValidationError('Discount value cannot be negative', {'value': 'Must be >= 0.'})
        if kind == DiscountKind.PERCENT and value > HUNDRED:
            raise ValidationError('Percent discount cannot exceed 100', {'value': 'Must be <= 100.'})
        if kind == DiscountKind.NONE:
            value = ZERO

        object.__setattr__(self, 'kind', kind)
        object.__setattr__(self, 'value', value)

    @classmethod
    def none(cls):
        return cls(DiscountKind.NONE, ZERO)

    @classmethod
    def percent(cls, value):
        return cls(DiscountKind.PERCENT, value)

    @classmethod
    def amount(cls, value):
        return cls(DiscountKind.AMOUNT, value)

    @classmethod
    def from_data(cls, data):
        """Build a Discount from ``None``, a Discount, or a ``{kind, value}`` dict."""
        if data is None:
            return cls.none()
        if isinstance(data, cls):
            return data
        if not isinstance(data, dict):
            raise ValidationError('Discount must be an object with kind and value')
        return cls(data.get('kind', DiscountKind.NONE), data.get('value', ZERO))

    @property
    def is_none(self):
        return self.kind == DiscountKind.NONE or self.value == 0

    def amount_off(self, base):
        """Return the amount this discount takes off base, capped at base."""
        if self.is_none or base <= 0:
            return ZERO
        if self.kind == DiscountKind.PERCENT:
            off = base * self.value / HUNDRED
        else:
            off = self.value
        return min(off, base)


def apply_discount(base, discount):
    """Return base reduced by discount, never below zero."""
    if discount is None:
        return base
    return max(ZERO, base - discount.amount_off(base))
