from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from django.db import models

from .discounts import Discount, DiscountKind, apply_discount
from .exceptions import ValidationError
from .money import ZERO, to_decimal


class LineOrigin(models.TextChoices):
    STANDALONE = 'standalone', 'Standalone'
    COMBO = 'combo', 'Combo'


@dataclass(frozen=True)
class CartLine:
    """
    One priced line of a cart.

    ``unit_price_net`` is tax-exclusive. An amount discount applies to the
    whole line: it is capped at ``unit_price_net * quantity`` and then spread
    evenly over the units.
    """

    product_ref: str
    quantity: int
    unit_price_net: Decimal
    tax_rate: Decimal = ZERO
    discount: Discount = field(default_factory=Discount.none)
    origin: str = LineOrigin.STANDALONE
    combo_ref: Optional[str] = None

    def __post_init__(self):
        errors = {}

        if not self.product_ref:
            errors['product_ref'] = 'Product reference is required.'
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            errors['quantity'] = 'Quantity must be a whole number.'
        elif self.quantity <= 0:
            errors['quantity'] = 'Quantity must be positive.'
        if self.origin not in LineOrigin.values:
            errors['origin'] = f'Must be one of: {", ".join(LineOrigin.values)}'
        elif self.origin == LineOrigin.COMBO and not self.combo_ref:
            errors['combo_ref'] = 'Combo lines must reference their combo.'

        if errors:
            raise ValidationError(f'Invalid cart line {self.product_ref!r}', errors)

        unit_price_net = to_decimal(self.unit_price_net, field='unit_price_net')
        tax_rate = to_decimal(self.tax_rate, field='tax_rate')
        if unit_price_net < 0:
            raise ValidationError('Unit price cannot be negative', {'unit_price_net': 'Must be >= 0.'})
        if tax_rate < 0:
            raise ValidationError('Tax rate cannot be negative', {'tax_rate': 'Must be >= 0.'})

        object.__setattr__(self, 'unit_price_net', unit_price_net)
        object.__setattr__(self, 'tax_rate', tax_rate)
        object.__setattr__(self, 'discount', Discount.from_data(self.discount))
        object.__setattr__(self, 'origin', LineOrigin(self.origin))

    @property
    def line_base_net(self):
        """Net line value before any discount."""
        return self.unit_price_net * self.quantity

    @property
    def discounted_unit_net(self):
        """Net unit price after the line discount, within [0, unit_price_net]."""
        if self.discount.kind == DiscountKind.AMOUNT:
            per_unit = min(self.discount.value, self.line_base_net) / self.quantity
            return max(ZERO, self.unit_price_net - per_unit)
        return apply_discount(self.unit_price_net, self.discount)
