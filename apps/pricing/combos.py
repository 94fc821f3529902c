"""
Combo Decomposition
===================

A combo is a bundle of products sold together with one discount applied to
the bundle's combined base price. Before a combo enters the pricing
pipeline it is expanded into ordinary cart lines whose discount is the
bundle discount re-expressed as a per-line percentage, so combo lines and
manually discounted lines share one code path downstream.

Functions:
    validate_combo: Check a combo definition, collecting field errors.
    combo_discount_amount: Bundle discount for a given base price.
    combo_price: Price breakdown of a combo (base, discount, final, items).
    expand_combo: Emit the combo's cart lines.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from django.db import models

from .cart import CartLine, LineOrigin
from .discounts import Discount
from .exceptions import InvalidComboError, ValidationError
from .money import HUNDRED, ZERO, allocate_cents, round2, to_decimal


logger = logging.getLogger(__name__)


class ComboDiscountKind(models.TextChoices):
    PERCENT = 'percent', 'Percentage'
    FIXED_AMOUNT = 'fixed_amount', 'Fixed amount'


@dataclass(frozen=True)
class ComboItem:
    """A product inside a combo, or an extra selection added by the customer."""

    product_ref: str
    quantity: int
    unit_price: Decimal
    tax_rate: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, 'unit_price', to_decimal(self.unit_price, field='unit_price'))
        object.__setattr__(self, 'tax_rate', to_decimal(self.tax_rate, field='tax_rate'))

    @property
    def total_price(self):
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class ComboDefinition:
    """
    A bundled offer.

    ``discount_value`` is a percentage (0-100) for ``percent`` combos and a
    currency amount for ``fixed_amount`` combos. The definition is validated
    on construction.
    """

    ref: str
    name: str
    base_items: Tuple[ComboItem, ...]
    discount_kind: str = ComboDiscountKind.PERCENT
    discount_value: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, 'base_items', tuple(self.base_items))
        validate_combo(self)
        object.__setattr__(self, 'discount_kind', ComboDiscountKind(self.discount_kind))
        object.__setattr__(self, 'discount_value', to_decimal(self.discount_value, field='discount_value'))


@dataclass(frozen=True)
class ComboPriceItem:
    product_ref: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    final_total: Decimal


@dataclass(frozen=True)
class ComboPrice:
    base_price: Decimal
    discount_amount: Decimal
    final_price: Decimal
    items: Tuple[ComboPriceItem, ...]


@dataclass(frozen=True)
class _MergedItem:
    product_ref: str
    quantity: int
    total_price: Decimal
    tax_rate: Decimal

    @property
    def unit_price(self):
        return self.total_price / self.quantity


def _validate_item(item, prefix, errors):
    if not isinstance(item, ComboItem):
        errors[prefix] = 'Must be a combo item.'
        return
    if not item.product_ref:
        errors[f'{prefix}.product_ref'] = 'Product reference is required.'
    if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity <= 0:
        errors[f'{prefix}.quantity'] = 'Quantity must be a positive whole number.'
    if item.unit_price < 0:
        errors[f'{prefix}.unit_price'] = 'Unit price cannot be negative.'
    if item.tax_rate < 0:
        errors[f'{prefix}.tax_rate'] = 'Tax rate cannot be negative.'


def validate_combo(combo):
    """
    Validate a combo definition.

    Raises:
        InvalidComboError: With one entry per invalid field.
    """
    errors = {}

    if not combo.ref:
        errors['ref'] = 'Combo reference is required.'
    if not combo.name or not str(combo.name).strip():
        errors['name'] = 'Combo name is required.'
    if combo.discount_kind not in ComboDiscountKind.values:
        errors['discount_kind'] = f'Must be one of: {", ".join(ComboDiscountKind.values)}'

    try:
        value = to_decimal(combo.discount_value, field='discount_value')
    except ValidationError:
        errors['discount_value'] = 'Discount value must be a number.'
    else:
        if value < 0:
            errors['discount_value'] = 'Discount value cannot be negative.'
        elif combo.discount_kind == ComboDiscountKind.PERCENT and value > HUNDRED:
            errors['discount_value'] = 'Percent discount cannot exceed 100.'

    if not combo.base_items:
        errors['base_items'] = 'A combo needs at least one item.'
    rates = {}
    for index, item in enumerate(combo.base_items):
        _validate_item(item, f'base_items[{index}]', errors)
        if isinstance(item, ComboItem):
            rate = rates.setdefault(item.product_ref, item.tax_rate)
            if rate != item.tax_rate:
                errors[f'base_items[{index}].tax_rate'] = f'Conflicts with {rate} for {item.product_ref!r}.'

    if errors:
        raise InvalidComboError(f'Invalid combo {combo.ref!r}', errors)


def combo_discount_amount(kind, value, base):
    """Return the bundle discount for base; fixed amounts are capped at base."""
    if base <= 0:
        return ZERO
    if kind == ComboDiscountKind.PERCENT:
        return base * value / HUNDRED
    return min(value, base)


def _merge_items(combo_ref, items):
    """
    Merge items sharing a product ref, keeping first-seen order.

    Raises:
        InvalidComboError: If items sharing a product ref disagree on tax rate.
    """
    merged = OrderedDict()
    for item in items:
        current = merged.get(item.product_ref)
        if current is not None and current.tax_rate != item.tax_rate:
            raise InvalidComboError(
                f'Combo {combo_ref!r} lists {item.product_ref!r} at more than one tax rate',
                {item.product_ref: f'Tax rate {item.tax_rate} conflicts with {current.tax_rate}.'},
            )
        if current is None:
            merged[item.product_ref] = _MergedItem(
                product_ref=item.product_ref,
                quantity=item.quantity,
                total_price=item.total_price,
                tax_rate=item.tax_rate,
            )
        else:
            merged[item.product_ref] = _MergedItem(
                product_ref=item.product_ref,
                quantity=current.quantity + item.quantity,
                total_price=current.total_price + item.total_price,
                tax_rate=current.tax_rate,
            )
    return list(merged.values())


def _combo_items(combo, extra_selections):
    extras = tuple(extra_selections or ())
    errors = {}
    for index, item in enumerate(extras):
        _validate_item(item, f'extra_selections[{index}]', errors)
    if errors:
        raise InvalidComboError(f'Invalid extra selections for combo {combo.ref!r}', errors)
    return _merge_items(combo.ref, combo.base_items + extras)


def combo_price(combo: ComboDefinition, extra_selections=None) -> ComboPrice:
    """
    Price a combo without expanding it into cart lines.

    The per-item ``final_total`` values are the final price allocated over the
    items in proportion to their base totals, so they add up exactly to
    ``final_price``.
    """
    items = _combo_items(combo, extra_selections)
    total_base = sum((item.total_price for item in items), ZERO)
    discount = combo_discount_amount(combo.discount_kind, combo.discount_value, total_base)

    base_price = round2(total_base)
    discount_amount = round2(discount)
    final_price = max(ZERO, base_price - discount_amount)
    shares = allocate_cents(final_price, [item.total_price for item in items])

    return ComboPrice(
        base_price=base_price,
        discount_amount=discount_amount,
        final_price=final_price,
        items=tuple(
            ComboPriceItem(
                product_ref=item.product_ref,
                quantity=item.quantity,
                unit_price=round2(item.unit_price),
                total_price=round2(item.total_price),
                final_total=share,
            )
            for item, share in zip(items, shares)
        ),
    )


def expand_combo(combo: ComboDefinition, extra_selections=None, quantity: int = 1):
    """
    Expand a combo into cart lines.

    Every emitted line keeps its undiscounted unit price and carries the
    bundle discount as an equivalent percent discount::

        factor = discount_amount / total_base       (0 when total_base is 0)
        discounted_unit = unit_price * (1 - factor)
        percent = (unit_price - discounted_unit) / unit_price * 100

    Args:
        combo (ComboDefinition): The combo being sold.
        extra_selections (list[ComboItem], optional): Customer-chosen extras
            priced into the bundle. Items sharing a product ref with a base
            item are merged into one line.
        quantity (int): Number of combos purchased; multiplies every line.

    Returns:
        list[CartLine]: Lines with origin ``combo`` and ``combo_ref`` set.

    Raises:
        ValidationError: If quantity is not a positive whole number.
        InvalidComboError: If an extra selection is invalid.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError('Combo quantity must be a positive whole number', {'quantity': 'Must be >= 1.'})

    items = _combo_items(combo, extra_selections)
    total_base = sum((item.total_price for item in items), ZERO)
    discount = combo_discount_amount(combo.discount_kind, combo.discount_value, total_base)
    factor = discount / total_base if total_base > 0 else ZERO

    lines = []
    for item in items:
        unit_price = item.unit_price
        discounted_unit = unit_price * (1 - factor)
        if unit_price > 0:
            percent = (unit_price - discounted_unit) / unit_price * HUNDRED
        else:
            percent = ZERO
        percent = min(HUNDRED, max(ZERO, percent))

        lines.append(CartLine(
            product_ref=item.product_ref,
            quantity=item.quantity * quantity,
            unit_price_net=unit_price,
            tax_rate=item.tax_rate,
            discount=Discount.percent(percent) if percent > 0 else Discount.none(),
            origin=LineOrigin.COMBO,
            combo_ref=combo.ref,
        ))

    logger.debug(
        'Expanded combo %s x%s into %d lines (base %s, discount %s)',
        combo.ref, quantity, len(lines), total_base, discount,
    )
    return lines
