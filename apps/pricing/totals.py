"""
Discount/Tax Pipeline
=====================

Turns cart lines and an optional global discount into the figures handed to
payment settlement.

Ordering rule:
    1. Line discounts are resolved on the net (tax-exclusive) unit price.
    2. Tax is computed on the discounted net price.
    3. The global discount is resolved last, on the tax-inclusive subtotal.

Rounding:
    Per-line values keep full precision. ``subtotal_net`` and ``total_tax``
    are rounded to cents when surfaced, and the grand total is
    ``round2(pre_global_gross - global_discount_exact)``. The surfaced
    ``global_discount_amount`` is derived from the rounded grand total, so

        grand_total == subtotal_net + total_tax - global_discount_amount

    holds exactly.

Example:
    One line, 100.00 net, 21% tax, 10% line discount, 5% global discount::

        totals = compute_totals(
            [CartLine('SKU-1', 1, Decimal('100'), Decimal('21'), Discount.percent(10))],
            Discount.percent(5),
        )
        totals.subtotal_net            # Decimal('90.00')
        totals.total_tax               # Decimal('18.90')
        totals.global_discount_exact   # Decimal('5.445')
        totals.grand_total             # Decimal('103.46')
        totals.global_discount_amount  # Decimal('5.44')
"""

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple

from .cart import CartLine
from .discounts import Discount
from .exceptions import ValidationError
from .money import HUNDRED, ZERO, round2


@dataclass(frozen=True)
class LineTotals:
    """Full-precision pricing of a single cart line."""

    line: CartLine
    discounted_unit_net: Decimal
    unit_tax: Decimal
    unit_gross: Decimal
    net: Decimal
    tax: Decimal
    gross: Decimal
    discount: Decimal


@dataclass(frozen=True)
class TaxBucket:
    """Net base and tax collected at one tax rate."""

    rate: Decimal
    net: Decimal
    tax: Decimal


@dataclass(frozen=True)
class CartTotals:
    lines: Tuple[LineTotals, ...]
    gross_before_discounts: Decimal
    item_discount_total: Decimal
    subtotal_net: Decimal
    total_tax: Decimal
    pre_global_gross: Decimal
    global_discount_exact: Decimal
    global_discount_amount: Decimal
    grand_total: Decimal
    tax_breakdown: Tuple[TaxBucket, ...]


def price_line(line: CartLine) -> LineTotals:
    """Price one line: discount on net first, then tax on the discounted net."""
    discounted = line.discounted_unit_net
    unit_tax = discounted * line.tax_rate / HUNDRED
    unit_gross = discounted + unit_tax

    return LineTotals(
        line=line,
        discounted_unit_net=discounted,
        unit_tax=unit_tax,
        unit_gross=unit_gross,
        net=discounted * line.quantity,
        tax=unit_tax * line.quantity,
        gross=unit_gross * line.quantity,
        discount=(line.unit_price_net - discounted) * line.quantity,
    )


def _tax_breakdown(priced):
    buckets = OrderedDict()
    for item in priced:
        rate = item.line.tax_rate.normalize()
        net, tax = buckets.get(rate, (ZERO, ZERO))
        buckets[rate] = (net + item.net, tax + item.tax)

    return tuple(
        TaxBucket(rate=rate, net=round2(net), tax=round2(tax))
        for rate, (net, tax) in sorted(buckets.items())
    )


def compute_totals(lines, global_discount=None) -> CartTotals:
    """
    Compute cart totals.

    Args:
        lines (list[CartLine]): Cart lines, standalone or combo-derived.
        global_discount (Discount | dict | None): Discount applied once to
            the tax-inclusive subtotal. Capped at that subtotal.

    Returns:
        CartTotals: Surfaced totals (2 decimals) plus per-line and per-rate
            breakdowns.

    Raises:
        ValidationError: If a line is not a CartLine or the global discount
            is malformed.
    """
    lines = list(lines)
    for line in lines:
        if not isinstance(line, CartLine):
            raise ValidationError(f'Expected a CartLine, got {type(line).__name__}')
    global_discount = Discount.from_data(global_discount)

    priced = [price_line(line) for line in lines]

    subtotal_net = round2(sum((item.net for item in priced), ZERO))
    total_tax = round2(sum((item.tax for item in priced), ZERO))
    item_discount_total = round2(sum((item.discount for item in priced), ZERO))
    gross_before_discounts = round2(sum(
        (item.line.line_base_net * (1 + item.line.tax_rate / HUNDRED) for item in priced),
        ZERO,
    ))

    pre_global_gross = subtotal_net + total_tax
    global_discount_exact = global_discount.amount_off(pre_global_gross)
    grand_total = round2(pre_global_gross - global_discount_exact)

    return CartTotals(
        lines=tuple(priced),
        gross_before_discounts=gross_before_discounts,
        item_discount_total=item_discount_total,
        subtotal_net=subtotal_net,
        total_tax=total_tax,
        pre_global_gross=pre_global_gross,
        global_discount_exact=global_discount_exact,
        global_discount_amount=pre_global_gross - grand_total,
        grand_total=grand_total,
        tax_breakdown=_tax_breakdown(priced),
    )
