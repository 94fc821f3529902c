"""
Money Utilities
===============

Every money value in the engine is a ``decimal.Decimal``. Values keep full
precision while they flow through per-line math and are rounded to two
decimals (half-up) only where a figure is surfaced or persisted.

Functions:
    to_decimal: Exact conversion of user input to Decimal.
    round2: Quantize to cents, half-up.
    allocate_cents: Split a total into parts that sum exactly to it.
    format_currency: Display formatting (not used for arithmetic).
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP

from django.conf import settings

from .exceptions import ValidationError


ZERO = Decimal('0')
CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def to_decimal(value, field='amount'):
    """
    Convert value to Decimal without going through binary floating point.

    Floats are converted via ``str`` so ``0.1`` becomes ``Decimal('0.1')``.
    Booleans, NaN and infinities are rejected.

    Raises:
        ValidationError: If value is not a finite number.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f'{field} must be a number', {field: 'Not a number.'})
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(
                f'{field} must be a number', {field: f'Invalid number: {value!r}'}
            )
    else:
        raise ValidationError(f'{field} must be a number', {field: 'Not a number.'})

    if not result.is_finite():
        raise ValidationError(f'{field} must be finite', {field: 'Not a finite number.'})
    return result


def round2(value, field='amount'):
    """Round to 2 decimal places, half-up (103.455 -> 103.46)."""
    try:
        return to_decimal(value, field=field).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f'{field} is too large', {field: 'Too many digits.'})


def allocate_cents(total, weights):
    """
    Split total into len(weights) parts proportional to weights.

    The split is cent-precise: the total is converted to integer cents,
    each part gets the floor of its proportional share, and the leftover
    cents go one by one to the parts with the largest fractional remainder
    (lower index wins ties). When every weight is zero the total is split
    evenly.

    Args:
        total (Decimal): Non-negative amount to split, rounded to cents first.
        weights (list[Decimal]): Non-negative weights, one per part.

    Returns:
        list[Decimal]: 2-decimal parts whose sum equals round2(total).

    Raises:
        ValidationError: If total or a weight is negative, or weights is empty
            while total is non-zero.

    Example:
        >>> allocate_cents(Decimal('100.00'), [1, 1, 1])
        [Decimal('33.34'), Decimal('33.33'), Decimal('33.33')]
    """
    total = round2(total)
    weights = [to_decimal(weight, field='weight') for weight in weights]

    if total < 0:
        raise ValidationError('Cannot allocate a negative total')
    if any(weight < 0 for weight in weights):
        raise ValidationError('Allocation weights must not be negative')
    if not weights:
        if total == 0:
            return []
        raise ValidationError('Cannot allocate a non-zero total over no parts')

    weight_sum = sum(weights, ZERO)
    if weight_sum == 0:
        weights = [Decimal(1)] * len(weights)
        weight_sum = Decimal(len(weights))

    total_cents = int(total * 100)
    exact = [total_cents * weight / weight_sum for weight in weights]
    cents = [int(share.to_integral_value(rounding=ROUND_DOWN)) for share in exact]

    remainder = total_cents - sum(cents)
    by_fraction = sorted(
        range(len(weights)),
        key=lambda i: (-(exact[i] - cents[i]), i),
    )
    for i in by_fraction[:remainder]:
        cents[i] += 1

    parts = [(Decimal(c) / HUNDRED).quantize(CENT) for c in cents]

    # Verify sum
    if sum(parts, ZERO) != total:
        raise ValueError(f"Allocation error: {sum(parts, ZERO)} != {total}")

    return parts


def format_currency(amount, symbol=None):
    """Format amount for display, e.g. ``$1,234.50``."""
    if symbol is None:
        symbol = getattr(settings, 'POS_CURRENCY_SYMBOL', '$')
    thousands = getattr(settings, 'POS_THOUSANDS_SEPARATOR', ',')
    decimal_point = getattr(settings, 'POS_DECIMAL_SEPARATOR', '.')

    value = round2(amount)
    sign = '-' if value < 0 else ''
    integer_part, fraction = f'{abs(value):.2f}'.split('.')
    grouped = f'{int(integer_part):,}'.replace(',', thousands)
    return f'{sign}{symbol}{grouped}{decimal_point}{fraction}'
