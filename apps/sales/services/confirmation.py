"""
Sale Confirmation
=================

The step the register calls when the operator presses "confirm":

    cart lines --compute_totals--> grand total
               --settle-----------> final total, pending amount
               --resolve_change---> rows to persist, change owed
               --confirm_sale-----> Sale + SaleLines + SalePayments + CashMovements

Quoting is pure and can run on every screen refresh; confirmation always
re-quotes on the live values it is given and commits everything in one
transaction against the branch's open register.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction

from apps.cash.models import MovementDirection, MovementKind
from apps.cash.services import lock_open_session, record_movement
from apps.payments.exceptions import ChangeNotAcknowledgedError
from apps.payments.services import resolve_methods
from apps.payments.settlement import (
    ChangeResolution,
    PaymentLine,
    get_method,
    resolve_change,
    settle,
)
from apps.pricing.discounts import Discount
from apps.pricing.exceptions import ValidationError
from apps.pricing.money import HUNDRED, ZERO, allocate_cents, round2, to_decimal
from apps.pricing.totals import CartTotals, compute_totals

from ..models import Sale, SaleLine, SalePayment


logger = logging.getLogger(__name__)

FOUR_PLACES = Decimal('0.0001')


@dataclass(frozen=True)
class SaleQuote:
    totals: CartTotals
    resolution: ChangeResolution

    @property
    def settlement(self):
        return self.resolution.settlement

    @property
    def grand_total(self):
        return self.totals.grand_total

    @property
    def final_total(self):
        return self.settlement.final_total

    @property
    def change_due(self):
        return self.resolution.change_due


def quote_sale(lines, payments, methods, global_discount=None, change_row=None) -> SaleQuote:
    """
    Price a cart and decide its payment outcome without touching the database.

    Args:
        lines (list[CartLine]): Standalone and combo-expanded lines.
        payments (list[PaymentLine | dict]): Payment rows in entry order.
        methods (dict): Method ref to payment method.
        global_discount (Discount | dict, optional): Post-tax cart discount.
        change_row (int, optional): Cash row that gives change.

    Returns:
        SaleQuote: Totals plus the change resolution.

    Raises:
        ValidationError: If lines, payments or the discount are malformed.
        InsufficientPaymentError: If payments fall short.
        ChangeNotAllowedError: If overpaid without a cash tender.
    """
    lines = list(lines)
    if not lines:
        raise ValidationError('A sale needs at least one line', {'lines': 'Required.'})

    totals = compute_totals(lines, global_discount)
    payments = [PaymentLine.from_data(payment) for payment in payments]
    settlement = settle(totals.grand_total, payments, methods)
    resolution = resolve_change(settlement, payments, methods, change_row=change_row)
    return SaleQuote(totals=totals, resolution=resolution)


def _check_acknowledged(quote, acknowledged_change):
    if quote.change_due == 0:
        return
    if acknowledged_change is None or round2(to_decimal(acknowledged_change)) != quote.change_due:
        logger.info(
            'Sale not committed: change %s not confirmed (got %s)',
            quote.change_due, acknowledged_change,
        )
        raise ChangeNotAcknowledgedError(quote.change_due, acknowledged_change)


def _create_lines(sale, totals):
    priced = totals.lines
    shares = allocate_cents(
        totals.global_discount_amount,
        [item.gross for item in priced],
    )

    SaleLine.objects.bulk_create([
        SaleLine(
            sale=sale,
            position=position,
            product_ref=item.line.product_ref,
            quantity=item.line.quantity,
            unit_price_net=item.line.unit_price_net,
            tax_rate=item.line.tax_rate,
            discount_kind=item.line.discount.kind,
            discount_value=item.line.discount.value.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP),
            origin=item.line.origin,
            combo_ref=item.line.combo_ref or '',
            discounted_unit_net=item.discounted_unit_net.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP),
            line_net=round2(item.net),
            line_tax=round2(item.tax),
            line_total=round2(item.gross),
            global_discount_share=share,
        )
        for position, (item, share) in enumerate(zip(priced, shares))
    ])


def _create_payments(sale, submitted, resolution, methods):
    rows = []
    for position, (original, kept) in enumerate(zip(submitted, resolution.payments)):
        method = get_method(original.method_ref, methods)
        rows.append(SalePayment.objects.create(
            sale=sale,
            position=position,
            payment_method=method,
            submitted_amount=original.amount,
            amount=kept.amount,
            discount_amount=round2(original.amount * method.discount_percent / HUNDRED),
            gave_change=(position == resolution.change_row),
        ))
    return rows


@transaction.atomic
def confirm_sale(
    *,
    branch_ref: str,
    lines,
    payments,
    global_discount=None,
    change_row=None,
    acknowledged_change=None,
) -> Sale:
    """
    Commit a sale and its cash movements.

    Every confirmation re-quotes on the values passed in. When change is
    owed, the caller must pass the change amount it showed the operator as
    ``acknowledged_change``; a missing or different amount rejects the sale
    so nothing irreversible happens on a stale screen.

    One cash movement is written per non-zero payment row, using the amount
    kept after change. All writes share one transaction with the register
    session locked, so a concurrent close either sees the whole sale or none
    of it.

    Args:
        branch_ref: Branch whose open register takes the sale.
        lines: CartLine list (combos already expanded).
        payments: PaymentLine rows or ``{method_ref, amount}`` dicts.
        global_discount: Optional Discount or ``{kind, value}`` dict.
        change_row: Index of the cash row giving change.
        acknowledged_change: Change amount confirmed by the operator.

    Returns:
        The committed Sale.

    Raises:
        NoOpenRegisterError: If the branch has no open register.
        ValidationError: If any input is malformed.
        InsufficientPaymentError: If payments fall short.
        ChangeNotAllowedError: If overpaid without a cash tender.
        ChangeNotAcknowledgedError: If owed change was not confirmed.
    """
    session = lock_open_session(branch_ref)

    submitted = [PaymentLine.from_data(payment) for payment in payments]
    methods = resolve_methods(payment.method_ref for payment in submitted)
    global_discount = Discount.from_data(global_discount)

    quote = quote_sale(lines, submitted, methods, global_discount, change_row)
    _check_acknowledged(quote, acknowledged_change)

    totals = quote.totals
    settlement = quote.settlement
    sale = Sale.objects.create(
        branch_ref=branch_ref,
        session=session,
        gross_before_discounts=totals.gross_before_discounts,
        item_discount_total=totals.item_discount_total,
        subtotal_net=totals.subtotal_net,
        total_tax=totals.total_tax,
        global_discount_kind=global_discount.kind,
        global_discount_value=global_discount.value,
        global_discount_amount=totals.global_discount_amount,
        grand_total=totals.grand_total,
        tax_breakdown=[
            {'rate': format(bucket.rate, 'f'), 'net': str(bucket.net), 'tax': str(bucket.tax)}
            for bucket in totals.tax_breakdown
        ],
        payment_discount_total=settlement.payment_discount_total,
        final_total=settlement.final_total,
        amount_tendered=settlement.paid_total,
        change_given=quote.change_due,
    )

    _create_lines(sale, totals)
    sale_payments = _create_payments(sale, submitted, quote.resolution, methods)

    for sale_payment in sale_payments:
        if sale_payment.amount == ZERO:
            continue
        record_movement(
            branch_ref=branch_ref,
            direction=MovementDirection.INFLOW,
            amount=sale_payment.amount,
            kind=MovementKind.SALE,
            payment_method=sale_payment.payment_method,
            description=f'Sale {sale.id}',
            reference=str(sale.id),
        )

    logger.info(
        'Sale %s committed on branch %s: final %s, change %s',
        sale.id, branch_ref, settlement.final_total, quote.change_due,
    )
    return sale


def confirm_sale_from_payload(data) -> Sale:
    """
    Validate a raw sale payload and confirm it.

    The payload may carry standalone ``lines`` and ``combos``; combos are
    expanded into lines before pricing.

    Raises:
        ValidationError: With the serializer errors if the payload is invalid.
        Plus everything confirm_sale() raises.
    """
    from apps.pricing.combos import expand_combo
    from apps.pricing.serializers import build_cart_line, build_combo
    from ..serializers import SaleInputSerializer

    serializer = SaleInputSerializer(data=data)
    if not serializer.is_valid():
        raise ValidationError('Invalid sale payload', dict(serializer.errors))
    validated = serializer.validated_data

    lines = [build_cart_line(line) for line in validated.get('lines', [])]
    for combo_data in validated.get('combos', []):
        combo, extras, quantity = build_combo(combo_data)
        lines.extend(expand_combo(combo, extras, quantity))

    return confirm_sale(
        branch_ref=validated['branch_ref'],
        lines=lines,
        payments=[
            PaymentLine(payment['method_ref'], payment['amount'])
            for payment in validated['payments']
        ],
        global_discount=validated.get('global_discount'),
        change_row=validated.get('change_row'),
        acknowledged_change=validated.get('acknowledged_change'),
    )
