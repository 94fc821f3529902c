"""
Domain-specific exceptions for payments app.

Every settlement rejection carries the amount the operator has to act on,
so the register can show "missing 12.50" or "card overpaid by 3.00".
"""

from apps.pricing.exceptions import ValidationError


class SettlementError(Exception):
    """Base exception for all settlement errors."""
    pass


class InsufficientPaymentError(SettlementError):
    """Raised when payments do not cover the final total."""

    def __init__(self, missing_amount):
        self.missing_amount = missing_amount
        super().__init__(f'Insufficient payment: {missing_amount} missing')


class ChangeNotAllowedError(SettlementError):
    """Raised when payments exceed the total but no row is a cash-drawer tender."""

    def __init__(self, excess_amount):
        self.excess_amount = excess_amount
        super().__init__(
            f'Overpaid by {excess_amount} without a cash payment; non-cash tenders must be exact'
        )


class ChangeNotAcknowledgedError(SettlementError):
    """Raised when a sale owing change is confirmed without confirming that change."""

    def __init__(self, change_due, acknowledged=None):
        self.change_due = change_due
        self.acknowledged = acknowledged
        super().__init__(f'Change of {change_due} must be confirmed before the sale commits')


class UnknownPaymentMethodError(ValidationError):
    """Raised when a payment row references a missing or inactive payment method."""

    def __init__(self, method_ref, reason='unknown'):
        self.method_ref = method_ref
        super().__init__(
            f'Payment method {method_ref!r} is {reason}',
            {'method_ref': f'Payment method {method_ref!r} is {reason}.'},
        )
