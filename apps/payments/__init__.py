"""
Payments App - Tenders and Settlement

Holds the payment-method registry and settles a priced cart against the
payment rows entered at the register.

Key Features:
- Per-method discount rates summed over every payment row
- Pending/change calculation and the change decision at confirmation
- "Frozen until structural change" payment discount for the checkout screen

Architecture:
- Models: PaymentMethod
- settlement: PaymentLine, settle, resolve_change, PaymentDraft
- services: payment-method lookups
- Exceptions: SettlementError hierarchy
"""

__version__ = '1.0.0'
