"""
Sales App - Sale Confirmation

Runs a cart through pricing and settlement and, when the payment decision
allows it, commits the sale together with its cash movements against the
branch's open register.

Architecture:
- Models: Sale, SaleLine, SalePayment
- Services: quote_sale (pure), confirm_sale, confirm_sale_from_payload
- Serializers: SaleInputSerializer for untrusted payloads
"""

__version__ = '1.0.0'
