"""
Sales app services layer.
"""

from .confirmation import (
    SaleQuote,
    quote_sale,
    confirm_sale,
    confirm_sale_from_payload,
)


__all__ = [
    'SaleQuote',
    'quote_sale',
    'confirm_sale',
    'confirm_sale_from_payload',
]
