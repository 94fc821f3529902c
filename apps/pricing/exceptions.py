"""
Domain-specific exceptions for pricing app.

Pricing functions are pure, so every error here describes malformed input
rather than a state conflict.
"""


class PricingServiceError(Exception):
    """Base exception for all pricing errors."""
    pass


class ValidationError(PricingServiceError):
    """
    Raised when a cart line, discount, combo or payment input is malformed.

    Attributes:
        errors (dict): Field name to message mapping, when the failure can be
            pinned to specific fields.
    """

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or {}


class InvalidComboError(ValidationError):
    """Raised when a combo definition fails validation."""
    pass
