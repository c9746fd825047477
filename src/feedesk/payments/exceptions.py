"""Custom exceptions for payments."""


class PaymentError(Exception):
    """Base exception for payment errors.

    The message is safe to show to the payer.
    """


class PaymentValidationError(PaymentError):
    """Payment form failed validation."""


class FeesAlreadyPaidError(PaymentError):
    """Student's fees are already paid."""


class PaymentFailedError(PaymentError):
    """Recording the payment failed."""
