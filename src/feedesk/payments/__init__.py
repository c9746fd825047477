"""Payments - Card form formatting, validation and simulated payment."""

from feedesk.payments.exceptions import (
    FeesAlreadyPaidError,
    PaymentError,
    PaymentFailedError,
    PaymentValidationError,
)
from feedesk.payments.formatting import (
    card_last_four,
    digits_only,
    format_card_number,
    format_cvv,
    format_expiry_date,
)
from feedesk.payments.service import (
    PAYMENT_METHOD,
    PaymentResult,
    PaymentService,
    generate_transaction_id,
)
from feedesk.payments.validation import PaymentForm, parse_amount, validate_payment_form

__all__ = [
    "PAYMENT_METHOD",
    "FeesAlreadyPaidError",
    "PaymentError",
    "PaymentFailedError",
    "PaymentForm",
    "PaymentResult",
    "PaymentService",
    "PaymentValidationError",
    "card_last_four",
    "digits_only",
    "format_card_number",
    "format_cvv",
    "format_expiry_date",
    "generate_transaction_id",
    "parse_amount",
    "validate_payment_form",
]
