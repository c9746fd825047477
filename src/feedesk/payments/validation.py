"""Payment form model and validation."""

from __future__ import annotations

from dataclasses import dataclass

from feedesk.payments.exceptions import PaymentValidationError
from feedesk.payments.formatting import (
    digits_only,
    format_card_number,
    format_cvv,
    format_expiry_date,
)

CARD_NUMBER_LENGTH = 16
EXPIRY_LENGTH = 5
CVV_LENGTH = 3


@dataclass(frozen=True)
class PaymentForm:
    """Card details as entered on the payment form."""

    card_number: str
    expiry_date: str
    cvv: str
    cardholder_name: str
    amount: int | str

    @classmethod
    def from_input(
        cls,
        card_number: str,
        expiry_date: str,
        cvv: str,
        cardholder_name: str,
        amount: int | str,
    ) -> PaymentForm:
        """Build a form from raw keystrokes, formatting each card field."""
        return cls(
            card_number=format_card_number(card_number),
            expiry_date=format_expiry_date(expiry_date),
            cvv=format_cvv(cvv),
            cardholder_name=cardholder_name,
            amount=amount,
        )

    def normalized(self) -> PaymentForm:
        """The same form with every card field passed through its formatter."""
        return PaymentForm.from_input(
            self.card_number, self.expiry_date, self.cvv, self.cardholder_name, self.amount
        )


def parse_amount(amount: int | str) -> int | None:
    """Parse a positive integer amount, or None if it isn't one."""
    if isinstance(amount, bool):
        return None
    if isinstance(amount, int):
        value = amount
    else:
        text = str(amount).strip()
        if not text.isascii() or not text.isdigit():
            return None
        value = int(text)
    return value if value > 0 else None


def validate_payment_form(form: PaymentForm) -> int:
    """Check the form, stopping at the first failing rule.

    Returns:
        The amount to charge.

    Raises:
        PaymentValidationError: With the message for the first failed rule.
    """
    if len(digits_only(form.card_number)) < CARD_NUMBER_LENGTH:
        raise PaymentValidationError("Please enter a valid 16-digit card number")
    if len(form.expiry_date) < EXPIRY_LENGTH:
        raise PaymentValidationError("Please enter a valid expiry date (MM/YY)")
    if len(form.cvv) < CVV_LENGTH:
        raise PaymentValidationError("Please enter a valid 3-digit CVV")
    if not form.cardholder_name.strip():
        raise PaymentValidationError("Please enter the cardholder name")
    amount = parse_amount(form.amount)
    if amount is None:
        raise PaymentValidationError("Please enter a valid amount")
    return amount
