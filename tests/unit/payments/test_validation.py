"""Unit tests for payment form validation."""

import pytest

from feedesk.payments import (
    PaymentForm,
    PaymentValidationError,
    parse_amount,
    validate_payment_form,
)


def form(**overrides) -> PaymentForm:
    fields = {
        "card_number": "4111 1111 1111 1111",
        "expiry_date": "12/25",
        "cvv": "123",
        "cardholder_name": "Ada Lovelace",
        "amount": "5000",
    }
    fields.update(overrides)
    return PaymentForm(**fields)


@pytest.mark.unit
class TestValidatePaymentForm:
    """Tests for validate_payment_form."""

    def test_valid_form_returns_amount(self) -> None:
        assert validate_payment_form(form()) == 5000

    def test_card_number_boundary(self) -> None:
        with pytest.raises(PaymentValidationError, match="16-digit card number"):
            validate_payment_form(form(card_number="4111 1111 1111 111"))
        with pytest.raises(PaymentValidationError, match="16-digit card number"):
            validate_payment_form(form(card_number="411111111111111"))

        assert validate_payment_form(form(card_number="4111111111111111")) == 5000
        assert validate_payment_form(form(card_number="4111 1111 1111 1111")) == 5000

    def test_expiry_boundary(self) -> None:
        with pytest.raises(PaymentValidationError, match=r"expiry date \(MM/YY\)"):
            validate_payment_form(form(expiry_date="12/2"))

    def test_cvv_boundary(self) -> None:
        with pytest.raises(PaymentValidationError, match="3-digit CVV"):
            validate_payment_form(form(cvv="12"))

    def test_blank_cardholder_name(self) -> None:
        with pytest.raises(PaymentValidationError, match="cardholder name"):
            validate_payment_form(form(cardholder_name="   "))

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", "", 0, True])
    def test_invalid_amount(self, amount) -> None:
        with pytest.raises(PaymentValidationError, match="valid amount"):
            validate_payment_form(form(amount=amount))

    def test_first_failing_rule_reported(self) -> None:
        """Rules are checked in order and only the first failure is reported."""
        bad = form(card_number="4111", expiry_date="1", cvv="", cardholder_name="", amount="0")

        with pytest.raises(PaymentValidationError) as exc_info:
            validate_payment_form(bad)
        assert str(exc_info.value) == "Please enter a valid 16-digit card number"


@pytest.mark.unit
class TestPaymentForm:
    """Tests for PaymentForm.from_input and parse_amount."""

    def test_from_input_formats_fields(self) -> None:
        built = PaymentForm.from_input("4111111111111111", "1225", "1234", "Ada", 5000)

        assert built.card_number == "4111 1111 1111 1111"
        assert built.expiry_date == "12/25"
        assert built.cvv == "123"

    def test_parse_amount(self) -> None:
        assert parse_amount(" 7500 ") == 7500
        assert parse_amount(42) == 42
        assert parse_amount("12.50") is None
