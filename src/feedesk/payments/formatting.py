"""Formatting helpers for payment form fields."""

from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"[^0-9]")
_CARD_RUN = re.compile(r"\d{4,16}")


def digits_only(value: str) -> str:
    return _NON_DIGITS.sub("", value)


def format_card_number(value: str) -> str:
    """Group card digits in fours: "4111111111111111" -> "4111 1111 1111 1111".

    Non-digits are dropped and at most 16 digits are kept. Fewer than four
    digits are returned bare.
    """
    digits = digits_only(value)
    match = _CARD_RUN.search(digits)
    if match is None:
        return digits
    run = match.group()
    return " ".join(run[i : i + 4] for i in range(0, len(run), 4))


def format_expiry_date(value: str) -> str:
    """Format expiry digits as MM/YY once two digits are present."""
    digits = digits_only(value)
    if len(digits) >= 2:
        return f"{digits[:2]}/{digits[2:4]}"
    return digits


def format_cvv(value: str) -> str:
    return digits_only(value)[:3]


def card_last_four(card_number: str) -> str:
    """Last four digits of a card number, ignoring grouping."""
    return digits_only(card_number)[-4:]
