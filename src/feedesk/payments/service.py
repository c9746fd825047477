"""PaymentService - simulated card payments for student fees.

No payment network is contacted: after validation the service waits for
the configured processing delay, records a completed transaction and marks
the student's fees as paid.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
import time
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from feedesk.data_store import DataStoreError, StudentNotFoundError, TransactionStatus
from feedesk.identity import NotAuthenticatedError
from feedesk.logging import sanitize_for_log
from feedesk.payments.exceptions import FeesAlreadyPaidError, PaymentFailedError
from feedesk.payments.formatting import card_last_four
from feedesk.payments.validation import validate_payment_form

if TYPE_CHECKING:
    from feedesk.payments.validation import PaymentForm
    from feedesk.service import DataService

logger = logging.getLogger("feedesk.payments")

Row = dict[str, Any]

PAYMENT_METHOD = "Credit Card"
DEFAULT_PROCESSING_DELAY = 3.0

_TOKEN_ALPHABET = string.digits + string.ascii_lowercase

# One lock per student while a payment is being recorded
_payment_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def _payment_lock(student_id: str) -> asyncio.Lock:
    lock = _payment_locks.get(student_id)
    if lock is None:
        lock = asyncio.Lock()
        _payment_locks[student_id] = lock
    return lock


def generate_transaction_id(now_ms: int | None = None) -> str:
    """Human-readable transaction token, e.g. TXN_1718000000000_k3j9x0a2b.

    Built from a millisecond timestamp and nine random base-36 characters;
    collisions are unlikely but possible.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(9))
    return f"TXN_{now_ms}_{suffix}"


@dataclass(frozen=True)
class PaymentResult:
    """Confirmed rows after a successful payment."""

    transaction: Row
    student: Row


class PaymentService:
    """Runs the simulated payment flow against the data service."""

    def __init__(
        self,
        service: DataService,
        processing_delay: float = DEFAULT_PROCESSING_DELAY,
    ) -> None:
        """Initialize the payment service.

        Args:
            service: Data service acting for the paying principal
            processing_delay: Seconds the simulated processor takes
        """
        self._service = service
        self._processing_delay = processing_delay

    async def load_payer(self) -> Row:
        """Load the student record of the signed-in principal.

        Raises:
            NotAuthenticatedError: If no principal is signed in
            StudentNotFoundError: If the principal has no student record
        """
        principal = await asyncio.to_thread(self._service.get_current_principal)
        if principal is None:
            raise NotAuthenticatedError("Sign in to make a payment")
        rows = await asyncio.to_thread(
            self._service.read, "students", {"user_id": principal.id}
        )
        if not rows:
            raise StudentNotFoundError(f"No student record for principal '{principal.id}'")
        return rows[0]

    async def submit(self, student: Row, form: PaymentForm) -> PaymentResult:
        """Validate the form and record the payment.

        Card fields are run through their formatters before validation, so a
        form built from raw input is checked as the payment page would show
        it. The student is re-read once processing finishes; only one payment
        per student is recorded at a time.

        Args:
            student: The paying student's row
            form: Card details

        Returns:
            The transaction and the student as stored after payment

        Raises:
            PaymentValidationError: If the form is invalid (nothing is recorded)
            FeesAlreadyPaidError: If the student has nothing left to pay
            PaymentFailedError: If recording the payment failed
        """
        form = form.normalized()
        amount = validate_payment_form(form)
        if student.get("fees_paid"):
            raise FeesAlreadyPaidError("Your fees have already been paid")

        await asyncio.sleep(self._processing_delay)

        async with _payment_lock(student["id"]):
            current = await self._reload(student)
            if current.get("fees_paid"):
                logger.warning("Student %s paid while this payment was processing", student["id"])
                raise FeesAlreadyPaidError("Your fees have already been paid")
            return await self._record(current, form, amount)

    async def _reload(self, student: Row) -> Row:
        try:
            rows = await asyncio.to_thread(self._service.read, "students", {"id": student["id"]})
        except DataStoreError as e:
            logger.error("Error reloading student %s: %s", student["id"], e)
            raise PaymentFailedError("Payment failed. Please try again.") from e
        if not rows:
            raise StudentNotFoundError(f"Student '{student['id']}' no longer exists")
        return rows[0]

    async def _record(self, student: Row, form: PaymentForm, amount: int) -> PaymentResult:
        values = {
            "student_id": student["id"],
            "amount": amount,
            "payment_method": PAYMENT_METHOD,
            "card_last_four": card_last_four(form.card_number),
            "status": TransactionStatus.COMPLETED.value,
            "transaction_id": generate_transaction_id(),
        }
        try:
            transaction = await asyncio.to_thread(self._service.insert, "transactions", values)
        except DataStoreError as e:
            logger.error(
                "Error creating transaction for student %s: %s",
                student["id"],
                sanitize_for_log(str(e)),
            )
            raise PaymentFailedError("Payment failed. Please try again.") from e

        try:
            updated = await asyncio.to_thread(
                self._service.update, "students", {"id": student["id"]}, {"fees_paid": True}
            )
        except DataStoreError as e:
            logger.error(
                "Transaction %s recorded but student %s not updated: %s",
                transaction["transaction_id"],
                student["id"],
                e,
            )
            raise PaymentFailedError(
                "Payment processed but failed to update status. Please contact support."
            ) from e
        if not updated:
            logger.error(
                "Transaction %s recorded but student %s no longer exists",
                transaction["transaction_id"],
                student["id"],
            )
            raise PaymentFailedError(
                "Payment processed but failed to update status. Please contact support."
            )

        logger.info(
            "Payment %s of %d recorded for student %s (card ending %s)",
            transaction["transaction_id"],
            amount,
            student["id"],
            transaction["card_last_four"],
        )
        return PaymentResult(transaction=transaction, student=updated[0])
