"""ProfileService - student profile provisioning, loading and editing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from feedesk.accounts.exceptions import ProfileLoadError, ProfileUpdateError, ProvisioningError
from feedesk.data_store import DataStoreError, DuplicateRowError
from feedesk.identity import NotAuthenticatedError

if TYPE_CHECKING:
    from feedesk.identity import Principal
    from feedesk.service import DataService

logger = logging.getLogger("feedesk.accounts")

Row = dict[str, Any]

DEFAULT_STUDENT_NAME = "Student"


def default_student_name(principal: Principal) -> str:
    """Name for a new student record: signup name, else email local part."""
    if principal.name and principal.name.strip():
        return principal.name.strip()
    local_part = principal.email.split("@", 1)[0]
    return local_part or DEFAULT_STUDENT_NAME


@dataclass(frozen=True)
class Profile:
    """A student record with its payment history, newest first."""

    student: Row
    transactions: list[Row] = field(default_factory=list)


class ProfileService:
    """Profile operations for the principal a data service acts for."""

    def __init__(self, service: DataService) -> None:
        self._service = service

    def current_principal(self) -> Principal:
        """Get the signed-in principal.

        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        principal = self._service.get_current_principal()
        if principal is None:
            raise NotAuthenticatedError("Not signed in")
        return principal

    def find_student(self, principal_id: str) -> Row | None:
        rows = self._service.read(
            "students", {"user_id": principal_id}, order_by="created_at", descending=True
        )
        return rows[0] if rows else None

    def ensure_student(
        self,
        principal: Principal,
        name: str | None = None,
        email: str | None = None,
    ) -> Row:
        """Get the principal's student record, creating it if absent.

        Two concurrent calls for the same principal cannot both insert:
        students.user_id is unique, and the losing insert returns the row
        the winner created.

        Raises:
            DataStoreError: If the record could neither be read nor created
        """
        existing = self.find_student(principal.id)
        if existing is not None:
            return existing

        logger.info("No student record for principal %s, creating one", principal.id)
        values = {
            "user_id": principal.id,
            "name": name.strip() if name and name.strip() else default_student_name(principal),
            "email": email.strip() if email and email.strip() else principal.email,
            "fees_paid": False,
        }
        try:
            return self._service.insert("students", values)
        except DuplicateRowError:
            existing = self.find_student(principal.id)
            if existing is None:
                raise
            logger.info("Student record for principal %s was created concurrently", principal.id)
            return existing

    def list_transactions(self, student_id: str) -> list[Row]:
        return self._service.read(
            "transactions", {"student_id": student_id}, order_by="created_at", descending=True
        )

    def load_profile(self, principal: Principal | None = None) -> Profile:
        """Load the signed-in principal's profile, provisioning it on first visit.

        A failure to load the transaction history is logged and leaves the
        history empty.

        Raises:
            NotAuthenticatedError: If nobody is signed in
            ProvisioningError: If the student record could not be created
            ProfileLoadError: If the student record could not be read
        """
        if principal is None:
            principal = self.current_principal()

        try:
            existing = self.find_student(principal.id)
        except DataStoreError as e:
            logger.error("Error fetching student profile for %s: %s", principal.id, e)
            raise ProfileLoadError("Failed to load profile") from e

        if existing is None:
            try:
                student = self.ensure_student(principal)
            except DataStoreError as e:
                logger.error("Error creating student record for %s: %s", principal.id, e)
                raise ProvisioningError("Failed to create profile. Please contact support.") from e
        else:
            student = existing

        try:
            transactions = self.list_transactions(student["id"])
        except DataStoreError as e:
            logger.error("Error fetching transactions for student %s: %s", student["id"], e)
            transactions = []
        return Profile(student=student, transactions=transactions)

    def update_profile(self, student_id: str, name: str, email: str) -> Row:
        """Edit name and email.

        The remote update is awaited first; only the row it confirms is
        returned, so callers never hold an unconfirmed local edit.

        Raises:
            ProfileUpdateError: If the values are blank or the update failed
        """
        name, email = name.strip(), email.strip()
        if not name:
            raise ProfileUpdateError("Name cannot be empty")
        if not email:
            raise ProfileUpdateError("Email cannot be empty")

        try:
            updated = self._service.update(
                "students", {"id": student_id}, {"name": name, "email": email}
            )
        except DataStoreError as e:
            logger.error("Error updating student %s: %s", student_id, e)
            raise ProfileUpdateError("Failed to update profile") from e
        if not updated:
            raise ProfileUpdateError("Failed to update profile")
        return updated[0]
