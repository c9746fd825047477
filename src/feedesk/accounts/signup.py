"""AccountService - signup with first-time student provisioning."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from feedesk.accounts.exceptions import ProvisioningError
from feedesk.accounts.profiles import ProfileService
from feedesk.data_store import DataStoreError
from feedesk.identity import AuthEventType, AuthSubscription

if TYPE_CHECKING:
    from feedesk.identity import IdentityService, Principal, Session
    from feedesk.service import DataService

logger = logging.getLogger("feedesk.accounts")

Row = dict[str, Any]

ServiceFactory = Callable[[str | None], "DataService"]


@dataclass(frozen=True)
class SignUpOutcome:
    """Result of a signup.

    session and student are None while the account awaits its first
    sign-in (email confirmation mode); the student record is then created
    when that sign-in happens.
    """

    principal: Principal
    session: Session | None = None
    student: Row | None = None


class AccountService:
    """Creates accounts and makes sure each one gets a student record."""

    def __init__(self, identity: IdentityService, service_factory: ServiceFactory) -> None:
        """Initialize the account service.

        Args:
            identity: Identity service used for signup and sign-in
            service_factory: Builds a data service acting for an access token
        """
        self._identity = identity
        self._service_factory = service_factory

    def sign_up(self, name: str, email: str, password: str) -> SignUpOutcome:
        """Register an account and provision its student record.

        Raises:
            IdentityError: If the identity service rejects the signup
            ProvisioningError: If the account was created but the student
                record could not be
        """
        result = self._identity.sign_up(email, password, name=name)
        if result.session is None:
            self._provision_on_first_sign_in(result.principal, name, email)
            return SignUpOutcome(principal=result.principal)

        student = self._provision(result.session, name, email)
        return SignUpOutcome(principal=result.principal, session=result.session, student=student)

    def sign_in(self, email: str, password: str) -> Session:
        return self._identity.sign_in(email, password)

    def sign_out(self, access_token: str) -> None:
        self._identity.sign_out(access_token)

    def _provision(self, session: Session, name: str | None, email: str | None) -> Row:
        profiles = ProfileService(self._service_factory(session.access_token))
        try:
            return profiles.ensure_student(session.principal, name=name, email=email)
        except DataStoreError as e:
            logger.error("Error creating student record for %s: %s", session.principal.id, e)
            raise ProvisioningError(
                "Account created but profile setup failed. Please try logging in."
            ) from e

    def _provision_on_first_sign_in(
        self, principal: Principal, name: str | None, email: str | None
    ) -> AuthSubscription:
        subscription: AuthSubscription | None = None

        def on_change(event: AuthEventType, session: Session) -> None:
            if event is not AuthEventType.SIGNED_IN or session.principal.id != principal.id:
                return
            if subscription is not None:
                subscription.unsubscribe()
            try:
                self._provision(session, name, email)
            except ProvisioningError:
                # The profile page creates the record lazily on first visit
                logger.warning("Deferred provisioning failed for %s", principal.id)

        subscription = self._identity.on_auth_state_change(on_change)
        logger.info("Student record for %s will be created on first sign-in", principal.id)
        return subscription
