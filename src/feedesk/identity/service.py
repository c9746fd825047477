"""IdentityService - signup, sign-in and principal lookup."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import uuid4

import bcrypt

from feedesk.data_store import AccountExistsError
from feedesk.identity.exceptions import (
    EmailTakenError,
    InvalidCredentialsError,
    InvalidEmailError,
    WeakPasswordError,
)

if TYPE_CHECKING:
    from feedesk.data_store import Account, DataStore

logger = logging.getLogger("feedesk.identity")

MIN_PASSWORD_LENGTH = 6


class AuthEventType(StrEnum):
    """Auth state transitions listeners are told about."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class Principal:
    """An authenticated identity."""

    id: str
    email: str
    name: str | None = None

    @classmethod
    def from_account(cls, account: Account) -> Principal:
        return cls(id=account.id, email=account.email, name=account.name)


@dataclass(frozen=True)
class Session:
    """A signed-in principal and its access token."""

    access_token: str
    principal: Principal


@dataclass(frozen=True)
class SignUpResult:
    """Outcome of a signup: session is None until the email is confirmed."""

    principal: Principal
    session: Session | None = None


AuthListener = Callable[[AuthEventType, Session], None]


@dataclass
class AuthSubscription:
    """Handle returned by on_auth_state_change."""

    id: str
    listener: AuthListener
    _service: IdentityService = field(repr=False)

    def unsubscribe(self) -> None:
        self._service._remove_listener(self.id)


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt (inputs beyond 72 bytes are truncated)."""
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.checkpw(password_bytes, hashed.encode("utf-8"))


def normalize_email(email: str) -> str:
    """Trim and case-fold an email address.

    Raises:
        InvalidEmailError: If the address has no local part or domain.
    """
    normalized = email.strip().lower()
    local, sep, domain = normalized.partition("@")
    if not sep or not local or not domain or "@" in domain:
        raise InvalidEmailError(f"Invalid email address: {email!r}")
    return normalized


class IdentityService:
    """Account signup/sign-in backed by the data store.

    Access tokens are opaque and stored in the sessions table. Listeners
    registered with on_auth_state_change are called synchronously on every
    sign-in and sign-out.
    """

    def __init__(
        self,
        store: DataStore,
        bcrypt_rounds: int = 12,
        confirm_email: bool = False,
    ) -> None:
        """Initialize the identity service.

        Args:
            store: Data store holding accounts and sessions
            bcrypt_rounds: bcrypt cost factor
            confirm_email: If True, signup does not sign the principal in
        """
        self._store = store
        self._bcrypt_rounds = bcrypt_rounds
        self._confirm_email = confirm_email
        self._listeners: dict[str, AuthListener] = {}
        self._lock = threading.Lock()

    def sign_up(self, email: str, password: str, name: str | None = None) -> SignUpResult:
        """Register a new account.

        Args:
            email: Login email
            password: Plain-text password (at least 6 characters)
            name: Display name stored as account metadata

        Returns:
            The new principal, plus a session unless email confirmation is on

        Raises:
            InvalidEmailError: If the email is malformed
            WeakPasswordError: If the password is too short
            EmailTakenError: If the email is already registered
        """
        email = normalize_email(email)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
            )
        name = name.strip() if name and name.strip() else None

        try:
            account = self._store.create_account(
                email=email,
                password_hash=hash_password(password, self._bcrypt_rounds),
                name=name,
            )
        except AccountExistsError as e:
            raise EmailTakenError("User already registered") from e

        principal = Principal.from_account(account)
        logger.info("Account created for principal %s", principal.id)

        if self._confirm_email:
            return SignUpResult(principal=principal)
        return SignUpResult(principal=principal, session=self._open_session(principal))

    def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email and password.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong
        """
        try:
            email = normalize_email(email)
        except InvalidEmailError as e:
            raise InvalidCredentialsError("Invalid login credentials") from e

        account = self._store.get_account_by_email(email)
        if account is None or not verify_password(password, account.password_hash):
            logger.info("Failed sign-in attempt")
            raise InvalidCredentialsError("Invalid login credentials")

        return self._open_session(Principal.from_account(account))

    def sign_out(self, access_token: str) -> None:
        """End a session. Unknown tokens are ignored."""
        principal = self.get_principal(access_token)
        if not self._store.delete_session(access_token) or principal is None:
            return
        logger.info("Principal %s signed out", principal.id)
        self._emit(AuthEventType.SIGNED_OUT, Session(access_token, principal))

    def get_principal(self, access_token: str | None) -> Principal | None:
        """Resolve an access token to its principal, or None."""
        if not access_token:
            return None
        account = self._store.get_session_account(access_token)
        return None if account is None else Principal.from_account(account)

    def on_auth_state_change(self, listener: AuthListener) -> AuthSubscription:
        """Register a listener for sign-in/sign-out events."""
        subscription = AuthSubscription(id=str(uuid4()), listener=listener, _service=self)
        with self._lock:
            self._listeners[subscription.id] = listener
        return subscription

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _remove_listener(self, subscription_id: str) -> None:
        with self._lock:
            self._listeners.pop(subscription_id, None)

    def _open_session(self, principal: Principal) -> Session:
        token = self._store.create_session(principal.id)
        session = Session(access_token=token, principal=principal)
        logger.info("Principal %s signed in", principal.id)
        self._emit(AuthEventType.SIGNED_IN, session)
        return session

    def _emit(self, event: AuthEventType, session: Session) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(event, session)
            except Exception:
                logger.exception("Auth state listener failed on %s", event)
