"""Identity - Accounts, sessions and auth state events."""

from feedesk.identity.exceptions import (
    EmailTakenError,
    IdentityError,
    InvalidCredentialsError,
    InvalidEmailError,
    NotAuthenticatedError,
    WeakPasswordError,
)
from feedesk.identity.service import (
    AuthEventType,
    AuthSubscription,
    IdentityService,
    Principal,
    Session,
    SignUpResult,
    hash_password,
    verify_password,
)

__all__ = [
    "AuthEventType",
    "AuthSubscription",
    "EmailTakenError",
    "IdentityError",
    "IdentityService",
    "InvalidCredentialsError",
    "InvalidEmailError",
    "NotAuthenticatedError",
    "Principal",
    "Session",
    "SignUpResult",
    "WeakPasswordError",
    "hash_password",
    "verify_password",
]
