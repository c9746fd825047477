"""Custom exceptions for the identity service."""


class IdentityError(Exception):
    """Base exception for identity errors."""


class EmailTakenError(IdentityError):
    """An account with this email already exists."""


class InvalidEmailError(IdentityError):
    """Email address is malformed."""


class WeakPasswordError(IdentityError):
    """Password does not meet the minimum requirements."""


class InvalidCredentialsError(IdentityError):
    """Email/password combination is wrong."""


class NotAuthenticatedError(IdentityError):
    """No principal is signed in for the request."""
