"""Custom exceptions for accounts and profiles."""


class AccountError(Exception):
    """Base exception for account errors.

    The message is safe to show to the user.
    """


class ProvisioningError(AccountError):
    """Student record could not be created for a principal."""


class ProfileLoadError(AccountError):
    """Profile could not be loaded."""


class ProfileUpdateError(AccountError):
    """Profile edit was rejected or failed."""
