"""Accounts - Signup provisioning, student profiles and setup checks."""

from feedesk.accounts.exceptions import (
    AccountError,
    ProfileLoadError,
    ProfileUpdateError,
    ProvisioningError,
)
from feedesk.accounts.profiles import Profile, ProfileService, default_student_name
from feedesk.accounts.setup import DatabaseCheck, check_database
from feedesk.accounts.signup import AccountService, SignUpOutcome

__all__ = [
    "AccountError",
    "AccountService",
    "DatabaseCheck",
    "Profile",
    "ProfileLoadError",
    "ProfileService",
    "ProfileUpdateError",
    "ProvisioningError",
    "SignUpOutcome",
    "check_database",
    "default_student_name",
]
