"""Custom exceptions for the data store."""


class DataStoreError(Exception):
    """Base exception for data store errors."""


class UnknownTableError(DataStoreError):
    """Table name is not part of the schema."""


class InvalidFilterError(DataStoreError):
    """Filter or ordering refers to an unknown column, or is missing."""


class InvalidRowError(DataStoreError):
    """Row values violate the table's invariants."""


class DuplicateRowError(DataStoreError):
    """Row conflicts with a unique constraint."""


class StudentNotFoundError(DataStoreError):
    """Student record does not exist."""


class AccountExistsError(DataStoreError):
    """An account with this email already exists."""
