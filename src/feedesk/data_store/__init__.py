"""Data Store - Persistent storage for students, transactions and accounts."""

from feedesk.data_store.exceptions import (
    AccountExistsError,
    DataStoreError,
    DuplicateRowError,
    InvalidFilterError,
    InvalidRowError,
    StudentNotFoundError,
    UnknownTableError,
)
from feedesk.data_store.models import (
    Account,
    Student,
    Transaction,
    TransactionStatus,
)
from feedesk.data_store.store import TABLES, DataStore

__all__ = [
    "TABLES",
    "Account",
    "AccountExistsError",
    "DataStore",
    "DataStoreError",
    "DuplicateRowError",
    "InvalidFilterError",
    "InvalidRowError",
    "Student",
    "StudentNotFoundError",
    "Transaction",
    "TransactionStatus",
    "UnknownTableError",
]
