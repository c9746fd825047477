"""Database setup check."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from feedesk.data_store import DataStoreError

if TYPE_CHECKING:
    from feedesk.service import LocalDataService

logger = logging.getLogger("feedesk.accounts")

REQUIRED_TABLES = ("students", "transactions")


@dataclass(frozen=True)
class DatabaseCheck:
    """Outcome of check_database."""

    success: bool
    message: str | None = None
    error: str | None = None
    details: str | None = None


def check_database(service: LocalDataService) -> DatabaseCheck:
    """Verify the students and transactions tables can be queried."""
    for table in REQUIRED_TABLES:
        try:
            service.read(table, limit=1)
        except DataStoreError as e:
            logger.error("%s table not found or accessible: %s", table.capitalize(), e)
            return DatabaseCheck(
                success=False,
                error=f"The {table} table is not accessible. Check the database setup.",
                details=str(e),
            )
    return DatabaseCheck(success=True, message="Database tables are accessible")
