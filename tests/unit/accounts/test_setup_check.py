"""Unit tests for the database setup check."""

from unittest.mock import patch

import pytest

from feedesk.accounts import check_database
from feedesk.data_store import UnknownTableError
from feedesk.service import Backend, LocalDataService


@pytest.mark.unit
class TestCheckDatabase:
    """Tests for check_database."""

    def test_tables_accessible(self, backend: Backend) -> None:
        result = check_database(backend.client())

        assert result.success is True
        assert result.message == "Database tables are accessible"
        assert result.error is None

    def test_missing_table(self, backend: Backend) -> None:
        def read(self, table, *args, **kwargs):
            if table == "transactions":
                raise UnknownTableError("no such table: transactions")
            return []

        with patch.object(LocalDataService, "read", read):
            result = check_database(backend.client())

        assert result.success is False
        assert "transactions table is not accessible" in result.error
        assert result.details == "no such table: transactions"
