"""Unit tests for the roster projection."""

import pytest

from feedesk.realtime import ChangeEvent, ChangeType
from feedesk.sync import RosterStats, StatusFilter, apply_change, project_students, roster_stats

ROWS = [
    {"id": "1", "name": "Ada Lovelace", "email": "ada@example.com", "fees_paid": True},
    {"id": "2", "name": "Grace Hopper", "email": "grace@navy.mil", "fees_paid": False},
    {"id": "3", "name": "Alan Turing", "email": "alan@example.org", "fees_paid": False},
]


def ids(rows: list[dict]) -> list[str]:
    return [r["id"] for r in rows]


@pytest.mark.unit
class TestProjectStudents:
    """Tests for project_students."""

    def test_no_filters_returns_all_in_order(self) -> None:
        assert ids(project_students(ROWS)) == ["1", "2", "3"]

    def test_search_name_case_insensitive(self) -> None:
        assert ids(project_students(ROWS, "HOPPER")) == ["2"]

    def test_search_email(self) -> None:
        assert ids(project_students(ROWS, "example")) == ["1", "3"]

    def test_status_paid(self) -> None:
        assert ids(project_students(ROWS, status=StatusFilter.PAID)) == ["1"]

    def test_status_unpaid_as_string(self) -> None:
        assert ids(project_students(ROWS, status="unpaid")) == ["2", "3"]

    def test_search_and_status_combined(self) -> None:
        assert ids(project_students(ROWS, "example", "unpaid")) == ["3"]

    def test_no_match(self) -> None:
        assert project_students(ROWS, "nobody") == []

    def test_unknown_status(self) -> None:
        with pytest.raises(ValueError):
            project_students(ROWS, status="overdue")

    def test_projection_is_pure(self) -> None:
        """Same inputs give the same output and the cache is untouched."""
        snapshot = [dict(r) for r in ROWS]

        first = project_students(ROWS, "a", "unpaid")
        second = project_students(ROWS, "a", "unpaid")

        assert first == second
        assert ROWS == snapshot


@pytest.mark.unit
class TestRosterStats:
    """Tests for roster_stats."""

    def test_counts(self) -> None:
        assert roster_stats(ROWS) == RosterStats(total=3, paid=1, unpaid=2)

    def test_empty(self) -> None:
        assert roster_stats([]) == RosterStats(total=0, paid=0, unpaid=0)


@pytest.mark.unit
class TestRosterScenario:
    """Cache, change events and projection working together."""

    def test_paid_and_unpaid_views_follow_events(self) -> None:
        rows = [{"id": 1, "name": "Ana", "fees_paid": False}]

        rows = apply_change(
            rows,
            ChangeEvent(
                "students", ChangeType.INSERT, new={"id": 2, "name": "Bo", "fees_paid": True}
            ),
        )
        assert [r["name"] for r in rows] == ["Ana", "Bo"]

        rows = apply_change(
            rows,
            ChangeEvent(
                "students", ChangeType.UPDATE, new={"id": 1, "name": "Ana", "fees_paid": True}
            ),
        )
        assert rows[0]["fees_paid"] is True

        assert project_students(rows, status="unpaid") == []
        assert [r["name"] for r in project_students(rows, "an", "paid")] == ["Ana"]
