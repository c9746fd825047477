"""Roster projection: search and payment-status filtering over cached rows."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

Row = dict[str, Any]


class StatusFilter(StrEnum):
    """Payment status filter for the roster."""

    ALL = "all"
    PAID = "paid"
    UNPAID = "unpaid"


@dataclass(frozen=True)
class RosterStats:
    """Counts over the whole roster, ignoring search and filter."""

    total: int
    paid: int
    unpaid: int


def matches_search(row: Row, search_term: str) -> bool:
    """Case-insensitive substring match on name or email."""
    term = search_term.lower()
    name = str(row.get("name") or "").lower()
    email = str(row.get("email") or "").lower()
    return term in name or term in email


def matches_status(row: Row, status: StatusFilter) -> bool:
    if status is StatusFilter.PAID:
        return bool(row.get("fees_paid"))
    if status is StatusFilter.UNPAID:
        return not row.get("fees_paid")
    return True


def project_students(
    rows: Sequence[Row],
    search_term: str = "",
    status: StatusFilter | str = StatusFilter.ALL,
) -> list[Row]:
    """Filter cached student rows for display, keeping cache order.

    Args:
        rows: Cached student rows.
        search_term: Substring to look for in name or email; empty matches all.
        status: all, paid or unpaid.

    Returns:
        Rows passing both the search and the status filter.

    Raises:
        ValueError: If status is not a known filter value.
    """
    status = StatusFilter(status)
    return [row for row in rows if matches_search(row, search_term) and matches_status(row, status)]


def roster_stats(rows: Sequence[Row]) -> RosterStats:
    paid = sum(1 for row in rows if row.get("fees_paid"))
    return RosterStats(total=len(rows), paid=paid, unpaid=len(rows) - paid)
