"""Pure reducers that fold change events into cached rows."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from feedesk.realtime import ChangeEvent, ChangeType

Row = dict[str, Any]


def apply_change(rows: Sequence[Row], event: ChangeEvent) -> list[Row]:
    """Apply one change event to a cached collection.

    Inserts append at the end without re-sorting. Updates replace the row
    with the same id and deletes remove it; either is a no-op when no cached
    row has that id. The input sequence is never modified.

    Args:
        rows: Current cache contents.
        event: Change event from the table the cache mirrors.

    Returns:
        The new cache contents.
    """
    if event.event_type is ChangeType.INSERT:
        if event.new is None:
            return list(rows)
        return [*rows, event.new]

    if event.event_type is ChangeType.UPDATE:
        new = event.new
        if new is None:
            return list(rows)
        return [new if row.get("id") == new.get("id") else row for row in rows]

    if event.event_type is ChangeType.DELETE:
        old = event.old
        if old is None:
            return list(rows)
        return [row for row in rows if row.get("id") != old.get("id")]

    return list(rows)


def apply_record_change(
    record: Row | None,
    event: ChangeEvent,
    owner_id: str | None = None,
    owner_column: str = "user_id",
) -> Row | None:
    """Apply one change event to a cached single record.

    Only updates are honoured; inserts and deletes leave the record alone.
    When owner_id is given, updates for rows owned by someone else are
    ignored too.
    """
    if event.event_type is not ChangeType.UPDATE or event.new is None:
        return record
    if owner_id is not None and event.new.get(owner_column) != owner_id:
        return record
    return event.new
