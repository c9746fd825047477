"""Unit tests for the change reducers."""

import pytest

from feedesk.realtime import ChangeEvent, ChangeType
from feedesk.sync import apply_change, apply_record_change


def row(row_id: str, **values) -> dict:
    return {"id": row_id, "user_id": f"user-{row_id}", "name": f"Student {row_id}", **values}


def insert(new: dict) -> ChangeEvent:
    return ChangeEvent("students", ChangeType.INSERT, new=new)


def update(new: dict, old: dict | None = None) -> ChangeEvent:
    return ChangeEvent("students", ChangeType.UPDATE, new=new, old=old)


def delete(old: dict) -> ChangeEvent:
    return ChangeEvent("students", ChangeType.DELETE, old=old)


@pytest.mark.unit
class TestApplyChange:
    """Tests for apply_change."""

    def test_insert_appends(self) -> None:
        rows = [row("a"), row("b")]

        assert apply_change(rows, insert(row("c"))) == [row("a"), row("b"), row("c")]

    def test_update_replaces_matching_row_in_place(self) -> None:
        rows = [row("a"), row("b"), row("c")]

        result = apply_change(rows, update(row("b", name="Renamed")))

        assert result == [row("a"), row("b", name="Renamed"), row("c")]

    def test_delete_removes_by_old_id(self) -> None:
        rows = [row("a"), row("b")]

        assert apply_change(rows, delete(row("a"))) == [row("b")]

    def test_input_not_mutated(self) -> None:
        rows = [row("a")]
        snapshot = [dict(r) for r in rows]

        apply_change(rows, insert(row("b")))
        apply_change(rows, update(row("a", name="Renamed")))
        apply_change(rows, delete(row("a")))

        assert rows == snapshot

    def test_update_without_match_is_noop(self) -> None:
        rows = [row("a"), row("b")]

        assert apply_change(rows, update(row("zzz"))) == rows

    def test_delete_without_match_is_noop(self) -> None:
        rows = [row("a"), row("b")]

        assert apply_change(rows, delete(row("zzz"))) == rows

    def test_sequence_of_events(self) -> None:
        """Folding a sequence gives the same result as applying each in turn."""
        events = [
            insert(row("a")),
            insert(row("b")),
            update(row("a", fees_paid=True)),
            delete(row("b")),
            insert(row("c")),
        ]

        rows: list[dict] = []
        for event in events:
            rows = apply_change(rows, event)

        assert rows == [row("a", fees_paid=True), row("c")]

    def test_empty_payload_is_noop(self) -> None:
        rows = [row("a")]

        assert apply_change(rows, ChangeEvent("students", ChangeType.UPDATE)) == rows
        assert apply_change(rows, ChangeEvent("students", ChangeType.DELETE)) == rows


@pytest.mark.unit
class TestApplyRecordChange:
    """Tests for apply_record_change."""

    def test_update_replaces_record(self) -> None:
        record = row("a", fees_paid=False)

        result = apply_record_change(record, update(row("a", fees_paid=True)), owner_id="user-a")

        assert result == row("a", fees_paid=True)

    def test_update_for_other_owner_ignored(self) -> None:
        record = row("a")

        assert apply_record_change(record, update(row("b")), owner_id="user-a") is record

    def test_insert_and_delete_ignored(self) -> None:
        record = row("a")

        assert apply_record_change(record, insert(row("a")), owner_id="user-a") is record
        assert apply_record_change(record, delete(row("a")), owner_id="user-a") is record

    def test_update_fills_empty_record(self) -> None:
        assert apply_record_change(None, update(row("a"))) == row("a")
