"""Sync - Live views that mirror remote tables through change events."""

from feedesk.sync.projection import (
    RosterStats,
    StatusFilter,
    project_students,
    roster_stats,
)
from feedesk.sync.reducer import apply_change, apply_record_change
from feedesk.sync.synchronizer import LiveCollection, LiveRecord, LiveView

__all__ = [
    "LiveCollection",
    "LiveRecord",
    "LiveView",
    "RosterStats",
    "StatusFilter",
    "apply_change",
    "apply_record_change",
    "project_students",
    "roster_stats",
]
