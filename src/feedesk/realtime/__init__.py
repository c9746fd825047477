"""Realtime - Change events and subscription channels for table rows."""

from feedesk.realtime.events import (
    ChangeEvent,
    ChangeFeed,
    ChangeType,
    Channel,
    RowFilter,
)
from feedesk.realtime.exceptions import (
    ChannelClosedError,
    InvalidRowFilterError,
    RealtimeError,
)

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "ChangeType",
    "Channel",
    "ChannelClosedError",
    "InvalidRowFilterError",
    "RealtimeError",
    "RowFilter",
]
