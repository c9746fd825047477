"""Change feed: per-table change events fanned out to subscribed channels."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from feedesk.realtime.exceptions import ChannelClosedError, InvalidRowFilterError

logger = logging.getLogger("feedesk.realtime")

Row = dict[str, Any]

# Marks the end of a channel's event stream
_CLOSED = object()


class ChangeType(StrEnum):
    """Kinds of row changes a table can emit."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    """A single insert/update/delete on a table."""

    table: str
    event_type: ChangeType
    new: Row | None = None
    old: Row | None = None
    commit_timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def row(self) -> Row | None:
        """The row the event is about: new for insert/update, old for delete."""
        if self.event_type is ChangeType.DELETE:
            return self.old
        return self.new

    @property
    def row_id(self) -> Any:
        row = self.row
        return None if row is None else row.get("id")


@dataclass(frozen=True)
class RowFilter:
    """Equality filter on one column, written as ``column=eq.value``."""

    column: str
    value: str

    @classmethod
    def parse(cls, expression: str) -> RowFilter:
        """Parse a ``column=eq.value`` expression.

        Raises:
            InvalidRowFilterError: If the expression is malformed or uses
                an operator other than eq.
        """
        column, sep, rest = expression.partition("=")
        operator, dot, value = rest.partition(".")
        if not sep or not dot or not column.strip():
            raise InvalidRowFilterError(f"Malformed row filter: {expression!r}")
        if operator != "eq":
            raise InvalidRowFilterError(f"Unsupported row filter operator: {operator!r}")
        return cls(column=column.strip(), value=value)

    @classmethod
    def eq(cls, column: str, value: Any) -> RowFilter:
        return cls(column=column, value=str(value))

    def matches(self, row: Row | None) -> bool:
        if row is None or self.column not in row:
            return False
        return str(row[self.column]) == self.value

    def __str__(self) -> str:
        return f"{self.column}=eq.{self.value}"


@dataclass
class Channel:
    """A cancellable subscription to one table's change events.

    Iterate it with ``async for`` to receive events in emission order. The
    iteration ends once the channel is closed.
    """

    id: str
    table: str
    queue: asyncio.Queue[Any]
    event_types: frozenset[ChangeType] | None = None  # None means every type
    row_filter: RowFilter | None = None
    loop: asyncio.AbstractEventLoop | None = None
    closed: bool = False
    error: BaseException | None = None
    _drained: bool = False

    @classmethod
    def create(
        cls,
        table: str,
        event_types: set[ChangeType] | frozenset[ChangeType] | None = None,
        row_filter: RowFilter | None = None,
    ) -> Channel:
        """Create a new channel bound to the running event loop, if any."""
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        return cls(
            id=str(uuid4()),
            table=table,
            queue=asyncio.Queue(),
            event_types=frozenset(event_types) if event_types else None,
            row_filter=row_filter,
            loop=loop,
        )

    def accepts(self, event: ChangeEvent) -> bool:
        if self.closed or event.table != self.table:
            return False
        if self.event_types is not None and event.event_type not in self.event_types:
            return False
        if self.row_filter is not None and not self.row_filter.matches(event.row):
            return False
        return True

    def deliver(self, event: ChangeEvent) -> None:
        """Queue an event for the consumer. Safe to call from any thread."""
        if not self.closed:
            self._put(event)

    def close(self, error: BaseException | None = None) -> None:
        """Close the channel, waking any pending consumer.

        Args:
            error: Optional cause; the consumer's iteration raises
                ChannelClosedError instead of ending quietly.
        """
        if self.closed:
            return
        self.closed = True
        self.error = error
        self._put(_CLOSED)

    def _put(self, item: Any) -> None:
        loop = self.loop
        if loop is None:
            self.queue.put_nowait(item)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self.queue.put_nowait(item)
            return
        try:
            loop.call_soon_threadsafe(self.queue.put_nowait, item)
        except RuntimeError:
            # Owning loop already shut down; nobody is left to consume.
            logger.warning("Dropping event for channel %s: event loop is closed", self.id)
            self.closed = True

    def __aiter__(self) -> Channel:
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._drained:
            raise StopAsyncIteration
        item = await self.queue.get()
        if item is _CLOSED:
            self._drained = True
            if self.error is not None:
                raise ChannelClosedError(f"Channel {self.id} closed: {self.error}") from self.error
            raise StopAsyncIteration
        event: ChangeEvent = item
        return event


@dataclass
class ChangeFeed:
    """Fan-out of table change events to subscribed channels."""

    _channels: dict[str, Channel] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def subscribe(
        self,
        table: str,
        event_types: set[ChangeType] | frozenset[ChangeType] | None = None,
        row_filter: RowFilter | str | None = None,
    ) -> Channel:
        """Open a channel on a table.

        Args:
            table: Table to watch.
            event_types: Change types to receive. None means all.
            row_filter: Optional server-side filter, as a RowFilter or a
                ``column=eq.value`` string.

        Returns:
            Channel that yields matching events.
        """
        if isinstance(row_filter, str):
            row_filter = RowFilter.parse(row_filter)
        channel = Channel.create(table, event_types=event_types, row_filter=row_filter)
        with self._lock:
            self._channels[channel.id] = channel
        logger.debug(
            "Channel %s subscribed to %s (filter=%s)", channel.id, table, row_filter or "none"
        )
        return channel

    def unsubscribe(self, channel_id: str) -> None:
        """Remove and close a channel. Unknown ids are ignored."""
        with self._lock:
            channel = self._channels.pop(channel_id, None)
        if channel is not None:
            channel.close()
            logger.debug("Channel %s unsubscribed", channel_id)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to every matching channel.

        Returns:
            Number of channels the event was delivered to.
        """
        with self._lock:
            targets = [c for c in self._channels.values() if c.accepts(event)]
            for channel in targets:
                channel.deliver(event)
        return len(targets)

    def close_all(self, error: BaseException | None = None) -> None:
        """Close every channel, e.g. on shutdown."""
        with self._lock:
            channels = list(self._channels.values())
            self._channels.clear()
        for channel in channels:
            channel.close(error)

    @property
    def channel_count(self) -> int:
        """Get the number of open channels."""
        return len(self._channels)
