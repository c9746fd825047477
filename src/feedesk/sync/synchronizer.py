"""Live views: a cached mirror of a table kept current by its change stream."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Self

from feedesk.realtime import ChangeType, ChannelClosedError, RowFilter
from feedesk.sync.projection import RosterStats, StatusFilter, project_students, roster_stats
from feedesk.sync.reducer import apply_change, apply_record_change

if TYPE_CHECKING:
    from types import TracebackType

    from feedesk.identity import Principal
    from feedesk.realtime import ChangeEvent, Channel
    from feedesk.service import DataService

logger = logging.getLogger("feedesk.sync")

Row = dict[str, Any]


class LiveView(ABC):
    """Base class for a cache mirroring rows of one remote table.

    Lifecycle: initialize() does one bulk read, subscribe() opens one change
    channel, run() applies the channel's events in order, teardown() closes
    the channel. Used as an async context manager, all four happen in order
    and teardown is guaranteed on exit.

    When owner_column is set, the view only covers rows owned by the
    current principal: reads are filtered on that column and the channel
    carries a matching row filter. Without a principal the view stays empty
    and no channel is opened.
    """

    def __init__(
        self,
        service: DataService,
        table: str,
        filters: Mapping[str, Any] | None = None,
        owner_column: str | None = None,
        event_types: set[ChangeType] | None = None,
        order_by: str | None = "created_at",
        descending: bool = True,
    ) -> None:
        self.table = table
        self.loading = True
        self.error: BaseException | None = None
        self.version = 0
        self._service = service
        self._filters = dict(filters or {})
        self._owner_column = owner_column
        self._event_types = event_types
        self._order_by = order_by
        self._descending = descending
        self._principal: Principal | None = None
        self._principal_resolved = False
        self._channel: Channel | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._changed = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def live(self) -> bool:
        """True while the consumer task is applying channel events."""
        return self._consumer is not None and not self._consumer.done()

    @property
    def channel(self) -> Channel | None:
        return self._channel

    @property
    def principal(self) -> Principal | None:
        return self._principal

    async def initialize(self) -> None:
        """Load the cache with one bulk read.

        A failed read is logged and recorded in ``error``; the cache stays
        empty and the view still leaves the loading state. A read that
        completes after teardown is discarded.
        """
        if self._closed:
            return
        rows: list[Row] | None = None
        try:
            rows = await self._fetch()
        except Exception as e:
            logger.error("Initial load of %s failed: %s", self.table, e)
            self.error = e

        if self._closed:
            logger.debug("Discarding %s load that finished after teardown", self.table)
            return
        self._load(rows or [])
        self.loading = False
        self._bump()
        logger.info("Loaded %d %s row(s)", len(rows or []), self.table)

    async def subscribe(self) -> Channel | None:
        """Open the change channel, once.

        Returns:
            The channel, or None when torn down or no principal is signed in
            for an owner-scoped view.
        """
        if self._channel is not None or self._closed:
            return self._channel

        try:
            row_filter: RowFilter | None = None
            if self._owner_column is not None:
                principal = await self._resolve_principal()
                if principal is None:
                    logger.info("No principal signed in; not subscribing to %s", self.table)
                    return None
                row_filter = RowFilter.eq(self._owner_column, principal.id)
            if self._closed:
                return None

            self._channel = self._service.subscribe_changes(
                self.table, event_types=self._event_types, row_filter=row_filter
            )
        except Exception as e:
            logger.error("Subscribing to %s changes failed: %s", self.table, e)
            self.error = e
            return None
        logger.debug("Subscribed to %s changes on channel %s", self.table, self._channel.id)
        return self._channel

    def apply_event(self, event: ChangeEvent) -> None:
        """Fold one change event into the cache."""
        self._reduce(event)
        self._bump()

    async def run(self) -> None:
        """Apply channel events until the channel closes.

        A channel closed with an error is logged; the cache keeps its last
        state and the channel is not reopened.
        """
        channel = self._channel
        if channel is None:
            return
        try:
            async for event in channel:
                logger.debug("%s %s on %s", event.event_type, event.row_id, self.table)
                self.apply_event(event)
        except ChannelClosedError as e:
            logger.warning("Change channel for %s failed: %s", self.table, e)
            self.error = e
        logger.debug("Change channel %s for %s ended", channel.id, self.table)
        self._wake()

    def start(self) -> asyncio.Task[None] | None:
        """Start the consumer task for the open channel."""
        if self._channel is None or self._consumer is not None:
            return self._consumer
        self._consumer = asyncio.create_task(self.run(), name=f"live-{self.table}")
        return self._consumer

    async def teardown(self) -> None:
        """Stop the consumer and close the channel. Further calls do nothing."""
        if self._closed:
            return
        self._closed = True
        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None
        if self._channel is not None:
            self._service.unsubscribe(self._channel)
            logger.debug("Unsubscribed channel %s for %s", self._channel.id, self.table)
        self._wake()

    async def wait_for_change(self, seen_version: int, timeout: float | None = None) -> bool:
        """Wait until the cache moves past seen_version.

        Returns:
            True if the cache changed, False on timeout or teardown.
        """
        if self.version != seen_version:
            return True
        if self._closed:
            return False
        changed = self._changed
        try:
            await asyncio.wait_for(changed.wait(), timeout)
        except TimeoutError:
            return False
        return self.version != seen_version

    async def __aenter__(self) -> Self:
        try:
            await self.initialize()
            await self.subscribe()
            self.start()
        except BaseException:
            await self.teardown()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.teardown()

    async def _resolve_principal(self) -> Principal | None:
        if not self._principal_resolved:
            self._principal = await asyncio.to_thread(self._service.get_current_principal)
            self._principal_resolved = True
        return self._principal

    async def _fetch(self) -> list[Row]:
        filters = dict(self._filters)
        if self._owner_column is not None:
            principal = await self._resolve_principal()
            if principal is None:
                return []
            filters[self._owner_column] = principal.id
        return await asyncio.to_thread(
            self._service.read,
            self.table,
            filters or None,
            self._order_by,
            self._descending,
        )

    def _bump(self) -> None:
        self.version += 1
        self._wake()

    def _wake(self) -> None:
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

    @abstractmethod
    def _load(self, rows: list[Row]) -> None:
        """Replace the cache with freshly read rows."""

    @abstractmethod
    def _reduce(self, event: ChangeEvent) -> None:
        """Fold one event into the cache."""


class LiveCollection(LiveView):
    """Live mirror of many rows, newest first as of the initial load."""

    def __init__(
        self,
        service: DataService,
        table: str = "students",
        filters: Mapping[str, Any] | None = None,
        owner_column: str | None = None,
        order_by: str | None = "created_at",
        descending: bool = True,
    ) -> None:
        super().__init__(
            service,
            table,
            filters=filters,
            owner_column=owner_column,
            order_by=order_by,
            descending=descending,
        )
        self.rows: list[Row] = []

    def project(
        self, search_term: str = "", status: StatusFilter | str = StatusFilter.ALL
    ) -> list[Row]:
        """Rows matching the search term and status filter, in cache order."""
        return project_students(self.rows, search_term, status)

    def stats(self) -> RosterStats:
        return roster_stats(self.rows)

    def _load(self, rows: list[Row]) -> None:
        self.rows = list(rows)

    def _reduce(self, event: ChangeEvent) -> None:
        self.rows = apply_change(self.rows, event)


class LiveRecord(LiveView):
    """Live mirror of the single row owned by the current principal."""

    def __init__(
        self,
        service: DataService,
        table: str = "students",
        owner_column: str = "user_id",
    ) -> None:
        super().__init__(
            service,
            table,
            owner_column=owner_column,
            event_types={ChangeType.UPDATE},
        )
        self.record: Row | None = None

    def _load(self, rows: list[Row]) -> None:
        if len(rows) > 1:
            logger.warning(
                "%d %s rows for principal %s; using the newest",
                len(rows),
                self.table,
                self._principal.id if self._principal else None,
            )
        self.record = rows[0] if rows else None

    def _reduce(self, event: ChangeEvent) -> None:
        owner_id = self._principal.id if self._principal else None
        self.record = apply_record_change(
            self.record, event, owner_id=owner_id, owner_column=self._owner_column or "user_id"
        )
