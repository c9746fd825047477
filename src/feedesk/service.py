"""Data service handle consumed by views, payments and profiles."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from feedesk.data_store import DataStore
from feedesk.identity import IdentityService
from feedesk.realtime import ChangeFeed

if TYPE_CHECKING:
    from feedesk.config import Settings
    from feedesk.identity import Principal
    from feedesk.realtime import ChangeType, Channel, RowFilter

logger = logging.getLogger("feedesk.service")

Row = dict[str, Any]


class DataService(Protocol):
    """Interface to the remote data service: rows, identity and change streams."""

    def read(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        """Read rows from a table."""
        ...

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert a row and return it as stored."""
        ...

    def update(self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> list[Row]:
        """Update matching rows and return them as stored."""
        ...

    def get_current_principal(self) -> Principal | None:
        """Get the principal the handle acts for, if signed in."""
        ...

    def subscribe_changes(
        self,
        table: str,
        event_types: set[ChangeType] | None = None,
        row_filter: RowFilter | str | None = None,
    ) -> Channel:
        """Open a change channel on a table."""
        ...

    def unsubscribe(self, channel: Channel) -> None:
        """Close a change channel."""
        ...


class LocalDataService:
    """In-process DataService bound to one access token."""

    def __init__(
        self,
        store: DataStore,
        feed: ChangeFeed,
        identity: IdentityService,
        access_token: str | None = None,
    ) -> None:
        self._store = store
        self._feed = feed
        self._identity = identity
        self.access_token = access_token

    def read(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        return self._store.read(
            table, filters=filters, order_by=order_by, descending=descending, limit=limit
        )

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        return self._store.insert(table, row)

    def update(self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> list[Row]:
        return self._store.update(table, filters, patch)

    def delete(self, table: str, filters: Mapping[str, Any]) -> list[Row]:
        return self._store.delete(table, filters)

    def get_current_principal(self) -> Principal | None:
        return self._identity.get_principal(self.access_token)

    def subscribe_changes(
        self,
        table: str,
        event_types: set[ChangeType] | None = None,
        row_filter: RowFilter | str | None = None,
    ) -> Channel:
        return self._feed.subscribe(table, event_types=event_types, row_filter=row_filter)

    def unsubscribe(self, channel: Channel) -> None:
        self._feed.unsubscribe(channel.id)


@dataclass
class Backend:
    """The store, change feed and identity service wired together."""

    store: DataStore
    feed: ChangeFeed
    identity: IdentityService

    @classmethod
    def create(cls, settings: Settings) -> Backend:
        """Build a backend from settings."""
        feed = ChangeFeed()
        store = DataStore(settings.db_path, feed=feed)
        identity = IdentityService(
            store,
            bcrypt_rounds=settings.bcrypt_rounds,
            confirm_email=settings.confirm_email,
        )
        logger.info("Backend ready (db=%s)", settings.db_path)
        return cls(store=store, feed=feed, identity=identity)

    def client(self, access_token: str | None = None) -> LocalDataService:
        """Get a data service handle acting for the given session."""
        return LocalDataService(self.store, self.feed, self.identity, access_token)

    def close(self) -> None:
        """Close every open channel and the database."""
        self.feed.close_all()
        self.store.close()
