"""DataStore - Table-scoped row operations with change notifications."""

from __future__ import annotations

import contextlib
import logging
import re
import secrets
import threading
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from feedesk.data_store.database import Database
from feedesk.data_store.exceptions import (
    AccountExistsError,
    DataStoreError,
    DuplicateRowError,
    InvalidFilterError,
    InvalidRowError,
    UnknownTableError,
)
from feedesk.data_store.models import (
    Account,
    AuthSession,
    Base,
    Student,
    Transaction,
    TransactionStatus,
)
from feedesk.realtime import ChangeEvent, ChangeType

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from feedesk.realtime import ChangeFeed

logger = logging.getLogger("feedesk.data_store")

Row = dict[str, Any]

# Tables reachable through the generic row API
TABLES: dict[str, type[Base]] = {
    "students": Student,
    "transactions": Transaction,
}

READ_ONLY_COLUMNS = frozenset({"id", "created_at", "updated_at"})
IMMUTABLE_TABLES = frozenset({"transactions"})

_LAST_FOUR = re.compile(r"[0-9]{4}")


class DataStore:
    """Main API for data store operations.

    Provides row CRUD for the students and transactions tables plus the
    account and session records used by the identity service. Every
    committed row change is published to the change feed, in commit order.

    The store is shared by request threads. With an in-memory database all
    threads use one SQLite connection, so every session, reads included,
    runs under the write lock.
    """

    def __init__(self, db_path: str = "feedesk.db", feed: ChangeFeed | None = None) -> None:
        """Initialize the store with a SQLite database.

        Creates database and tables if they don't exist.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
            feed: Change feed that receives an event for every row change
        """
        self._db = Database(db_path)
        self._db.create_tables()
        self._feed = feed
        self._write_lock = threading.RLock()

    @property
    def feed(self) -> ChangeFeed | None:
        return self._feed

    def close(self) -> None:
        """Close the database connection."""
        with self._write_lock:
            self._db.close()

    def table_names(self) -> list[str]:
        with self._write_lock:
            return self._db.table_names()

    @contextlib.contextmanager
    def _session(self) -> Iterator[Session]:
        guard = self._write_lock if self._db.in_memory else contextlib.nullcontext()
        with guard:
            session = self._db.get_session()
            try:
                yield session
            finally:
                session.close()

    # --- Row Operations ---

    def read(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """Read rows from a table.

        Args:
            table: Table name
            filters: Column equality filters, all of which must match
            order_by: Column to order by
            descending: Order descending instead of ascending
            limit: Maximum number of rows to return

        Returns:
            Matching rows as dicts

        Raises:
            UnknownTableError: If the table is not part of the schema
            InvalidFilterError: If a filter or order column doesn't exist
        """
        model = self._model(table)
        stmt = select(model).where(*self._where(model, filters))
        if order_by is not None:
            column = self._column(model, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._session() as session:
            try:
                return [obj.to_row() for obj in session.execute(stmt).scalars().all()]
            except SQLAlchemyError as e:
                raise DataStoreError(f"Read from {table} failed: {e}") from e

    def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        """Insert a row.

        Args:
            table: Table name
            values: Column values; id and timestamps are generated

        Returns:
            The inserted row

        Raises:
            InvalidRowError: If values violate the table's invariants
            DuplicateRowError: If the row conflicts with a unique constraint
        """
        model = self._model(table)
        values = dict(values)
        self._check_columns(model, values, allow_id=True)
        self._validate(table, values)

        with self._write_lock:
            with self._session() as session:
                try:
                    try:
                        obj = model(**values)
                    except TypeError as e:
                        raise InvalidRowError(f"Incomplete row for {table}: {e}") from e
                    session.add(obj)
                    session.commit()
                    session.refresh(obj)
                    row = obj.to_row()
                except IntegrityError as e:
                    session.rollback()
                    raise self._integrity_error(table, e) from e
                except SQLAlchemyError as e:
                    session.rollback()
                    raise DataStoreError(f"Insert into {table} failed: {e}") from e

            self._publish([ChangeEvent(table, ChangeType.INSERT, new=row)])
        return row

    def update(self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> list[Row]:
        """Update every row matching the filters.

        Args:
            table: Table name
            filters: Column equality filters (at least one required)
            patch: Column values to set

        Returns:
            The updated rows (empty if nothing matched)

        Raises:
            InvalidFilterError: If filters are empty or name unknown columns
            InvalidRowError: If the patch is invalid or the table is immutable
        """
        model = self._model(table)
        if table in IMMUTABLE_TABLES:
            raise InvalidRowError(f"Rows in {table} cannot be modified")
        if not filters:
            raise InvalidFilterError("Update requires at least one filter")
        patch = dict(patch)
        self._check_columns(model, patch)

        events: list[ChangeEvent] = []
        with self._write_lock:
            with self._session() as session:
                try:
                    objs = session.execute(
                        select(model).where(*self._where(model, filters))
                    ).scalars().all()
                    olds = []
                    for obj in objs:
                        old = obj.to_row()
                        self._validate(table, {**old, **patch})
                        for key, value in patch.items():
                            setattr(obj, key, value)
                        olds.append(old)
                    session.commit()
                    for obj, old in zip(objs, olds, strict=True):
                        session.refresh(obj)
                        events.append(
                            ChangeEvent(table, ChangeType.UPDATE, new=obj.to_row(), old=old)
                        )
                except IntegrityError as e:
                    session.rollback()
                    raise self._integrity_error(table, e) from e
                except SQLAlchemyError as e:
                    session.rollback()
                    raise DataStoreError(f"Update of {table} failed: {e}") from e

            self._publish(events)
        return [e.new for e in events if e.new is not None]

    def delete(self, table: str, filters: Mapping[str, Any]) -> list[Row]:
        """Delete every row matching the filters.

        Returns:
            The deleted rows

        Raises:
            InvalidFilterError: If filters are empty or name unknown columns
            InvalidRowError: If the table is immutable
        """
        model = self._model(table)
        if table in IMMUTABLE_TABLES:
            raise InvalidRowError(f"Rows in {table} cannot be deleted")
        if not filters:
            raise InvalidFilterError("Delete requires at least one filter")

        with self._write_lock:
            with self._session() as session:
                try:
                    clauses = self._where(model, filters)
                    objs = session.execute(select(model).where(*clauses)).scalars().all()
                    rows = [obj.to_row() for obj in objs]
                    session.execute(delete(model).where(*clauses))
                    session.commit()
                except IntegrityError as e:
                    session.rollback()
                    raise self._integrity_error(table, e) from e
                except SQLAlchemyError as e:
                    session.rollback()
                    raise DataStoreError(f"Delete from {table} failed: {e}") from e

            self._publish([ChangeEvent(table, ChangeType.DELETE, old=row) for row in rows])
        return rows

    # --- Account Operations ---

    def create_account(self, email: str, password_hash: str, name: str | None = None) -> Account:
        """Create an account.

        Raises:
            AccountExistsError: If the email is already registered
        """
        with self._write_lock, self._session() as session:
            try:
                account = Account(email=email, password_hash=password_hash, name=name)
                session.add(account)
                session.commit()
                session.refresh(account)
                return account
            except IntegrityError as e:
                session.rollback()
                raise AccountExistsError(f"Account with email '{email}' already exists") from e
            except SQLAlchemyError as e:
                session.rollback()
                raise DataStoreError(f"Creating account failed: {e}") from e

    def get_account(self, account_id: str) -> Account | None:
        with self._session() as session:
            try:
                return session.get(Account, account_id)
            except SQLAlchemyError as e:
                raise DataStoreError(f"Account lookup failed: {e}") from e

    def get_account_by_email(self, email: str) -> Account | None:
        with self._session() as session:
            try:
                stmt = select(Account).where(Account.email == email)
                return session.execute(stmt).scalar_one_or_none()
            except SQLAlchemyError as e:
                raise DataStoreError(f"Account lookup failed: {e}") from e

    def create_session(self, account_id: str) -> str:
        """Issue a new access token for an account.

        Returns:
            The opaque access token
        """
        with self._write_lock, self._session() as session:
            try:
                token = secrets.token_urlsafe(32)
                session.add(AuthSession(token=token, account_id=account_id))
                session.commit()
                return token
            except SQLAlchemyError as e:
                session.rollback()
                raise DataStoreError(f"Creating session failed: {e}") from e

    def get_session_account(self, token: str) -> Account | None:
        """Resolve an access token to its account, if the session exists."""
        with self._session() as session:
            try:
                stmt = (
                    select(Account)
                    .join(AuthSession, AuthSession.account_id == Account.id)
                    .where(AuthSession.token == token)
                )
                return session.execute(stmt).scalar_one_or_none()
            except SQLAlchemyError as e:
                raise DataStoreError(f"Session lookup failed: {e}") from e

    def delete_session(self, token: str) -> bool:
        """Delete a session.

        Returns:
            True if a session was removed
        """
        with self._write_lock, self._session() as session:
            try:
                result = session.execute(delete(AuthSession).where(AuthSession.token == token))
                session.commit()
                return bool(result.rowcount)
            except SQLAlchemyError as e:
                session.rollback()
                raise DataStoreError(f"Deleting session failed: {e}") from e

    # --- Helpers ---

    def _model(self, table: str) -> type[Base]:
        model = TABLES.get(table)
        if model is None:
            raise UnknownTableError(f"Unknown table '{table}'")
        return model

    def _column(self, model: type[Base], name: str) -> Any:
        column = model.__table__.columns.get(name)  # type: ignore[attr-defined]
        if column is None:
            raise InvalidFilterError(f"Unknown column '{name}' on {model.__tablename__}")
        return column

    def _where(self, model: type[Base], filters: Mapping[str, Any] | None) -> list[Any]:
        if not filters:
            return []
        return [self._column(model, name) == value for name, value in filters.items()]

    def _check_columns(
        self, model: type[Base], values: Mapping[str, Any], allow_id: bool = False
    ) -> None:
        columns = model.__table__.columns  # type: ignore[attr-defined]
        for key in values:
            if key not in columns:
                raise InvalidRowError(f"Unknown column '{key}' on {model.__tablename__}")
            if key in READ_ONLY_COLUMNS and not (allow_id and key == "id"):
                raise InvalidRowError(f"Column '{key}' is read-only")

    def _validate(self, table: str, row: Mapping[str, Any]) -> None:
        if table == "students":
            for key in ("name", "email", "user_id"):
                if key in row and not isinstance(row[key], str):
                    raise InvalidRowError(f"{key} must be a string")
            if "fees_paid" in row and not isinstance(row["fees_paid"], bool):
                raise InvalidRowError("fees_paid must be a boolean")
        elif table == "transactions":
            amount = row.get("amount")
            if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
                raise InvalidRowError("amount must be a positive integer")
            last_four = row.get("card_last_four")
            if not isinstance(last_four, str) or not _LAST_FOUR.fullmatch(last_four):
                raise InvalidRowError("card_last_four must be exactly four digits")
            status = row.get("status", TransactionStatus.PENDING.value)
            if status not in {s.value for s in TransactionStatus}:
                raise InvalidRowError(f"Unknown transaction status '{status}'")

    def _integrity_error(self, table: str, error: IntegrityError) -> DataStoreError:
        message = str(error.orig) if error.orig is not None else str(error)
        if "UNIQUE constraint failed" in message:
            return DuplicateRowError(f"Duplicate row in {table}: {message}")
        return InvalidRowError(f"Constraint violation in {table}: {message}")

    def _publish(self, events: list[ChangeEvent]) -> None:
        if self._feed is None:
            return
        for event in events:
            delivered = self._feed.publish(event)
            logger.debug(
                "Published %s on %s (row=%s, channels=%d)",
                event.event_type,
                event.table,
                event.row_id,
                delivered,
            )
