"""SQLAlchemy models for the data store."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
    inspect,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
)


class TransactionStatus(StrEnum):
    """Transaction status enum."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, as SQLite stores it."""
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    def to_row(self) -> dict[str, Any]:
        """Return the column values as a plain row dict."""
        return {attr.key: getattr(self, attr.key) for attr in inspect(type(self)).column_attrs}


class Student(Base):
    """Student record - one per principal, tracks fee payment status."""

    __tablename__ = "students"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    fees_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    def __init__(
        self,
        name: str,
        email: str,
        user_id: str,
        id: str | None = None,
        fees_paid: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.name = name
        self.email = email
        self.user_id = user_id
        self.fees_paid = fees_paid

    def __repr__(self) -> str:
        return f"<Student(id={self.id!r}, name={self.name!r}, fees_paid={self.fees_paid!r})>"


class Transaction(Base):
    """Transaction record - one per successful simulated payment, immutable."""

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("students.id"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    card_last_four: Mapped[str] = mapped_column(String(4), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    def __init__(
        self,
        student_id: str,
        amount: int,
        card_last_four: str,
        transaction_id: str,
        id: str | None = None,
        payment_method: str = "Credit Card",
        status: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.student_id = student_id
        self.amount = amount
        self.payment_method = payment_method
        self.card_last_four = card_last_four
        self.status = status if status is not None else TransactionStatus.PENDING.value
        self.transaction_id = transaction_id

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id!r}, transaction_id={self.transaction_id!r}, "
            f"status={self.status!r})>"
        )


class Account(Base):
    """Login credentials for one principal; owns at most one student record."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, server_default=func.now()
    )

    def __init__(
        self,
        email: str,
        password_hash: str,
        id: str | None = None,
        name: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.email = email
        self.password_hash = password_hash
        self.name = name

    def __repr__(self) -> str:
        return f"<Account(id={self.id!r}, email={self.email!r})>"


class AuthSession(Base):
    """Access token issued to a signed-in account."""

    __tablename__ = "sessions"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<AuthSession(account_id={self.account_id!r})>"
