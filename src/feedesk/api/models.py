"""Pydantic models for REST API."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Auth models


class SignupRequest(BaseModel):
    """Request model for creating an account."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., max_length=72)


class LoginRequest(BaseModel):
    """Request model for signing in."""

    email: str
    password: str


class PrincipalResponse(BaseModel):
    """Response model for a signed-in account."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None


# Student models


class StudentResponse(BaseModel):
    """Response model for a student record."""

    id: str
    name: str
    email: str
    fees_paid: bool
    user_id: str
    created_at: datetime
    updated_at: datetime


class TransactionResponse(BaseModel):
    """Response model for a payment transaction."""

    id: str
    student_id: str
    amount: int
    payment_method: str
    card_last_four: str
    status: str
    transaction_id: str
    created_at: datetime
    updated_at: datetime


class SessionResponse(BaseModel):
    """Response model for signup and login.

    access_token is None when the account must confirm its email before
    the first sign-in.
    """

    access_token: str | None = None
    token_type: str = "bearer"
    principal: PrincipalResponse
    student: StudentResponse | None = None


class ProfileResponse(BaseModel):
    """Response model for the signed-in student's profile."""

    student: StudentResponse
    transactions: list[TransactionResponse]


class ProfileUpdate(BaseModel):
    """Request model for editing a profile."""

    name: str = Field(..., max_length=255)
    email: str = Field(..., max_length=255)


class RosterStatsResponse(BaseModel):
    """Counts over the whole roster, independent of filters."""

    model_config = ConfigDict(from_attributes=True)

    total: int
    paid: int
    unpaid: int


class RosterResponse(BaseModel):
    """Response model for the student roster."""

    students: list[StudentResponse]
    stats: RosterStatsResponse


# Payment models


class PaymentRequest(BaseModel):
    """Request model for a card payment.

    Card fields are accepted as typed and formatted server-side. amount
    defaults to the configured fee.
    """

    card_number: str = Field(..., max_length=64)
    expiry_date: str = Field(..., max_length=16)
    cvv: str = Field(..., max_length=16)
    cardholder_name: str = Field(..., max_length=255)
    amount: int | str | None = None


class PaymentResponse(BaseModel):
    """Response model for a recorded payment."""

    transaction: TransactionResponse
    student: StudentResponse


class PaymentQuoteResponse(BaseModel):
    """What the signed-in student owes."""

    amount: int
    fees_paid: bool


# Setup models


class DatabaseCheckResponse(BaseModel):
    """Response model for the database setup check."""

    model_config = ConfigDict(from_attributes=True)

    success: bool
    message: str | None = None
    error: str | None = None
    details: str | None = None


def student_to_response(row: dict[str, Any]) -> StudentResponse:
    """Convert a student row to StudentResponse."""
    return StudentResponse.model_validate(row)


def transaction_to_response(row: dict[str, Any]) -> TransactionResponse:
    """Convert a transaction row to TransactionResponse."""
    return TransactionResponse.model_validate(row)
