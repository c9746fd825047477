"""REST API for FeeDesk."""

from feedesk.api.app import app, create_app
from feedesk.api.models import (
    APIResponse,
    PaymentRequest,
    ProfileResponse,
    RosterResponse,
    SessionResponse,
    StudentResponse,
)

__all__ = [
    "APIResponse",
    "PaymentRequest",
    "ProfileResponse",
    "RosterResponse",
    "SessionResponse",
    "StudentResponse",
    "app",
    "create_app",
]
