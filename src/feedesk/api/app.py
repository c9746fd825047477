"""FastAPI application setup."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feedesk import __version__
from feedesk.accounts import ProfileLoadError, ProfileUpdateError, ProvisioningError
from feedesk.api.dependencies import close_backend, init_backend
from feedesk.api.models import APIResponse
from feedesk.api.routes import auth, payments, profile, setup, students
from feedesk.config import Settings
from feedesk.data_store import DataStoreError, StudentNotFoundError
from feedesk.identity import (
    EmailTakenError,
    IdentityError,
    InvalidCredentialsError,
    NotAuthenticatedError,
)
from feedesk.logging import get_logger, sanitize_for_log, truncate_output
from feedesk.payments import FeesAlreadyPaidError, PaymentFailedError, PaymentValidationError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = get_logger("api")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message).model_dump(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    settings = app.state.settings if hasattr(app.state, "settings") else Settings.from_env()
    init_backend(settings)
    logger.info("FeeDesk API started (db=%s)", settings.db_path)

    yield
    # Shutdown
    close_backend()
    logger.info("FeeDesk API stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="FeeDesk API",
        description="REST API for FeeDesk - Student Fee Payments",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings if settings is not None else Settings.from_env()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated_handler(
        _request: Request, exc: NotAuthenticatedError
    ) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, str(exc) or "Not signed in")

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        _request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, str(exc))

    @app.exception_handler(EmailTakenError)
    async def email_taken_handler(_request: Request, exc: EmailTakenError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(IdentityError)
    async def identity_error_handler(_request: Request, exc: IdentityError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(StudentNotFoundError)
    async def student_not_found_handler(
        _request: Request, _exc: StudentNotFoundError
    ) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Student not found")

    @app.exception_handler(PaymentValidationError)
    async def payment_validation_handler(
        _request: Request, exc: PaymentValidationError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(FeesAlreadyPaidError)
    async def fees_already_paid_handler(
        _request: Request, exc: FeesAlreadyPaidError
    ) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(PaymentFailedError)
    async def payment_failed_handler(_request: Request, exc: PaymentFailedError) -> JSONResponse:
        return _error(status.HTTP_502_BAD_GATEWAY, str(exc))

    @app.exception_handler(ProvisioningError)
    async def provisioning_error_handler(
        _request: Request, exc: ProvisioningError
    ) -> JSONResponse:
        return _error(status.HTTP_502_BAD_GATEWAY, str(exc))

    @app.exception_handler(ProfileUpdateError)
    async def profile_update_handler(_request: Request, exc: ProfileUpdateError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(ProfileLoadError)
    async def profile_load_handler(_request: Request, exc: ProfileLoadError) -> JSONResponse:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(DataStoreError)
    async def data_store_error_handler(_request: Request, exc: DataStoreError) -> JSONResponse:
        detail = truncate_output(sanitize_for_log(str(exc)), max_length=500)
        logger.error("Unhandled data store error: %s", detail)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    # Include routers
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(profile.router, prefix="/api/v1")
    app.include_router(students.router, prefix="/api/v1")
    app.include_router(payments.router, prefix="/api/v1")
    app.include_router(setup.router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
