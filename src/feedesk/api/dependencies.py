"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from feedesk.accounts import AccountService
from feedesk.config import Settings
from feedesk.identity import NotAuthenticatedError, Principal
from feedesk.service import Backend, LocalDataService

# Global Backend instance (initialized on app startup)
_backend: Backend | None = None

# Settings the running app was created with
_settings: Settings | None = None


def init_backend(settings: Settings) -> Backend:
    """Initialize the global Backend instance."""
    global _backend, _settings  # noqa: PLW0603
    _settings = settings
    _backend = Backend.create(settings)
    return _backend


def close_backend() -> None:
    """Close the global Backend instance."""
    global _backend  # noqa: PLW0603
    if _backend is not None:
        _backend.close()
        _backend = None


def get_backend() -> Generator[Backend, None, None]:
    """Dependency that provides the Backend instance."""
    if _backend is None:
        raise RuntimeError("Backend not initialized. Call init_backend() first.")
    yield _backend


def get_settings() -> Generator[Settings, None, None]:
    """Dependency that provides the app settings."""
    yield _settings if _settings is not None else Settings()


BackendDep = Annotated[Backend, Depends(get_backend)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

bearer_scheme = HTTPBearer(auto_error=False)


def get_access_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """Bearer token from the Authorization header, if any."""
    if credentials is None:
        return None
    return credentials.credentials


AccessTokenDep = Annotated[str | None, Depends(get_access_token)]


def get_data_service(backend: BackendDep, access_token: AccessTokenDep) -> LocalDataService:
    """Dependency that provides a data service acting for the caller's session."""
    return backend.client(access_token)


DataServiceDep = Annotated[LocalDataService, Depends(get_data_service)]


def get_current_principal(service: DataServiceDep) -> Principal:
    """Dependency that requires a signed-in caller."""
    principal = service.get_current_principal()
    if principal is None:
        raise NotAuthenticatedError("Not signed in")
    return principal


PrincipalDep = Annotated[Principal, Depends(get_current_principal)]


def get_account_service(backend: BackendDep) -> AccountService:
    """Dependency that provides the AccountService."""
    return AccountService(backend.identity, backend.client)


AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
