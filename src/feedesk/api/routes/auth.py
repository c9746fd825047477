"""Signup, login and logout endpoints."""

from fastapi import APIRouter, status

from feedesk.api.dependencies import AccessTokenDep, AccountServiceDep
from feedesk.api.models import (
    APIResponse,
    LoginRequest,
    PrincipalResponse,
    SessionResponse,
    SignupRequest,
    student_to_response,
)
from feedesk.identity import NotAuthenticatedError

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup",
    response_model=APIResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
)
def sign_up(request: SignupRequest, accounts: AccountServiceDep) -> APIResponse[SessionResponse]:
    """Create an account and its student record.

    When email confirmation is required no session is returned and the
    student record is created on the first login.
    """
    outcome = accounts.sign_up(request.name, request.email, request.password)
    return APIResponse(
        data=SessionResponse(
            access_token=outcome.session.access_token if outcome.session else None,
            principal=PrincipalResponse.model_validate(outcome.principal),
            student=student_to_response(outcome.student) if outcome.student else None,
        )
    )


@router.post("/login", response_model=APIResponse[SessionResponse])
def login(request: LoginRequest, accounts: AccountServiceDep) -> APIResponse[SessionResponse]:
    """Sign in with email and password."""
    session = accounts.sign_in(request.email, request.password)
    return APIResponse(
        data=SessionResponse(
            access_token=session.access_token,
            principal=PrincipalResponse.model_validate(session.principal),
        )
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(access_token: AccessTokenDep, accounts: AccountServiceDep) -> None:
    """End the caller's session."""
    if access_token is None:
        raise NotAuthenticatedError("Not signed in")
    accounts.sign_out(access_token)
