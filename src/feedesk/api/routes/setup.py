"""Database setup check endpoint."""

from fastapi import APIRouter

from feedesk.accounts import check_database
from feedesk.api.dependencies import BackendDep
from feedesk.api.models import APIResponse, DatabaseCheckResponse

router = APIRouter(prefix="/setup", tags=["setup"])


@router.get("/status", response_model=APIResponse[DatabaseCheckResponse])
def setup_status(backend: BackendDep) -> APIResponse[DatabaseCheckResponse]:
    """Check that the students and transactions tables are usable."""
    check = check_database(backend.client())
    return APIResponse(data=DatabaseCheckResponse.model_validate(check))
