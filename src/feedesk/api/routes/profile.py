"""Student profile endpoints."""

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from feedesk.accounts import ProfileService
from feedesk.api.dependencies import DataServiceDep, PrincipalDep, SettingsDep
from feedesk.api.models import (
    APIResponse,
    ProfileResponse,
    ProfileUpdate,
    StudentResponse,
    student_to_response,
    transaction_to_response,
)
from feedesk.api.streaming import SSE_HEADERS, format_sse, stream_view
from feedesk.data_store import StudentNotFoundError
from feedesk.sync import LiveRecord

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=APIResponse[ProfileResponse])
def get_profile(service: DataServiceDep, principal: PrincipalDep) -> APIResponse[ProfileResponse]:
    """Get the caller's profile, creating the student record on first visit."""
    profile = ProfileService(service).load_profile(principal)
    return APIResponse(
        data=ProfileResponse(
            student=student_to_response(profile.student),
            transactions=[transaction_to_response(t) for t in profile.transactions],
        )
    )


@router.patch("", response_model=APIResponse[StudentResponse])
def update_profile(
    update: ProfileUpdate, service: DataServiceDep, principal: PrincipalDep
) -> APIResponse[StudentResponse]:
    """Edit the caller's name and email."""
    profiles = ProfileService(service)
    student = profiles.find_student(principal.id)
    if student is None:
        raise StudentNotFoundError(f"No student record for principal '{principal.id}'")
    updated = profiles.update_profile(student["id"], update.name, update.email)
    return APIResponse(data=student_to_response(updated))


@router.get("/stream")
async def profile_stream(
    service: DataServiceDep, principal: PrincipalDep, settings: SettingsDep
) -> StreamingResponse:
    """Stream the caller's student record as it changes.

    Sends a ``profile`` event with the current record, then another on every
    update to it, with heartbeats in between.
    """
    view = LiveRecord(service)

    def render() -> str:
        record = student_to_response(view.record) if view.record else None
        return format_sse("profile", record)

    return StreamingResponse(
        stream_view(view, render, settings.heartbeat_interval),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
