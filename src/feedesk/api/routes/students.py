"""Student roster endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from feedesk.api.dependencies import DataServiceDep, PrincipalDep, SettingsDep
from feedesk.api.models import (
    APIResponse,
    RosterResponse,
    RosterStatsResponse,
    student_to_response,
)
from feedesk.api.streaming import SSE_HEADERS, format_sse, stream_view
from feedesk.sync import LiveCollection, StatusFilter, project_students, roster_stats

router = APIRouter(prefix="/students", tags=["students"])

SearchQuery = Annotated[str, Query(description="Substring of name or email")]
StatusQuery = Annotated[StatusFilter, Query(description="Payment status filter")]


def _roster(rows: list[dict], search: str, status: StatusFilter) -> RosterResponse:
    return RosterResponse(
        students=[student_to_response(r) for r in project_students(rows, search, status)],
        stats=RosterStatsResponse.model_validate(roster_stats(rows)),
    )


@router.get("", response_model=APIResponse[RosterResponse])
def list_students(
    service: DataServiceDep,
    _principal: PrincipalDep,
    search: SearchQuery = "",
    status: StatusQuery = StatusFilter.ALL,
) -> APIResponse[RosterResponse]:
    """List students, newest first, with roster counts."""
    rows = service.read("students", order_by="created_at", descending=True)
    return APIResponse(data=_roster(rows, search, status))


@router.get("/stream")
async def roster_stream(
    service: DataServiceDep,
    _principal: PrincipalDep,
    settings: SettingsDep,
    search: SearchQuery = "",
    status: StatusQuery = StatusFilter.ALL,
) -> StreamingResponse:
    """Stream the roster as students are added, updated or removed.

    Each ``roster`` event carries the filtered students and the counts over
    the whole roster.
    """
    view = LiveCollection(service, "students")

    def render() -> str:
        return format_sse("roster", _roster(view.rows, search, status))

    return StreamingResponse(
        stream_view(view, render, settings.heartbeat_interval),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
