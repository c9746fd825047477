"""Server-Sent Events streams backed by live views."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from feedesk.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from feedesk.sync import LiveView

logger = get_logger("api.streaming")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def format_sse(event: str, data: BaseModel | dict[str, Any] | None) -> str:
    """Format one SSE message."""
    if isinstance(data, BaseModel):
        payload = data.model_dump_json()
    else:
        payload = json.dumps(data)
    return f"event: {event}\ndata: {payload}\n\n"


def heartbeat() -> str:
    return format_sse("heartbeat", {"timestamp": datetime.now(UTC).isoformat()})


async def stream_view(
    view: LiveView,
    render: Callable[[], str],
    heartbeat_interval: float,
) -> AsyncGenerator[str, None]:
    """Stream a rendered snapshot of the view, then one per change.

    A heartbeat is sent whenever the view stays unchanged for
    heartbeat_interval seconds. The stream ends once the view's change
    channel closes; closing the stream tears the view down.
    """
    async with view:
        seen = view.version
        yield render()
        if not view.live:
            if view.error is not None:
                yield format_sse("error", {"message": "Live updates are unavailable"})
            return

        while True:
            changed = await view.wait_for_change(seen, timeout=heartbeat_interval)
            if changed:
                seen = view.version
                yield render()
            elif not view.live:
                logger.debug("Live view on %s ended, closing stream", view.table)
                break
            else:
                yield heartbeat()
