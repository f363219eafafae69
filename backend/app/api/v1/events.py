"""
Server-Sent Events endpoint for live result notifications.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from app.core.config import settings
from app.services.event_hub import EVENT_KINDS, EventHub, get_event_hub, stream_events

router = APIRouter()


def _parse_topics(topics: Optional[str]):
    if not topics:
        return None
    requested = {t.strip() for t in topics.split(",") if t.strip()}
    return frozenset(requested & EVENT_KINDS) or None


@router.get("/events")
async def event_stream(
    request: Request,
    topics: Optional[str] = Query(
        None, description="Comma-separated event kinds to receive (default: all)"
    ),
    hub: EventHub = Depends(get_event_hub),
):
    """
    Stream new-result, result-reviewed and tests-updated events.

    The subscription lives exactly as long as this connection.
    """
    return StreamingResponse(
        stream_events(
            hub,
            request.is_disconnected,
            settings.EVENT_STREAM_HEARTBEAT_SECONDS,
            _parse_topics(topics),
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
