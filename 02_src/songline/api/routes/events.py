"""Server-Sent Events stream of live updates."""

import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from ...app import Application
from ...events import format_sse
from ...logging_config import get_logger

logger = get_logger(__name__)

HEARTBEAT_SECONDS = 15.0


def create_events_router(app: Application) -> APIRouter:
    """Create events router."""
    router = APIRouter(prefix="/api", tags=["events"])

    @router.get("/events")
    async def stream_events(request: Request) -> StreamingResponse:
        """Live feed of message, conversation_update and status events."""
        subscriber = app.broadcaster.subscribe()

        async def event_generator():
            try:
                while not subscriber.closed:
                    if await request.is_disconnected():
                        break
                    try:
                        event = await asyncio.wait_for(
                            subscriber.get(), timeout=HEARTBEAT_SECONDS
                        )
                    except asyncio.TimeoutError:
                        yield ": heartbeat\n\n"
                        continue
                    yield format_sse(event)
            finally:
                app.broadcaster.unsubscribe(subscriber)
                logger.debug("Event stream closed")

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return router
