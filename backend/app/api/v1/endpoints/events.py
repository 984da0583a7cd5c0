"""
Notification Events
- POST /events         publish (the console outbox posts here after mutations)
- GET  /events         recent history
- GET  /events/stream  Server-Sent Events feed
"""

import asyncio
import json
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from app.api.deps import Actor, get_actor
from app.core.config import settings
from app.core.logging_config import logger
from app.schemas import EventPublish
from app.services.event_bus import event_bus

router = APIRouter()


@router.post("", status_code=202)
async def publish_event(payload: EventPublish, actor: Actor = Depends(get_actor)):
    event = event_bus.publish(
        payload.topic,
        payload.payload,
        actor_id=actor.id,
        actor_role=actor.role.value,
    )
    return {"success": True, "event": event.to_dict()}


@router.get("")
async def recent_events(
    topic: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
):
    return [event.to_dict() for event in event_bus.recent(topic=topic, limit=limit)]


@router.get("/stream")
async def stream_events(request: Request, topic: Optional[str] = Query(None)):
    """SSE feed of published events; a comment line keeps idle connections open"""
    queue = event_bus.subscribe()

    async def event_stream():
        try:
            while True:
                if await request.is_disconnected():
                    break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=settings.EVENT_STREAM_PING_SECONDS)
                except asyncio.TimeoutError:
                    yield ": ping\n\n"
                    continue
                if topic and event.topic != topic:
                    continue
                yield f"event: {event.topic}\ndata: {json.dumps(event.to_dict())}\n\n"
        finally:
            event_bus.unsubscribe(queue)
            logger.debug("[Events] Stream closed")

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no"
        }
    )
