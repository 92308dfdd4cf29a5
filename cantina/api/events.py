"""Server-Sent Events stream of order and payment changes"""

import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from cantina.events import broadcaster

router = APIRouter()

KEEPALIVE_SECONDS = 15


async def event_stream(request: Request):
    client_id, queue = broadcaster.subscribe()
    try:
        while True:
            if await request.is_disconnected():
                break
            try:
                event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield event.to_sse()
    finally:
        broadcaster.unsubscribe(client_id)


@router.get("")
async def stream_events(request: Request):
    """Subscribe to real-time order events"""
    return StreamingResponse(
        event_stream(request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
