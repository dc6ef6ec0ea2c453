"""
Realtime slot updates
Streams slot change payloads to connected calendar views over a WebSocket
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..realtime import slot_changes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["Realtime"])


@router.websocket("/slots")
async def slot_updates(websocket: WebSocket):
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    async def forward_changes():
        while True:
            payload = await queue.get()
            await websocket.send_json(payload)

    async def wait_for_disconnect():
        # Clients only listen; receiving is how a disconnect is noticed
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass

    # Publishers may run in worker threads; hand payloads over to this connection's loop.
    # Subscribed before accepting so no change is missed once the client is connected.
    unsubscribe = slot_changes.subscribe(lambda payload: loop.call_soon_threadsafe(queue.put_nowait, payload))
    tasks = []
    try:
        await websocket.accept()
        logger.info(f"🔌 Slot feed client connected ({slot_changes.subscriber_count} total)")

        tasks = [asyncio.create_task(forward_changes()), asyncio.create_task(wait_for_disconnect())]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning(f"⚠️ Slot feed connection closed after an error: {task.exception()}")
    finally:
        unsubscribe()
        for task in tasks:
            task.cancel()
        logger.info(f"🔌 Slot feed client disconnected ({slot_changes.subscriber_count} remaining)")
