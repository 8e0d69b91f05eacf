"""WebSocket endpoint streaming live health updates."""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from healthwatch.services.health import (
    AggregateSnapshot,
    HealthMonitor,
    HealthSubscription,
    StreamClosedError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["WebSocket"])

HEALTH_UPDATE = "HEALTH_UPDATE"


def _message(snapshot: AggregateSnapshot) -> dict:
    return {"type": HEALTH_UPDATE, "data": snapshot.model_dump(mode="json")}


@router.websocket("/health")
async def health_stream_endpoint(websocket: WebSocket):
    """Stream aggregate health snapshots.

    Protocol:
    1. Client connects
    2. Server sends the current snapshot as HEALTH_UPDATE
    3. Server sends every subsequent snapshot as HEALTH_UPDATE
    4. Connection ends when the client disconnects or the monitor is disposed
    """
    monitor: HealthMonitor = websocket.app.state.health_monitor
    await websocket.accept()

    try:
        subscription = monitor.health_stream.subscribe()
    except StreamClosedError:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    try:
        await websocket.send_json(_message(monitor.current_health))

        forward = asyncio.create_task(_forward(websocket, subscription))
        watch = asyncio.create_task(_wait_for_disconnect(websocket))
        done, pending = await asyncio.wait(
            {forward, watch}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            error = task.exception()
            if error and not isinstance(error, WebSocketDisconnect):
                logger.error(f"Health stream error: {error}")

        # Stream closed by the monitor
        if forward in done and forward.exception() is None:
            await websocket.close()
    except WebSocketDisconnect:
        pass
    finally:
        subscription.close()


async def _forward(websocket: WebSocket, subscription: HealthSubscription) -> None:
    async for snapshot in subscription:
        await websocket.send_json(_message(snapshot))


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
