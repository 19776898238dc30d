"""
src/api/websocket.py
────────────────────
Real-time push of broadcaster messages over WebSocket.

Protocol (server → client only):
  1. {type: "welcome", data: {message, timestamp}}
  2. {type: "sensorUpdate", data: <current snapshot>}
  3. every later "sensorUpdate" / "connectionLost" broadcast

Each connection gets a bounded asyncio.Queue filled from whichever thread
publishes. A full queue means the client is not keeping up; the send fails
and the broadcaster drops the subscription.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from src.data.models import now_ms
from src.services.broadcaster import SENSOR_UPDATE, WELCOME, make_message

logger = logging.getLogger(__name__)


class SubscriberOverflow(RuntimeError):
    pass


class QueueSubscriber:
    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
        self._loop = loop
        self._queue = queue

    def send(self, message: dict[str, Any]) -> None:
        if self._queue.full():
            raise SubscriberOverflow("client queue full")
        # raises RuntimeError once the loop is closed
        self._loop.call_soon_threadsafe(self._put, message)

    def _put(self, message: dict[str, Any]) -> None:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("WebSocket client queue full, message dropped")


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _drain(websocket: WebSocket) -> None:
    # inbound frames are ignored; reading them surfaces the client's close
    while True:
        await websocket.receive_text()


async def sensor_stream(websocket: WebSocket) -> None:
    runtime = websocket.app.state.runtime
    await websocket.accept()

    queue: asyncio.Queue = asyncio.Queue(maxsize=runtime.settings.SUBSCRIBER_QUEUE_SIZE)
    handle = runtime.broadcaster.subscribe(QueueSubscriber(asyncio.get_running_loop(), queue))
    client = websocket.client.host if websocket.client else "unknown"
    logger.info("WebSocket client connected from: %s", client)

    tasks: list[asyncio.Task] = []
    try:
        await websocket.send_json(make_message(WELCOME, {
            "message": "Connected to AquaVision Monitor",
            "timestamp": now_ms(),
        }))
        await websocket.send_json(make_message(SENSOR_UPDATE, runtime.state.snapshot().model_dump()))
        tasks = [asyncio.create_task(_pump(websocket, queue)), asyncio.create_task(_drain(websocket))]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            task.result()
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected: %s", client)
    except Exception as e:
        logger.warning("WebSocket error for %s: %s", client, e)
    finally:
        for task in tasks:
            task.cancel()
        runtime.broadcaster.unsubscribe(handle)
