"""
src/services/broadcaster.py
────────────────────────────
Publish/subscribe fan-out of telemetry messages.

Messages are plain JSON-ready dicts: {"type": ..., "data": ..., "timestamp": ms}.
A subscriber whose send() raises is dropped on the spot and never retried, so
one dead or slow listener cannot hold up the publisher.
"""
from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

from src.data.models import now_ms

logger = logging.getLogger(__name__)

SENSOR_UPDATE = "sensorUpdate"
CONNECTION_LOST = "connectionLost"
WELCOME = "welcome"


class Subscriber(Protocol):
    def send(self, message: dict[str, Any]) -> None: ...


class CallbackSubscriber:
    def __init__(self, callback: Callable[[dict[str, Any]], None]) -> None:
        self._callback = callback

    def send(self, message: dict[str, Any]) -> None:
        self._callback(message)


def make_message(msg_type: str, data: Any, timestamp: int | None = None) -> dict[str, Any]:
    return {"type": msg_type, "data": data, "timestamp": now_ms() if timestamp is None else timestamp}


class Broadcaster:
    def __init__(self, name: str = "telemetry") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._subscribers: dict[int, Subscriber] = {}
        self._handles = itertools.count(1)

    def subscribe(self, subscriber: Subscriber | Callable[[dict[str, Any]], None]) -> int:
        if not hasattr(subscriber, "send"):
            subscriber = CallbackSubscriber(subscriber)
        with self._lock:
            handle = next(self._handles)
            self._subscribers[handle] = subscriber
        logger.debug("[%s] subscriber %d added", self._name, handle)
        return handle

    def unsubscribe(self, handle: int) -> bool:
        with self._lock:
            removed = self._subscribers.pop(handle, None) is not None
        if removed:
            logger.debug("[%s] subscriber %d removed", self._name, handle)
        return removed

    def is_subscribed(self, handle: int) -> bool:
        with self._lock:
            return handle in self._subscribers

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, msg_type: str, data: Any) -> int:
        """Send to every subscriber; returns how many deliveries succeeded."""
        message = make_message(msg_type, data)
        with self._lock:
            targets = list(self._subscribers.items())

        delivered = 0
        for handle, subscriber in targets:
            try:
                subscriber.send(message)
                delivered += 1
            except Exception as e:
                logger.warning("[%s] dropping subscriber %d after failed %s: %s", self._name, handle, msg_type, e)
                self.unsubscribe(handle)
        return delivered
