"""
src/services/ingestion.py
──────────────────────────
Ingestion of sensor payloads.

Pipeline per payload:
  raw → validation → health score → MonitorState (snapshot, link, history)
      → arbiter (consumer history, alerts)
      → broadcast "sensorUpdate" to subscribers

Validation and scoring run before the state lock is taken. The state update
and the hand-over to the arbiter share one critical section, so the server
and consumer histories see payloads in the same order. Broadcasts run after
the lock is released.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from src.analytics.health_index import assess_reading
from src.analytics.validation import parse_telemetry
from src.data.models import AckResult, Snapshot, now_ms
from src.data.store import MonitorState
from src.services.arbiter import DataSourceArbiter
from src.services.broadcaster import SENSOR_UPDATE, Broadcaster

logger = logging.getLogger(__name__)


class IngestionService:
    def __init__(
        self,
        state: MonitorState,
        broadcaster: Broadcaster,
        clock: Callable[[], int] = now_ms,
        arbiter: DataSourceArbiter | None = None,
    ) -> None:
        self._state = state
        self._broadcaster = broadcaster
        self._clock = clock
        self._arbiter = arbiter

    def ingest(self, raw: Mapping[str, Any] | None) -> AckResult:
        logger.debug("Received payload: %s", raw)
        received_at = self._clock()
        payload = parse_telemetry(raw, received_at)
        reading = payload.reading
        health = assess_reading(reading)
        snapshot = Snapshot.from_reading(reading, health, payload.status, payload.error_count)

        admitted = None
        with self._state.lock:
            history_size = self._state.apply_ingest(reading, snapshot, received_at)
            if self._arbiter is not None and reading.valid:
                try:
                    admitted = self._arbiter.admit_live(reading)
                except Exception:
                    logger.exception("Arbiter failed to consume live reading")
        logger.info(
            "Data stored: T=%s (sensor: %s), pH=%s (sensor: %s), health=%d%% %s",
            reading.temperature, reading.temperature_ok, reading.ph, reading.ph_ok,
            health.score, health.status,
        )

        if admitted is not None:
            self._arbiter.announce(admitted)
        self._broadcaster.publish(SENSOR_UPDATE, snapshot.model_dump())
        return AckResult(
            accepted=reading.valid,
            temperature_accepted=reading.temperature is not None,
            ph_accepted=reading.ph is not None,
            history_size=history_size,
        )
