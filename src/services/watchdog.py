"""
src/services/watchdog.py
─────────────────────────
Connection watchdog.

Every WATCHDOG_INTERVAL_S it checks how long ago the last payload arrived;
past DISCONNECT_TIMEOUT_S the link is declared lost, the snapshot is marked
invalid and a "connectionLost" message is broadcast. Only a new payload
reconnects (see IngestionService).
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from config.settings import settings
from src.data.models import now_ms
from src.data.store import MonitorState
from src.services.broadcaster import CONNECTION_LOST, Broadcaster

logger = logging.getLogger(__name__)


class ConnectionWatchdog:
    def __init__(
        self,
        state: MonitorState,
        broadcaster: Broadcaster,
        interval_s: float = settings.WATCHDOG_INTERVAL_S,
        timeout_s: float = settings.DISCONNECT_TIMEOUT_S,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._state = state
        self._broadcaster = broadcaster
        self._interval_s = interval_s
        self._timeout_ms = int(timeout_s * 1000)
        self._clock = clock
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._stop_event is not None and not self._stop_event.is_set()

    def check(self) -> bool:
        """Run one watchdog check. Returns True if a disconnect was declared."""
        before = self._state.mark_stale(self._clock(), self._timeout_ms)
        if before is None:
            return False

        last_update = datetime.fromtimestamp(before.last_data_at / 1000, tz=UTC).isoformat()
        logger.warning(
            "No data received for %.0f seconds - sensor unit may be disconnected",
            self._timeout_ms / 1000,
        )
        self._broadcaster.publish(CONNECTION_LOST, {
            "message": "Connection to monitoring system lost",
            "lastUpdate": last_update,
        })
        return True

    def start(self) -> bool:
        with self._lock:
            if self._stop_event is not None and not self._stop_event.is_set():
                return False
            self._stop_event = threading.Event()
            stop_event = self._stop_event
        threading.Thread(target=self._run, args=(stop_event,), name="connection-watchdog", daemon=True).start()
        logger.info(
            "Connection watchdog started (interval %.0fs, timeout %.0fs)",
            self._interval_s, self._timeout_ms / 1000,
        )
        return True

    def stop(self) -> bool:
        with self._lock:
            if self._stop_event is None or self._stop_event.is_set():
                return False
            self._stop_event.set()
        logger.info("Connection watchdog stopped")
        return True

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval_s):
            try:
                self.check()
            except Exception:
                logger.exception("Watchdog check failed")
