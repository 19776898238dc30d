"""
src/data/store.py
─────────────────
In-memory state shared by ingestion, the watchdog, the synthetic feed and
the data source arbiter.

Provides:
  - MonitorState.apply_ingest()       : replace snapshot, mark link alive, append history
  - MonitorState.mark_stale()         : watchdog transition to disconnected
  - MonitorState.record_feed()        : arbiter output into the consumer history
  - MonitorState.add_alerts()         : newest-first bounded alert log
  - MonitorState.thresholds / source  : runtime-tunable settings and arbiter state

Thread safety: every read and write goes through one re-entrant lock. Compound
operations (e.g. the arbiter switching source and consuming a reading) take
`state.lock` themselves and call the methods below inside it.
"""
from __future__ import annotations

import threading
from collections.abc import Callable

from config.settings import settings
from config.thresholds import DEFAULT_THRESHOLDS, Thresholds
from src.data.models import (
    Alert,
    ConnectionState,
    DataSource,
    FeedUpdate,
    Reading,
    Snapshot,
    now_ms,
)
from src.data.ring_buffer import RingBuffer


class MonitorState:
    def __init__(
        self,
        server_history_size: int = settings.SERVER_HISTORY_SIZE,
        client_history_size: int = settings.CLIENT_HISTORY_SIZE,
        alert_log_size: int = settings.ALERT_LOG_SIZE,
        thresholds: Thresholds = DEFAULT_THRESHOLDS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.lock = threading.RLock()
        self.clock = clock
        self.started_at = clock()

        self._snapshot = Snapshot()
        self._connection = ConnectionState()
        self._last_update: int | None = None
        self._history: RingBuffer[Reading] = RingBuffer(server_history_size)

        self._source = DataSource.SYNTHETIC
        self._feed_current: FeedUpdate | None = None
        self._feed_history: RingBuffer[Reading] = RingBuffer(client_history_size)
        self._alerts: RingBuffer[Alert] = RingBuffer(alert_log_size)
        self._thresholds = thresholds

    # ── Ingestion side ────────────────────────────────────────────────────────

    def apply_ingest(self, reading: Reading, snapshot: Snapshot, received_at: int) -> int:
        """
        Install a freshly validated payload.

        The transport link is alive whatever the channels say, so the
        connection always flips to connected. Only readings with a usable
        channel reach the history. Returns the history size afterwards.
        """
        with self.lock:
            self._snapshot = snapshot
            self._connection = ConnectionState(connected=True, last_data_at=received_at)
            self._last_update = received_at
            if reading.valid:
                self._history.append(reading)
            return len(self._history)

    def mark_stale(self, now: int, timeout_ms: int) -> ConnectionState | None:
        """
        Declare the link disconnected if no payload arrived within `timeout_ms`.
        Returns the state before the transition, or None if nothing changed.
        """
        with self.lock:
            conn = self._connection
            if not conn.connected or conn.last_data_at is None:
                return None
            if now - conn.last_data_at <= timeout_ms:
                return None
            self._connection = ConnectionState(connected=False, last_data_at=conn.last_data_at)
            self._snapshot = self._snapshot.model_copy(update={"valid": False, "status": "connection_lost"})
            return conn

    def snapshot(self) -> Snapshot:
        with self.lock:
            return self._snapshot

    def connection(self) -> ConnectionState:
        with self.lock:
            return self._connection

    @property
    def last_update(self) -> int | None:
        with self.lock:
            return self._last_update

    def history(self) -> list[Reading]:
        with self.lock:
            return self._history.oldest_first()

    def history_size(self) -> int:
        with self.lock:
            return len(self._history)

    # ── Consumer side ─────────────────────────────────────────────────────────

    @property
    def source(self) -> DataSource:
        with self.lock:
            return self._source

    def set_source(self, source: DataSource) -> DataSource:
        """Set the arbiter source; returns the previous one."""
        with self.lock:
            previous = self._source
            self._source = source
            return previous

    def record_feed(self, update: FeedUpdate) -> None:
        with self.lock:
            self._feed_current = update
            self._feed_history.append(update.reading)

    def seed_feed_history(self, readings: list[Reading]) -> None:
        with self.lock:
            self._feed_history.extend(readings)

    def feed_current(self) -> FeedUpdate | None:
        with self.lock:
            return self._feed_current

    def feed_history(self) -> list[Reading]:
        with self.lock:
            return self._feed_history.oldest_first()

    def add_alerts(self, alerts: list[Alert]) -> None:
        if not alerts:
            return
        with self.lock:
            self._alerts.extend(alerts)

    def alerts(self, limit: int | None = None) -> list[Alert]:
        """Alert log, newest first."""
        with self.lock:
            return self._alerts.newest_first(limit)

    def alert_count(self) -> int:
        with self.lock:
            return len(self._alerts)

    def clear_alerts(self) -> None:
        with self.lock:
            self._alerts.clear()

    @property
    def thresholds(self) -> Thresholds:
        with self.lock:
            return self._thresholds

    def set_thresholds(self, thresholds: Thresholds) -> None:
        with self.lock:
            self._thresholds = thresholds
