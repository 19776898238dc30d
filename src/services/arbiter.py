"""
src/services/arbiter.py
────────────────────────
Data source arbiter: decides whether consumers see live or synthetic telemetry.

States:
  SYNTHETIC (initial)  the synthetic feed ticks and its readings are authoritative
  LIVE                 the feed is stopped; readings are handed over by ingestion

Transitions:
  SYNTHETIC → LIVE       first valid live reading (at least one operable channel)
  LIVE → SYNTHETIC       explicit start_synthetic(), or a watchdog
                         "connectionLost" when resume_on_disconnect is set

Whichever reading is authoritative is scored, run through the threshold
engine and appended to the consumer history. Live readings are admitted
inside the same critical section that accepted them into the server history,
so both histories share one order. Consumers follow along on `events`:
"telemetryUpdated" (FeedUpdate) and "sourceChanged" ({"source": ...}).
"""
from __future__ import annotations

import logging
from typing import Any

from config.settings import settings
from src.analytics.health_index import assess_reading
from src.analytics.thresholds import ThresholdAlertEngine
from src.data.models import DataSource, FeedUpdate, Reading
from src.data.simulator import SyntheticFeed, SyntheticTelemetryGenerator
from src.data.store import MonitorState
from src.services.broadcaster import CONNECTION_LOST, Broadcaster

logger = logging.getLogger(__name__)

TELEMETRY_UPDATED = "telemetryUpdated"
SOURCE_CHANGED = "sourceChanged"


class DataSourceArbiter:
    def __init__(
        self,
        state: MonitorState,
        generator: SyntheticTelemetryGenerator | None = None,
        tick_s: float = settings.GENERATOR_TICK_S,
        resume_on_disconnect: bool = settings.RESUME_SYNTHETIC_ON_DISCONNECT,
        seed_points: int = settings.SEED_HISTORY_POINTS,
    ) -> None:
        self._state = state
        self._engine = ThresholdAlertEngine(state)
        self._feed = SyntheticFeed(generator or SyntheticTelemetryGenerator(), self._on_synthetic, tick_s)
        self._resume_on_disconnect = resume_on_disconnect
        self._seed_points = seed_points
        self._background = True
        self._upstream: Broadcaster | None = None
        self._handle: int | None = None
        self.events = Broadcaster(name="consumer")

    @property
    def source(self) -> DataSource:
        return self._state.source

    @property
    def feed(self) -> SyntheticFeed:
        return self._feed

    @property
    def attached(self) -> bool:
        return (
            self._upstream is not None
            and self._handle is not None
            and self._upstream.is_subscribed(self._handle)
        )

    # ── Wiring ────────────────────────────────────────────────────────────────

    def attach(self, upstream: Broadcaster) -> None:
        """Listen to link broadcasts ("connectionLost")."""
        self.detach()
        self._upstream = upstream
        self._handle = upstream.subscribe(self.handle_message)

    def detach(self) -> None:
        if self._upstream is not None and self._handle is not None:
            self._upstream.unsubscribe(self._handle)
        self._upstream = None
        self._handle = None

    def start(self, background: bool = True) -> bool:
        """Arm the synthetic feed at startup. With background=False ticks only happen via feed.tick()."""
        self._background = background
        return self.start_synthetic()

    def stop(self) -> None:
        self._feed.stop()

    def handle_message(self, message: dict[str, Any]) -> None:
        # never raise into the broadcaster, which would drop this subscription
        if message.get("type") != CONNECTION_LOST or not self._resume_on_disconnect:
            return
        logger.info("Live link lost, resuming synthetic feed")
        try:
            self.start_synthetic()
        except Exception:
            logger.exception("Could not resume synthetic feed")

    # ── Transitions ───────────────────────────────────────────────────────────

    def start_synthetic(self) -> bool:
        """Switch to (or re-arm) the synthetic feed. Returns False if it was already running."""
        seeded = 0
        with self._state.lock:
            if self._feed.running:
                return False
            previous = self._state.set_source(DataSource.SYNTHETIC)
            self._feed.start(background=self._background)
            # back-dated seed points only go into an empty history
            if not self._state.feed_history():
                seed = self._feed.generator.seed_history(self._seed_points, self._state.clock())
                self._state.seed_feed_history(seed)
                seeded = len(seed)
        logger.info("Data source: SYNTHETIC (seeded %d readings)", seeded)
        if previous != DataSource.SYNTHETIC:
            self.events.publish(SOURCE_CHANGED, {"source": DataSource.SYNTHETIC.value})
        return True

    def admit_live(self, reading: Reading) -> tuple[FeedUpdate, bool] | None:
        """
        Consume a live reading, stopping the synthetic feed on first sight.

        The caller holds `state.lock`. Returns (update, switched) to hand to
        announce() once the lock is released, or None for an invalid reading.
        """
        if not reading.valid:
            return None
        with self._state.lock:
            switched = self._state.source != DataSource.LIVE
            if switched:
                self._feed.stop()
                self._state.set_source(DataSource.LIVE)
            return self._consume(reading, DataSource.LIVE), switched

    def announce(self, admitted: tuple[FeedUpdate, bool]) -> None:
        update, switched = admitted
        if switched:
            logger.info("Real sensor data received, data source: LIVE")
            self.events.publish(SOURCE_CHANGED, {"source": DataSource.LIVE.value})
        self.events.publish(TELEMETRY_UPDATED, update.model_dump(mode="json"))

    def accept_live(self, reading: Reading) -> FeedUpdate | None:
        admitted = self.admit_live(reading)
        if admitted is None:
            return None
        self.announce(admitted)
        return admitted[0]

    def _on_synthetic(self, reading: Reading, run_id: int) -> None:
        with self._state.lock:
            if self._state.source != DataSource.SYNTHETIC or not self._feed.is_current(run_id):
                logger.debug("Discarding synthetic reading from stale run %d", run_id)
                return
            update = self._consume(reading, DataSource.SYNTHETIC)
        self.events.publish(TELEMETRY_UPDATED, update.model_dump(mode="json"))

    def _consume(self, reading: Reading, source: DataSource) -> FeedUpdate:
        # caller holds state.lock
        health = assess_reading(reading)
        alerts = self._engine.evaluate(reading)
        update = FeedUpdate(source=source, reading=reading, health=health, alerts=alerts)
        self._state.record_feed(update)
        return update
