"""
src/services/runtime.py
────────────────────────
Builds and owns the monitor's components.

  state        MonitorState shared by everything below
  broadcaster  ingestion and watchdog fan-out (WebSocket clients, arbiter)
  ingestion    POST /api/data pipeline
  watchdog     background disconnect detection
  arbiter      live / synthetic selection, alerts, consumer history
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from config.settings import Settings, settings as default_settings
from src.data.models import now_ms
from src.data.simulator import SyntheticTelemetryGenerator
from src.data.store import MonitorState
from src.services.arbiter import DataSourceArbiter
from src.services.broadcaster import Broadcaster
from src.services.ingestion import IngestionService
from src.services.watchdog import ConnectionWatchdog

logger = logging.getLogger(__name__)


@dataclass
class MonitorRuntime:
    settings: Settings
    state: MonitorState
    broadcaster: Broadcaster
    ingestion: IngestionService
    watchdog: ConnectionWatchdog
    arbiter: DataSourceArbiter

    @classmethod
    def build(cls, cfg: Settings | None = None, clock=now_ms) -> "MonitorRuntime":
        cfg = cfg or default_settings
        state = MonitorState(
            server_history_size=cfg.SERVER_HISTORY_SIZE,
            client_history_size=cfg.CLIENT_HISTORY_SIZE,
            alert_log_size=cfg.ALERT_LOG_SIZE,
            clock=clock,
        )
        broadcaster = Broadcaster()
        arbiter = DataSourceArbiter(
            state,
            generator=SyntheticTelemetryGenerator(seed=cfg.SIMULATION_SEED, clock=clock),
            tick_s=cfg.GENERATOR_TICK_S,
            resume_on_disconnect=cfg.RESUME_SYNTHETIC_ON_DISCONNECT,
            seed_points=cfg.SEED_HISTORY_POINTS,
        )
        arbiter.attach(broadcaster)
        return cls(
            settings=cfg,
            state=state,
            broadcaster=broadcaster,
            ingestion=IngestionService(state, broadcaster, clock=clock, arbiter=arbiter),
            watchdog=ConnectionWatchdog(
                state,
                broadcaster,
                interval_s=cfg.WATCHDOG_INTERVAL_S,
                timeout_s=cfg.DISCONNECT_TIMEOUT_S,
                clock=clock,
            ),
            arbiter=arbiter,
        )

    @property
    def websocket_clients(self) -> int:
        # the arbiter is an in-process subscriber, not a client
        attached = 1 if self.arbiter.attached else 0
        return max(0, self.broadcaster.subscriber_count - attached)

    def start(self) -> None:
        if not self.arbiter.attached:
            self.arbiter.attach(self.broadcaster)
        self.watchdog.start()
        self.arbiter.start()
        logger.info("Monitor runtime started")

    def stop(self) -> None:
        self.arbiter.stop()
        self.watchdog.stop()
        logger.info("Monitor runtime stopped")
