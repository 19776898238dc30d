"""
src/data/simulator.py
─────────────────────
Synthetic telemetry standing in for the sensor unit while it is silent.

Generates:
  - A per-channel bounded random walk, one Reading per call to next():
        value = clip(previous + oscillation(t) + jitter, low, high)
    where oscillation is a slow sinusoid over wall-clock time and jitter is
    uniform noise; the result becomes `previous` for the next call
  - A seed history of evenly spaced readings for a freshly started feed
  - A ticking SyntheticFeed thread delivering readings every GENERATOR_TICK_S

Design:
  - Reproducible with SIMULATION_SEED (numpy Generator) for tests and demos
  - reset() returns the walk to its baselines; a restarted feed never resumes
    mid-walk
"""
from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from config.settings import settings
from config.thresholds import CHANNELS
from src.data.models import Reading, now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalkProfile:
    baseline: float
    low: float
    high: float
    amplitude: float     # oscillation amplitude added per step
    period_s: float      # oscillation time scale (seconds per radian)
    jitter: float        # full width of the uniform noise
    wave: Callable[[float], float] = math.sin


# ── Walk parameters ───────────────────────────────────────────────────────────

PROFILES: dict[str, WalkProfile] = {
    "temperature": WalkProfile(
        baseline=21.0, low=15.0, high=30.0,
        amplitude=2.0, period_s=100.0, jitter=1.0, wave=math.sin,
    ),
    "ph": WalkProfile(
        baseline=7.2, low=6.0, high=9.0,
        amplitude=0.3, period_s=150.0, jitter=0.2, wave=math.cos,
    ),
}

# Seed history shape: sinusoid around these centres, one point per minute
SEED_CENTRES: dict[str, float] = {"temperature": 20.0, "ph": 7.2}
SEED_INTERVAL_MS = 60_000


class SyntheticTelemetryGenerator:
    def __init__(
        self,
        seed: int | None = settings.SIMULATION_SEED,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._rng = np.random.default_rng(seed)
        self._clock = clock
        self._previous: dict[str, float] = {}
        self.reset()

    @property
    def previous(self) -> dict[str, float]:
        return dict(self._previous)

    def reset(self) -> None:
        self._previous = {channel: PROFILES[channel].baseline for channel in CHANNELS}

    def _step(self, channel: str, t_s: float) -> float:
        profile = PROFILES[channel]
        oscillation = profile.wave(t_s / profile.period_s) * profile.amplitude
        jitter = float(self._rng.uniform(-0.5, 0.5)) * profile.jitter
        value = float(np.clip(self._previous[channel] + oscillation + jitter, profile.low, profile.high))
        self._previous[channel] = value
        return round(value, 2)

    def next(self) -> Reading:
        ts = self._clock()
        t_s = ts / 1000.0
        values = {channel: self._step(channel, t_s) for channel in CHANNELS}
        return Reading(
            temperature=values["temperature"],
            ph=values["ph"],
            timestamp=ts,
            temperature_ok=True,
            ph_ok=True,
        )

    def seed_history(self, points: int, end_ms: int) -> list[Reading]:
        """
        `points` readings spaced one minute apart, the last one minute before `end_ms`.
        Oldest first.
        """
        readings: list[Reading] = []
        for i in range(points, 0, -1):
            temp = SEED_CENTRES["temperature"] + math.sin(i * 0.1) * 2 + float(self._rng.uniform(-0.5, 0.5))
            ph = SEED_CENTRES["ph"] + math.cos(i * 0.08) * 0.2 + float(self._rng.uniform(-0.05, 0.05))
            readings.append(Reading(
                temperature=round(temp, 2),
                ph=round(ph, 2),
                timestamp=end_ms - i * SEED_INTERVAL_MS,
                temperature_ok=True,
                ph_ok=True,
            ))
        return readings


class SyntheticFeed:
    """
    Ticks a SyntheticTelemetryGenerator on a daemon thread.

    Each start() opens a new run with its own id; readings are delivered as
    `on_reading(reading, run_id)` so the receiver can discard anything from a
    run that has since been stopped. stop() is immediate and idempotent.
    """

    def __init__(
        self,
        generator: SyntheticTelemetryGenerator,
        on_reading: Callable[[Reading, int], None],
        tick_s: float = settings.GENERATOR_TICK_S,
    ) -> None:
        self._generator = generator
        self._on_reading = on_reading
        self._tick_s = tick_s
        self._lock = threading.Lock()
        self._run_id = 0
        self._stop_event: threading.Event | None = None

    @property
    def generator(self) -> SyntheticTelemetryGenerator:
        return self._generator

    @property
    def run_id(self) -> int:
        return self._run_id

    @property
    def running(self) -> bool:
        with self._lock:
            return self._stop_event is not None and not self._stop_event.is_set()

    def is_current(self, run_id: int) -> bool:
        with self._lock:
            return run_id == self._run_id and self._stop_event is not None and not self._stop_event.is_set()

    def start(self, background: bool = True) -> bool:
        """Start a fresh run. Returns False if a run is already active."""
        with self._lock:
            if self._stop_event is not None and not self._stop_event.is_set():
                return False
            self._generator.reset()
            self._run_id += 1
            self._stop_event = threading.Event()
            run_id, stop_event = self._run_id, self._stop_event

        if background:
            thread = threading.Thread(
                target=self._run, args=(run_id, stop_event), name=f"synthetic-feed-{run_id}", daemon=True,
            )
            thread.start()
        logger.info("Synthetic feed started (run %d, tick %.1fs)", run_id, self._tick_s)
        return True

    def stop(self) -> bool:
        """Stop the active run. Returns False if nothing was running."""
        with self._lock:
            if self._stop_event is None or self._stop_event.is_set():
                return False
            self._stop_event.set()
            run_id = self._run_id
        logger.info("Synthetic feed stopped (run %d)", run_id)
        return True

    def tick(self) -> Reading | None:
        """Produce and deliver one reading for the active run, if any."""
        with self._lock:
            if self._stop_event is None or self._stop_event.is_set():
                return None
            run_id = self._run_id
            reading = self._generator.next()
        self._on_reading(reading, run_id)
        return reading

    def _run(self, run_id: int, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._tick_s):
            try:
                with self._lock:
                    if stop_event.is_set() or run_id != self._run_id:
                        return
                    reading = self._generator.next()
                self._on_reading(reading, run_id)
            except Exception:
                logger.exception("Synthetic feed tick failed (run %d)", run_id)
