"""
tests/conftest.py
─────────────────
Shared pytest fixtures for the AquaVision Monitor test suite.
"""
import os

import pytest

# Deterministic synthetic feed, small seed history for tests
os.environ.setdefault("SIMULATION_SEED", "42")
os.environ.setdefault("SEED_HISTORY_POINTS", "5")
os.environ.setdefault("LOG_LEVEL", "WARNING")


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = 1_717_243_200_000) -> None:  # 2024-06-01 12:00 UTC
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> int:
        self.now += int(seconds * 1000)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def state(clock):
    from src.data.store import MonitorState
    return MonitorState(server_history_size=1000, client_history_size=500, alert_log_size=100, clock=clock)


@pytest.fixture
def broadcaster():
    from src.services.broadcaster import Broadcaster
    return Broadcaster()


@pytest.fixture
def good_payload() -> dict:
    return {"temperature": 22, "ph": 7.1, "temp_sensor_ok": True, "ph_sensor_ok": True}


@pytest.fixture
def dead_payload() -> dict:
    return {"temperature": None, "ph": None, "temp_sensor_ok": False, "ph_sensor_ok": False}


@pytest.fixture
def runtime(clock):
    """Fully wired runtime with no background threads; feeds are driven by hand."""
    from config.settings import Settings
    from src.services.runtime import MonitorRuntime
    cfg = Settings()
    cfg.SEED_HISTORY_POINTS = 5
    cfg.SIMULATION_SEED = 42
    cfg.RESUME_SYNTHETIC_ON_DISCONNECT = True
    rt = MonitorRuntime.build(cfg, clock=clock)
    rt.arbiter.start(background=False)
    yield rt
    rt.stop()


@pytest.fixture
def client(runtime):
    from fastapi.testclient import TestClient
    from src.api.server import create_app
    return TestClient(create_app(runtime, start_background=False))
