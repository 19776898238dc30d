"""
config/settings.py
──────────────────
Application configuration loaded from environment variables.
"""
import os
from dataclasses import dataclass


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # Server
    DEBUG: bool = _flag("DEBUG", "false")
    PORT: int = int(os.getenv("PORT", "3000"))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Ring buffer capacities
    SERVER_HISTORY_SIZE: int = int(os.getenv("SERVER_HISTORY_SIZE", "1000"))
    CLIENT_HISTORY_SIZE: int = int(os.getenv("CLIENT_HISTORY_SIZE", "500"))
    ALERT_LOG_SIZE: int = int(os.getenv("ALERT_LOG_SIZE", "100"))

    # Connection watchdog (seconds)
    WATCHDOG_INTERVAL_S: float = float(os.getenv("WATCHDOG_INTERVAL_S", "10"))
    DISCONNECT_TIMEOUT_S: float = float(os.getenv("DISCONNECT_TIMEOUT_S", "30"))

    # Synthetic feed
    GENERATOR_TICK_S: float = float(os.getenv("GENERATOR_TICK_S", "2"))
    SIMULATION_SEED: int | None = int(os.environ["SIMULATION_SEED"]) if os.getenv("SIMULATION_SEED") else None
    SEED_HISTORY_POINTS: int = int(os.getenv("SEED_HISTORY_POINTS", "50"))
    RESUME_SYNTHETIC_ON_DISCONNECT: bool = _flag("RESUME_SYNTHETIC_ON_DISCONNECT", "true")

    # Real-time push
    SUBSCRIBER_QUEUE_SIZE: int = int(os.getenv("SUBSCRIBER_QUEUE_SIZE", "100"))


settings = Settings()
