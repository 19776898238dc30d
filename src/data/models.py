"""
src/data/models.py
──────────────────
Pydantic v2 data models for readings, snapshots, connection state and alerts.

Timestamps on telemetry are integer epoch milliseconds, the unit the sensor
unit reports on the wire. Alerts carry timezone-aware datetimes.
"""

import time
import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from config.alerts import AlertSeverity


def now_ms() -> int:
    return int(time.time() * 1000)


class DataSource(str, Enum):
    LIVE = "LIVE"
    SYNTHETIC = "SYNTHETIC"


class Reading(BaseModel):
    """One temperature / pH sample with per-channel operability flags."""

    model_config = ConfigDict(frozen=True)

    temperature: float | None = None
    ph: float | None = None
    timestamp: int
    temperature_ok: bool = False
    ph_ok: bool = False

    @property
    def temperature_operable(self) -> bool:
        return self.temperature_ok and self.temperature is not None

    @property
    def ph_operable(self) -> bool:
        return self.ph_ok and self.ph is not None

    @property
    def valid(self) -> bool:
        """At least one channel carries usable data."""
        return self.temperature_operable or self.ph_operable


class HealthAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    status: str


class Snapshot(BaseModel):
    """Most recent accepted payload plus derived health fields."""

    model_config = ConfigDict(frozen=True)

    temperature: float | None = None
    ph: float | None = None
    timestamp: int | None = None
    status: str = "no_data"
    valid: bool = False
    temp_sensor_ok: bool = False
    ph_sensor_ok: bool = False
    error_count: int = 0
    health_score: int = Field(default=0, ge=0, le=100)
    health_status: str = "Sensor Failure"

    @classmethod
    def from_reading(
        cls,
        reading: Reading,
        health: HealthAssessment,
        status: str = "unknown",
        error_count: int = 0,
    ) -> "Snapshot":
        return cls(
            temperature=reading.temperature,
            ph=reading.ph,
            timestamp=reading.timestamp,
            status=status,
            valid=reading.valid,
            temp_sensor_ok=reading.temperature_ok,
            ph_sensor_ok=reading.ph_ok,
            error_count=error_count,
            health_score=health.score,
            health_status=health.status,
        )


class ConnectionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    connected: bool = False
    last_data_at: int | None = None


class Alert(BaseModel):
    id: str
    severity: AlertSeverity
    message: str
    timestamp: datetime
    channel: str | None = None
    value: float | None = None
    threshold: float | None = None


def new_alert(
    severity: AlertSeverity,
    message: str,
    channel: str | None = None,
    value: float | None = None,
    threshold: float | None = None,
) -> Alert:
    return Alert(
        id=str(uuid.uuid4()),
        severity=severity,
        message=message,
        timestamp=datetime.now(tz=UTC),
        channel=channel,
        value=value,
        threshold=threshold,
    )


class AckResult(BaseModel):
    accepted: bool
    temperature_accepted: bool
    ph_accepted: bool
    history_size: int


class FeedUpdate(BaseModel):
    """The arbiter's authoritative reading, whichever source produced it."""

    model_config = ConfigDict(frozen=True)

    source: DataSource
    reading: Reading
    health: HealthAssessment
    alerts: list[Alert] = Field(default_factory=list)
