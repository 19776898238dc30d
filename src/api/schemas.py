"""
src/api/schemas.py
──────────────────
Request bodies for the HTTP API.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from config.thresholds import ChannelThresholds, Thresholds


class TelemetryIn(BaseModel):
    """Sensor unit payload. Nothing is trusted here; the validator decides."""

    model_config = ConfigDict(extra="allow")

    temperature: Any = None
    ph: Any = None
    timestamp: Any = None
    status: Any = None
    temp_sensor_ok: Any = None
    ph_sensor_ok: Any = None
    errors: Any = None


class ChannelThresholdsIn(BaseModel):
    min: float
    max: float
    alert_min: float
    alert_max: float

    @model_validator(mode="after")
    def _check_order(self) -> "ChannelThresholdsIn":
        if not self.alert_min <= self.min <= self.max <= self.alert_max:
            raise ValueError("thresholds must satisfy alert_min <= min <= max <= alert_max")
        return self

    def to_config(self) -> ChannelThresholds:
        return ChannelThresholds(min=self.min, max=self.max, alert_min=self.alert_min, alert_max=self.alert_max)

    @classmethod
    def from_config(cls, band: ChannelThresholds) -> "ChannelThresholdsIn":
        return cls(min=band.min, max=band.max, alert_min=band.alert_min, alert_max=band.alert_max)


class ThresholdsIn(BaseModel):
    temperature: ChannelThresholdsIn
    ph: ChannelThresholdsIn

    def to_config(self) -> Thresholds:
        return Thresholds(temperature=self.temperature.to_config(), ph=self.ph.to_config())

    @classmethod
    def from_config(cls, thresholds: Thresholds) -> "ThresholdsIn":
        return cls(
            temperature=ChannelThresholdsIn.from_config(thresholds.temperature),
            ph=ChannelThresholdsIn.from_config(thresholds.ph),
        )
