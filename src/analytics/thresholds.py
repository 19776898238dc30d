"""
src/analytics/thresholds.py
────────────────────────────
Threshold alert engine.

Each channel of a reading is classified against its ChannelThresholds:
  outside [alert_min, alert_max]  → error   ("too low" / "too high")
  outside [min, max]              → warning ("outside optimal range")
  otherwise                       → ok, no alert
At most one alert per channel per reading; inoperable channels are skipped.
"""
from __future__ import annotations

import logging

from config.alerts import AlertSeverity
from config.thresholds import (
    CHANNEL_LABELS,
    CHANNEL_PRECISION,
    CHANNEL_UNITS,
    CHANNELS,
    ChannelThresholds,
    Thresholds,
)
from src.data.models import Alert, Reading, new_alert
from src.data.store import MonitorState

logger = logging.getLogger(__name__)


def evaluate_value(value: float, band: ChannelThresholds) -> tuple[str, str | None]:
    """
    Classify a value against a channel's thresholds.

    Returns: ("ok" | "warning" | "error", "low" | "high" | None)
    """
    if value < band.alert_min:
        return "error", "low"
    if value > band.alert_max:
        return "error", "high"
    if value < band.min:
        return "warning", "low"
    if value > band.max:
        return "warning", "high"
    return "ok", None


def _format(channel: str, value: float) -> str:
    return f"{value:.{CHANNEL_PRECISION[channel]}f}{CHANNEL_UNITS[channel]}"


def evaluate_reading(reading: Reading, thresholds: Thresholds) -> list[Alert]:
    alerts: list[Alert] = []
    for channel in CHANNELS:
        value = getattr(reading, channel)
        if value is None or not getattr(reading, f"{channel}_ok"):
            continue
        band = thresholds.for_channel(channel)
        level, direction = evaluate_value(value, band)
        if level == "ok":
            continue

        label = CHANNEL_LABELS[channel]
        if level == "error":
            threshold = band.alert_min if direction == "low" else band.alert_max
            alerts.append(new_alert(
                AlertSeverity.ERROR,
                f"{label} too {direction}: {_format(channel, value)}",
                channel=channel,
                value=value,
                threshold=threshold,
            ))
        else:
            threshold = band.min if direction == "low" else band.max
            alerts.append(new_alert(
                AlertSeverity.WARNING,
                f"{label} outside optimal range: {_format(channel, value)}",
                channel=channel,
                value=value,
                threshold=threshold,
            ))
    return alerts


class ThresholdAlertEngine:
    """Evaluates readings against the state's current thresholds and logs the alerts."""

    def __init__(self, state: MonitorState) -> None:
        self._state = state

    def evaluate(self, reading: Reading) -> list[Alert]:
        alerts = evaluate_reading(reading, self._state.thresholds)
        self._state.add_alerts(alerts)
        for alert in alerts:
            logger.info("[Alert %s] %s", alert.severity.value.upper(), alert.message)
        return alerts
