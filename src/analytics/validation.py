"""
src/analytics/validation.py
────────────────────────────
Validation of raw telemetry payloads posted by the sensor unit.

Every field is optional and untrusted. A channel is accepted only when its
`*_sensor_ok` flag is set AND the value parses as a finite number AND it lies
within the probe's physical range. Any failure nulls the channel and clears
its flag, whatever the unit claimed.

Pure: no state is touched here.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from config.thresholds import PHYSICAL_BOUNDS
from src.data.models import Reading, now_ms

logger = logging.getLogger(__name__)

# payload key → (value key, flag key)
_CHANNEL_KEYS: dict[str, tuple[str, str]] = {
    "temperature": ("temperature", "temp_sensor_ok"),
    "ph": ("ph", "ph_sensor_ok"),
}

_TRUE_STRINGS = ("true", "1")


@dataclass(frozen=True)
class TelemetryPayload:
    reading: Reading
    status: str = "unknown"
    error_count: int = 0
    # channel → reason, for channels the unit flagged ok but that were rejected
    rejected: dict[str, str] = field(default_factory=dict)


def _flag(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return raw == 1
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUE_STRINGS
    return False


def _number(raw: Any) -> float | None:
    """Parse a finite float; booleans and non-numeric strings are not numbers."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return value if math.isfinite(value) else None


def _timestamp(raw: Any, default: int) -> int:
    value = _number(raw)
    if value is None or value <= 0:
        return default
    return int(value)


def _error_count(raw: Any) -> int:
    value = _number(raw)
    if value is None:
        return 0
    return max(0, int(value))


def _check_channel(channel: str, raw_value: Any, raw_flag: Any) -> tuple[float | None, str | None]:
    """Return (accepted value, rejection reason)."""
    if not _flag(raw_flag):
        return None, None
    value = _number(raw_value)
    if value is None:
        return None, f"unparseable value {raw_value!r}"
    if not PHYSICAL_BOUNDS[channel].contains(value):
        return None, f"value {value} outside physical range"
    return value, None


def parse_telemetry(raw: Mapping[str, Any] | None, received_at: int | None = None) -> TelemetryPayload:
    """Validate a raw payload and split it into a Reading plus link metadata."""
    payload: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    received_at = now_ms() if received_at is None else received_at

    values: dict[str, float | None] = {}
    rejected: dict[str, str] = {}
    for channel, (value_key, flag_key) in _CHANNEL_KEYS.items():
        value, reason = _check_channel(channel, payload.get(value_key), payload.get(flag_key))
        values[channel] = value
        if reason is not None:
            rejected[channel] = reason
            logger.info("Rejected %s: %s", channel, reason)

    reading = Reading(
        temperature=values["temperature"],
        ph=values["ph"],
        timestamp=_timestamp(payload.get("timestamp"), received_at),
        temperature_ok=values["temperature"] is not None,
        ph_ok=values["ph"] is not None,
    )
    status = payload.get("status")
    return TelemetryPayload(
        reading=reading,
        status=str(status) if status else "unknown",
        error_count=_error_count(payload.get("errors")),
        rejected=rejected,
    )


def validate_payload(raw: Mapping[str, Any] | None, received_at: int | None = None) -> Reading:
    return parse_telemetry(raw, received_at).reading
