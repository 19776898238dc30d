"""
src/analytics/health_index.py
──────────────────────────────
Composite water-quality health score.

Score ∈ [0, 100]. Each operable channel earns points from the first scoring
tier its value falls into (50 optimal, 35 acceptable, 20 marginal, 0 outside),
and the score is the mean over operable channels scaled to a percentage:

  both channels optimal → (50 + 50) / 2 × 2 = 100

Rounded half-up.
"""

from __future__ import annotations

import math

from config.thresholds import CHANNELS, HEALTH_STATUS_LEVELS, SCORING_BANDS, ScoreBand
from src.data.models import HealthAssessment, Reading

SENSOR_FAILURE = "Sensor Failure"
PARTIAL_FAILURE = "Partial Failure"
CRITICAL = "Critical"

# Points for the best tier; scores are normalised against it
_MAX_POINTS = 50


def _channel_points(value: float, bands: tuple[ScoreBand, ...]) -> int:
    for band in bands:
        if band.low <= value <= band.high:
            return band.points
    return 0


def health_status(score: int, temperature_ok: bool, ph_ok: bool) -> str:
    if not temperature_ok and not ph_ok:
        return SENSOR_FAILURE
    if not temperature_ok or not ph_ok:
        return PARTIAL_FAILURE
    for minimum, label in HEALTH_STATUS_LEVELS:
        if score >= minimum:
            return label
    return CRITICAL


def compute_health(
    temperature: float | None,
    ph: float | None,
    temperature_ok: bool,
    ph_ok: bool,
) -> HealthAssessment:
    """Score a pair of channel values. A channel counts only if it is flagged ok and has a value."""
    values = {"temperature": temperature, "ph": ph}
    flags = {"temperature": temperature_ok, "ph": ph_ok}

    points = 0
    factors = 0
    for channel in CHANNELS:
        value = values[channel]
        if not flags[channel] or value is None:
            continue
        factors += 1
        points += _channel_points(value, SCORING_BANDS[channel])

    operable_temp = temperature_ok and temperature is not None
    operable_ph = ph_ok and ph is not None
    if factors == 0:
        return HealthAssessment(score=0, status=SENSOR_FAILURE)

    score = math.floor(points * (100 / _MAX_POINTS) / factors + 0.5)
    score = max(0, min(100, score))
    return HealthAssessment(score=score, status=health_status(score, operable_temp, operable_ph))


def assess_reading(reading: Reading) -> HealthAssessment:
    return compute_health(reading.temperature, reading.ph, reading.temperature_ok, reading.ph_ok)
