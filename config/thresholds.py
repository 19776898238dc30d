"""
config/thresholds.py
────────────────────
Channel limits for the water-quality monitor.

Three kinds of limits live here:
  PHYSICAL_BOUNDS    : what a working probe can physically report; anything
                       outside is treated as a sensor fault, not as water data
  SCORING_BANDS      : health-score tiers, widest last (points awarded per tier)
  DEFAULT_THRESHOLDS : user-tunable alert thresholds
                       optimal   = [min, max]
                       tolerable = [alert_min, alert_max]
                       dangerous = outside alert_min / alert_max
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class PhysicalBounds:
    low: float
    high: float
    inclusive: bool

    def contains(self, value: float) -> bool:
        if self.inclusive:
            return self.low <= value <= self.high
        return self.low < value < self.high


@dataclass(frozen=True)
class ScoreBand:
    low: float
    high: float
    points: int


@dataclass(frozen=True)
class ChannelThresholds:
    min: float
    max: float
    alert_min: float
    alert_max: float


@dataclass(frozen=True)
class Thresholds:
    temperature: ChannelThresholds
    ph: ChannelThresholds

    def for_channel(self, channel: str) -> ChannelThresholds:
        return getattr(self, channel)


CHANNELS: tuple[str, ...] = ("temperature", "ph")

CHANNEL_LABELS: dict[str, str] = {
    "temperature": "Temperature",
    "ph": "pH",
}

CHANNEL_UNITS: dict[str, str] = {
    "temperature": "°C",
    "ph": "",
}

# Decimal places used when a value is quoted in an alert message
CHANNEL_PRECISION: dict[str, int] = {
    "temperature": 1,
    "ph": 2,
}

# ── Probe limits ──────────────────────────────────────────────────────────────
PHYSICAL_BOUNDS: dict[str, PhysicalBounds] = {
    "temperature": PhysicalBounds(low=-10.0, high=50.0, inclusive=False),
    "ph": PhysicalBounds(low=0.0, high=14.0, inclusive=True),
}

# ── Health scoring tiers ──────────────────────────────────────────────────────
SCORING_BANDS: dict[str, tuple[ScoreBand, ...]] = {
    "temperature": (
        ScoreBand(18.0, 24.0, 50),
        ScoreBand(16.0, 26.0, 35),
        ScoreBand(14.0, 28.0, 20),
    ),
    "ph": (
        ScoreBand(6.5, 8.0, 50),
        ScoreBand(6.0, 8.5, 35),
        ScoreBand(5.5, 9.0, 20),
    ),
}

# Minimum score per status label, checked top-down
HEALTH_STATUS_LEVELS: tuple[tuple[int, str], ...] = (
    (85, "Excellent"),
    (70, "Good"),
    (50, "Fair"),
    (30, "Poor"),
)

# ── Default alert thresholds ──────────────────────────────────────────────────
DEFAULT_THRESHOLDS = Thresholds(
    temperature=ChannelThresholds(min=18.0, max=24.0, alert_min=16.0, alert_max=26.0),
    ph=ChannelThresholds(min=6.5, max=8.5, alert_min=6.0, alert_max=9.0),
)
