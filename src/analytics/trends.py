"""
src/analytics/trends.py
────────────────────────
Rolling statistics over the consumer-side reading history.

Per channel:
  - latest / mean / min / max over the last `window_hours` of readings
  - short-term trend: last minus first value of the last `trend_points`
    readings; |delta| below `stable_delta` reads as "stable"
"""
from __future__ import annotations

import pandas as pd
from pydantic import BaseModel

from config.thresholds import CHANNELS
from src.data.models import Reading

STABLE_DELTA = 0.1
TREND_POINTS = 5
WINDOW_HOURS = 24


class ChannelTrend(BaseModel):
    channel: str
    count: int = 0
    latest: float | None = None
    mean: float | None = None
    min: float | None = None
    max: float | None = None
    delta: float | None = None
    direction: str | None = None   # "up" | "down" | "stable"


def to_dataframe(readings: list[Reading]) -> pd.DataFrame:
    """Convert readings to a DataFrame with a UTC `timestamp` column."""
    df = pd.DataFrame([r.model_dump() for r in readings])
    if df.empty:
        return pd.DataFrame(columns=["timestamp", *CHANNELS])
    df["timestamp"] = pd.to_datetime(df["timestamp"], unit="ms", utc=True)
    return df


def _direction(delta: float, stable_delta: float) -> str:
    if abs(delta) < stable_delta:
        return "stable"
    return "up" if delta > 0 else "down"


def channel_trend(
    df: pd.DataFrame,
    channel: str,
    now: pd.Timestamp,
    window_hours: int = WINDOW_HOURS,
    trend_points: int = TREND_POINTS,
    stable_delta: float = STABLE_DELTA,
) -> ChannelTrend:
    if df.empty:
        return ChannelTrend(channel=channel)

    series = df.set_index("timestamp")[channel].dropna().astype(float)
    recent = series[series.index >= now - pd.Timedelta(hours=window_hours)]
    if recent.empty:
        return ChannelTrend(channel=channel)

    tail = recent.iloc[-trend_points:]
    delta = None
    direction = None
    if len(tail) >= 2:
        delta = round(float(tail.iloc[-1] - tail.iloc[0]), 3)
        direction = _direction(delta, stable_delta)

    return ChannelTrend(
        channel=channel,
        count=int(recent.size),
        latest=float(recent.iloc[-1]),
        mean=round(float(recent.mean()), 3),
        min=float(recent.min()),
        max=float(recent.max()),
        delta=delta,
        direction=direction,
    )


def summarize(readings: list[Reading], now_ms: int) -> dict[str, ChannelTrend]:
    df = to_dataframe(readings)
    now = pd.Timestamp(now_ms, unit="ms", tz="UTC")
    return {channel: channel_trend(df, channel, now) for channel in CHANNELS}
