"""
src/api/routes.py
─────────────────
HTTP endpoints.

  POST   /api/data               sensor unit ingress
  GET    /api/current            snapshot + health + uptime
  GET    /api/history            server-side history, oldest first
  GET    /api/status             link state and counters
  GET    /api/feed               arbiter's authoritative reading
  GET    /api/feed/history       consumer history, oldest first
  GET    /api/trends             rolling stats over the consumer history
  GET    /api/alerts             alert log, newest first
  DELETE /api/alerts             clear the alert log
  GET    /api/settings           alert thresholds
  PUT    /api/settings           replace alert thresholds
  GET    /api/source             LIVE / SYNTHETIC
  POST   /api/source/synthetic   re-arm the synthetic feed
"""
from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from config.alerts import AlertSeverity
from src.analytics.trends import summarize
from src.api.schemas import TelemetryIn, ThresholdsIn
from src.data.models import new_alert
from src.services.runtime import MonitorRuntime

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

_INTERNAL_ERROR = {"error": "Internal server error"}


def get_runtime(request: Request) -> MonitorRuntime:
    return request.app.state.runtime


def _iso(ms: int | None) -> str | None:
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=UTC).isoformat()


# ── Ingress ───────────────────────────────────────────────────────────────────

@router.post("/data", tags=["ingest"])
def receive_data(payload: TelemetryIn, runtime: MonitorRuntime = Depends(get_runtime)):
    try:
        ack = runtime.ingestion.ingest(payload.model_dump())
    except Exception:
        logger.exception("Error in /api/data")
        return JSONResponse(status_code=500, content=_INTERNAL_ERROR)
    return {
        "status": "success",
        "message": "Data received and processed",
        "dataPoints": ack.history_size,
        "temp_accepted": ack.temperature_accepted,
        "ph_accepted": ack.ph_accepted,
    }


# ── Server-side reads ─────────────────────────────────────────────────────────

@router.get("/current", tags=["telemetry"])
def current(runtime: MonitorRuntime = Depends(get_runtime)):
    state = runtime.state
    body = state.snapshot().model_dump()
    body["uptime"] = state.clock() - state.started_at
    return body


@router.get("/history", tags=["telemetry"])
def history(runtime: MonitorRuntime = Depends(get_runtime)):
    return [r.model_dump() for r in runtime.state.history()]


@router.get("/status", tags=["telemetry"])
def status(runtime: MonitorRuntime = Depends(get_runtime)):
    state = runtime.state
    snapshot = state.snapshot()
    conn = state.connection()
    return {
        "system_status": "running" if snapshot.valid else "sensor_errors",
        "connected": conn.connected,
        "last_data_at": conn.last_data_at,
        "uptime": state.clock() - state.started_at,
        "data_points": state.history_size(),
        "esp8266_connected": conn.connected,
        "arduino_connected": conn.connected and (snapshot.temp_sensor_ok or snapshot.ph_sensor_ok),
        "websocket_clients": runtime.websocket_clients,
        "last_data_received": _iso(state.last_update),
        "temp_sensor_working": snapshot.temp_sensor_ok,
        "ph_sensor_working": snapshot.ph_sensor_ok,
        "error_count": snapshot.error_count,
        "source": state.source.value,
    }


# ── Consumer side ─────────────────────────────────────────────────────────────

@router.get("/feed", tags=["consumer"])
def feed(runtime: MonitorRuntime = Depends(get_runtime)):
    update = runtime.state.feed_current()
    if update is None:
        return {"source": runtime.state.source.value, "reading": None, "health": None, "alerts": []}
    return update.model_dump(mode="json")


@router.get("/feed/history", tags=["consumer"])
def feed_history(runtime: MonitorRuntime = Depends(get_runtime)):
    return [r.model_dump() for r in runtime.state.feed_history()]


@router.get("/trends", tags=["consumer"])
def trends(runtime: MonitorRuntime = Depends(get_runtime)):
    state = runtime.state
    summary = summarize(state.feed_history(), state.clock())
    return {channel: trend.model_dump() for channel, trend in summary.items()}


@router.get("/alerts", tags=["alerts"])
def alerts(
    limit: int | None = Query(default=None, ge=1),
    runtime: MonitorRuntime = Depends(get_runtime),
):
    return [a.model_dump(mode="json") for a in runtime.state.alerts(limit)]


@router.delete("/alerts", tags=["alerts"])
def clear_alerts(runtime: MonitorRuntime = Depends(get_runtime)):
    runtime.state.clear_alerts()
    return {"status": "success"}


@router.get("/settings", tags=["settings"])
def get_settings(runtime: MonitorRuntime = Depends(get_runtime)):
    return {"thresholds": ThresholdsIn.from_config(runtime.state.thresholds).model_dump()}


@router.put("/settings", tags=["settings"])
def put_settings(body: ThresholdsIn, runtime: MonitorRuntime = Depends(get_runtime)):
    state = runtime.state
    state.set_thresholds(body.to_config())
    state.add_alerts([new_alert(AlertSeverity.SUCCESS, "Settings saved successfully")])
    logger.info("Thresholds updated: %s", body.model_dump())
    return {"thresholds": body.model_dump()}


@router.get("/source", tags=["consumer"])
def source(runtime: MonitorRuntime = Depends(get_runtime)):
    return {"source": runtime.state.source.value, "synthetic_running": runtime.arbiter.feed.running}


@router.post("/source/synthetic", tags=["consumer"])
def restart_synthetic(runtime: MonitorRuntime = Depends(get_runtime)):
    started = runtime.arbiter.start_synthetic()
    return {"source": runtime.state.source.value, "started": started}
