"""
src/api/server.py
─────────────────
FastAPI application factory.

Background loops (watchdog, synthetic feed) run for the lifetime of the app
when `start_background` is set; otherwise the caller drives them.
"""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.routes import router
from src.api.websocket import sensor_stream
from src.services.runtime import MonitorRuntime


def create_app(runtime: MonitorRuntime | None = None, start_background: bool = True) -> FastAPI:
    runtime = runtime or MonitorRuntime.build()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_background:
            runtime.start()
        try:
            yield
        finally:
            if start_background:
                runtime.stop()

    app = FastAPI(title="AquaVision Monitor", version="1.0.0", lifespan=lifespan)
    app.state.runtime = runtime
    app.include_router(router)
    app.add_api_websocket_route("/ws", sensor_stream)
    return app
