"""
app.py
──────
AquaVision Monitor — Application Entry Point.

Startup sequence:
  1. Configure logging
  2. Build the monitor runtime (state, broadcaster, ingestion, watchdog, arbiter)
  3. Create the FastAPI app; its lifespan starts the watchdog and synthetic feed
  4. Run uvicorn (or expose `app` for an external ASGI server)
"""
import logging

import uvicorn

from config.settings import settings
from src.api.server import create_app

# ── 1. Logging ────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("aquavision")

# ── 2-3. App ──────────────────────────────────────────────────────────────────
app = create_app()

# ── 4. Run ────────────────────────────────────────────────────────────────────
if __name__ == "__main__":
    logger.info("AquaVision Monitor listening on %s:%d", settings.HOST, settings.PORT)
    logger.info("Waiting for sensor data on POST /api/data, WebSocket on /ws")
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=False,
    )
