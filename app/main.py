from fastapi import FastAPI
import logging

from app.api.stats import router as stats_router
from app.api.health import router as health_router
from core.logging import setup_json_logging

# Setup logging
setup_json_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Mastodon Analytics API", version="1.0.0")

# Include routers
app.include_router(health_router)  # Health at root level
app.include_router(stats_router, prefix="/api/v1")
