"""Health service for basic health checks"""
import logging
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.orm import Session

from service.dto import HealthResponseDTO

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def get_health(session: Session) -> HealthResponseDTO:
    """
    Get basic health status.

    Pings the database; a failed ping reports ``ok=False`` instead of raising.

    Returns:
        HealthResponseDTO: Health check result
    """
    logger.info("Health check requested")

    try:
        session.execute(text("SELECT 1"))
        ok = True
    except Exception as e:
        logger.error("Database ping failed", extra={"error": str(e)})
        ok = False

    return HealthResponseDTO(
        ok=ok,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION
    )
