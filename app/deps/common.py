"""Common dependencies for FastAPI dependency injection"""
import uuid
from datetime import datetime, timezone
from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from analysis.store import CounterStore, SqlCounterStore
from core.db import SessionLocal
from core.settings import AnalyticsSettings, get_settings


def get_db_session() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields:
        Session: SQLAlchemy database session
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_trace_id() -> str:
    """
    Generate unique trace ID for request tracking.

    Returns:
        str: Unique trace ID
    """
    return f"api_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


def get_counter_store(session: Session = Depends(get_db_session)) -> CounterStore:
    """Counter store bound to the request session"""
    return SqlCounterStore(session)


def get_analytics_settings() -> AnalyticsSettings:
    return get_settings()
