"""Analytics engine settings"""
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsSettings(BaseSettings):
    """Tunables for request-time services and scheduled aggregation"""
    model_config = SettingsConfigDict(env_file=".env", env_prefix="ANALYTICS_", extra="ignore")

    top_toots_limit: int = Field(default=5, ge=1, le=100)
    # Local hours at which an account's daily buckets get finalized
    aggregation_hours: List[int] = Field(default_factory=lambda: [0])
    scheduler_timezone: str = "UTC"
    log_level: str = "INFO"


def get_settings() -> AnalyticsSettings:
    return AnalyticsSettings()
