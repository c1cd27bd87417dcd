"""Data Transfer Objects for service layer"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field


class MetricName(str, Enum):
    """Dashboard metrics exposed to callers"""
    FOLLOWERS = "followers"
    BOOSTS = "boosts"
    FAVORITES = "favorites"
    REPLIES = "replies"


class PeriodName(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class KpiDTO(BaseModel):
    """Service layer DTO for a period KPI; unset fields mean no data, not zero"""
    current_period: Optional[int] = None
    previous_period: Optional[int] = None
    current_period_progress: Optional[float] = Field(default=None, ge=0, le=1)
    is_last_period: Optional[bool] = None
    trend: Optional[Union[float, Literal["infinite"]]] = None


class ChartPointDTO(BaseModel):
    """Service layer DTO for one chart point"""
    date: str
    value: int


class TotalSnapshotDTO(BaseModel):
    """Service layer DTO for the latest cumulative total"""
    amount: int
    day: datetime


class RankedTootDTO(BaseModel):
    """Service layer DTO for a ranked toot"""
    id: str
    content: Optional[str] = None
    url: Optional[str] = None
    replies_count: Optional[int] = None
    reblogs_count: Optional[int] = None
    favourites_count: Optional[int] = None
    created_at: datetime
    rank: int


class TimeframeDTO(BaseModel):
    """Service layer DTO for a resolved timeframe"""
    date_from: datetime
    date_to: datetime
    timeframe: str


class HealthResponseDTO(BaseModel):
    """Service layer DTO for health check responses"""
    ok: bool = True
    timestamp: Optional[str] = None
    version: Optional[str] = None


class HashtagStatsDTO(BaseModel):
    """Service layer DTO for one hashtag summed over a timeframe"""
    hashtag: str
    toot_count: int
    replies_count: int
    reblogs_count: int
    favourites_count: int
    total_engagement: int
    avg_engagement_per_toot: float


class HashtagTimelineDTO(BaseModel):
    hashtags: List[str] = Field(default_factory=list)
    data: List[Dict[str, Union[str, int]]] = Field(default_factory=list)
