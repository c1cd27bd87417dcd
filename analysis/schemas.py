"""Value types shared by the analytics engine"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class WriteMode(str, Enum):
    """How daily buckets are persisted.

    INSERT assumes a first-time run and duplicates rows when rerun.
    UPSERT replaces by (account_id, day) and is safe to rerun.
    """
    INSERT = "insert"
    UPSERT = "upsert"


class AccountRef(BaseModel):
    id: str
    name: Optional[str] = None
    timezone: str


class DailyValue(BaseModel):
    """One metric's bucket value for one day"""
    day: datetime
    value: int


class DailyBucket(BaseModel):
    """Authoritative per-day totals for one account"""
    account_id: str
    day: datetime
    values: Dict[str, int] = Field(default_factory=dict)


class HashtagBucket(BaseModel):
    day: datetime
    hashtag: str
    toot_count: int = 0
    replies_count: int = 0
    reblogs_count: int = 0
    favourites_count: int = 0


class ContentItem(BaseModel):
    """A toot with its engagement counters"""
    id: str
    account_id: str
    created_at: datetime
    uri: Optional[str] = None
    url: Optional[str] = None
    content: Optional[str] = None
    replies_count: Optional[int] = None
    reblogs_count: Optional[int] = None
    favourites_count: Optional[int] = None


class AccountFailure(BaseModel):
    account_id: str
    error: str


class AggregationReport(BaseModel):
    """Outcome of one aggregation batch"""
    processed: int = 0
    buckets_written: int = 0
    failures: List[AccountFailure] = Field(default_factory=list)
