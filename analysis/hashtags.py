"""Hashtag summaries over persisted (account, day, hashtag) rows"""
import logging
from enum import Enum
from typing import Dict, List, Union

import pandas as pd
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_MIN_TOOT_COUNT = 2

COUNT_COLUMNS = ["toot_count", "replies_count", "reblogs_count", "favourites_count"]


class HashtagOrder(str, Enum):
    TOOT_COUNT = "toot_count"
    TOTAL_ENGAGEMENT = "total_engagement"
    AVG_ENGAGEMENT = "avg_engagement_per_toot"


class HashtagSummary(BaseModel):
    hashtag: str
    toot_count: int = 0
    replies_count: int = 0
    reblogs_count: int = 0
    favourites_count: int = 0
    total_engagement: int = 0
    avg_engagement_per_toot: float = 0.0


class HashtagTimeline(BaseModel):
    """Daily toot counts of the top hashtags, one row per day"""
    hashtags: List[str] = Field(default_factory=list)
    data: List[Dict[str, Union[str, int]]] = Field(default_factory=list)


def _summarize(rows: pd.DataFrame) -> pd.DataFrame:
    df = rows.copy()
    for column in COUNT_COLUMNS:
        df[column] = pd.to_numeric(df[column], errors="coerce").fillna(0).astype(int)

    grouped = df.groupby("hashtag", as_index=False)[COUNT_COLUMNS].sum()
    grouped["total_engagement"] = grouped["replies_count"] + grouped["reblogs_count"] + grouped["favourites_count"]
    grouped["avg_engagement_per_toot"] = (
        grouped["total_engagement"] / grouped["toot_count"].where(grouped["toot_count"] > 0)
    ).fillna(0.0).round(2)
    return grouped


def rank_hashtags(
    rows: pd.DataFrame,
    order: HashtagOrder = HashtagOrder.TOOT_COUNT,
    limit: int = DEFAULT_LIMIT,
    min_toot_count: int = 0,
) -> List[HashtagSummary]:
    """Hashtags summed over all rows, best first by ``order``.

    Ties are broken alphabetically. Hashtags with fewer than
    ``min_toot_count`` toots are dropped before ranking.
    """
    if rows.empty or limit <= 0:
        return []

    order = HashtagOrder(order)
    summary = _summarize(rows)
    summary = summary[summary["toot_count"] >= min_toot_count]
    if summary.empty:
        return []

    top_df = summary.sort_values(
        [order.value, "hashtag"], ascending=[False, True], kind="mergesort"
    ).head(limit)

    return [
        HashtagSummary(
            hashtag=row["hashtag"],
            toot_count=int(row["toot_count"]),
            replies_count=int(row["replies_count"]),
            reblogs_count=int(row["reblogs_count"]),
            favourites_count=int(row["favourites_count"]),
            total_engagement=int(row["total_engagement"]),
            avg_engagement_per_toot=float(row["avg_engagement_per_toot"]),
        )
        for _, row in top_df.iterrows()
    ]


def hashtag_timeline(rows: pd.DataFrame, tz: str, limit: int = DEFAULT_LIMIT) -> HashtagTimeline:
    """Pivot the top ``limit`` hashtags by toot count into per-day columns"""
    top = [summary.hashtag for summary in rank_hashtags(rows, HashtagOrder.TOOT_COUNT, limit)]
    if not top:
        return HashtagTimeline()

    df = rows[rows["hashtag"].isin(top)].copy()
    df["toot_count"] = pd.to_numeric(df["toot_count"], errors="coerce").fillna(0).astype(int)
    df["date"] = pd.to_datetime(df["day"], utc=True).dt.tz_convert(tz).dt.strftime("%Y-%m-%d")

    pivot = (
        df.pivot_table(index="date", columns="hashtag", values="toot_count", aggfunc="sum", fill_value=0)
        .reindex(columns=top, fill_value=0)
        .sort_index()
    )

    data = []
    for day, counts in pivot.iterrows():
        entry: Dict[str, Union[str, int]] = {"day": day}
        entry.update({tag: int(counts[tag]) for tag in top})
        data.append(entry)
    return HashtagTimeline(hashtags=top, data=data)
