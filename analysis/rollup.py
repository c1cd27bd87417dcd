"""In-process reductions from raw counter samples to daily buckets.

Two strategies cover the two counter classes:

* point-in-time counters (followers): one authoritative value per local day,
  the maximum observed that day;
* per-item counters (replies/boosts/favourites per toot): collapse repeated
  samples of the same toot to their maximum, then sum over all toots.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from analysis.schemas import DailyBucket, HashtagBucket
from analysis.timeframe import get_zone, local_midnight

logger = logging.getLogger(__name__)

# Raw toot sample column -> daily bucket column
TOOT_BUCKET_METRICS: Dict[str, str] = {
    "replies_count": "replies_count",
    "reblogs_count": "boosts_count",
    "favourites_count": "favourites_count",
}

ACCOUNT_BUCKET_METRICS = ("followers_count", "following_count", "statuses_count")


def _localize(series: pd.Series, timezone_name: str) -> pd.Series:
    """Calendar dates of UTC timestamps in the given timezone"""
    zone = get_zone(timezone_name)
    return pd.to_datetime(series, utc=True).dt.tz_convert(zone.key).dt.date


def _numeric(df: pd.DataFrame, columns) -> pd.DataFrame:
    for column in columns:
        df[column] = pd.to_numeric(df[column], errors="coerce")
    return df


def _tag_name(tag) -> str:
    if isinstance(tag, dict):
        tag = tag.get("name") or ""
    return str(tag).strip().lower()


def _int_values(row: pd.Series, mapping: Mapping[str, str]) -> Dict[str, int]:
    return {target: int(row[source]) for source, target in mapping.items() if pd.notna(row[source])}


def rollup_point_in_time(
    account_id: str,
    samples: pd.DataFrame,
    timezone_name: str,
    today: datetime,
    metrics: Sequence[str] = ACCOUNT_BUCKET_METRICS,
) -> List[DailyBucket]:
    """Bucket samples by local day, keeping the day's maximum per metric.

    Only samples fetched strictly before ``today`` (local midnight) count, so
    an open day never leaks into a closed bucket.
    """
    if samples.empty:
        return []

    df = samples.copy()
    df["fetched_at"] = pd.to_datetime(df["fetched_at"], utc=True)
    df = df[df["fetched_at"] < pd.Timestamp(today)]
    if df.empty:
        return []

    df = _numeric(df, metrics)
    df["local_day"] = _localize(df["fetched_at"], timezone_name)
    daily = df.groupby("local_day")[list(metrics)].max().sort_index()

    buckets = []
    for local_day, row in daily.iterrows():
        values = _int_values(row, {metric: metric for metric in metrics})
        if not values:
            continue
        buckets.append(DailyBucket(
            account_id=account_id,
            day=local_midnight(local_day, timezone_name),
            values=values,
        ))
    return buckets


def rollup_per_item(
    account_id: str,
    samples: pd.DataFrame,
    timezone_name: str,
    day: date,
    metrics: Mapping[str, str] = TOOT_BUCKET_METRICS,
    item_column: str = "uri",
) -> Optional[DailyBucket]:
    """Cumulative engagement total of all items as of the end of ``day``.

    Every sample fetched before the next local midnight is stamped with
    ``day``; samples are reduced to ``max`` per (item, day) and then summed
    across items. Returns None when no sample qualifies.
    """
    if samples.empty:
        return None

    day_end = local_midnight(day + timedelta(days=1), timezone_name)

    df = samples.copy()
    df["fetched_at"] = pd.to_datetime(df["fetched_at"], utc=True)
    df = df[df["fetched_at"] < pd.Timestamp(day_end)]
    if df.empty:
        return None

    df = _numeric(df, metrics)
    df["day"] = day
    per_item = df.groupby([item_column, "day"])[list(metrics)].max()
    totals = per_item.groupby(level="day").sum(min_count=1)

    values = _int_values(totals.loc[day], metrics)
    if not values:
        return None

    return DailyBucket(account_id=account_id, day=local_midnight(day, timezone_name), values=values)


def rollup_hashtags(toots: pd.DataFrame, timezone_name: str) -> List[HashtagBucket]:
    """Toot count and engagement per (local creation day, lower-cased hashtag)"""
    if toots.empty:
        return []

    df = toots.copy()
    df = df.explode("tags").dropna(subset=["tags"])
    if df.empty:
        return []

    df["hashtag"] = df["tags"].map(_tag_name)
    df = df[df["hashtag"] != ""]
    df["local_day"] = _localize(df["created_at"], timezone_name)

    df = _numeric(df, TOOT_BUCKET_METRICS).fillna({column: 0 for column in TOOT_BUCKET_METRICS})

    grouped = df.groupby(["local_day", "hashtag"]).agg(
        toot_count=("hashtag", "size"),
        replies_count=("replies_count", "sum"),
        reblogs_count=("reblogs_count", "sum"),
        favourites_count=("favourites_count", "sum"),
    )

    return [
        HashtagBucket(
            day=local_midnight(local_day, timezone_name),
            hashtag=hashtag,
            toot_count=int(row["toot_count"]),
            replies_count=int(row["replies_count"]),
            reblogs_count=int(row["reblogs_count"]),
            favourites_count=int(row["favourites_count"]),
        )
        for (local_day, hashtag), row in grouped.iterrows()
    ]
