"""Chart series and CSV export from cumulative daily buckets"""
from datetime import datetime
from typing import List, Sequence, Tuple

import pandas as pd
from pydantic import BaseModel

from analysis.schemas import DailyValue
from analysis.timeframe import ResolvedTimeframe, format_local_date, shift_local_days


class ChartPoint(BaseModel):
    date: str
    value: int


def chart_query_range(timeframe: ResolvedTimeframe, timezone_name: str) -> Tuple[datetime, datetime]:
    """Bucket range for a delta chart: one seed day before ``date_from`` through ``date_to``"""
    return shift_local_days(timeframe.date_from, -1, timezone_name), timeframe.date_to


def build_chart_series(buckets: Sequence[DailyValue], timezone_name: str) -> List[ChartPoint]:
    """Per-day increments of a cumulative series.

    The first bucket only seeds the first delta and is not part of the
    output. Deltas are floored at zero.
    """
    if len(buckets) < 2:
        return []

    df = pd.DataFrame([(bucket.day, bucket.value) for bucket in buckets], columns=["day", "value"])
    df = df.sort_values("day", kind="mergesort")
    df["delta"] = df["value"].diff().clip(lower=0)

    return [
        ChartPoint(date=format_local_date(row.day, timezone_name), value=int(row.delta))
        for row in df.iloc[1:].itertuples(index=False)
    ]


def build_total_series(buckets: Sequence[DailyValue], timezone_name: str) -> List[ChartPoint]:
    """Absolute per-day values, for counters charted as totals (followers)"""
    return [
        ChartPoint(date=format_local_date(bucket.day, timezone_name), value=bucket.value)
        for bucket in sorted(buckets, key=lambda bucket: bucket.day)
    ]


def export_csv(points: Sequence[ChartPoint], label: str) -> str:
    """Two-column, semicolon-delimited CSV with a ``Date;<label>`` header"""
    df = pd.DataFrame([(point.date, point.value) for point in points], columns=["Date", label])
    return df.to_csv(sep=";", index=False, lineterminator="\n")
