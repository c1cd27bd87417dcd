"""Stats service: KPIs, charts, CSV export, top toots and hashtags for one account"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from analysis.charts import build_chart_series, build_total_series, chart_query_range, export_csv
from analysis.hashtags import (
    DEFAULT_LIMIT as DEFAULT_HASHTAG_LIMIT,
    DEFAULT_MIN_TOOT_COUNT,
    HashtagOrder,
    hashtag_timeline,
    rank_hashtags,
)
from analysis.kpi import PeriodFunction, compute_period_kpi, with_trend
from analysis.ranking import RankingMode, rank_top_content
from analysis.schemas import AccountRef
from analysis.store import CounterStore
from analysis.timeframe import (
    days_to_month_beginning,
    days_to_week_beginning,
    days_to_year_beginning,
    get_zone,
    resolve_timeframe,
)
from service.dto import (
    ChartPointDTO,
    HashtagStatsDTO,
    HashtagTimelineDTO,
    KpiDTO,
    MetricName,
    PeriodName,
    RankedTootDTO,
    TimeframeDTO,
    TotalSnapshotDTO,
)

logger = logging.getLogger(__name__)

BUCKET_METRIC: Dict[MetricName, str] = {
    MetricName.FOLLOWERS: "followers_count",
    MetricName.BOOSTS: "boosts_count",
    MetricName.FAVORITES: "favourites_count",
    MetricName.REPLIES: "replies_count",
}

METRIC_LABEL: Dict[MetricName, str] = {
    MetricName.FOLLOWERS: "Followers",
    MetricName.BOOSTS: "Boosts",
    MetricName.FAVORITES: "Favorites",
    MetricName.REPLIES: "Replies",
}

METRIC_RANKING: Dict[MetricName, RankingMode] = {
    MetricName.BOOSTS: RankingMode.BOOSTS,
    MetricName.FAVORITES: RankingMode.FAVOURITES,
    MetricName.REPLIES: RankingMode.REPLIES,
}

PERIOD_FUNCTIONS: Dict[PeriodName, PeriodFunction] = {
    PeriodName.WEEK: days_to_week_beginning,
    PeriodName.MONTH: days_to_month_beginning,
    PeriodName.YEAR: days_to_year_beginning,
}

# Followers chart plots totals; engagement metrics plot daily increments
TOTAL_SERIES_METRICS = {MetricName.FOLLOWERS}


class DomainValidationError(Exception):
    """Domain validation error for service layer"""
    def __init__(self, message: str, code: str = "VALIDATION_FAILED"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(Exception):
    """Requested entity does not exist"""
    def __init__(self, message: str, code: str = "NOT_FOUND"):
        self.message = message
        self.code = code
        super().__init__(message)


def load_account(store: CounterStore, account_id: str) -> AccountRef:
    """Fetch an account and validate its timezone at the boundary"""
    account = store.get_account(account_id)
    if account is None:
        raise NotFoundError(f"Account {account_id} not found", code="ACCOUNT_NOT_FOUND")
    try:
        get_zone(account.timezone)
    except ValueError as e:
        raise DomainValidationError(str(e), code="INVALID_TIMEZONE") from e
    return account


def get_timeframe(
    store: CounterStore,
    account_id: str,
    timeframe: str,
    now: Optional[datetime] = None,
) -> TimeframeDTO:
    """Resolve a timeframe token against the account's local calendar"""
    account = load_account(store, account_id)
    resolved = resolve_timeframe(account.timezone, timeframe, now)
    return TimeframeDTO(date_from=resolved.date_from, date_to=resolved.date_to, timeframe=resolved.timeframe.value)


def get_kpi(
    store: CounterStore,
    account_id: str,
    metric: MetricName,
    period: PeriodName,
    now: Optional[datetime] = None,
) -> KpiDTO:
    """Current vs. previous period KPI with projected trend"""
    account = load_account(store, account_id)
    kpi = compute_period_kpi(
        store,
        account.id,
        account.timezone,
        PERIOD_FUNCTIONS[PeriodName(period)],
        BUCKET_METRIC[MetricName(metric)],
        now=now,
    )
    return KpiDTO(**with_trend(kpi).model_dump())


def get_chart(
    store: CounterStore,
    account_id: str,
    metric: MetricName,
    timeframe: str,
    now: Optional[datetime] = None,
) -> List[ChartPointDTO]:
    """Chart series for the requested timeframe"""
    metric = MetricName(metric)
    account = load_account(store, account_id)
    resolved = resolve_timeframe(account.timezone, timeframe, now)
    bucket_metric = BUCKET_METRIC[metric]

    if metric in TOTAL_SERIES_METRICS:
        buckets = store.find_range(account.id, bucket_metric, resolved.date_from, resolved.date_to)
        points = build_total_series(buckets, account.timezone)
    else:
        date_from, date_to = chart_query_range(resolved, account.timezone)
        buckets = store.find_range(account.id, bucket_metric, date_from, date_to)
        points = build_chart_series(buckets, account.timezone)

    return [ChartPointDTO(date=point.date, value=point.value) for point in points]


def export_chart_csv(
    store: CounterStore,
    account_id: str,
    metric: MetricName,
    timeframe: str,
    now: Optional[datetime] = None,
) -> str:
    """Chart series as ``Date;<Label>`` CSV text"""
    points = get_chart(store, account_id, metric, timeframe, now)
    return export_csv(points, METRIC_LABEL[MetricName(metric)])


def get_total_snapshot(store: CounterStore, account_id: str, metric: MetricName) -> Optional[TotalSnapshotDTO]:
    """Latest cumulative bucket, or None without history"""
    account = load_account(store, account_id)
    latest = store.find_latest_bucket(account.id, BUCKET_METRIC[MetricName(metric)])
    if latest is None:
        return None
    return TotalSnapshotDTO(amount=latest.value, day=latest.day)


def get_top_toots(
    store: CounterStore,
    account_id: str,
    ranking: RankingMode = RankingMode.TOP,
    timeframe: Optional[str] = None,
    limit: int = 5,
    now: Optional[datetime] = None,
) -> List[RankedTootDTO]:
    """Top toots ranked by engagement, optionally within a timeframe"""
    account = load_account(store, account_id)

    date_from = date_to = None
    if timeframe is not None:
        resolved = resolve_timeframe(account.timezone, timeframe, now)
        date_from, date_to = resolved.date_from, resolved.date_to

    items = store.find_content_items(account.id, date_from, date_to)
    ranked = rank_top_content(items, RankingMode(ranking), date_from, date_to, limit)

    logger.info("Top toots ranked", extra={
        "account_id": account.id,
        "timeframe": timeframe,
        "records_processed": len(ranked),
    })

    return [
        RankedTootDTO(
            id=item.id,
            content=item.content,
            url=item.url,
            replies_count=item.replies_count,
            reblogs_count=item.reblogs_count,
            favourites_count=item.favourites_count,
            created_at=item.created_at,
            rank=item.rank,
        )
        for item in ranked
    ]


def _hashtag_rows(store: CounterStore, account: AccountRef, timeframe: str, now: Optional[datetime]):
    resolved = resolve_timeframe(account.timezone, timeframe, now)
    return store.find_hashtag_stats(account.id, resolved.date_from, resolved.date_to)


def _ranked_hashtags(
    store: CounterStore,
    account_id: str,
    timeframe: str,
    order: HashtagOrder,
    limit: int,
    min_toot_count: int,
    now: Optional[datetime],
) -> List[HashtagStatsDTO]:
    account = load_account(store, account_id)
    ranked = rank_hashtags(_hashtag_rows(store, account, timeframe, now), order, limit, min_toot_count)

    logger.info("Hashtags ranked", extra={
        "account_id": account.id,
        "timeframe": timeframe,
        "order": order.value,
        "records_processed": len(ranked),
    })
    return [HashtagStatsDTO(**summary.model_dump()) for summary in ranked]


def get_top_hashtags(
    store: CounterStore,
    account_id: str,
    timeframe: str,
    limit: int = DEFAULT_HASHTAG_LIMIT,
    now: Optional[datetime] = None,
) -> List[HashtagStatsDTO]:
    """Most used hashtags by toot count"""
    return _ranked_hashtags(store, account_id, timeframe, HashtagOrder.TOOT_COUNT, limit, 0, now)


def get_hashtag_engagement(
    store: CounterStore,
    account_id: str,
    timeframe: str,
    limit: int = DEFAULT_HASHTAG_LIMIT,
    now: Optional[datetime] = None,
) -> List[HashtagStatsDTO]:
    """Hashtags by total replies, boosts and favourites"""
    return _ranked_hashtags(store, account_id, timeframe, HashtagOrder.TOTAL_ENGAGEMENT, limit, 0, now)


def get_most_effective_hashtags(
    store: CounterStore,
    account_id: str,
    timeframe: str,
    limit: int = DEFAULT_HASHTAG_LIMIT,
    min_toot_count: int = DEFAULT_MIN_TOOT_COUNT,
    now: Optional[datetime] = None,
) -> List[HashtagStatsDTO]:
    """Hashtags by average engagement per toot, ignoring rarely used ones"""
    return _ranked_hashtags(
        store, account_id, timeframe, HashtagOrder.AVG_ENGAGEMENT, limit, min_toot_count, now,
    )


def get_hashtag_timeline(
    store: CounterStore,
    account_id: str,
    timeframe: str,
    limit: int = DEFAULT_HASHTAG_LIMIT,
    now: Optional[datetime] = None,
) -> HashtagTimelineDTO:
    account = load_account(store, account_id)
    timeline = hashtag_timeline(_hashtag_rows(store, account, timeframe, now), account.timezone, limit)
    return HashtagTimelineDTO(**timeline.model_dump())
