import logging
from typing import Callable, List, Optional, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from analysis.ranking import RankingMode
from analysis.store import CounterStore
from app.deps.common import get_analytics_settings, get_counter_store, get_trace_id
from core.settings import AnalyticsSettings
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
from service.stats_service import (
    DomainValidationError,
    NotFoundError,
    export_chart_csv,
    get_chart,
    get_hashtag_engagement,
    get_hashtag_timeline,
    get_kpi,
    get_most_effective_hashtags,
    get_timeframe,
    get_top_hashtags,
    get_top_toots,
    get_total_snapshot,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/accounts/{account_id}", tags=["stats"])

T = TypeVar("T")


def _error(status_code: int, code: str, message: str, trace_id: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": code,
                "message": message,
                "trace_id": trace_id
            }
        }
    )


def _call(fn: Callable[[], T], trace_id: str, account_id: str) -> T:
    """Run a service call and map its errors onto HTTP responses"""
    try:
        return fn()

    except DomainValidationError as e:
        logger.warning("Domain validation error", extra={
            "trace_id": trace_id,
            "account_id": account_id,
            "error": e.message
        })
        raise _error(422, e.code, e.message, trace_id)

    except NotFoundError as e:
        logger.info("Not found", extra={
            "trace_id": trace_id,
            "account_id": account_id,
            "error": e.message
        })
        raise _error(404, e.code, e.message, trace_id)

    except Exception as e:
        logger.error("Unexpected error", extra={
            "trace_id": trace_id,
            "account_id": account_id,
            "error_type": type(e).__name__,
            "error": str(e)
        })
        raise _error(500, "INTERNAL_ERROR", "Internal server error", trace_id)


@router.get("/toots/top", response_model=List[RankedTootDTO])
def top_toots(
    account_id: str,
    ranking: RankingMode = RankingMode.TOP,
    timeframe: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    store: CounterStore = Depends(get_counter_store),
    settings: AnalyticsSettings = Depends(get_analytics_settings),
    trace_id: str = Depends(get_trace_id),
) -> List[RankedTootDTO]:
    """Top toots by engagement"""
    return _call(
        lambda: get_top_toots(store, account_id, ranking, timeframe, limit or settings.top_toots_limit),
        trace_id,
        account_id,
    )


@router.get("/timeframe", response_model=TimeframeDTO)
def timeframe_range(
    account_id: str,
    timeframe: str = "last30days",
    store: CounterStore = Depends(get_counter_store),
    trace_id: str = Depends(get_trace_id),
) -> TimeframeDTO:
    """UTC instants bounding a timeframe in the account's timezone"""
    return _call(lambda: get_timeframe(store, account_id, timeframe), trace_id, account_id)


@router.get("/hashtags/top", response_model=List[HashtagStatsDTO])
def top_hashtags(
    account_id: str,
    timeframe: str = "last30days",
    limit: int = Query(default=10, ge=1, le=25),
    store: CounterStore = Depends(get_counter_store),
    trace_id: str = Depends(get_trace_id),
) -> List[HashtagStatsDTO]:
    return _call(lambda: get_top_hashtags(store, account_id, timeframe, limit), trace_id, account_id)


@router.get("/hashtags/engagement", response_model=List[HashtagStatsDTO])
def hashtag_engagement(
    account_id: str,
    timeframe: str = "last30days",
    limit: int = Query(default=10, ge=1, le=25),
    store: CounterStore = Depends(get_counter_store),
    trace_id: str = Depends(get_trace_id),
) -> List[HashtagStatsDTO]:
    """Hashtags by summed replies, boosts and favourites"""
    return _call(lambda: get_hashtag_engagement(store, account_id, timeframe, limit), trace_id, account_id)


@router.get("/hashtags/effective", response_model=List[HashtagStatsDTO])
def effective_hashtags(
    account_id: str,
    timeframe: str = "last30days",
    limit: int = Query(default=10, ge=1, le=25),
    min_toot_count: int = Query(default=2, ge=1),
    store: CounterStore = Depends(get_counter_store),
    trace_id: str = Depends(get_trace_id),
) -> List[HashtagStatsDTO]:
    """Hashtags by average engagement per toot"""
    return _call(
        lambda: get_most_effective_hashtags(store, account_id, timeframe, limit, min_toot_count),
        trace_id,
        account_id,
    )


@router.get("/hashtags/timeline", response_model=HashtagTimelineDTO)
def hashtag_over_time(
    account_id: str,
    timeframe: str = "last30days",
    limit: int = Query(default=10, ge=1, le=25),
    store: CounterStore = Depends(get_counter_store),
    trace_id: str = Depends(get_trace_id),
) -> HashtagTimelineDTO:
    """Daily toot counts of the top hashtags"""
    return _call(lambda: get_hashtag_timeline(store, account_id, timeframe, limit), trace_id, account_id)


@router.get("/{metric}/kpi/{period}", response_model=KpiDTO, response_model_exclude_none=True)
def kpi(
    account_id: str,
    metric: MetricName,
    period: PeriodName,
    store: CounterStore = Depends(get_counter_store),
    trace_id: str = Depends(get_trace_id),
) -> KpiDTO:
    """Period KPI; fields without data are omitted"""
    return _call(lambda: get_kpi(store, account_id, metric, period), trace_id, account_id)


@router.get("/{metric}/chart", response_model=List[ChartPointDTO])
def chart(
    account_id: str,
    metric: MetricName,
    timeframe: str = "last30days",
    store: CounterStore = Depends(get_counter_store),
    trace_id: str = Depends(get_trace_id),
) -> List[ChartPointDTO]:
    return _call(lambda: get_chart(store, account_id, metric, timeframe), trace_id, account_id)


@router.get("/{metric}/csv")
def chart_csv(
    account_id: str,
    metric: MetricName,
    timeframe: str = "last30days",
    store: CounterStore = Depends(get_counter_store),
    trace_id: str = Depends(get_trace_id),
) -> Response:
    """Chart series as a semicolon-delimited CSV download"""
    body = _call(lambda: export_chart_csv(store, account_id, metric, timeframe), trace_id, account_id)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={metric.value}-{account_id}-{timeframe}.csv"},
    )


@router.get("/{metric}/total", response_model=Optional[TotalSnapshotDTO])
def total(
    account_id: str,
    metric: MetricName,
    store: CounterStore = Depends(get_counter_store),
    trace_id: str = Depends(get_trace_id),
) -> Optional[TotalSnapshotDTO]:
    """Latest cumulative total, or null without history"""
    return _call(lambda: get_total_snapshot(store, account_id, metric), trace_id, account_id)
