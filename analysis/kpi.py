"""Period-over-period KPIs with partial-period trend projection"""
import logging
from datetime import datetime
from typing import Callable, Literal, Optional, Union

from pydantic import BaseModel

from analysis.store import CounterStore
from analysis.timeframe import get_days_ago

logger = logging.getLogger(__name__)

# Trend value for growth from a zero baseline
INFINITE_TREND = "infinite"

Trend = Union[float, Literal["infinite"]]

# (timezone, modifier, now=...) -> days back to the period start
PeriodFunction = Callable[..., int]


class KPIResult(BaseModel):
    """KPI for one metric; None means "no data", never zero"""
    current_period: Optional[int] = None
    previous_period: Optional[int] = None
    current_period_progress: Optional[float] = None
    is_last_period: Optional[bool] = None
    trend: Optional[Trend] = None


def compute_period_kpi(
    store: CounterStore,
    account_id: str,
    timezone_name: str,
    period_function: PeriodFunction,
    metric: str,
    now: Optional[datetime] = None,
) -> KPIResult:
    """
    Compare the current period of ``metric`` with the previous one.

    When today is the first day of a period, the just-completed period is
    reported instead and flagged with ``is_last_period``.

    Args:
        store: Bucket history with "latest value at or before" lookups
        account_id: Account to evaluate
        timezone_name: IANA timezone of the account
        period_function: days_to_week/month/year_beginning
        metric: Bucket metric name, e.g. ``followers_count``
        now: Evaluation instant (defaults to the wall clock)

    Returns:
        KPIResult: fields left as None where history is missing
    """
    period_modifier = -1 if period_function(timezone_name, 0, now=now) == 0 else 0
    days_to_period_beginning = period_function(timezone_name, period_modifier, now=now)

    this_period_start = get_days_ago(days_to_period_beginning, timezone_name, now)
    today = get_days_ago(0, timezone_name, now)
    last_period_start = get_days_ago(period_function(timezone_name, period_modifier - 1, now=now), timezone_name, now)

    start_value = store.find_latest_at_or_before(account_id, metric, this_period_start)
    end_value = store.find_latest_at_or_before(account_id, metric, today)
    last_value = store.find_latest_at_or_before(account_id, metric, last_period_start)

    result = KPIResult()

    if start_value is not None and end_value is not None:
        result.current_period = max(0, end_value - start_value)

        ideal_period_length = days_to_period_beginning - period_function(timezone_name, period_modifier + 1, now=now)
        if ideal_period_length > 0:
            result.current_period_progress = min(1.0, days_to_period_beginning / ideal_period_length)
        else:
            result.current_period_progress = 1.0
        result.is_last_period = period_modifier != 0

    if start_value is not None and last_value is not None:
        result.previous_period = max(0, start_value - last_value)

    logger.debug("Period KPI computed", extra={
        "account_id": account_id,
        "metric": metric,
        "timezone": timezone_name,
    })

    return result


def compute_trend(kpi: KPIResult) -> Optional[Trend]:
    """Projected change of the current period against the previous one.

    The current value is extrapolated to a full period using its progress.
    A zero baseline yields ``INFINITE_TREND`` for any growth, else 0.
    """
    if kpi.current_period is None or kpi.previous_period is None or kpi.current_period_progress is None:
        return None

    if kpi.previous_period == 0:
        return INFINITE_TREND if kpi.current_period > 0 else 0.0

    if kpi.current_period_progress > 0:
        projected = kpi.current_period / kpi.current_period_progress
    else:
        projected = kpi.current_period

    return (projected - kpi.previous_period) / kpi.previous_period


def with_trend(kpi: KPIResult) -> KPIResult:
    """Copy of ``kpi`` with ``trend`` filled in"""
    return kpi.model_copy(update={"trend": compute_trend(kpi)})
