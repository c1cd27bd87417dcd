"""Unit tests for period KPIs and trend projection"""
import pytest

from analysis.kpi import INFINITE_TREND, KPIResult, compute_period_kpi, compute_trend, with_trend
from analysis.timeframe import days_to_month_beginning, days_to_week_beginning
from helpers import BERLIN, add_account_bucket, add_toot_bucket, local_day


class TestPeriodKPI:
    """KPI computed from cumulative daily buckets"""

    def test_followers_this_month(self, db_session, store, berlin_account, now):
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 4, 1), followers_count=100)
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 1), followers_count=150)
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 14), followers_count=200)

        kpi = compute_period_kpi(store, berlin_account.id, BERLIN, days_to_month_beginning, "followers_count", now)

        assert kpi.current_period == 50
        assert kpi.previous_period == 50
        assert kpi.current_period_progress == pytest.approx(14 / 31)
        assert kpi.is_last_period is False

    def test_bucket_of_today_closes_the_current_period(self, db_session, store, berlin_account, now):
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 1), followers_count=100)
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 15), followers_count=150)

        kpi = compute_period_kpi(store, berlin_account.id, BERLIN, days_to_month_beginning, "followers_count", now)

        assert kpi.current_period == 50
        assert kpi.previous_period is None
        assert kpi.current_period_progress == pytest.approx(0.45, abs=0.01)

    def test_first_day_of_period_reports_the_last_period(self, db_session, store, berlin_account, now):
        """2023-05-15 is a Monday, so the week KPI describes May 8th to 15th"""
        add_toot_bucket(db_session, berlin_account.id, local_day(2023, 5, 1), boosts_count=10)
        add_toot_bucket(db_session, berlin_account.id, local_day(2023, 5, 8), boosts_count=30)
        add_toot_bucket(db_session, berlin_account.id, local_day(2023, 5, 14), boosts_count=45)

        kpi = compute_period_kpi(store, berlin_account.id, BERLIN, days_to_week_beginning, "boosts_count", now)

        assert kpi.is_last_period is True
        assert kpi.current_period == 15
        assert kpi.previous_period == 20
        assert kpi.current_period_progress == pytest.approx(1.0)

    def test_missing_history_leaves_fields_unset(self, db_session, store, berlin_account, now):
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 3), followers_count=80)

        kpi = compute_period_kpi(store, berlin_account.id, BERLIN, days_to_month_beginning, "followers_count", now)

        assert kpi.current_period is None
        assert kpi.previous_period is None
        assert kpi.current_period_progress is None
        assert kpi.is_last_period is None

    def test_decreasing_counter_is_floored_at_zero(self, db_session, store, berlin_account, now):
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 4, 1), followers_count=100)
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 1), followers_count=90)
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 14), followers_count=80)

        kpi = compute_period_kpi(store, berlin_account.id, BERLIN, days_to_month_beginning, "followers_count", now)

        assert kpi.current_period == 0
        assert kpi.previous_period == 0


class TestTrend:

    def test_projects_partial_period(self):
        kpi = KPIResult(current_period=50, previous_period=50, current_period_progress=0.5)
        assert compute_trend(kpi) == pytest.approx(1.0)

    def test_zero_baseline_with_growth_is_infinite(self):
        kpi = KPIResult(current_period=3, previous_period=0, current_period_progress=0.2)
        assert compute_trend(kpi) == INFINITE_TREND

    def test_zero_baseline_without_growth_is_zero(self):
        kpi = KPIResult(current_period=0, previous_period=0, current_period_progress=0.2)
        assert compute_trend(kpi) == 0.0

    def test_zero_progress_uses_raw_value(self):
        kpi = KPIResult(current_period=20, previous_period=10, current_period_progress=0.0)
        assert compute_trend(kpi) == pytest.approx(1.0)

    def test_missing_inputs_yield_no_trend(self):
        assert compute_trend(KPIResult(current_period=10, current_period_progress=0.5)) is None
        assert with_trend(KPIResult()).trend is None

    def test_with_trend_keeps_other_fields(self):
        kpi = with_trend(KPIResult(current_period=30, previous_period=20, current_period_progress=1.0, is_last_period=True))
        assert kpi.trend == pytest.approx(0.5)
        assert kpi.current_period == 30
        assert kpi.is_last_period is True
