"""Unit tests for chart series and CSV export"""
from analysis.charts import ChartPoint, build_chart_series, build_total_series, chart_query_range, export_csv
from analysis.schemas import DailyValue
from analysis.timeframe import resolve_timeframe
from helpers import BERLIN, local_day


def buckets(*values):
    return [DailyValue(day=local_day(2023, 5, 10 + offset), value=value) for offset, value in enumerate(values)]


class TestChartSeries:
    """Deltas between consecutive cumulative buckets"""

    def test_deltas_after_seed_day(self):
        points = build_chart_series(buckets(5, 15, 20, 20), BERLIN)

        assert [point.value for point in points] == [10, 5, 0]
        assert [point.date for point in points] == ["2023-05-11", "2023-05-12", "2023-05-13"]

    def test_fewer_than_two_buckets(self):
        assert build_chart_series([], BERLIN) == []
        assert build_chart_series(buckets(7), BERLIN) == []

    def test_decrease_is_floored_at_zero(self):
        points = build_chart_series(buckets(10, 4, 6), BERLIN)
        assert [point.value for point in points] == [0, 2]

    def test_unordered_input_is_sorted_by_day(self):
        points = build_chart_series(list(reversed(buckets(1, 3, 6))), BERLIN)
        assert [point.value for point in points] == [2, 3]

    def test_total_series_keeps_absolute_values(self):
        points = build_total_series(buckets(100, 104), BERLIN)
        assert points == [ChartPoint(date="2023-05-10", value=100), ChartPoint(date="2023-05-11", value=104)]

    def test_query_range_includes_seed_day(self, now):
        resolved = resolve_timeframe(BERLIN, "thismonth", now)

        date_from, date_to = chart_query_range(resolved, BERLIN)

        assert date_from == local_day(2023, 4, 30)
        assert date_to == resolved.date_to


class TestCsvExport:

    def test_header_and_rows(self):
        body = export_csv([ChartPoint(date="2023-05-11", value=10), ChartPoint(date="2023-05-12", value=5)], "Boosts")
        assert body == "Date;Boosts\n2023-05-11;10\n2023-05-12;5\n"

    def test_empty_series_has_header_only(self):
        assert export_csv([], "Followers") == "Date;Followers\n"
