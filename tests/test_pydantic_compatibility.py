"""Tests for Pydantic compatibility and no deprecation warnings"""
import warnings
import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from analysis.schemas import AggregationReport, AccountFailure
from service.dto import KpiDTO, RankedTootDTO


def dump_without_deprecations(model, **kwargs):
    with warnings.catch_warnings(record=True) as warning_list:
        warnings.simplefilter("always")
        data = model.model_dump(**kwargs)

    deprecation_warnings = [w for w in warning_list if issubclass(w.category, DeprecationWarning)]
    assert len(deprecation_warnings) == 0, f"Deprecation warnings found: {deprecation_warnings}"
    return data


class TestPydanticCompatibility:
    """Test Pydantic models use current API without deprecation warnings"""

    def test_kpi_dto_model_dump(self):
        """Unset KPI fields are dropped with exclude_none"""
        kpi = KpiDTO(current_period=12, current_period_progress=0.5)

        data = dump_without_deprecations(kpi, exclude_none=True)

        assert data == {"current_period": 12, "current_period_progress": 0.5}

    def test_kpi_dto_accepts_infinite_trend(self):
        assert KpiDTO(trend="infinite").trend == "infinite"
        assert KpiDTO(trend=0.25).trend == 0.25

    def test_kpi_dto_rejects_progress_out_of_range(self):
        with pytest.raises(ValidationError):
            KpiDTO(current_period_progress=1.5)

    def test_ranked_toot_model_dump(self):
        toot = RankedTootDTO(
            id="109",
            content="<p>hello fediverse</p>",
            created_at=datetime(2023, 5, 10, 12, 0, tzinfo=timezone.utc),
            reblogs_count=3,
            rank=3,
        )

        data = dump_without_deprecations(toot)

        assert data["rank"] == 3
        assert data["replies_count"] is None

    def test_aggregation_report_json(self):
        report = AggregationReport(processed=2, buckets_written=3,
                                   failures=[AccountFailure(account_id="a", error="boom")])

        with warnings.catch_warnings(record=True) as warning_list:
            warnings.simplefilter("always")
            payload = report.model_dump_json()

        assert not [w for w in warning_list if issubclass(w.category, DeprecationWarning)]
        assert '"account_id":"a"' in payload


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
